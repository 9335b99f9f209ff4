from pathmpc.config import MPCConfig, MPCConfigError
from pathmpc.state import VehicleState, PathModel
from pathmpc.layout import VariableLayout, STATE_NAMES, ACTUATOR_NAMES
from pathmpc.model import kinematic_step, kinematic_function, rollout
from pathmpc.cost import cost_terms, build_cost
from pathmpc.assembler import (ProblemAssembler, NonlinearProgram, ProblemBounds,
                               build_constraints, variable_bounds, constraint_bounds)
from pathmpc.solver import NLPSolver, IpoptSolver, Solution
from pathmpc.controller import MPC, MPCResult, MPCSolveError
from pathmpc.diagnostics import analyse_solution
from pathmpc.util import setup_logging
