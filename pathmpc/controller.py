"""Receding-horizon solve driver.

Each call to :meth:`MPC.solve` is an independent one-shot optimisation: the
bounds, starting point and parameters are rebuilt from the inputs, the solver
is run once, and only the first actuator pair of the optimal plan is meant to
be applied.  Retry and fallback policies belong to the calling control loop.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from pathmpc.assembler import ProblemAssembler
from pathmpc.config import MPCConfig
from pathmpc.diagnostics import analyse_solution
from pathmpc.layout import VariableLayout
from pathmpc.solver import NLPSolver, IpoptSolver, Solution
from pathmpc.state import as_vehicle_state, as_path_model

logger = logging.getLogger(__name__)


class MPCSolveError(RuntimeError):
    """Raised when a command is requested from a failed solve."""


@dataclass
class MPCResult:
    """Result of one control cycle."""
    success: bool
    status: str
    cost: float
    steering: float
    acceleration: float
    trajectory: np.ndarray       # (N, 2) predicted [x, y]
    solution: Solution

    @property
    def actuation(self) -> Tuple[float, float]:
        """``(steering, acceleration)`` to apply; raises on a failed solve."""
        self._check()
        return self.steering, self.acceleration

    def to_list(self) -> List[float]:
        """``[delta, a, x0, y0, x1, y1, ...]``; raises on a failed solve."""
        self._check()
        return [self.steering, self.acceleration] + self.trajectory.ravel().tolist()

    def _check(self):
        if not self.success:
            raise MPCSolveError(f"MPC solve failed with status '{self.status}'")


class MPC:
    """Model predictive controller tracking a cubic reference path.

    Args:
        config: Controller configuration. Defaults to :class:`MPCConfig`.
        solver: Nonlinear programming backend. Defaults to an
            :class:`IpoptSolver` built from ``config``.
    """

    def __init__(self,
                 config: Optional[MPCConfig] = None,
                 solver: Optional[NLPSolver] = None):
        self._config = config if config is not None else MPCConfig()
        self._assembler = ProblemAssembler(self._config)
        self._solver = solver if solver is not None else IpoptSolver.from_config(self._config)

    @property
    def config(self) -> MPCConfig:
        return self._config

    @property
    def layout(self) -> VariableLayout:
        return self._assembler.layout

    @property
    def solver(self) -> NLPSolver:
        return self._solver

    def solve(self, state, coeffs) -> MPCResult:
        """Solve one cycle.

        Args:
            state: VehicleState or six values ``[x, y, psi, v, cte, epsi]``.
            coeffs: PathModel or four coefficients, lowest order first.

        Returns:
            MPCResult. On non-convergence ``success`` is False and the
            command accessors raise :class:`MPCSolveError`.

        Raises:
            MPCConfigError: if the inputs are malformed.
        """
        state = as_vehicle_state(state)
        path = as_path_model(coeffs)
        layout = self.layout

        nlp = self._assembler.nlp
        bounds = self._assembler.bounds(state)
        x0 = self._assembler.initial_guess()
        parameters = self._assembler.parameters(path)

        solution = self._solver.solve(nlp, bounds, x0, parameters)

        logger.info("Cost %f", solution.cost)
        if not solution.success:
            logger.warning("MPC solve failed: %s (%.1fms)",
                           solution.status, solution.solve_time * 1000)

        blocks = layout.split(solution.x)
        trajectory = np.column_stack([blocks["x"], blocks["y"]])

        # IPOPT may relax variable bounds by ~1e-8
        steering = float(np.clip(blocks["delta"][0], -self._config.delta_max, self._config.delta_max))
        acceleration = float(np.clip(blocks["a"][0], -self._config.a_max, self._config.a_max))

        if logger.isEnabledFor(logging.DEBUG):
            diag = analyse_solution(solution.x, layout, self._config, state, path)
            logger.debug("Diagnostics: %s", diag)

        return MPCResult(
            success=solution.success,
            status=solution.status,
            cost=solution.cost,
            steering=steering,
            acceleration=acceleration,
            trajectory=trajectory,
            solution=solution,
        )
