"""Assembly of the nonlinear program: constraints, bounds and initial guess.

The symbolic program only depends on the configuration, so it is built once.
The current vehicle state enters through the anchor rows of the constraint
bounds and the path through the parameter vector, both set per cycle.
"""

import logging
from dataclasses import dataclass

import numpy as np
import casadi as ca

from pathmpc.config import MPCConfig
from pathmpc.cost import build_cost
from pathmpc.layout import VariableLayout, STATE_NAMES
from pathmpc.model import kinematic_step
from pathmpc.state import VehicleState, PathModel, PATH_ORDER

logger = logging.getLogger(__name__)


@dataclass
class NonlinearProgram:
    """Symbolic problem ``min f(w; p)  s.t.  lbg <= g(w; p) <= ubg, lbx <= w <= ubx``."""
    w: ca.SX             # Decision vector (n_vars,)
    p: ca.SX             # Path coefficients (4,)
    f: ca.SX             # Scalar objective
    g: ca.SX             # Constraints (n_constraints,)
    layout: VariableLayout


@dataclass
class ProblemBounds:
    """Numeric bounds of one solve."""
    lbx: np.ndarray
    ubx: np.ndarray
    lbg: np.ndarray
    ubg: np.ndarray


def build_constraints(w, coeffs, layout: VariableLayout, dt: float, lf: float) -> ca.SX:
    """Constraint vector tying the decision vector to the kinematic model.

    Row ``start(name)`` of each state block is the decision value itself, to be
    pinned to the current state.  Rows ``start(name) + t`` for ``t >= 1`` hold
    ``predicted(t) - w[start(name) + t]`` where ``predicted(t)`` is the model
    applied to the decision state and actuators at ``t - 1``.

    Args:
        w: Decision vector symbol.
        coeffs: Path coefficients (symbol or numbers).
        layout: Offsets of the decision vector.
        dt: Timestep (s).
        lf: Front axle to centre of gravity distance (m).

    Returns:
        (n_constraints,) SX vector.
    """
    N = layout.horizon
    starts = [layout.start(name) for name in STATE_NAMES]
    g = [None] * layout.n_constraints

    # Initial state
    for start in starts:
        g[start] = w[start]

    # Dynamics
    for t in range(1, N):
        state1 = [w[start + t] for start in starts]
        state0 = [w[start + t - 1] for start in starts]
        actuators0 = [w[layout.delta_start + t - 1], w[layout.a_start + t - 1]]

        predicted = kinematic_step(state0, actuators0, coeffs, dt, lf)
        for start, pred, actual in zip(starts, predicted, state1):
            g[start + t] = pred - actual

    return ca.vertcat(*g)


def variable_bounds(layout: VariableLayout, config: MPCConfig):
    """Box bounds on the decision vector.

    States are left free, steering is limited to ``±delta_max`` and
    acceleration to ``±a_max``.

    Returns:
        (lbx, ubx) arrays of length n_vars.
    """
    lbx = np.full(layout.n_vars, -config.state_bound)
    ubx = np.full(layout.n_vars, config.state_bound)

    delta = layout.slice("delta")
    lbx[delta] = -config.delta_max
    ubx[delta] = config.delta_max

    a = layout.slice("a")
    lbx[a] = -config.a_max
    ubx[a] = config.a_max

    return lbx, ubx


def constraint_bounds(layout: VariableLayout, state: VehicleState):
    """Bounds of the constraint vector.

    All dynamics rows must be exactly zero; the anchor rows equal the current
    state component.

    Returns:
        (lbg, ubg) arrays of length n_constraints.
    """
    lbg = np.zeros(layout.n_constraints)
    ubg = np.zeros(layout.n_constraints)
    for name, value in zip(STATE_NAMES, state.as_array()):
        start = layout.start(name)
        lbg[start] = value
        ubg[start] = value
    return lbg, ubg


def initial_guess(layout: VariableLayout) -> np.ndarray:
    """All-zero starting point; the initial state is enforced by the constraints."""
    return np.zeros(layout.n_vars)


class ProblemAssembler:
    """Builds the symbolic program once and the numeric bounds per cycle.

    Args:
        config: Controller configuration.
    """

    def __init__(self, config: MPCConfig):
        self._config = config
        self._layout = VariableLayout(config.horizon)
        self._nlp = None
        self._variable_bounds = variable_bounds(self._layout, config)

    @property
    def config(self) -> MPCConfig:
        return self._config

    @property
    def layout(self) -> VariableLayout:
        return self._layout

    @property
    def nlp(self) -> NonlinearProgram:
        if self._nlp is None:
            self._nlp = self._build()
        return self._nlp

    def bounds(self, state: VehicleState) -> ProblemBounds:
        lbx, ubx = self._variable_bounds
        lbg, ubg = constraint_bounds(self._layout, state)
        return ProblemBounds(lbx=lbx.copy(), ubx=ubx.copy(), lbg=lbg, ubg=ubg)

    def initial_guess(self) -> np.ndarray:
        return initial_guess(self._layout)

    @staticmethod
    def parameters(path: PathModel) -> np.ndarray:
        return path.as_array()

    def _build(self) -> NonlinearProgram:
        config = self._config
        layout = self._layout
        w = ca.SX.sym("w", layout.n_vars)
        p = ca.SX.sym("coeffs", PATH_ORDER + 1)

        f = build_cost(w, layout, config)
        g = build_constraints(w, p, layout, config.dt, config.lf)

        logger.debug("Built NLP with %d variables and %d constraints (N=%d, dt=%.3f)",
                     layout.n_vars, layout.n_constraints, layout.horizon, config.dt)
        return NonlinearProgram(w=w, p=p, f=f, g=g, layout=layout)
