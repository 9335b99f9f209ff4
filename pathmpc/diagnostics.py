"""Post-solve analysis of a decision vector."""

import logging
from typing import Dict

import numpy as np

from pathmpc.config import MPCConfig
from pathmpc.cost import cost_terms
from pathmpc.layout import VariableLayout, STATE_NAMES
from pathmpc.model import kinematic_function
from pathmpc.state import VehicleState, PathModel

logger = logging.getLogger(__name__)

TOLERANCE = 1e-3


def analyse_solution(x: np.ndarray, layout: VariableLayout, config: MPCConfig,
                     state: VehicleState, path: PathModel) -> Dict:
    """Check bounds and model consistency of a decision vector.

    Args:
        x: (n_vars,) decision vector returned by the solver.
        layout: Offsets of the decision vector.
        config: Configuration the problem was built with.
        state: Vehicle state the problem was anchored to.
        path: Reference path used in the model.

    Returns:
        Dict with bound violation flags, the largest anchor and dynamics
        residuals, the numeric cost breakdown and actuator ranges.
    """
    blocks = layout.split(x)
    N = layout.horizon
    delta = blocks["delta"]
    a = blocks["a"]

    steering_violated = bool(np.max(np.abs(delta)) > config.delta_max + TOLERANCE)
    acceleration_violated = bool(np.max(np.abs(a)) > config.a_max + TOLERANCE)

    states = np.column_stack([blocks[name] for name in STATE_NAMES])  # (N, 6)
    anchor_error = float(np.max(np.abs(states[0] - state.as_array())))

    f = kinematic_function(config.dt, config.lf)
    residuals = []
    for t in range(1, N):
        predicted = np.asarray(
            f(states[t - 1], np.array([delta[t - 1], a[t - 1]]), path.coeffs).full()
        ).ravel()
        residuals.append(np.max(np.abs(predicted - states[t])))
    dynamics_residual = float(max(residuals))

    terms = {name: float(value) for name, value in cost_terms(x, layout, config).items()}

    any_violated = (steering_violated or acceleration_violated
                    or anchor_error > TOLERANCE
                    or dynamics_residual > TOLERANCE)

    return {
        'steering_violated': steering_violated,
        'acceleration_violated': acceleration_violated,
        'anchor_error': anchor_error,
        'dynamics_residual': dynamics_residual,
        'cost_terms': terms,
        'any_violated': any_violated,
        'delta_range': (float(np.min(delta)), float(np.max(delta))),
        'a_range': (float(np.min(a)), float(np.max(a))),
    }
