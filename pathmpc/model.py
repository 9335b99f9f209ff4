"""Discrete-time kinematic model used as the MPC prediction model.

State ``[x, y, psi, v, cte, epsi]``, actuators ``[delta, a]`` held constant
over one step of ``dt`` seconds:

    x_{t+1}    = x_t + v_t * cos(psi_t) * dt
    y_{t+1}    = y_t + v_t * sin(psi_t) * dt
    psi_{t+1}  = psi_t - v_t * delta_t / Lf * dt
    v_{t+1}    = v_t + a_t * dt
    cte_{t+1}  = (f(x_t) - y_t) + v_t * sin(epsi_t) * dt
    epsi_{t+1} = (psi_t - psi_des_t) - v_t * delta_t / Lf * dt

where ``f`` is the cubic reference path and ``psi_des_t = atan(f'(x_t))``.
A positive steering angle turns the heading clockwise.
"""

import logging
from typing import Sequence

import numpy as np
import casadi as ca

from pathmpc.state import (STATE_SIZE, evaluate_polynomial, polynomial_slope,
                           as_vehicle_state, as_path_model)

logger = logging.getLogger(__name__)

N_ACTUATORS = 2


def kinematic_step(state: Sequence, actuators: Sequence, coeffs: Sequence,
                   dt: float, lf: float) -> list:
    """Next-state expressions of the kinematic model.

    Args:
        state: Six scalars ``[x, y, psi, v, cte, epsi]`` (CasADi symbols or floats).
        actuators: Two scalars ``[delta, a]``.
        coeffs: Four path coefficients, lowest order first.
        dt: Timestep (s).
        lf: Distance from front axle to centre of gravity (m).

    Returns:
        List of the six predicted state expressions at ``t + dt``.
    """
    x0, y0, psi0, v0, _, epsi0 = state
    delta0, a0 = actuators

    f0 = evaluate_polynomial(coeffs, x0)
    psi_des0 = ca.atan(polynomial_slope(coeffs, x0))

    return [
        x0 + v0 * ca.cos(psi0) * dt,
        y0 + v0 * ca.sin(psi0) * dt,
        psi0 - v0 * delta0 / lf * dt,
        v0 + a0 * dt,
        (f0 - y0) + v0 * ca.sin(epsi0) * dt,
        (psi0 - psi_des0) - v0 * delta0 / lf * dt,
    ]


def kinematic_function(dt: float, lf: float) -> ca.Function:
    """Compile the model as ``(state[6], actuators[2], coeffs[4]) -> next_state[6]``."""
    s = ca.SX.sym("state", STATE_SIZE)
    u = ca.SX.sym("actuators", N_ACTUATORS)
    c = ca.SX.sym("coeffs", 4)
    next_state = ca.vertcat(*kinematic_step(
        [s[i] for i in range(STATE_SIZE)], [u[0], u[1]], c, dt, lf))
    return ca.Function("kinematic_step", [s, u, c], [next_state],
                       ["state", "actuators", "coeffs"], ["next_state"])


def step(state, delta: float, a: float, path, dt: float, lf: float,
         function: ca.Function = None) -> np.ndarray:
    """Numerically advance ``state`` by one step.

    Returns:
        (6,) array of the predicted state.
    """
    state = as_vehicle_state(state)
    path = as_path_model(path)
    if function is None:
        function = kinematic_function(dt, lf)
    out = function(state.as_array(), np.array([delta, a], dtype=float), path.coeffs)
    return np.asarray(out.full(), dtype=float).ravel()


def rollout(state, steering: Sequence[float], acceleration: Sequence[float],
            path, dt: float, lf: float) -> np.ndarray:
    """Forward-simulate a sequence of actuator pairs.

    Args:
        state: Initial VehicleState (or six values).
        steering: Steering angles, one per step.
        acceleration: Accelerations, one per step.
        path: PathModel (or four coefficients).
        dt: Timestep (s).
        lf: Front axle to centre of gravity distance (m).

    Returns:
        (k+1, 6) array of states including the initial one.
    """
    steering = np.asarray(steering, dtype=float).ravel()
    acceleration = np.asarray(acceleration, dtype=float).ravel()
    if steering.shape != acceleration.shape:
        raise ValueError("steering and acceleration must have the same length")

    function = kinematic_function(dt, lf)
    current = as_vehicle_state(state).as_array()
    states = [current]
    for delta, a in zip(steering, acceleration):
        current = step(current, delta, a, path, dt, lf, function=function)
        states.append(current)
    return np.array(states)
