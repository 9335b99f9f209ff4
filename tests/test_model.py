"""
Tests for the kinematic prediction model.
"""

import numpy as np
import pytest
import casadi as ca

from pathmpc.model import kinematic_step, kinematic_function, rollout, step
from pathmpc.state import VehicleState, PathModel

DT = 0.1
LF = 2.67


def evaluate(state, actuators, coeffs, dt=DT, lf=LF):
    f = kinematic_function(dt, lf)
    return np.asarray(f(np.asarray(state, dtype=float),
                        np.asarray(actuators, dtype=float),
                        np.asarray(coeffs, dtype=float)).full()).ravel()


def test_on_path_state_stays_on_path():
    """Straight, on-path driving with zero actuation keeps cte and epsi at zero."""
    next_state = evaluate([0.0, 0.0, 0.0, 20.0, 0.0, 0.0], [0.0, 0.0], [0, 0, 0, 0])
    np.testing.assert_allclose(next_state, [2.0, 0.0, 0.0, 20.0, 0.0, 0.0], atol=1e-12)


def test_matches_closed_form_on_curved_path():
    state = [1.0, 2.0, 0.5, 5.0, 0.3, 0.1]
    delta, a = 0.1, 0.5
    coeffs = [1.0, 2.0, 0.0, 0.0]

    f0 = 1.0 + 2.0 * 1.0
    psi_des0 = np.arctan(2.0)
    expected = [
        1.0 + 5.0 * np.cos(0.5) * DT,
        2.0 + 5.0 * np.sin(0.5) * DT,
        0.5 - 5.0 * delta / LF * DT,
        5.0 + a * DT,
        (f0 - 2.0) + 5.0 * np.sin(0.1) * DT,
        (0.5 - psi_des0) - 5.0 * delta / LF * DT,
    ]
    np.testing.assert_allclose(evaluate(state, [delta, a], coeffs), expected, rtol=1e-12)


def test_cubic_path_terms():
    coeffs = [0.5, -0.2, 0.03, 0.004]
    x0 = 3.0
    next_state = evaluate([x0, 0.0, 0.0, 0.0, 0.0, 0.0], [0.0, 0.0], coeffs)
    path = PathModel(coeffs)
    assert next_state[4] == pytest.approx(path.evaluate(x0))
    assert next_state[5] == pytest.approx(-path.heading(x0))


def test_positive_steering_turns_clockwise():
    next_state = evaluate([0.0, 0.0, 0.0, 10.0, 0.0, 0.0], [0.2, 0.0], [0, 0, 0, 0])
    assert next_state[2] < 0.0
    assert next_state[5] < 0.0


def test_previous_cte_does_not_propagate():
    """The next cte is measured from the path, not carried from the current cte."""
    a = evaluate([0.0, -1.0, 0.0, 10.0, 0.0, 0.0], [0.0, 0.0], [0, 0, 0, 0])
    b = evaluate([0.0, -1.0, 0.0, 10.0, 5.0, 0.0], [0.0, 0.0], [0, 0, 0, 0])
    np.testing.assert_array_equal(a, b)


def test_symbolic_step_is_differentiable():
    s = ca.SX.sym("s", 6)
    u = ca.SX.sym("u", 2)
    out = ca.vertcat(*kinematic_step([s[i] for i in range(6)], [u[0], u[1]],
                                     [0.0, 0.0, 0.0, 0.0], DT, LF))
    jac = ca.Function("step_jacobian", [s, u], [ca.jacobian(out, u)])
    j = np.asarray(jac([0, 0, 0, 10.0, 0, 0], [0, 0]).full())
    # d psi1 / d delta and d v1 / d a
    assert j[2, 0] == pytest.approx(-10.0 / LF * DT)
    assert j[3, 1] == pytest.approx(DT)


def test_step_accepts_value_types():
    state = VehicleState(0.0, 0.0, 0.0, 10.0, 0.0, 0.0)
    next_state = step(state, 0.0, 1.0, PathModel([0, 0, 0, 0]), DT, LF)
    np.testing.assert_allclose(next_state, [1.0, 0.0, 0.0, 10.1, 0.0, 0.0], atol=1e-12)


def test_rollout():
    states = rollout([0.0, 0.0, 0.0, 10.0, 0.0, 0.0],
                     steering=[0.0] * 5, acceleration=[1.0] * 5,
                     path=[0, 0, 0, 0], dt=DT, lf=LF)
    assert states.shape == (6, 6)
    np.testing.assert_allclose(states[:, 3], 10.0 + 0.1 * np.arange(6))
    np.testing.assert_allclose(states[:, 1], 0.0, atol=1e-12)
    assert np.all(np.diff(states[:, 0]) > 0)


def test_rollout_length_mismatch():
    with pytest.raises(ValueError):
        rollout([0, 0, 0, 10, 0, 0], [0.0, 0.0], [0.0], [0, 0, 0, 0], DT, LF)
