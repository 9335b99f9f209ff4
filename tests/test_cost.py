"""
Tests for the cost function builder.
"""

import numpy as np
import pytest
import casadi as ca

from pathmpc.config import MPCConfig
from pathmpc.cost import cost_terms, build_cost
from pathmpc.layout import VariableLayout


@pytest.fixture
def layout():
    return VariableLayout(3)


@pytest.fixture
def config():
    return MPCConfig(horizon=3, ref_v=30.0)


def make_vector(layout, **blocks):
    w = np.zeros(layout.n_vars)
    for name, values in blocks.items():
        w[layout.slice(name)] = values
    return w


def test_zero_error_vector_costs_nothing(layout, config):
    w = make_vector(layout, v=[30.0, 30.0, 30.0])
    assert build_cost(w, layout, config) == pytest.approx(0.0)


def test_tracking_terms(layout, config):
    w = make_vector(layout, cte=[1.0, 1.0, 1.0], epsi=[0.0, 0.1, 0.0], v=[30.0, 31.0, 28.0])
    terms = cost_terms(w, layout, config)
    assert terms["cte"] == pytest.approx(2000.0 * 3)
    assert terms["epsi"] == pytest.approx(2000.0 * 0.01)
    assert terms["v"] == pytest.approx(1.0 + 4.0)


def test_actuation_terms(layout, config):
    w = make_vector(layout, v=[30.0] * 3, delta=[0.1, 0.2], a=[1.0, -1.0])
    terms = cost_terms(w, layout, config)
    assert terms["delta"] == pytest.approx(10.0 * (0.01 + 0.04))
    assert terms["a"] == pytest.approx(10.0 * 2.0)
    assert terms["delta_rate"] == pytest.approx(100.0 * 0.01)
    assert terms["a_rate"] == pytest.approx(10.0 * 4.0)
    assert build_cost(w, layout, config) == pytest.approx(sum(terms.values()))


def test_weights_are_configurable(layout):
    config = MPCConfig(horizon=3, ref_v=0.0, w_cte=1.0, w_delta_rate=0.0)
    w = make_vector(layout, cte=[2.0, 0.0, 0.0], delta=[0.0, 0.5])
    terms = cost_terms(w, layout, config)
    assert terms["cte"] == pytest.approx(4.0)
    assert terms["delta_rate"] == pytest.approx(0.0)


def test_two_step_horizon_has_no_rate_terms():
    layout = VariableLayout(2)
    config = MPCConfig(horizon=2, ref_v=0.0)
    w = make_vector(layout, delta=[0.3], a=[0.5])
    terms = cost_terms(w, layout, config)
    assert terms["delta_rate"] == 0
    assert terms["a_rate"] == 0
    assert terms["delta"] == pytest.approx(10.0 * 0.09)


def test_symbolic_cost_matches_numeric(layout, config):
    w_sym = ca.SX.sym("w", layout.n_vars)
    f = ca.Function("f", [w_sym], [build_cost(w_sym, layout, config)])

    rng = np.random.default_rng(3)
    w = rng.normal(size=layout.n_vars)
    assert float(f(w)) == pytest.approx(build_cost(w, layout, config))

    grad = ca.Function("g", [w_sym], [ca.gradient(build_cost(w_sym, layout, config), w_sym)])
    g = np.asarray(grad(w).full()).ravel()
    # Position and heading are not penalised directly
    for name in ("x", "y", "psi"):
        np.testing.assert_array_equal(g[layout.slice(name)], 0.0)
