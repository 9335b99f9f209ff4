"""Objective of the tracking problem.

The cost is a sum of independently weighted quadratic terms:

* tracking, for every timestep: cte^2, epsi^2, (v - ref_v)^2
* actuation magnitude, for every actuator step: delta^2, a^2
* actuation smoothness, for consecutive actuator steps: (delta' - delta)^2, (a' - a)^2

``w`` may be a CasADi symbol (to build the objective handed to the solver) or a
numeric array (to evaluate a solution), the arithmetic is the same.
"""

from collections import OrderedDict

from pathmpc.config import MPCConfig
from pathmpc.layout import VariableLayout


def cost_terms(w, layout: VariableLayout, config: MPCConfig) -> "OrderedDict":
    """Weighted cost terms, each summed over its time range.

    Args:
        w: Decision vector (CasADi SX/MX or numpy array).
        layout: Offsets of the decision vector.
        config: Weights and reference speed.

    Returns:
        OrderedDict mapping term name to its weighted sum.
    """
    N = layout.horizon
    cte_start, epsi_start, v_start = layout.cte_start, layout.epsi_start, layout.v_start
    delta_start, a_start = layout.delta_start, layout.a_start

    terms = OrderedDict((name, 0) for name in
                        ("cte", "epsi", "v", "delta", "a", "delta_rate", "a_rate"))

    # Reference state
    for t in range(N):
        terms["cte"] += config.w_cte * w[cte_start + t] ** 2
        terms["epsi"] += config.w_epsi * w[epsi_start + t] ** 2
        terms["v"] += config.w_v * (w[v_start + t] - config.ref_v) ** 2

    # Actuator use
    for t in range(N - 1):
        terms["delta"] += config.w_delta * w[delta_start + t] ** 2
        terms["a"] += config.w_a * w[a_start + t] ** 2

    # Gap between sequential actuations
    for t in range(N - 2):
        terms["delta_rate"] += config.w_delta_rate * (w[delta_start + t + 1] - w[delta_start + t]) ** 2
        terms["a_rate"] += config.w_a_rate * (w[a_start + t + 1] - w[a_start + t]) ** 2

    return terms


def build_cost(w, layout: VariableLayout, config: MPCConfig):
    """Scalar objective: the sum of :func:`cost_terms`."""
    cost = 0
    for term in cost_terms(w, layout, config).values():
        cost += term
    return cost
