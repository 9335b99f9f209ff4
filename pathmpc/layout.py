"""Layout of the flat decision vector handed to the solver.

The solver sees every state and actuator over the horizon as one vector::

    [x(0..N-1), y(..), psi(..), v(..), cte(..), epsi(..), delta(0..N-2), a(0..N-2)]

The constraint vector reuses the six state blocks, so row ``start(name) + t``
of the constraints refers to the same quantity as entry ``start(name) + t`` of
the decision vector.
"""

import numbers
from typing import Dict, Tuple

import numpy as np

from pathmpc.config import MPCConfigError

STATE_NAMES: Tuple[str, ...] = ("x", "y", "psi", "v", "cte", "epsi")
ACTUATOR_NAMES: Tuple[str, ...] = ("delta", "a")


class VariableLayout:
    """Offsets of each named block in the decision vector, derived from N.

    Args:
        horizon: Number of timesteps N (>= 2).
    """

    def __init__(self, horizon: int):
        if isinstance(horizon, bool) or not isinstance(horizon, numbers.Integral):
            raise MPCConfigError(f"horizon must be an integer, got {horizon!r}")
        if horizon < 2:
            raise MPCConfigError(f"horizon must be at least 2, got {horizon}")
        self._horizon = int(horizon)

        self._starts: Dict[str, int] = {}
        self._lengths: Dict[str, int] = {}
        offset = 0
        for name in STATE_NAMES:
            self._starts[name] = offset
            self._lengths[name] = self._horizon
            offset += self._horizon
        for name in ACTUATOR_NAMES:
            self._starts[name] = offset
            self._lengths[name] = self._horizon - 1
            offset += self._horizon - 1
        self._n_vars = offset

    def __repr__(self):
        return f"VariableLayout(horizon={self._horizon})"

    def __eq__(self, other):
        if not isinstance(other, VariableLayout):
            return NotImplemented
        return self._horizon == other._horizon

    def __hash__(self):
        return hash(self._horizon)

    # ------------------------------------------------------------------
    # Sizes
    # ------------------------------------------------------------------

    @property
    def horizon(self) -> int:
        return self._horizon

    @property
    def n_vars(self) -> int:
        """``N*6 + (N-1)*2``."""
        return self._n_vars

    @property
    def n_constraints(self) -> int:
        """``N*6``: one row per state entry."""
        return len(STATE_NAMES) * self._horizon

    # ------------------------------------------------------------------
    # Named offsets
    # ------------------------------------------------------------------

    @property
    def x_start(self) -> int:
        return self._starts["x"]

    @property
    def y_start(self) -> int:
        return self._starts["y"]

    @property
    def psi_start(self) -> int:
        return self._starts["psi"]

    @property
    def v_start(self) -> int:
        return self._starts["v"]

    @property
    def cte_start(self) -> int:
        return self._starts["cte"]

    @property
    def epsi_start(self) -> int:
        return self._starts["epsi"]

    @property
    def delta_start(self) -> int:
        return self._starts["delta"]

    @property
    def a_start(self) -> int:
        return self._starts["a"]

    def start(self, name: str) -> int:
        try:
            return self._starts[name]
        except KeyError:
            raise KeyError(f"Unknown block '{name}'; expected one of "
                           f"{STATE_NAMES + ACTUATOR_NAMES}") from None

    def length(self, name: str) -> int:
        self.start(name)
        return self._lengths[name]

    def slice(self, name: str) -> slice:
        start = self.start(name)
        return slice(start, start + self._lengths[name])

    def index(self, name: str, t: int) -> int:
        """Flat index of block ``name`` at timestep ``t``."""
        length = self.length(name)
        if not 0 <= t < length:
            raise IndexError(f"timestep {t} out of range for '{name}' (length {length})")
        return self._starts[name] + t

    def blocks(self):
        """Iterate ``(name, slice)`` in vector order."""
        for name in STATE_NAMES + ACTUATOR_NAMES:
            yield name, self.slice(name)

    def split(self, vector) -> Dict[str, np.ndarray]:
        """Split a numeric decision vector into named blocks."""
        vector = np.asarray(vector, dtype=float).ravel()
        if vector.size != self._n_vars:
            raise ValueError(f"Expected a vector of length {self._n_vars}, got {vector.size}")
        return {name: vector[s].copy() for name, s in self.blocks()}
