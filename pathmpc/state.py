"""Per-cycle inputs of the controller: vehicle state and reference path."""

from dataclasses import dataclass, astuple
from typing import Sequence, Union

import numpy as np

from pathmpc.config import MPCConfigError


STATE_SIZE = 6
PATH_ORDER = 3


@dataclass(frozen=True)
class VehicleState:
    """Vehicle state at the start of a control cycle.

    Attributes:
        x, y: Position (m).
        psi: Heading (rad).
        v: Speed.
        cte: Cross-track error to the reference path.
        epsi: Heading error to the reference path tangent (rad).
    """
    x: float
    y: float
    psi: float
    v: float
    cte: float
    epsi: float

    def __post_init__(self):
        try:
            values = np.array(astuple(self), dtype=float)
        except (TypeError, ValueError) as e:
            raise MPCConfigError(f"VehicleState values must be numbers, got {astuple(self)}") from e
        if not np.all(np.isfinite(values)):
            raise MPCConfigError(f"VehicleState values must be finite, got {values.tolist()}")

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "VehicleState":
        values = np.asarray(values, dtype=float).ravel()
        if values.shape != (STATE_SIZE,):
            raise MPCConfigError(f"VehicleState needs {STATE_SIZE} values, got {values.size}")
        return cls(*(float(v) for v in values))

    def as_array(self) -> np.ndarray:
        return np.array(astuple(self), dtype=float)


class PathModel:
    """Cubic reference path ``y = c0 + c1*x + c2*x^2 + c3*x^3``.

    The coefficients are fitted by the caller in the same frame as the
    vehicle state and are fixed for the duration of one solve.

    Args:
        coeffs: Four polynomial coefficients, lowest order first.
    """

    def __init__(self, coeffs: Sequence[float]):
        coeffs = np.array(coeffs, dtype=float).ravel()
        if coeffs.shape != (PATH_ORDER + 1,):
            raise MPCConfigError(
                f"PathModel needs {PATH_ORDER + 1} coefficients, got {coeffs.size}")
        if not np.all(np.isfinite(coeffs)):
            raise MPCConfigError(f"PathModel coefficients must be finite, got {coeffs.tolist()}")
        self._coeffs = coeffs
        self._coeffs.setflags(write=False)

    def __repr__(self):
        return f"PathModel({self._coeffs.tolist()})"

    def __eq__(self, other):
        if not isinstance(other, PathModel):
            return NotImplemented
        return bool(np.array_equal(self._coeffs, other._coeffs))

    def __hash__(self):
        return hash(tuple(self._coeffs))

    @property
    def coeffs(self) -> np.ndarray:
        return self._coeffs

    def as_array(self) -> np.ndarray:
        return self._coeffs.copy()

    def evaluate(self, x):
        """Path ordinate at ``x``. Works on floats, arrays and CasADi symbols."""
        return evaluate_polynomial(self._coeffs, x)

    def slope(self, x):
        return polynomial_slope(self._coeffs, x)

    def heading(self, x: Union[float, np.ndarray]):
        """Tangent direction of the path at ``x`` (rad)."""
        return np.arctan(self.slope(x))

    def cross_track_error(self, x: float, y: float) -> float:
        return float(self.evaluate(x) - y)

    def heading_error(self, x: float, psi: float) -> float:
        return float(psi - self.heading(x))


def evaluate_polynomial(coeffs, x):
    c = coeffs
    return c[0] + c[1] * x + c[2] * x ** 2 + c[3] * x ** 3


def polynomial_slope(coeffs, x):
    c = coeffs
    return c[1] + 2 * c[2] * x + 3 * c[3] * x ** 2


def as_vehicle_state(state) -> VehicleState:
    if isinstance(state, VehicleState):
        return state
    return VehicleState.from_sequence(state)


def as_path_model(path) -> PathModel:
    if isinstance(path, PathModel):
        return path
    return PathModel(path)
