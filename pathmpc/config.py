"""MPC configuration.

All tunables of the controller live in a single immutable :class:`MPCConfig`
which is built once at start-up and shared by the problem assembler and the
solve driver.  Values can be given directly, from a dict or from a JSON file.
"""

import json
import logging
import math
import numbers
from dataclasses import dataclass, field, fields, asdict, replace
from typing import Any, Dict

logger = logging.getLogger(__name__)


class MPCConfigError(ValueError):
    """Raised for invalid configuration or malformed solve inputs."""


@dataclass(frozen=True)
class MPCConfig:
    """Configuration for the receding-horizon path tracker."""
    # Horizon: N steps of dt seconds
    horizon: int = 10
    dt: float = 0.1

    # Distance between the front axle and the centre of gravity (m)
    lf: float = 2.67

    # Target speed for the velocity tracking term
    ref_v: float = 120.0

    # Tracking weights
    w_cte: float = 2000.0
    w_epsi: float = 2000.0
    w_v: float = 1.0

    # Actuation magnitude weights
    w_delta: float = 10.0
    w_a: float = 10.0

    # Actuation smoothness weights
    w_delta_rate: float = 100.0
    w_a_rate: float = 10.0

    # Actuator limits (25 degrees in radians, normalised throttle)
    delta_max: float = 0.436332
    a_max: float = 1.0

    # Magnitude used for "free" state variables; IPOPT treats 1e19 as infinite
    state_bound: float = 1.0e19

    # Solver settings
    max_cpu_time: float = 0.5
    print_level: int = 0
    solver_options: Dict[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        if isinstance(self.horizon, bool) or not isinstance(self.horizon, numbers.Integral):
            raise MPCConfigError(f"horizon must be an integer, got {self.horizon!r}")
        object.__setattr__(self, "horizon", int(self.horizon))
        if self.horizon < 2:
            raise MPCConfigError(f"horizon must be at least 2, got {self.horizon}")
        if not self.dt > 0 or not math.isfinite(self.dt):
            raise MPCConfigError(f"dt must be a positive finite number, got {self.dt}")
        if not self.lf > 0 or not math.isfinite(self.lf):
            raise MPCConfigError(f"lf must be a positive finite number, got {self.lf}")
        if not math.isfinite(self.ref_v):
            raise MPCConfigError(f"ref_v must be finite, got {self.ref_v}")

        for name in self.weight_names():
            value = getattr(self, name)
            if not value >= 0 or not math.isfinite(value):
                raise MPCConfigError(f"{name} must be a non-negative number, got {value}")

        for name in ("delta_max", "a_max", "state_bound", "max_cpu_time"):
            value = getattr(self, name)
            if not value > 0 or not math.isfinite(value):
                raise MPCConfigError(f"{name} must be a positive finite number, got {value}")

        if not isinstance(self.solver_options, dict):
            raise MPCConfigError("solver_options must be a dict")

    @staticmethod
    def weight_names():
        return ("w_cte", "w_epsi", "w_v", "w_delta", "w_a", "w_delta_rate", "w_a_rate")

    @property
    def prediction_time(self) -> float:
        """Length of the prediction horizon in seconds."""
        return self.horizon * self.dt

    def replace(self, **changes) -> "MPCConfig":
        """Return a copy with the given fields changed (validated again)."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, params: Dict[str, Any]) -> "MPCConfig":
        """Build a config from the defaults, overridden by ``params``.

        Args:
            params: Mapping of field name to value. Unknown keys are rejected.

        Returns:
            A validated MPCConfig.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(params) - known)
        if unknown:
            raise MPCConfigError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**params)

    @classmethod
    def from_json(cls, path: str) -> "MPCConfig":
        try:
            with open(path, "r") as f:
                params = json.load(f)
        except FileNotFoundError as e:
            logger.exception(msg=f"No configuration file found at {path}", exc_info=e)
            raise e
        if not isinstance(params, dict):
            raise MPCConfigError(f"Configuration file {path} must contain a JSON object")
        return cls.from_dict(params)
