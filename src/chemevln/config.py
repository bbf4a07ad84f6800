"""Run configuration for chemical evolution."""

from __future__ import annotations

from dataclasses import dataclass, fields
import math
from typing import Any, Mapping

from .constants import LOG_GROWTH, MAX_RETRIES, MIN_COVERAGE, SCALE_FLOOR, WALL_CLOCK_LIMIT
from .errors import ConfigurationError

INTEGRATOR_NAMES = ("extrapolation", "rosenbrock", "radau")
BACKEND_NAMES = ("numpy", "numba", "auto")


@dataclass(frozen=True)
class EvolveConfig:
    """Container for user-controlled evolution parameters."""

    integrators: tuple[str, ...] = ("extrapolation", "rosenbrock")
    backend: str = "auto"
    wall_clock_limit: float = WALL_CLOCK_LIMIT
    log_growth: float = LOG_GROWTH
    min_coverage: float = MIN_COVERAGE
    scale_floor: float = SCALE_FLOOR
    max_retries: int = MAX_RETRIES
    min_step: float = 0.0

    def __post_init__(self) -> None:
        if isinstance(self.integrators, str):
            object.__setattr__(self, "integrators", (self.integrators,))
        else:
            object.__setattr__(self, "integrators", tuple(self.integrators))
        if len(self.integrators) == 0:
            raise ConfigurationError("integrators must name at least one method")
        for name in self.integrators:
            if name not in INTEGRATOR_NAMES:
                raise ConfigurationError(f"integrators must be drawn from: {', '.join(INTEGRATOR_NAMES)}")
        if len(set(self.integrators)) != len(self.integrators):
            raise ConfigurationError("integrators must not repeat a method")
        if self.backend not in BACKEND_NAMES:
            raise ConfigurationError(f"backend must be one of: {', '.join(BACKEND_NAMES)}")
        if not math.isfinite(self.wall_clock_limit) or self.wall_clock_limit <= 0.0:
            raise ConfigurationError("wall_clock_limit must be finite and > 0")
        if self.log_growth <= 1.0:
            raise ConfigurationError("log_growth must be > 1")
        if not (0.0 <= self.min_coverage <= 1.0):
            raise ConfigurationError("min_coverage must be in [0, 1]")
        if self.scale_floor <= 0.0:
            raise ConfigurationError("scale_floor must be > 0")
        if self.max_retries < 1:
            raise ConfigurationError("max_retries must be >= 1")
        if self.min_step < 0.0:
            raise ConfigurationError("min_step must be >= 0")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "EvolveConfig":
        """Build a config from a flat key/value mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        kwargs: dict[str, Any] = {}
        for key, value in mapping.items():
            if key == "integrators":
                if isinstance(value, str):
                    value = tuple(v.strip() for v in value.split(",") if v.strip())
                kwargs[key] = tuple(value)
            elif key == "backend":
                kwargs[key] = str(value).strip().lower()
            elif key == "max_retries":
                kwargs[key] = int(value)
            else:
                kwargs[key] = float(value)
        return cls(**kwargs)
