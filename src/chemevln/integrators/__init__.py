"""Stiff integrator strategies tried in priority order by the driver."""

from __future__ import annotations

from typing import Sequence

from ..config import EvolveConfig
from ..errors import ConfigurationError
from ..state import ChemEvolution
from .base import StepResult, StiffIntegrator
from .extrapolation import SemiImplicitExtrapolation
from .radau import RadauStep
from .rosenbrock import KapsRentrop

INTEGRATORS = {
    SemiImplicitExtrapolation.name: SemiImplicitExtrapolation,
    KapsRentrop.name: KapsRentrop,
    RadauStep.name: RadauStep,
}


def build_integrators(
    names: Sequence[str],
    evln: ChemEvolution,
    config: EvolveConfig | None = None,
) -> list[StiffIntegrator]:
    """Fresh integrator instances, in the order given."""
    built = []
    for name in names:
        try:
            cls = INTEGRATORS[name]
        except KeyError:
            raise ConfigurationError(f"Unknown integrator: {name}") from None
        built.append(cls(evln, config))
    return built


__all__ = [
    "INTEGRATORS",
    "KapsRentrop",
    "RadauStep",
    "SemiImplicitExtrapolation",
    "StepResult",
    "StiffIntegrator",
    "build_integrators",
]
