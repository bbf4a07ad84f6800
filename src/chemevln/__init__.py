"""Stiff chemical-kinetics evolution with element and charge conservation."""

from . import constants
from .config import EvolveConfig
from .conservation import ele_makeup
from .diagnostics import conservation_report
from .errors import BackendUnavailableError, ChemEvlnError, ConfigurationError, NetworkError
from .evolve import evolve
from .integrators import build_integrators
from .kinetics import derivs, jacobi
from .network import Element, Equation, EquationTerm, Reaction, ReactionNetwork, Species
from .state import ChemEvolution

__all__ = [
    "constants",
    "BackendUnavailableError",
    "ChemEvlnError",
    "ChemEvolution",
    "ConfigurationError",
    "Element",
    "Equation",
    "EquationTerm",
    "EvolveConfig",
    "NetworkError",
    "Reaction",
    "ReactionNetwork",
    "Species",
    "build_integrators",
    "conservation_report",
    "derivs",
    "ele_makeup",
    "evolve",
    "jacobi",
]
