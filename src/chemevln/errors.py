"""Custom exceptions for the :mod:`chemevln` package.

Numerical failures during a run are reported through status codes; these
exceptions cover construction-time and configuration problems only.
"""
from __future__ import annotations


class ChemEvlnError(Exception):
    """Base exception for chemistry evolution errors."""


class NetworkError(ChemEvlnError, ValueError):
    """Inconsistent reaction network (indices, composition, makeup species)."""


class ConfigurationError(ChemEvlnError, ValueError):
    """Invalid evolve configuration or unknown backend/integrator name."""


class BackendUnavailableError(ChemEvlnError, RuntimeError):
    """A requested kernel backend could not be built."""


__all__ = [
    "ChemEvlnError",
    "NetworkError",
    "ConfigurationError",
    "BackendUnavailableError",
]
