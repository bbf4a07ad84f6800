"""Derivative and Jacobian evaluators for a chemistry context."""

from __future__ import annotations

import numpy as np

from .backends.base import KineticsBackend
from .backends.factory import build_backend
from .state import ChemEvolution


def ensure_backend(evln: ChemEvolution, name: str = "auto") -> KineticsBackend:
    """Attach a kernel backend to ``evln`` unless one of that name is present."""
    current = evln.backend
    if current is None or (name != "auto" and getattr(current, "name", None) != name):
        evln.backend = build_backend(name, evln.network)
    return evln.backend


def derivs(evln: ChemEvolution, numden: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
    """Rate of density change of every species.

    Each species sums ``K[ind] * dir * prod(numden[lab])`` over its equation
    terms. ``numden`` is not modified.
    """
    return ensure_backend(evln).derivs(numden, evln.rates, out)


def jacobi(evln: ChemEvolution, numden: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
    """Jacobian ``d derivs_i / d numden_p``, zeroed before accumulation."""
    return ensure_backend(evln).jacobian(numden, evln.rates, out)
