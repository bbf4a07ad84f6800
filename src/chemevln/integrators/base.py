"""Shared contract for the stiff single-step integrators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol
import warnings

import numpy as np
from scipy.linalg import LinAlgWarning, lu_factor, lu_solve

from ..constants import STATUS_OK, STATUS_STEP_FAILED


@dataclass(frozen=True)
class StepResult:
    """Outcome of one ``advance`` call.

    On failure ``y`` is the unchanged input, ``hdid`` is zero and ``t`` the
    start time.
    """

    y: np.ndarray
    t: float
    hdid: float
    hnext: float
    status: int = STATUS_OK

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


class StiffIntegrator(Protocol):
    name: str

    def advance(
        self,
        y: np.ndarray,
        dydx: np.ndarray,
        t: float,
        htry: float,
        eps: float,
        yscal: np.ndarray,
    ) -> StepResult:
        ...


def failed_step(y: np.ndarray, t: float, h: float) -> StepResult:
    return StepResult(y=y, t=t, hdid=0.0, hnext=h, status=STATUS_STEP_FAILED)


def scaled_error(yerr: np.ndarray, yscal: np.ndarray, eps: float, floor: float = 0.0) -> float:
    """Max-norm of ``yerr / yscal`` in units of ``eps``; non-finite maps to inf."""
    with np.errstate(all="ignore"):
        raw = float(np.max(np.abs(yerr / yscal)))
    # max() would drop a NaN in favour of the floor.
    if not np.isfinite(raw):
        return np.inf
    errmax = max(floor, raw) / eps
    return errmax if np.isfinite(errmax) else np.inf


def factorize(matrix: np.ndarray):
    """LU factors of ``matrix`` or ``None`` when it is singular or non-finite."""
    if not np.all(np.isfinite(matrix)):
        return None
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", LinAlgWarning)
        lu, piv = lu_factor(matrix, check_finite=False)
    if not np.all(np.isfinite(lu)) or np.any(np.diag(lu) == 0.0):
        return None
    return lu, piv


def solve(factors, rhs: np.ndarray) -> np.ndarray:
    return lu_solve(factors, rhs, check_finite=False)
