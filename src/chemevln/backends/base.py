"""Backend protocol for the derivative/Jacobian kernels."""

from __future__ import annotations

from typing import Protocol

import numpy as np


class KineticsBackend(Protocol):
    name: str

    def derivs(self, numden: np.ndarray, rates: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
        ...

    def jacobian(self, numden: np.ndarray, rates: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
        ...
