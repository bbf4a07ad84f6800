"""Numba-accelerated reaction-network kernels."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..errors import BackendUnavailableError
from ..network import ReactionNetwork

try:
    from numba import njit
except Exception as exc:  # pragma: no cover - optional dependency
    njit = None
    _NUMBA_IMPORT_ERROR = exc
else:
    _NUMBA_IMPORT_ERROR = None


if njit is not None:

    @njit(cache=True)
    def _derivs_numba(numden, rates, term_species, term_rate, term_dir, term_lab, term_nreac, drv):
        drv[:] = 0.0
        for t in range(term_species.shape[0]):
            rate = rates[term_rate[t]] * term_dir[t]
            for j in range(term_nreac[t]):
                rate *= numden[term_lab[t, j]]
            drv[term_species[t]] += rate

    @njit(cache=True)
    def _jacobian_numba(numden, rates, term_species, term_rate, term_dir, term_lab, term_nreac, jac):
        jac[:, :] = 0.0
        for t in range(term_species.shape[0]):
            i = term_species[t]
            nreac = term_nreac[t]
            for k in range(nreac):
                jt = rates[term_rate[t]] * term_dir[t]
                for l in range(nreac):
                    if l != k:
                        jt *= numden[term_lab[t, l]]
                jac[i, term_lab[t, k]] += jt


@dataclass
class NumbaKinetics:
    """Jitted loops over the flattened term arrays."""

    network: ReactionNetwork
    name: str = "numba"

    def _args(self):
        net = self.network
        return net.term_species, net.term_rate, net.term_dir, net.term_lab, net.term_nreac

    def derivs(self, numden: np.ndarray, rates: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
        drv = np.zeros(self.network.n_species, dtype=float) if out is None else out
        _derivs_numba(np.asarray(numden, dtype=np.float64), np.asarray(rates, dtype=np.float64), *self._args(), drv)
        return drv

    def jacobian(self, numden: np.ndarray, rates: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
        n = self.network.n_species
        jac = np.zeros((n, n), dtype=float) if out is None else out
        _jacobian_numba(np.asarray(numden, dtype=np.float64), np.asarray(rates, dtype=np.float64), *self._args(), jac)
        return jac


def build_numba_backend(network: ReactionNetwork) -> NumbaKinetics:
    if njit is None:
        raise BackendUnavailableError(
            f"Numba backend unavailable: {_NUMBA_IMPORT_ERROR}"
        ) from _NUMBA_IMPORT_ERROR
    return NumbaKinetics(network)
