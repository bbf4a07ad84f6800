"""Default NumPy backend for the reaction-network kernels."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..network import ReactionNetwork


@dataclass
class NumpyKinetics:
    """Vectorised evaluation over the flattened term arrays."""

    network: ReactionNetwork
    name: str = "numpy"

    def __post_init__(self) -> None:
        net = self.network
        width = net.term_lab.shape[1]
        self._active = np.arange(width)[None, :] < net.term_nreac[:, None]

    def _factors(self, numden: np.ndarray) -> np.ndarray:
        # Padding slots contribute a factor of one.
        return np.where(self._active, numden[self.network.term_lab], 1.0)

    def derivs(self, numden: np.ndarray, rates: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
        net = self.network
        drv = np.zeros(net.n_species, dtype=float) if out is None else out
        drv.fill(0.0)
        if net.n_terms == 0:
            return drv
        coef = rates[net.term_rate] * net.term_dir
        np.add.at(drv, net.term_species, coef * np.prod(self._factors(numden), axis=1))
        return drv

    def jacobian(self, numden: np.ndarray, rates: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
        net = self.network
        n = net.n_species
        jac = np.zeros((n, n), dtype=float) if out is None else out
        jac.fill(0.0)
        if net.n_terms == 0:
            return jac
        coef = rates[net.term_rate] * net.term_dir
        factors = self._factors(numden)
        for k in range(net.term_lab.shape[1]):
            slot = self._active[:, k]
            if not slot.any():
                continue
            others = factors.copy()
            others[:, k] = 1.0
            partial = coef * np.prod(others, axis=1)
            np.add.at(jac, (net.term_species[slot], net.term_lab[slot, k]), partial[slot])
        return jac


def build_numpy_backend(network: ReactionNetwork) -> NumpyKinetics:
    return NumpyKinetics(network)
