"""Per-run chemistry evolution context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from .backends.base import KineticsBackend
from .errors import NetworkError
from .network import ReactionNetwork


@dataclass
class ChemEvolution:
    """Mutable arrays evolved during one chemistry run.

    ``numden`` holds densities normalised by ``abn_den``; element targets are
    ``abundance / abn_den``. ``t`` is the cumulative evolved time (s) and
    ``dttry`` the step hint carried between evolve calls. The network and the
    rate-constant table are owned by the caller and never replaced here.
    """

    network: ReactionNetwork
    numden: np.ndarray
    rates: np.ndarray
    abn_den: float = 1.0
    den_scale: np.ndarray | None = None
    t: float = 0.0
    dttry: float = 0.0
    backend: KineticsBackend | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        n = self.network.n_species
        self.numden = np.asarray(self.numden, dtype=float)
        self.rates = np.asarray(self.rates, dtype=float)
        if self.numden.shape != (n,):
            raise NetworkError(f"numden must have shape ({n},), got {self.numden.shape}")
        if self.rates.ndim != 1 or self.rates.size < self.network.n_rates:
            raise NetworkError(f"rate table must hold at least {self.network.n_rates} constants")
        if self.abn_den <= 0.0:
            raise NetworkError("abn_den must be > 0")
        if self.den_scale is not None:
            self.den_scale = np.asarray(self.den_scale, dtype=float)
            if self.den_scale.shape != (n,) or np.any(self.den_scale <= 0.0):
                raise NetworkError("den_scale must be positive with one entry per species")

    @classmethod
    def create(
        cls,
        network: ReactionNetwork,
        rates: Sequence[float],
        *,
        initial: dict[str, float] | None = None,
        abn_den: float = 1.0,
        dttry: float = 0.0,
    ) -> "ChemEvolution":
        """Zero densities except the named species in ``initial``."""
        numden = np.zeros(network.n_species, dtype=float)
        for name, value in (initial or {}).items():
            numden[network.index(name)] = float(value)
        return cls(network=network, numden=numden, rates=np.asarray(rates, dtype=float), abn_den=abn_den, dttry=dttry)

    @property
    def n_species(self) -> int:
        return self.network.n_species

    def targets(self) -> np.ndarray:
        return self.network.targets(self.abn_den)
