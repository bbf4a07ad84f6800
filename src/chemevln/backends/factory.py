"""Backend factory for the reaction-network kernels."""

from __future__ import annotations

import logging

from ..errors import BackendUnavailableError, ConfigurationError
from ..network import ReactionNetwork
from .numba_backend import build_numba_backend
from .numpy_backend import build_numpy_backend

logger = logging.getLogger(__name__)


def build_backend(name: str, network: ReactionNetwork):
    if name == "numpy":
        return build_numpy_backend(network)
    if name == "numba":
        return build_numba_backend(network)
    if name == "auto":
        try:
            return build_numba_backend(network)
        except BackendUnavailableError as exc:
            logger.debug("auto backend falling back to numpy: %s", exc)
            return build_numpy_backend(network)
    raise ConfigurationError(f"Unknown backend: {name}")
