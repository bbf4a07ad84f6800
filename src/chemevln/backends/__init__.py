"""Kernel backends for the derivative and Jacobian evaluators."""

from .factory import build_backend

__all__ = ["build_backend"]
