"""Leveled progress output routed through :mod:`logging`."""

from __future__ import annotations

import logging

ALWAYS = 0
VERBOSE = 1


def pout(logger: logging.Logger, verbose: int, msg: str, *args: object) -> None:
    """Log ``msg`` at INFO for verbosity 0 and at DEBUG for anything higher."""
    logger.log(logging.INFO if verbose <= ALWAYS else logging.DEBUG, msg, *args)


def pwarn(logger: logging.Logger, verbose: int, msg: str, *args: object) -> None:
    """Warnings follow the same cadence: WARNING when always-on, else DEBUG."""
    logger.log(logging.WARNING if verbose <= ALWAYS else logging.DEBUG, msg, *args)
