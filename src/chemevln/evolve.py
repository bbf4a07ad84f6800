"""Evolution driver: time loop, integrator fallback and conservation."""

from __future__ import annotations

import logging
from time import process_time

import numpy as np

from .config import EvolveConfig
from .conservation import ele_makeup
from .constants import ONE_YEAR, STATUS_FAIL, STATUS_OK, STATUS_TIMEOUT
from .errors import ConfigurationError
from .integrators import build_integrators
from .kinetics import derivs, ensure_backend
from .log_utils import ALWAYS, VERBOSE, pout
from .state import ChemEvolution

logger = logging.getLogger(__name__)


def error_scale(
    evln: ChemEvolution,
    numden: np.ndarray,
    dn_o_dt: np.ndarray,
    h: float,
    floor: float,
) -> np.ndarray:
    """Per-species error scale: ``den_scale`` if set, else ``|n| + |h dn/dt|``."""
    if evln.den_scale is not None:
        return evln.den_scale
    return np.maximum(np.abs(numden) + np.abs(h * dn_o_dt), floor)


def evolve(
    evln: ChemEvolution,
    te: float,
    dttry: float | None = None,
    err: float = 1.0e-3,
    *,
    config: EvolveConfig | None = None,
) -> int:
    """Evolve ``evln.numden`` for ``te`` seconds.

    Parameters
    ----------
    evln : ChemEvolution
        Run context; ``numden``, ``t`` and ``dttry`` are updated in place.
    te : float
        Evolution time (s).
    dttry : float, optional
        Trial time step (s). Defaults to ``evln.dttry``, or to ``te`` when no
        hint is stored. The recommended next step is written back to
        ``evln.dttry``.
    err : float
        Relative error tolerance handed to the integrators.

    Returns
    -------
    int
        0 on success, 1 when the wall-clock budget stopped the run, -1 when
        every integrator failed on a step or the conservation makeup was
        infeasible. Time already evolved is kept in ``evln.t``.
    """
    if te <= 0.0:
        return STATUS_OK
    if not err > 0.0:
        raise ConfigurationError("err must be > 0")
    cfg = config or EvolveConfig()
    ensure_backend(evln, cfg.backend)
    integrators = build_integrators(cfg.integrators, evln, cfg)

    if dttry is not None:
        evln.dttry = float(dttry)
    if not evln.dttry > 0.0:
        evln.dttry = te

    n = evln.n_species
    dn_o_dt = np.zeros(n, dtype=float)
    numden = np.zeros(n, dtype=float)

    def abn_e() -> float:
        return float(evln.numden[0] * evln.abn_den)

    c0 = process_time()
    pout(logger, ALWAYS, "Chemical evolution started...")
    pout(logger, ALWAYS, "At t=%e yr, Abn(e-)=%e, next dt=%e yr.", evln.t / ONE_YEAR, abn_e(), evln.dttry / ONE_YEAR)

    status = STATUS_OK
    t = 0.0
    tp = evln.t * cfg.log_growth

    while t < te:
        if process_time() - c0 > cfg.wall_clock_limit:
            pout(logger, ALWAYS, "At t=%e yr, wall-clock budget of %g s exhausted.", evln.t / ONE_YEAR, cfg.wall_clock_limit)
            status = STATUS_TIMEOUT
            break

        remaining = te - t
        evln.dttry = min(evln.dttry, remaining)
        derivs(evln, evln.numden, out=dn_o_dt)
        yscal = error_scale(evln, evln.numden, dn_o_dt, evln.dttry, cfg.scale_floor)

        result = None
        for integrator in integrators:
            np.copyto(numden, evln.numden)
            result = integrator.advance(numden, dn_o_dt, t, evln.dttry, err, yscal)
            if result.ok:
                break
            pout(logger, VERBOSE, "At t=%e yr, %s integrator failed.", evln.t / ONE_YEAR, integrator.name)

        if result is None or not result.ok:
            pout(logger, ALWAYS, "At t=%e yr, calculation fails...", evln.t / ONE_YEAR)
            status = STATUS_FAIL
            break

        np.copyto(evln.numden, result.y)
        t = te if result.hdid >= remaining else result.t
        evln.t += result.hdid

        if evln.t > tp:
            verbose = ALWAYS
            tp = evln.t * cfg.log_growth
        else:
            verbose = VERBOSE

        status = ele_makeup(evln, verbose)
        if status < 0:
            pout(logger, ALWAYS, "At t=%e yr, conservation makeup fails...", evln.t / ONE_YEAR)
            break

        evln.dttry = result.hnext
        pout(logger, verbose, "At t=%e yr, Abn(e-)=%e, next dt=%e yr.", evln.t / ONE_YEAR, abn_e(), result.hnext / ONE_YEAR)

    if status >= 0 or t > cfg.min_coverage * te:
        pout(logger, ALWAYS, "Evolution completed at t=%e yr, with Abn(e-)=%e.", evln.t / ONE_YEAR, abn_e())
    else:
        pout(logger, ALWAYS, "Evolution terminated at t=%e yr, with Abn(e-)=%e.", evln.t / ONE_YEAR, abn_e())

    return status
