"""Implicit Runge-Kutta (Radau IIA) tier backed by SciPy."""

from __future__ import annotations

import logging
import warnings

import numpy as np
from scipy.integrate import Radau

from ..config import EvolveConfig
from ..constants import KR_GROW
from ..kinetics import derivs, jacobi
from ..state import ChemEvolution
from .base import StepResult, failed_step

logger = logging.getLogger(__name__)


class RadauStep:
    """Covers ``[t, t + htry]`` with SciPy's Radau solver and the analytic Jacobian.

    At most ``max_retries`` internal steps are taken; a partial interval is
    still an accepted step.
    """

    name = "radau"

    def __init__(self, evln: ChemEvolution, config: EvolveConfig | None = None) -> None:
        self.evln = evln
        self.config = config or EvolveConfig()

    def advance(
        self,
        y: np.ndarray,
        dydx: np.ndarray,
        t: float,
        htry: float,
        eps: float,
        yscal: np.ndarray,
    ) -> StepResult:
        ysav = np.array(y, dtype=float, copy=True)
        if t + htry == t or htry <= self.config.min_step:
            return failed_step(ysav, t, htry)
        evln = self.evln
        t_bound = t + htry
        nsteps = 0
        with warnings.catch_warnings():
            # SciPy raises rtol to its own floor with a warning.
            warnings.simplefilter("ignore", UserWarning)
            try:
                solver = Radau(
                    lambda _t, yy: derivs(evln, yy),
                    t,
                    ysav.copy(),
                    t_bound=t_bound,
                    first_step=t_bound - t,
                    rtol=eps,
                    atol=eps * np.asarray(yscal, dtype=float),
                    jac=lambda _t, yy: jacobi(evln, yy),
                )
                while solver.status == "running" and nsteps < self.config.max_retries:
                    message = solver.step()
                    nsteps += 1
                    if solver.status == "failed":
                        logger.debug("radau failed at t=%e: %s", t, message)
                        return failed_step(ysav, t, htry)
            except ValueError as exc:
                logger.debug("radau rejected the step at t=%e: %s", t, exc)
                return failed_step(ysav, t, htry)

        hdid = solver.t - t
        if not hdid > 0.0 or not np.all(np.isfinite(solver.y)):
            return failed_step(ysav, t, htry)
        hnext = htry * KR_GROW if nsteps == 1 else max(solver.step_size or 0.0, hdid / nsteps)
        return StepResult(y=np.array(solver.y, copy=True), t=solver.t, hdid=hdid, hnext=hnext)
