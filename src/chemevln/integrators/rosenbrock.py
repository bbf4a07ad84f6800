"""Fourth-order Rosenbrock stepper (Kaps-Rentrop, Shampine coefficients).

Used as the fallback when the extrapolation stepper gives up on a step.
Four linear solves share one factorisation of ``1/(gamma h) - J``; an
embedded third-order solution provides the error estimate.
"""

from __future__ import annotations

import logging

import numpy as np

from ..config import EvolveConfig
from ..constants import KR_ERRCON, KR_GROW, KR_PGROW, KR_PSHRNK, KR_SAFETY, KR_SHRNK
from ..kinetics import derivs, jacobi
from ..state import ChemEvolution
from .base import StepResult, factorize, failed_step, scaled_error, solve

logger = logging.getLogger(__name__)

GAM = 1.0 / 2.0
A21 = 2.0
A31 = 48.0 / 25.0
A32 = 6.0 / 25.0
C21 = -8.0
C31 = 372.0 / 25.0
C32 = 12.0 / 5.0
C41 = -112.0 / 125.0
C42 = -54.0 / 125.0
C43 = -2.0 / 5.0
B1 = 19.0 / 9.0
B2 = 1.0 / 2.0
B3 = 25.0 / 108.0
B4 = 125.0 / 108.0
E1 = 17.0 / 54.0
E2 = 7.0 / 36.0
E3 = 0.0
E4 = 125.0 / 108.0


class KapsRentrop:
    name = "rosenbrock"

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
        dysav = np.array(dydx, dtype=float, copy=True)
        dfdy = jacobi(self.evln, ysav)
        n = ysav.size
        h = htry

        for _ in range(self.config.max_retries):
            if t + h == t or h <= self.config.min_step:
                logger.debug("step size not significant at t=%e (h=%e)", t, h)
                return failed_step(ysav, t, h)

            factors = factorize(np.eye(n) / (GAM * h) - dfdy)
            if factors is None:
                h *= KR_SHRNK
                continue
            with np.errstate(all="ignore"):
                g1 = solve(factors, dysav)
                dy = derivs(self.evln, ysav + A21 * g1)
                g2 = solve(factors, dy + C21 * g1 / h)
                dy = derivs(self.evln, ysav + A31 * g1 + A32 * g2)
                g3 = solve(factors, dy + (C31 * g1 + C32 * g2) / h)
                g4 = solve(factors, dy + (C41 * g1 + C42 * g2 + C43 * g3) / h)
                ynew = ysav + B1 * g1 + B2 * g2 + B3 * g3 + B4 * g4
                yerr = E1 * g1 + E2 * g2 + E3 * g3 + E4 * g4

            errmax = scaled_error(yerr, yscal, eps)
            if not np.all(np.isfinite(ynew)):
                errmax = np.inf
            if errmax <= 1.0:
                hnext = KR_SAFETY * h * errmax**KR_PGROW if errmax > KR_ERRCON else KR_GROW * h
                return StepResult(y=ynew, t=t + h, hdid=h, hnext=hnext)
            hnext = KR_SAFETY * h * errmax**KR_PSHRNK if np.isfinite(errmax) else 0.0
            h = max(hnext, KR_SHRNK * h)

        logger.debug("exceeded retry budget at t=%e (h=%e)", t, h)
        return failed_step(ysav, t, h)
