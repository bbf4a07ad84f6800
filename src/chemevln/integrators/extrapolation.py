"""Semi-implicit extrapolation stepper for stiff chemistry (Bader-Deuflhard).

Each trial step integrates the network with the semi-implicit midpoint rule
over an increasing number of substeps and extrapolates the sequence to zero
substep size. The column reached and the error of each column decide both
acceptance and the next step size and order.

Tableau arrays below keep 1-based indexing (slot 0 unused) so that the
order-window bookkeeping reads like the published algorithm.
"""

from __future__ import annotations

import logging

import numpy as np

from ..config import EvolveConfig
from ..constants import (
    BS_KMAXX,
    BS_NSEQ,
    BS_REDMAX,
    BS_REDMIN,
    BS_SAFE1,
    BS_SAFE2,
    BS_SCALMX,
    TINY,
)
from ..kinetics import derivs, jacobi
from ..state import ChemEvolution
from .base import StepResult, factorize, failed_step, scaled_error, solve

logger = logging.getLogger(__name__)

_IMAXX = BS_KMAXX + 1
_NSEQ = (0,) + BS_NSEQ


class SemiImplicitExtrapolation:
    """Primary stiff integrator.

    The order window (``kopt``, ``kmax``) and the last accepted ``xnew`` and
    ``hnext`` persist between calls on the same instance, so a fresh
    instance is used per evolve call.
    """

    name = "extrapolation"

    def __init__(self, evln: ChemEvolution, config: EvolveConfig | None = None) -> None:
        self.evln = evln
        self.config = config or EvolveConfig()
        self._epsold = -1.0
        self._nvold = -1
        self._xnew = -1.0e29
        self._hnext = -1.0e29
        self._first = True
        self._kopt = 0
        self._kmax = 0
        self._a = np.zeros(_IMAXX + 1, dtype=float)
        self._alf = np.zeros((BS_KMAXX + 1, BS_KMAXX + 1), dtype=float)
        self._x = np.zeros(_IMAXX + 1, dtype=float)
        self._d = np.zeros((0, BS_KMAXX + 1), dtype=float)

    def _setup(self, eps: float, nv: int) -> None:
        """Work coefficients and the optimal column for this tolerance."""
        a = self._a
        alf = self._alf
        self._hnext = self._xnew = -1.0e29
        eps1 = BS_SAFE1 * eps
        a[1] = _NSEQ[1] + 1
        for k in range(1, BS_KMAXX + 1):
            a[k + 1] = a[k] + _NSEQ[k + 1]
        for iq in range(2, BS_KMAXX + 1):
            for k in range(1, iq):
                alf[k, iq] = eps1 ** ((a[k + 1] - a[iq + 1]) / ((a[iq + 1] - a[1] + 1.0) * (2 * k + 1)))
        self._epsold = eps
        self._nvold = nv
        # Account for the Jacobian evaluation in the work estimate.
        a[1] += nv
        for k in range(1, BS_KMAXX + 1):
            a[k + 1] = a[k] + _NSEQ[k + 1]
        kopt = BS_KMAXX
        for k in range(2, BS_KMAXX):
            if a[k + 1] > a[k] * alf[k - 1, k]:
                kopt = k
                break
        self._kopt = kopt
        self._kmax = kopt
        self._d = np.zeros((nv, BS_KMAXX + 1), dtype=float)

    def _simpr(self, y: np.ndarray, dydx: np.ndarray, dfdy: np.ndarray, htot: float, nstep: int) -> np.ndarray | None:
        """Semi-implicit midpoint rule over ``nstep`` substeps of ``htot``."""
        h = htot / nstep
        factors = factorize(np.eye(y.size) - h * dfdy)
        if factors is None:
            return None
        with np.errstate(all="ignore"):
            yout = solve(factors, h * dydx)
            delta = yout.copy()
            ytemp = y + delta
            yout = derivs(self.evln, ytemp)
            for _ in range(2, nstep + 1):
                yout = solve(factors, h * yout - delta)
                delta += 2.0 * yout
                ytemp += delta
                yout = derivs(self.evln, ytemp)
            yout = solve(factors, h * yout - delta)
            return ytemp + yout

    def _pzextr(self, iest: int, xest: float, yest: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """Polynomial extrapolation of column ``iest``; returns (value, error)."""
        x = self._x
        d = self._d
        x[iest] = xest
        yz = yest.copy()
        dy = yest.copy()
        if iest == 1:
            d[:, 1] = yest
            return yz, dy
        c = yest.copy()
        with np.errstate(all="ignore"):
            for k1 in range(1, iest):
                delta = 1.0 / (x[iest - k1] - xest)
                f1 = xest * delta
                f2 = x[iest - k1] * delta
                q = d[:, k1].copy()
                d[:, k1] = dy
                diff = c - q
                dy = f1 * diff
                c = f2 * diff
                yz += dy
        d[:, iest] = dy
        return yz, dy

    def advance(
        self,
        y: np.ndarray,
        dydx: np.ndarray,
        t: float,
        htry: float,
        eps: float,
        yscal: np.ndarray,
    ) -> StepResult:
        nv = y.size
        if eps != self._epsold or nv != self._nvold:
            self._setup(eps, nv)
        a = self._a
        alf = self._alf
        err = np.zeros(BS_KMAXX + 1, dtype=float)
        ysav = np.array(y, dtype=float, copy=True)
        dfdy = jacobi(self.evln, ysav)

        h = htry
        if t != self._xnew or h != self._hnext:
            self._first = True
            self._kopt = self._kmax
        kmax = self._kmax
        reduct = False
        yext = ysav
        xnew = t
        k = km = 1
        red = BS_REDMIN
        errmax = np.inf

        for _ in range(self.config.max_retries):
            exitflag = False
            for k in range(1, kmax + 1):
                kopt = self._kopt
                xnew = t + h
                if xnew == t or h <= self.config.min_step:
                    logger.debug("step size underflow at t=%e (h=%e)", t, h)
                    return failed_step(ysav, t, h)
                yseq = self._simpr(ysav, dydx, dfdy, h, _NSEQ[k])
                if yseq is None:
                    red = BS_REDMIN
                    break
                xest = (h / _NSEQ[k]) ** 2
                yext, yerr = self._pzextr(k, xest, yseq)
                if k != 1:
                    errmax = scaled_error(yerr, yscal, eps, TINY)
                    if not np.all(np.isfinite(yext)):
                        errmax = np.inf
                    km = k - 1
                    err[km] = (errmax / BS_SAFE1) ** (1.0 / (2 * km + 1))
                if k != 1 and (k >= kopt - 1 or self._first):
                    if errmax < 1.0:
                        exitflag = True
                        break
                    if k == kmax or k == kopt + 1:
                        red = BS_SAFE2 / err[km]
                        break
                    elif k == kopt and alf[kopt - 1, kopt] < err[km]:
                        red = 1.0 / err[km]
                        break
                    elif kopt == kmax and alf[km, kmax - 1] < err[km]:
                        red = alf[km, kmax - 1] * BS_SAFE2 / err[km]
                        break
                    elif alf[km, kopt] < err[km]:
                        red = alf[km, kopt - 1] / err[km]
                        break
            if exitflag:
                break
            red = max(min(red, BS_REDMIN), BS_REDMAX)
            h *= red
            reduct = True
        else:
            logger.debug("retry budget exhausted at t=%e (h=%e)", t, h)
            return failed_step(ysav, t, h)

        self._first = False
        wrkmin = 1.0e35
        scale = 1.0
        for kk in range(1, km + 1):
            fact = max(err[kk], BS_SCALMX)
            work = fact * a[kk + 1]
            if work < wrkmin:
                scale = fact
                wrkmin = work
                self._kopt = kk + 1
        hnext = h / scale
        kopt = self._kopt
        if kopt >= k and kopt != kmax and not reduct:
            fact = max(scale / alf[kopt - 1, kopt], BS_SCALMX)
            if a[kopt + 1] * fact <= wrkmin:
                hnext = h / fact
                self._kopt = kopt + 1

        self._xnew = xnew
        self._hnext = hnext
        return StepResult(y=yext, t=xnew, hdid=h, hnext=hnext)
