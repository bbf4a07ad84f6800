"""Density makeup enforcing element, grain and charge conservation.

:func:`ele_makeup` runs once after every accepted step:

1. negative densities are clamped to zero;
2. element totals are tallied once and repaired in table order, a single
   sequential pass (repairing one element may shift species that a later
   element also counts, so the order is part of the result);
3. grain totals are re-tallied and scaled, one factor per grain type;
4. the electron density is set from the net ion charge, or negative grain
   charge is traded for neutral grains when the net charge is negative.

Infeasible makeups return :data:`~chemevln.constants.STATUS_FAIL`.
"""

from __future__ import annotations

import logging

import numpy as np

from .constants import MAX_MAKEUP_FACTOR, ONE_YEAR, STATUS_FAIL, STATUS_OK
from .log_utils import VERBOSE, pout, pwarn
from .state import ChemEvolution

logger = logging.getLogger(__name__)


def clamp_negative(evln: ChemEvolution, verbose: int = VERBOSE) -> int:
    """Set negative densities to zero; returns how many were clamped."""
    numden = evln.numden
    negative = np.flatnonzero(numden < 0.0)
    for i in negative:
        pwarn(
            logger,
            verbose,
            "Warning: At t=%e yr, [%s] = %e < 0!",
            evln.t / ONE_YEAR,
            evln.network.species[i].name,
            numden[i],
        )
    numden[negative] = 0.0
    return int(negative.size)


def element_densities(evln: ChemEvolution) -> np.ndarray:
    """Total density of every element and grain type, ``sum_i n_i * comp_i``."""
    return evln.numden @ evln.network.composition


def charge_density(evln: ChemEvolution) -> float:
    """Net charge density of all species except the electron."""
    charges = evln.network.charges
    return float(evln.numden[1:] @ charges[1:])


def ele_makeup(evln: ChemEvolution, verbose: int = VERBOSE) -> int:
    """Impose conservation on ``evln.numden`` in place."""
    net = evln.network
    numden = evln.numden
    comp = net.composition
    targets = evln.targets()
    nele = net.n_elements

    if not np.all(np.isfinite(numden)):
        logger.error("Error! Non-finite density at t=%e yr!", evln.t / ONE_YEAR)
        return STATUS_FAIL
    clamp_negative(evln, verbose)
    ele_numden = element_densities(evln)

    for q in range(nele):
        element = net.elements[q]
        disp = ele_numden[q] - targets[q]
        pout(logger, verbose, "Discrepancy for %3s : %e over %e", element.name, disp, targets[q])

        if disp < 0.0:
            # Too little: scale up the single-element species.
            single = np.asarray(element.single, dtype=np.int64)
            den = float(numden[single] @ comp[single, q])
            frac = disp / den if den > 0.0 else -np.inf
            # A near-empty donor cannot carry the whole element.
            if not np.isfinite(frac) or -frac > MAX_MAKEUP_FACTOR:
                logger.error("Error! Can not make up for [%s]!", element.name)
                return STATUS_FAIL
            numden[single] *= 1.0 - frac
        else:
            status = _makeup_excess(evln, q, disp)
            if status < 0:
                return status

    for q in range(nele, nele + net.n_grains):
        element = net.elements[q]
        tally = float(numden @ comp[:, q])
        disp = tally - targets[q]
        pout(logger, verbose, "Discrepancy for %3s : %e over %e", element.name, disp, targets[q])
        if tally <= 0.0:
            if targets[q] == 0.0:
                continue
            logger.error("Error! Can not make up for [%s]!", element.name)
            return STATUS_FAIL
        carriers = comp[:, q] > 0.0
        numden[carriers] *= 1.0 - disp / tally

    charge_den = charge_density(evln)
    if charge_den >= 0.0:
        numden[0] = charge_den
        return STATUS_OK
    numden[0] = 0.0
    status = _makeup_charge(evln, -charge_den)
    if status < 0:
        logger.error("Error! Can not make up for the charge deficit %e!", -charge_den)
    return status


def _makeup_excess(evln: ChemEvolution, q: int, dn: float) -> int:
    """Remove ``dn`` of element ``q`` from the neutral species carrying it.

    Each reduced species hands its other constituents to the first
    single-element species of those elements, so their totals are unchanged.
    """
    if dn == 0.0:
        return STATUS_OK
    net = evln.network
    numden = evln.numden
    comp = net.composition
    carriers = np.flatnonzero((comp[:, q] > 0.0) & (net.charges == 0))

    den = float(numden[carriers] @ comp[carriers, q])
    if den < dn:
        logger.error("Error! Can not make up for [%s]!", net.elements[q].name)
        return STATUS_FAIL

    frac = dn / den
    for i in carriers:
        dni = numden[i] * frac
        numden[i] *= 1.0 - frac
        for j in np.flatnonzero(comp[i] > 0.0):
            if j == q:
                continue
            k = net.elements[j].single[0]
            numden[k] += dni * comp[i, j] / comp[k, j]
    return STATUS_OK


def _makeup_charge(evln: ChemEvolution, dne: float) -> int:
    """Neutralise ``dne`` of excess negative charge held by grains.

    Negatively charged grains of every type are reduced by one common ratio;
    the charge removed from each grain type is added to its neutral grains.
    """
    net = evln.network
    numden = evln.numden
    charges = net.charges
    grain_type = net.grain_type

    negative = (grain_type >= 0) & (charges < 0)
    negcharge = np.zeros(net.n_grains, dtype=float)
    np.add.at(negcharge, grain_type[negative], numden[negative] * charges[negative])
    negchargetot = float(negcharge.sum())

    if negchargetot >= 0.0:
        return STATUS_FAIL
    ratio = -dne / negchargetot
    if ratio > 1.0:
        return STATUS_FAIL

    numden[negative] *= 1.0 - ratio
    neutral = np.flatnonzero((grain_type >= 0) & (charges == 0))
    numden[neutral] -= ratio * negcharge[grain_type[neutral]]
    return STATUS_OK
