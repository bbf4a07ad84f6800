"""Conservation diagnostics for a chemistry context."""

from __future__ import annotations

import numpy as np

from .conservation import element_densities
from .state import ChemEvolution


def conservation_report(evln: ChemEvolution, *, rtol: float = 1.0e-10) -> dict:
    net = evln.network
    numden = evln.numden
    tallies = element_densities(evln)
    targets = evln.targets()
    residual = (tallies - targets) / np.maximum(np.abs(targets), 1.0e-300)

    charges = net.charges
    positive = float(numden[charges > 0] @ charges[charges > 0])
    negative = float(-(numden[charges < 0] @ charges[charges < 0]))
    net_charge = positive - negative

    checks = {
        "densities_nonnegative": bool(np.all(numden >= 0.0)),
        "elements_conserved": bool(np.all(np.abs(residual) <= rtol)),
        "charge_balanced": bool(abs(net_charge) <= rtol * max(positive, negative, 1.0e-300)),
    }
    return {
        "t": float(evln.t),
        "tallies": {e.name: float(v) for e, v in zip(net.elements, tallies)},
        "residuals": {e.name: float(r) for e, r in zip(net.elements, residual)},
        "positive_charge": positive,
        "negative_charge": negative,
        "net_charge": net_charge,
        "checks": checks,
        "all_checks_pass": bool(all(checks.values())),
    }
