"""Example run: ionization/recombination balance of a single element."""

from __future__ import annotations

import logging

from chemevln.constants import ONE_YEAR
from chemevln.diagnostics import conservation_report
from chemevln.evolve import evolve
from chemevln.network import Element, Reaction, ReactionNetwork, Species
from chemevln.state import ChemEvolution

logger = logging.getLogger(__name__)


def ionization_network() -> ReactionNetwork:
    """``A -> A+ + e-`` (rate 0) and ``A+ + e- -> A`` (rate 1)."""
    species = (
        Species("e-", -1, (0.0,)),
        Species("A", 0, (1.0,)),
        Species("A+", 1, (1.0,)),
    )
    elements = (Element("A", 1.0, single=(1, 2)),)
    reactions = (
        Reaction(reactants=(1,), products=(2, 0), rate=0),
        Reaction(reactants=(2, 0), products=(1,), rate=1),
    )
    return ReactionNetwork.from_reactions(species, elements, reactions)


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    network = ionization_network()
    evln = ChemEvolution.create(network, rates=[1.0e-10, 1.0e-8], initial={"A": 1.0}, dttry=1.0e3)
    status = evolve(evln, 1000.0 * ONE_YEAR, err=1.0e-6)
    report = conservation_report(evln)
    logger.info("status=%d  n(A)=%e  n(A+)=%e  n(e-)=%e", status, *evln.numden[[1, 2, 0]])
    logger.info("conservation checks: %s", report["checks"])
    return status


if __name__ == "__main__":
    main()
