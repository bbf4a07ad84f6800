"""Small reaction networks shared by the test modules."""

from __future__ import annotations

from chemevln.network import Element, Reaction, ReactionNetwork, Species


def decay_network() -> ReactionNetwork:
    """``A -> B`` with rate index 0; both carry element X."""
    species = (
        Species("e-", -1, (0.0,)),
        Species("A", 0, (1.0,)),
        Species("B", 0, (1.0,)),
    )
    elements = (Element("X", 1.0, single=(1, 2)),)
    return ReactionNetwork.from_reactions(species, elements, (Reaction((1,), (2,), 0),))


def ionization_network() -> ReactionNetwork:
    """``A -> A+ + e-`` (rate 0) and ``A+ + e- -> A`` (rate 1)."""
    species = (
        Species("e-", -1, (0.0,)),
        Species("A", 0, (1.0,)),
        Species("A+", 1, (1.0,)),
    )
    elements = (Element("A", 1.0, single=(1, 2)),)
    reactions = (
        Reaction((1,), (2, 0), 0),
        Reaction((2, 0), (1,), 1),
    )
    return ReactionNetwork.from_reactions(species, elements, reactions)


def transmutation_network() -> ReactionNetwork:
    """``X -> Z``: element X leaks out of the network."""
    species = (
        Species("e-", -1, (0.0, 0.0)),
        Species("X", 0, (1.0, 0.0)),
        Species("Z", 0, (0.0, 1.0)),
    )
    elements = (
        Element("X", 1.0, single=(1,)),
        Element("Z", 1.0, single=(2,)),
    )
    return ReactionNetwork.from_reactions(species, elements, (Reaction((1,), (2,), 0),))


E, H, O, OH, HP, G0, GM, GP, HM = range(9)


def grain_network(h_abundance: float = 1.0, o_abundance: float = 0.5, g_abundance: float = 1.0) -> ReactionNetwork:
    """H/O gas chemistry plus one grain type with charges -1, 0, +1.

    Species: e-, H, O, OH, H+, G0, G-, G+, H-.
    """
    species = (
        Species("e-", -1, (0.0, 0.0, 0.0)),
        Species("H", 0, (1.0, 0.0, 0.0)),
        Species("O", 0, (0.0, 1.0, 0.0)),
        Species("OH", 0, (1.0, 1.0, 0.0)),
        Species("H+", 1, (1.0, 0.0, 0.0)),
        Species("G0", 0, (0.0, 0.0, 1.0)),
        Species("G-", -1, (0.0, 0.0, 1.0)),
        Species("G+", 1, (0.0, 0.0, 1.0)),
        Species("H-", -1, (1.0, 0.0, 0.0)),
    )
    elements = (
        Element("H", h_abundance, single=(H, HP)),
        Element("O", o_abundance, single=(O,)),
        Element("G", g_abundance, single=(G0,), is_grain=True),
    )
    reactions = (
        Reaction((H, O), (OH,), 0),
        Reaction((OH,), (H, O), 1),
        Reaction((H,), (HP, E), 2),
        Reaction((HP, E), (H,), 3),
        Reaction((G0, E), (GM,), 4),
        Reaction((GM, HP), (G0, H), 5),
        Reaction((H, H), (HP, HM), 6),
        Reaction((HM, HP), (H, H), 7),
        Reaction((GP, E), (G0,), 8),
    )
    return ReactionNetwork.from_reactions(species, elements, reactions)
