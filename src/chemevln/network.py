"""Reaction network model: species, elements and precompiled equations.

The network is immutable once built. Besides the per-species
:class:`Equation` lists it carries flattened term arrays that the kernel
backends iterate over:

``term_species[t]``
    species whose derivative term ``t`` contributes to
``term_rate[t]``, ``term_dir[t]``
    rate-constant index and sign (+1 production, -1 destruction)
``term_lab[t, :term_nreac[t]]``
    reactant species indices (padded with 0 beyond ``term_nreac``)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from .errors import NetworkError


@dataclass(frozen=True)
class Species:
    """A tracked chemical or grain-charge state."""

    name: str
    charge: int
    composition: tuple[float, ...]


@dataclass(frozen=True)
class Element:
    """An element or grain type with a fixed total abundance.

    ``single`` lists the species made of this element alone; they absorb
    density makeup. For grains it holds the neutral grain of that type.
    """

    name: str
    abundance: float
    single: tuple[int, ...]
    is_grain: bool = False


@dataclass(frozen=True)
class EquationTerm:
    lab: tuple[int, ...]
    ind: int
    dir: int


@dataclass(frozen=True)
class Equation:
    terms: tuple[EquationTerm, ...] = ()

    @property
    def nterm(self) -> int:
        return len(self.terms)


@dataclass(frozen=True)
class Reaction:
    """Reaction channel used by :meth:`ReactionNetwork.from_reactions`."""

    reactants: tuple[int, ...]
    products: tuple[int, ...]
    rate: int


def _readonly(arr: np.ndarray) -> np.ndarray:
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class ReactionNetwork:
    """Species table, element/grain table and per-species equations.

    Gas-phase elements come first in ``elements``, grain types after them.
    Species 0 is the electron.
    """

    species: tuple[Species, ...]
    elements: tuple[Element, ...]
    equations: tuple[Equation, ...]

    composition: np.ndarray = field(init=False, repr=False, compare=False)
    charges: np.ndarray = field(init=False, repr=False, compare=False)
    grain_type: np.ndarray = field(init=False, repr=False, compare=False)
    term_species: np.ndarray = field(init=False, repr=False, compare=False)
    term_rate: np.ndarray = field(init=False, repr=False, compare=False)
    term_dir: np.ndarray = field(init=False, repr=False, compare=False)
    term_lab: np.ndarray = field(init=False, repr=False, compare=False)
    term_nreac: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "species", tuple(self.species))
        object.__setattr__(self, "elements", tuple(self.elements))
        object.__setattr__(self, "equations", tuple(self.equations))
        self._validate()
        self._compile()

    # ------------------------------------------------------------------
    # Sizes
    # ------------------------------------------------------------------
    @property
    def n_species(self) -> int:
        return len(self.species)

    @property
    def n_elements(self) -> int:
        """Number of gas-phase elements (grain types excluded)."""
        return sum(1 for e in self.elements if not e.is_grain)

    @property
    def n_grains(self) -> int:
        return sum(1 for e in self.elements if e.is_grain)

    @property
    def n_terms(self) -> int:
        return int(self.term_species.size)

    @property
    def n_rates(self) -> int:
        """Minimum length of a rate-constant table for this network."""
        return int(self.term_rate.max()) + 1 if self.term_rate.size else 0

    def index(self, name: str) -> int:
        for i, sp in enumerate(self.species):
            if sp.name == name:
                return i
        raise KeyError(name)

    def targets(self, abn_den: float = 1.0) -> np.ndarray:
        """Normalised total density of each element and grain type."""
        return np.array([e.abundance for e in self.elements], dtype=float) / abn_den

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    def _validate(self) -> None:
        n = len(self.species)
        ncomp = len(self.elements)
        if n == 0:
            raise NetworkError("network must contain at least the electron")
        if self.species[0].charge != -1:
            raise NetworkError(f"species 0 must be the electron, got {self.species[0].name!r}")
        if len(self.equations) != n:
            raise NetworkError("one equation per species is required")
        seen_grain = False
        for e in self.elements:
            if e.is_grain:
                seen_grain = True
            elif seen_grain:
                raise NetworkError(f"gas-phase element {e.name!r} listed after a grain type")
            if e.abundance < 0.0:
                raise NetworkError(f"abundance of {e.name!r} must be >= 0")
            if len(e.single) == 0:
                raise NetworkError(f"{e.name!r} needs at least one single-element species")
        for sp in self.species:
            if len(sp.composition) != ncomp:
                raise NetworkError(
                    f"composition of {sp.name!r} has {len(sp.composition)} entries, expected {ncomp}"
                )
            if any(c < 0 for c in sp.composition):
                raise NetworkError(f"composition of {sp.name!r} must be non-negative")
            if sum(1 for c, e in zip(sp.composition, self.elements) if e.is_grain and c > 0) > 1:
                raise NetworkError(f"{sp.name!r} carries more than one grain type")
        for q, e in enumerate(self.elements):
            for l in e.single:
                if not (0 <= l < n):
                    raise NetworkError(f"single species index {l} of {e.name!r} out of range")
                if self.species[l].composition[q] <= 0:
                    raise NetworkError(f"{self.species[l].name!r} does not contain {e.name!r}")
        for i, eq in enumerate(self.equations):
            for term in eq.terms:
                if term.dir not in (-1, 1):
                    raise NetworkError(f"term direction must be +1 or -1 in equation {i}")
                if term.ind < 0:
                    raise NetworkError(f"negative rate index in equation {i}")
                if len(term.lab) == 0:
                    raise NetworkError(f"term without reactants in equation {i}")
                for p in term.lab:
                    if not (0 <= p < n):
                        raise NetworkError(f"reactant index {p} out of range in equation {i}")

    def _compile(self) -> None:
        n = len(self.species)
        composition = np.array([sp.composition for sp in self.species], dtype=float).reshape(n, len(self.elements))
        charges = np.array([sp.charge for sp in self.species], dtype=np.int64)
        grain_cols = [q for q, e in enumerate(self.elements) if e.is_grain]
        grain_type = np.full(n, -1, dtype=np.int64)
        for g, q in enumerate(grain_cols):
            grain_type[composition[:, q] > 0] = g

        terms = [(i, t) for i, eq in enumerate(self.equations) for t in eq.terms]
        width = max((len(t.lab) for _, t in terms), default=1)
        term_species = np.array([i for i, _ in terms], dtype=np.int64)
        term_rate = np.array([t.ind for _, t in terms], dtype=np.int64)
        term_dir = np.array([t.dir for _, t in terms], dtype=float)
        term_nreac = np.array([len(t.lab) for _, t in terms], dtype=np.int64)
        term_lab = np.zeros((len(terms), width), dtype=np.int64)
        for row, (_, t) in enumerate(terms):
            term_lab[row, : len(t.lab)] = t.lab

        for name, arr in (
            ("composition", composition),
            ("charges", charges),
            ("grain_type", grain_type),
            ("term_species", term_species),
            ("term_rate", term_rate),
            ("term_dir", term_dir),
            ("term_lab", term_lab),
            ("term_nreac", term_nreac),
        ):
            object.__setattr__(self, name, _readonly(arr))

    @classmethod
    def from_reactions(
        cls,
        species: Sequence[Species],
        elements: Sequence[Element],
        reactions: Sequence[Reaction],
    ) -> "ReactionNetwork":
        """Compile reaction channels into per-species equations.

        Every reactant occurrence adds a destruction term to that species'
        equation and every product occurrence a production term, so
        ``2A -> B`` destroys two A per event.
        """
        n = len(species)
        per_species: list[list[EquationTerm]] = [[] for _ in range(n)]
        for r in reactions:
            lab = tuple(int(p) for p in r.reactants)
            for s in lab:
                if not (0 <= s < n):
                    raise NetworkError(f"reactant index {s} out of range")
                per_species[s].append(EquationTerm(lab=lab, ind=int(r.rate), dir=-1))
            for s in r.products:
                if not (0 <= s < n):
                    raise NetworkError(f"product index {s} out of range")
                per_species[s].append(EquationTerm(lab=lab, ind=int(r.rate), dir=1))
        equations = tuple(Equation(terms=tuple(ts)) for ts in per_species)
        return cls(species=tuple(species), elements=tuple(elements), equations=equations)
