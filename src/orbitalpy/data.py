#! /usr/bin/env python
"""
Tabulated element data.

Multi-electron atoms are approximated by single-particle radial
functions (for example from an LDA calculation) together with their
occupations and eigenvalues.  This module holds that data model, the
selection rules used to pick orbitals out of it, and a thread-safe cache
around an injected loader.

Main contents
-------------
- `TabulatedElement` :
    Orbitals, occupancy, eigenvalues and electron counts of one element.
- `OrbitalInfo` :
    Label and quantum numbers of an orbital offered to the user.
- `available_orbitals`, `occupied_orbitals`, `valence_orbitals` :
    Orbital sets used by the density views.
- `select_orbital`, `select_orbital_pair` :
    Closest-match orbital selection.
- `ElementCache` :
    Load-once cache keyed by element symbol.
- `directory_loader` :
    Loader reading `<symbol>.json` files from a directory.
"""

import json
import logging
import threading
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from .radial import RadialKind, TabulatedOrbital

logger = logging.getLogger(__name__)

OrbitalKey = Tuple[int, int]


@dataclass(frozen=True)
class OrbitalInfo:
    """An orbital offered for selection."""

    label: str
    n: int
    l: int  # noqa: E741


@dataclass
class TabulatedElement:
    """Single-particle description of an element.

    Args:
        symbol (str): Element symbol, e.g. `"Fe"`.
        orbitals (list[TabulatedOrbital]): Radial functions.
        occupancy (dict): Electrons per orbital, keyed by `(n, l)`.
        eigenvalues (dict): Orbital energies (Hartree), keyed by `(n, l)`.
        total_electrons (float): Electron count of the neutral atom.
        valence_electrons (float): Electron count outside the core.
        source (str): Name of the dataset.
    """

    symbol: str
    orbitals: List[TabulatedOrbital]
    occupancy: Dict[OrbitalKey, float] = field(default_factory=dict)
    eigenvalues: Dict[OrbitalKey, float] = field(default_factory=dict)
    total_electrons: float = 0.0
    valence_electrons: float = 0.0
    source: str = ""

    def __repr__(self) -> str:  # noqa D105
        labels = ", ".join(orbital.label for orbital in self.orbitals)
        return (
            f"Element: {self.symbol}\n"
            f"  Orbitals: {labels}\n"
            f"  Electrons: {self.total_electrons:g} "
            f"(valence {self.valence_electrons:g})\n"
            f"  Source: {self.source or 'unknown'}"
        )

    @property
    def r_max(self) -> float:
        """Largest radius covered by any orbital grid."""
        if not self.orbitals:
            return 0.0
        return max(orbital.r_max for orbital in self.orbitals)

    def occupation(self, orbital: TabulatedOrbital) -> float:
        """Occupation of `orbital`, 0 when not listed."""
        return float(self.occupancy.get((orbital.n, orbital.l), 0.0))

    @classmethod
    def fromdict(cls, data: dict) -> "TabulatedElement":
        """Construct from a JSON style dictionary.

        Orbitals are dictionaries with `n`, `l`, `r`, `value` and
        optionally `kind` (`"R"` or `"chi"`) and `label`.  Occupancy and
        eigenvalues are keyed by orbital label, e.g. `{"2p": 4.0}`.
        """
        orbitals = [
            TabulatedOrbital(
                orbital["n"],
                orbital["l"],
                orbital["r"],
                orbital["value"],
                RadialKind(orbital.get("kind", "R")),
                label=orbital.get("label", ""),
            )
            for orbital in data["orbitals"]
        ]
        keys = {orbital.label: (orbital.n, orbital.l) for orbital in orbitals}
        occupancy = {keys[k]: float(v) for k, v in data.get("occupancy", {}).items()}
        eigenvalues = {
            keys[k]: float(v) for k, v in data.get("eigenvalues", {}).items()
        }
        return cls(
            data["symbol"],
            orbitals,
            occupancy,
            eigenvalues,
            float(data.get("total_electrons", sum(occupancy.values()))),
            float(data.get("valence_electrons", 0.0)),
            data.get("source", ""),
        )

    @classmethod
    def fromjson(cls, path) -> "TabulatedElement":
        """Load an element from a JSON file (see `fromdict`)."""
        with open(path, encoding="utf-8") as f:
            return cls.fromdict(json.load(f))


def available_orbitals(element: TabulatedElement) -> List[OrbitalInfo]:
    """Occupied orbitals as selection entries."""
    return [
        OrbitalInfo(orbital.label, orbital.n, orbital.l)
        for orbital in element.orbitals
        if element.occupation(orbital) > 0.0
    ]


def occupied_orbitals(element: TabulatedElement) -> List[TabulatedOrbital]:
    """Occupied orbitals with their occupation as mixing weight."""
    return [
        replace(orbital, weight=element.occupation(orbital))
        for orbital in element.orbitals
        if element.occupation(orbital) > 0.0
    ]


def valence_orbitals(
    element: TabulatedElement,
) -> Tuple[List[TabulatedOrbital], Optional[str]]:
    """Outermost occupied orbitals holding the valence electrons.

    Occupied orbitals are ordered by descending eigenvalue, or by
    descending `(n, l)` when no eigenvalue is known, and taken until
    their occupations cover `valence_electrons`.

    Returns:
            (list[TabulatedOrbital], str or None): The selection (weights
            set to occupations) and a note explaining an empty result.
    """
    occupied = occupied_orbitals(element)
    if not occupied:
        return [], "no occupied orbitals in dataset"

    energies = [
        element.eigenvalues.get((orbital.n, orbital.l), -np.inf)
        for orbital in occupied
    ]
    if any(np.isfinite(energy) for energy in energies):
        order = sorted(
            range(len(occupied)), key=lambda i: energies[i], reverse=True
        )
    else:
        order = sorted(
            range(len(occupied)),
            key=lambda i: (occupied[i].n, occupied[i].l),
            reverse=True,
        )

    remaining = element.valence_electrons
    if remaining <= 0.0:
        return [], "valence electron count missing"

    selection = []
    for i in order:
        if remaining <= 0.0:
            break
        selection.append(occupied[i])
        remaining -= occupied[i].effective_weight
    return selection, None


def select_orbital(
    element: TabulatedElement, n: int, l: int  # noqa: E741
) -> Optional[Tuple[TabulatedOrbital, bool]]:
    """Closest available orbital to `(n, l)`.

    Preference: exact match, then the first orbital with the same `l`,
    then the first orbital.

    Returns:
            (TabulatedOrbital, bool) or None: The orbital and whether it
            matched exactly; `None` for an element without orbitals.
    """
    same_l = None
    for orbital in element.orbitals:
        if orbital.l == l and orbital.n == n:
            return orbital, True
        if orbital.l == l and same_l is None:
            same_l = orbital
    if same_l is not None:
        return same_l, False
    if element.orbitals:
        return element.orbitals[0], False
    return None


def select_orbital_pair(
    element: TabulatedElement,
    n1: int,
    l1: int,
    n2: int,
    l2: int,
) -> Optional[Tuple[TabulatedOrbital, bool, TabulatedOrbital, bool]]:
    """Two distinct orbitals for a superposition.

    The second orbital falls back to the first orbital that differs from
    the first selection when the closest match coincides with it.
    """
    first = select_orbital(element, n1, l1)
    if first is None:
        return None
    orbital_a, exact_a = first

    second = select_orbital(element, n2, l2)
    if second is not None:
        orbital_b, exact_b = second
        if (orbital_b.n, orbital_b.l) != (orbital_a.n, orbital_a.l):
            return orbital_a, exact_a, orbital_b, exact_b

    for orbital in element.orbitals:
        if (orbital.n, orbital.l) != (orbital_a.n, orbital_a.l):
            return orbital_a, exact_a, orbital, False
    return None


class ElementCache:
    """Load-once cache of `TabulatedElement`s.

    Each symbol is loaded at most once even under concurrent first
    access: a lock protects the dictionary and a per-symbol lock makes
    concurrent callers wait for the one load in flight.  Exceptions from
    the loader propagate unchanged and nothing is cached for that symbol.

    Args:
        loader (callable): `loader(symbol) -> TabulatedElement`.

    Examples:
        >>> calls = []
        >>> def loader(symbol):
        ...     calls.append(symbol)
        ...     return TabulatedElement(symbol, [])
        >>> cache = ElementCache(loader)
        >>> cache.get_or_load("Li") is cache.get_or_load("Li")
        True
        >>> calls
        ['Li']
    """

    def __init__(self, loader: Callable[[str], TabulatedElement]):  # noqa D105
        self._loader = loader
        self._elements: Dict[str, TabulatedElement] = {}
        self._lock = threading.Lock()
        self._key_locks: Dict[str, threading.Lock] = {}

    def __contains__(self, symbol: str) -> bool:  # noqa D105
        with self._lock:
            return symbol in self._elements

    def __len__(self) -> int:  # noqa D105
        with self._lock:
            return len(self._elements)

    def get_or_load(self, symbol: str) -> TabulatedElement:
        """Cached element for `symbol`, loading it on first access."""
        with self._lock:
            element = self._elements.get(symbol)
            if element is not None:
                return element
            key_lock = self._key_locks.setdefault(symbol, threading.Lock())

        with key_lock:
            with self._lock:
                element = self._elements.get(symbol)
            if element is not None:
                return element
            logger.debug("Loading element data for %s.", symbol)
            element = self._loader(symbol)
            with self._lock:
                self._elements[symbol] = element
            return element

    def clear(self):
        """Forget all cached elements."""
        with self._lock:
            self._elements.clear()
            self._key_locks.clear()


def directory_loader(directory) -> Callable[[str], TabulatedElement]:
    """Loader reading `<directory>/<symbol>.json` (see `TabulatedElement.fromdict`).

    A missing file raises `FileNotFoundError`.
    """
    directory = Path(directory)

    def loader(symbol: str) -> TabulatedElement:
        return TabulatedElement.fromjson(directory / f"{symbol}.json")

    return loader
