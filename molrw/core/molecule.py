"""Canonical molecule model shared by every format adapter.

Hierarchy:
    Molecule
    ├── title
    ├── atoms: list[Atom]        (1-based indices in every external view)
    ├── bonds: {(i, j): BondKind}
    ├── lattice: Optional[Lattice]
    └── properties: PropertyStore
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Sequence

import numpy as np

from molrw.core.elements import atomic_number, normalize_element
from molrw.core.lattice import Lattice, to_cartesian, to_fractional

Vector3 = tuple[float, float, float]


# ======================================================================
# Properties
# ======================================================================

class PropertyStore:
    """String-keyed store of typed values.

    Adapters keep format specific extras here under documented keys (for
    example ``gaussian/atom-info`` or ``mol2/atom-type``).
    """

    def __init__(self, values: Optional[dict[str, Any]] = None):
        self._values: dict[str, Any] = dict(values or {})

    def store(self, key: str, value: Any) -> None:
        self._values[key] = value

    def load(self, key: str, kind: Optional[type] = None) -> Any:
        """Return the value under ``key``, checking its type when ``kind`` is given."""
        value = self._values[key]
        if kind is not None and not isinstance(value, kind):
            raise TypeError(f"Property {key!r} is {type(value).__name__}, not {kind.__name__}")
        return value

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def discard(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._values)

    def items(self) -> list[tuple[str, Any]]:
        return list(self._values.items())

    def copy(self) -> "PropertyStore":
        return PropertyStore(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PropertyStore):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"<PropertyStore keys={list(self._values)}>"


# ======================================================================
# Value objects
# ======================================================================

class BondKind(Enum):
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"
    QUADRUPLE = "quadruple"
    AROMATIC = "aromatic"
    PARTIAL = "partial"
    DUMMY = "dummy"

    @property
    def order(self) -> float:
        return _BOND_ORDERS[self]


_BOND_ORDERS = {
    BondKind.SINGLE: 1.0,
    BondKind.DOUBLE: 2.0,
    BondKind.TRIPLE: 3.0,
    BondKind.QUADRUPLE: 4.0,
    BondKind.AROMATIC: 1.5,
    BondKind.PARTIAL: 0.5,
    BondKind.DUMMY: 0.0,
}


@dataclass(frozen=True)
class Bond:
    """Bond between atoms ``i`` and ``j`` (1-based, i < j)."""

    i: int
    j: int
    kind: BondKind = BondKind.SINGLE

    @property
    def order(self) -> float:
        return self.kind.order


def _vec3(values: Iterable[float]) -> Vector3:
    x, y, z = (float(v) for v in values)
    return (x, y, z)


@dataclass
class Atom:
    """One atom: element, cartesian position, velocity and freezing flags."""

    element: str
    position: Vector3 = (0.0, 0.0, 0.0)
    velocity: Vector3 = (0.0, 0.0, 0.0)
    freezing: tuple[bool, bool, bool] = (False, False, False)
    label: Optional[str] = None
    properties: PropertyStore = field(default_factory=PropertyStore)

    def __post_init__(self):
        self.element = normalize_element(self.element)
        self.position = _vec3(self.position)
        self.velocity = _vec3(self.velocity)
        fx, fy, fz = (bool(f) for f in self.freezing)
        self.freezing = (fx, fy, fz)

    @property
    def symbol(self) -> str:
        return self.element

    @property
    def number(self) -> int:
        """Atomic number, 0 for dummy atoms."""
        return atomic_number(self.element) or 0

    @property
    def is_frozen(self) -> bool:
        return all(self.freezing)

    def has_velocity(self) -> bool:
        return any(v != 0.0 for v in self.velocity)


# ======================================================================
# Molecule
# ======================================================================

class Molecule:
    """Atoms, bonds, an optional lattice and free-form properties.

    Usage::

        mol = Molecule("water")
        o = mol.add_atom(Atom("O", (0.0, 0.0, 0.0)))
        h = mol.add_atom(Atom("H", (0.96, 0.0, 0.0)))
        mol.add_bond(o, h)
    """

    def __init__(
        self,
        title: str = "",
        atoms: Optional[Iterable[Atom]] = None,
        lattice: Optional[Lattice] = None,
    ):
        self.title = title
        self.atoms: list[Atom] = list(atoms or [])
        self.lattice = lattice
        self.properties = PropertyStore()
        self._bonds: dict[tuple[int, int], BondKind] = {}

    # -- atoms ----------------------------------------------------------

    def add_atom(self, atom: Atom) -> int:
        """Append ``atom`` and return its 1-based index."""
        self.atoms.append(atom)
        return len(self.atoms)

    def add_atoms(self, atoms: Iterable[Atom]) -> None:
        self.atoms.extend(atoms)

    def atom(self, index: int) -> Atom:
        """Atom at 1-based ``index``."""
        if not 1 <= index <= len(self.atoms):
            raise IndexError(f"Atom index {index} out of range 1..{len(self.atoms)}")
        return self.atoms[index - 1]

    @property
    def num_atoms(self) -> int:
        return len(self.atoms)

    @property
    def symbols(self) -> list[str]:
        return [a.symbol for a in self.atoms]

    @property
    def positions(self) -> np.ndarray:
        """Cartesian positions as an (N, 3) array."""
        return np.array([a.position for a in self.atoms], dtype=float).reshape(-1, 3)

    def set_positions(self, positions: Sequence[Sequence[float]]) -> None:
        positions = np.asarray(positions, dtype=float).reshape(-1, 3)
        if len(positions) != len(self.atoms):
            raise ValueError(f"Expected {len(self.atoms)} positions, got {len(positions)}")
        for atom, p in zip(self.atoms, positions):
            atom.position = _vec3(p)

    @property
    def velocities(self) -> np.ndarray:
        return np.array([a.velocity for a in self.atoms], dtype=float).reshape(-1, 3)

    def has_velocities(self) -> bool:
        return any(a.has_velocity() for a in self.atoms)

    # -- bonds ----------------------------------------------------------

    def add_bond(self, i: int, j: int, kind: BondKind = BondKind.SINGLE) -> None:
        """Add or replace the bond between 1-based atoms ``i`` and ``j``."""
        n = len(self.atoms)
        for idx in (i, j):
            if not 1 <= idx <= n:
                raise IndexError(f"Bond references atom {idx}, molecule has {n} atoms")
        if i == j:
            raise ValueError(f"Cannot bond atom {i} to itself")
        self._bonds[(min(i, j), max(i, j))] = kind

    def get_bond(self, i: int, j: int) -> Optional[Bond]:
        key = (min(i, j), max(i, j))
        kind = self._bonds.get(key)
        return Bond(key[0], key[1], kind) if kind is not None else None

    def remove_bond(self, i: int, j: int) -> None:
        self._bonds.pop((min(i, j), max(i, j)), None)

    @property
    def bonds(self) -> list[Bond]:
        return [Bond(i, j, kind) for (i, j), kind in self._bonds.items()]

    @property
    def num_bonds(self) -> int:
        return len(self._bonds)

    def neighbors(self, index: int) -> list[int]:
        out = []
        for i, j in self._bonds:
            if i == index:
                out.append(j)
            elif j == index:
                out.append(i)
        return sorted(out)

    # -- lattice --------------------------------------------------------

    @property
    def is_periodic(self) -> bool:
        return self.lattice is not None

    def _require_lattice(self) -> Lattice:
        if self.lattice is None:
            raise ValueError(f"Molecule {self.title!r} has no lattice")
        return self.lattice

    def scaled_positions(self) -> np.ndarray:
        """Fractional coordinates of every atom."""
        return to_fractional(self._require_lattice(), self.positions)

    def set_scaled_positions(self, frac: Sequence[Sequence[float]]) -> None:
        self.set_positions(to_cartesian(self._require_lattice(), frac))

    # -- summaries ------------------------------------------------------

    def species(self) -> list[tuple[str, int]]:
        """(symbol, count) pairs in first-seen order."""
        return list(Counter(self.symbols).items())

    @property
    def formula(self) -> str:
        return "".join(f"{sym}{n if n > 1 else ''}" for sym, n in self.species())

    # -- io shortcuts ---------------------------------------------------

    @classmethod
    def from_file(cls, path: str | Path, fmt: Optional[str] = None) -> "Molecule":
        from molrw.io import from_file
        return from_file(path, fmt)

    @classmethod
    def from_str(cls, text: str, fmt: str) -> "Molecule":
        from molrw.io import from_str
        return from_str(text, fmt)

    def to_file(self, path: str | Path, fmt: Optional[str] = None) -> None:
        from molrw.io import to_file
        to_file(self, path, fmt)

    def format_as(self, fmt: str) -> str:
        from molrw.io import format_as
        return format_as(self, fmt)

    # -- dunder ---------------------------------------------------------

    def __len__(self) -> int:
        return len(self.atoms)

    def __iter__(self) -> Iterator[Atom]:
        return iter(self.atoms)

    def __repr__(self) -> str:
        cell = " periodic" if self.is_periodic else ""
        return f"<Molecule {self.title!r} atoms={self.num_atoms} bonds={self.num_bonds}{cell}>"
