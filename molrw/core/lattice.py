"""Periodic lattice and fractional/cartesian conversion.

``to_cartesian`` and ``to_fractional`` are the only place where coordinates
change basis; every format adapter goes through them.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np


class Lattice:
    """Three lattice vectors in cartesian space, stored as matrix rows a, b, c."""

    def __init__(self, vectors: Sequence[Sequence[float]]):
        matrix = np.asarray(vectors, dtype=float)
        if matrix.shape != (3, 3):
            raise ValueError(f"Lattice needs three 3-vectors, got shape {matrix.shape}")
        if abs(np.linalg.det(matrix)) < 1e-12:
            raise ValueError("Lattice vectors are linearly dependent")
        self._matrix = matrix

    @classmethod
    def from_params(
        cls,
        a: float,
        b: float,
        c: float,
        alpha: float = 90.0,
        beta: float = 90.0,
        gamma: float = 90.0,
    ) -> "Lattice":
        """Build a lattice from cell lengths and angles (degrees).

        Standard orientation: a along x, b in the xy plane.
        """
        ca, cb, cg = (math.cos(math.radians(x)) for x in (alpha, beta, gamma))
        sg = math.sin(math.radians(gamma))
        if abs(sg) < 1e-12:
            raise ValueError(f"Invalid cell angle gamma: {gamma}")
        cy = (ca - cb * cg) / sg
        cz2 = 1.0 - cb * cb - cy * cy
        if cz2 <= 0.0:
            raise ValueError(f"Invalid cell angles: {alpha}, {beta}, {gamma}")
        return cls([
            [a, 0.0, 0.0],
            [b * cg, b * sg, 0.0],
            [c * cb, c * cy, c * math.sqrt(cz2)],
        ])

    @property
    def matrix(self) -> np.ndarray:
        return self._matrix.copy()

    @property
    def vectors(self) -> list[tuple[float, float, float]]:
        return [tuple(float(x) for x in row) for row in self._matrix]

    @property
    def lengths(self) -> tuple[float, float, float]:
        a, b, c = np.linalg.norm(self._matrix, axis=1)
        return float(a), float(b), float(c)

    @property
    def angles(self) -> tuple[float, float, float]:
        """alpha (b^c), beta (a^c), gamma (a^b) in degrees."""
        va, vb, vc = self._matrix
        return _angle(vb, vc), _angle(va, vc), _angle(va, vb)

    @property
    def volume(self) -> float:
        return float(abs(np.linalg.det(self._matrix)))

    def scaled(self, factor: float) -> "Lattice":
        return Lattice(self._matrix * factor)

    def to_cartesian(self, frac) -> np.ndarray:
        return to_cartesian(self, frac)

    def to_fractional(self, cart) -> np.ndarray:
        return to_fractional(self, cart)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Lattice):
            return NotImplemented
        return bool(np.allclose(self._matrix, other._matrix))

    def __repr__(self) -> str:
        a, b, c = self.lengths
        alpha, beta, gamma = self.angles
        return (
            f"<Lattice a={a:.4f} b={b:.4f} c={c:.4f} "
            f"alpha={alpha:.2f} beta={beta:.2f} gamma={gamma:.2f}>"
        )


def _angle(u: np.ndarray, v: np.ndarray) -> float:
    cos = float(np.dot(u, v) / (np.linalg.norm(u) * np.linalg.norm(v)))
    return math.degrees(math.acos(max(-1.0, min(1.0, cos))))


def to_cartesian(lattice: Lattice, frac) -> np.ndarray:
    """cartesian = f_a * a + f_b * b + f_c * c, for one vector or an (N, 3) array."""
    return np.asarray(frac, dtype=float) @ lattice._matrix


def to_fractional(lattice: Lattice, cart) -> np.ndarray:
    """Inverse of ``to_cartesian``."""
    cart = np.asarray(cart, dtype=float)
    return np.linalg.solve(lattice._matrix.T, cart.T).T
