"""Classical XYZ and plain XYZ (atom lines only).

Classical XYZ frames: an atom count line, a title line, the atom lines and
optional lattice lines (``TV`` or ASE style ``VEC1``/``VEC2``/``VEC3``).

Single Responsibility: only handles the two XYZ dialects.
"""

from __future__ import annotations

import re
from typing import Optional

from molrw.core.errors import RecordParseError, report_mismatch
from molrw.core.lattice import Lattice
from molrw.core.logging_utils import get_logger
from molrw.core.molecule import Atom, Molecule
from molrw.core.partition import FixedHeaderCount, TerminatedBySentinel, is_blank
from molrw.formats.base import FormatDescriptor

logger = get_logger(__name__)

LATTICE_TOKENS = ("TV", "VEC1", "VEC2", "VEC3")

_EXTXYZ_LATTICE_RE = re.compile(r'Lattice\s*=\s*"([^"]*)"', re.IGNORECASE)


# ======================================================================
# Shared atom-line grammar
# ======================================================================

def parse_atom_line(line: str) -> Optional[tuple[str, tuple[float, ...], tuple[float, ...]]]:
    """Split ``element x y z [vx vy vz]`` into its parts, None if not an atom line."""
    tokens = line.split()
    if len(tokens) < 4:
        return None
    element = tokens[0]
    if element.upper() not in LATTICE_TOKENS and not (element.isalpha() or element.isdigit()):
        return None
    try:
        position = tuple(float(t) for t in tokens[1:4])
    except ValueError:
        return None
    velocity: tuple[float, ...] = (0.0, 0.0, 0.0)
    if len(tokens) == 7:
        try:
            velocity = tuple(float(t) for t in tokens[4:7])
        except ValueError:
            pass
    return element, position, velocity


def _collect_atoms(lines: list[str], mol: Molecule) -> list[tuple[float, ...]]:
    """Fill ``mol`` with the atom lines at the start of ``lines``.

    Returns the lattice vectors found.
    Blank lines are skipped; the first other non-atom line stops the block.
    """
    vectors = []
    consumed = 0
    for line in lines:
        if is_blank(line):
            consumed += 1
            continue
        parsed = parse_atom_line(line)
        if parsed is None:
            break
        consumed += 1
        element, position, velocity = parsed
        if element.upper() in LATTICE_TOKENS:
            vectors.append(position)
        else:
            mol.add_atom(Atom(element, position, velocity=velocity))
    ignored = [ln for ln in lines[consumed:] if not is_blank(ln)]
    if ignored:
        logger.debug("Ignored %d trailing non-atom lines: %r", len(ignored), ignored[0].strip())
    return vectors


def _apply_lattice_lines(mol: Molecule, vectors: list[tuple[float, ...]]) -> None:
    if not vectors:
        return
    if len(vectors) != 3:
        report_mismatch(logger, f"Expected 3 lattice vectors, found {len(vectors)}; lattice ignored")
        return
    mol.lattice = Lattice(vectors)


def _extxyz_lattice(title: str) -> Optional[Lattice]:
    m = _EXTXYZ_LATTICE_RE.search(title)
    if not m:
        return None
    values = m.group(1).split()
    if len(values) != 9:
        report_mismatch(logger, f"Lattice= needs 9 numbers, got {len(values)}; lattice ignored")
        return None
    numbers = [float(v) for v in values]
    return Lattice([numbers[0:3], numbers[3:6], numbers[6:9]])


def _format_atoms(mol: Molecule, decimals: int) -> list[str]:
    with_velocity = mol.has_velocities()
    lines = []
    for atom in mol.atoms:
        x, y, z = atom.position
        line = f"{atom.symbol:6} {x:18.{decimals}f}{y:18.{decimals}f}{z:18.{decimals}f}"
        if with_velocity:
            vx, vy, vz = atom.velocity
            line += f"{vx:18.{decimals}f}{vy:18.{decimals}f}{vz:18.{decimals}f}"
        lines.append(line)
    return lines


def _format_lattice(mol: Molecule) -> list[str]:
    if mol.lattice is None:
        return []
    return [f"TV {x:12.8f} {y:12.8f} {z:12.8f}" for x, y, z in mol.lattice.vectors]


# ======================================================================
# Classical XYZ
# ======================================================================

def parse_xyz(text: str) -> Molecule:
    lines = text.splitlines()
    if not lines:
        raise RecordParseError("Empty XYZ record", tag="text/xyz")
    try:
        natoms = int(lines[0])
    except ValueError:
        raise RecordParseError(f"Invalid atom count line: {lines[0]!r}", tag="text/xyz") from None

    title = lines[1].strip() if len(lines) > 1 else ""
    mol = Molecule(title)
    vectors = _collect_atoms(lines[2:], mol)
    if natoms > 0 and mol.num_atoms == 0:
        raise RecordParseError("No atom lines found", tag="text/xyz")

    if natoms not in (mol.num_atoms, mol.num_atoms + len(vectors)):
        report_mismatch(logger, f"Expected {natoms} atoms, but found {mol.num_atoms}")

    _apply_lattice_lines(mol, vectors)
    if mol.lattice is None and not vectors:
        mol.lattice = _extxyz_lattice(title)
    return mol


def format_xyz(mol: Molecule) -> str:
    natoms = mol.num_atoms + (3 if mol.is_periodic else 0)
    lines = [str(natoms), mol.title]
    lines.extend(_format_atoms(mol, decimals=6))
    lines.extend(_format_lattice(mol))
    return "\n".join(lines) + "\n"


# ======================================================================
# Plain XYZ
# ======================================================================

def parse_plain_xyz(text: str) -> Molecule:
    lines = text.lstrip().splitlines()
    mol = Molecule()
    vectors = _collect_atoms(lines, mol)
    if mol.num_atoms == 0:
        raise RecordParseError("No atom lines found", tag="text/pxyz")
    _apply_lattice_lines(mol, vectors)
    return mol


def format_plain_xyz(mol: Molecule) -> str:
    lines = _format_atoms(mol, decimals=8)
    lines.extend(_format_lattice(mol))
    return "\n".join(lines) + "\n\n"


XYZ_FORMAT = FormatDescriptor(
    tag="text/xyz",
    extensions=(".xyz",),
    boundary_policy=FixedHeaderCount(),
    parse_record=parse_xyz,
    format_molecule=format_xyz,
    description="XYZ with atom count and title lines; TV lines for the lattice",
)

PLAIN_XYZ_FORMAT = FormatDescriptor(
    tag="text/pxyz",
    extensions=(".coord", ".pxyz", ".coords"),
    boundary_policy=TerminatedBySentinel(is_blank),
    parse_record=parse_plain_xyz,
    format_molecule=format_plain_xyz,
    description="Plain XYZ: atom lines only, records separated by a blank line",
)
