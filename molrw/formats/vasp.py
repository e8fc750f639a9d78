"""VASP POSCAR/CONTCAR structure files.

A file holds exactly one periodic structure. Positions are ``Direct``
(fractional) or ``Cartesian``; selective dynamics flags map onto atom
freezing (``F`` = frozen along that axis).
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from molrw.core.elements import atomic_number
from molrw.core.errors import FormatError, RecordParseError, report_mismatch
from molrw.core.lattice import Lattice, to_cartesian, to_fractional
from molrw.core.logging_utils import get_logger
from molrw.core.molecule import Atom, Molecule
from molrw.core.partition import WholeStream
from molrw.formats.base import FormatDescriptor

logger = get_logger(__name__)

TAG = "vasp/input"
EXTENSIONS = ("poscar", "vasp")
NAME_PREFIXES = ("POSCAR", "CONTCAR")


def is_vasp_file(path: Path) -> bool:
    """Match by extension when there is one, otherwise by POSCAR/CONTCAR prefix.

    ``x.vasp``, ``x.POSCAR``, ``POSCAR``, ``CONTCAR-1`` match; ``POSCAR.1``
    does not.
    """
    suffix = path.suffix
    if suffix:
        return suffix[1:].lower() in EXTENSIONS
    return path.name.upper().startswith(NAME_PREFIXES)


def _floats(line: str, n: int) -> list[float]:
    tokens = line.split()
    if len(tokens) < n:
        raise ValueError(f"expected {n} numbers in {line!r}")
    return [float(t) for t in tokens[:n]]


def _flag(token: str) -> bool:
    return token.upper().startswith("T")


# ======================================================================
# Parsing
# ======================================================================

def parse_poscar(text: str) -> Molecule:
    lines = text.splitlines()
    if len(lines) < 7:
        raise RecordParseError("POSCAR is shorter than its header", tag=TAG)
    try:
        scale = float(lines[1].split()[0])
        vectors = [_floats(lines[k], 3) for k in (2, 3, 4)]
    except (ValueError, IndexError):
        raise RecordParseError("Invalid scale factor or lattice vectors", tag=TAG) from None

    lattice = Lattice(vectors)
    if scale < 0:
        # negative scale is the target cell volume
        scale = (abs(scale) / lattice.volume) ** (1.0 / 3.0)
    lattice = lattice.scaled(scale)

    cursor = 5
    tokens = lines[cursor].split()
    if tokens and all(t.isdigit() for t in tokens):
        # VASP 4: no symbols line, take them from the title
        counts = [int(t) for t in tokens]
        symbols = lines[0].split()[:len(counts)]
        if len(symbols) != len(counts) or any(atomic_number(s) is None for s in symbols):
            raise RecordParseError("No element symbols line and none in the title", tag=TAG)
        cursor += 1
    else:
        symbols = tokens
        try:
            counts = [int(t) for t in lines[cursor + 1].split()]
        except (ValueError, IndexError):
            raise RecordParseError("Invalid element counts line", tag=TAG) from None
        cursor += 2
    if len(symbols) != len(counts):
        report_mismatch(logger, f"{len(symbols)} element symbols but {len(counts)} counts")

    selective = False
    if cursor < len(lines) and lines[cursor].strip()[:1].upper() == "S":
        selective = True
        cursor += 1
    if cursor >= len(lines):
        raise RecordParseError("Missing coordinate mode line", tag=TAG)
    mode = lines[cursor].strip()[:1].upper()
    if mode not in ("D", "C", "K"):
        raise RecordParseError(f"Unknown coordinate mode: {lines[cursor].strip()!r}", tag=TAG)
    direct = mode == "D"
    cursor += 1

    expected = sum(counts)
    element_list = [sym for sym, n in zip(symbols, counts) for _ in range(n)]
    positions, freezing = [], []
    for line in lines[cursor:cursor + expected]:
        tokens = line.split()
        try:
            positions.append([float(t) for t in tokens[:3]])
        except ValueError:
            break
        if len(positions[-1]) != 3:
            positions.pop()
            break
        if selective and len(tokens) >= 6:
            freezing.append(tuple(not _flag(t) for t in tokens[3:6]))
        else:
            freezing.append((False, False, False))
    cursor += len(positions)
    if len(positions) != expected or len(element_list) != expected:
        report_mismatch(logger, f"Expected {expected} atoms, but found {len(positions)} positions")
    if not positions:
        raise RecordParseError("No atom positions", tag=TAG)

    coords = np.array(positions, dtype=float)
    coords = to_cartesian(lattice, coords) if direct else coords * scale

    mol = Molecule(lines[0].strip(), lattice=lattice)
    for symbol, position, frozen in zip(element_list, coords, freezing):
        mol.add_atom(Atom(symbol, position, freezing=frozen))

    _read_velocities(lines[cursor:], mol)
    return mol


def _read_velocities(lines: list[str], mol: Molecule) -> None:
    while lines and not lines[0].strip():
        lines = lines[1:]
    if lines and lines[0].strip()[:1].upper() in ("C", "D", "K"):
        lines = lines[1:]
    if len(lines) < mol.num_atoms:
        return
    try:
        velocities = [_floats(line, 3) for line in lines[:mol.num_atoms]]
    except ValueError:
        return
    for atom, v in zip(mol.atoms, velocities):
        atom.velocity = tuple(v)


# ======================================================================
# Formatting
# ======================================================================

def _symbol_runs(symbols: list[str]) -> list[tuple[str, int]]:
    """Run-length encode consecutive equal symbols: C C H C -> (C,2) (H,1) (C,1)."""
    runs: list[tuple[str, int]] = []
    for sym in symbols:
        if runs and runs[-1][0] == sym:
            runs[-1] = (sym, runs[-1][1] + 1)
        else:
            runs.append((sym, 1))
    return runs


def format_poscar(mol: Molecule) -> str:
    if mol.lattice is None:
        raise FormatError(f"POSCAR requires a lattice, {mol.title!r} has none")

    runs = _symbol_runs(mol.symbols)
    lines = [mol.title or "generated by molrw", "1.0"]
    for x, y, z in mol.lattice.vectors:
        lines.append(f"{x:20.12f}{y:20.12f}{z:20.12f}")
    lines.append(" ".join(f"{sym:>4}" for sym, _ in runs))
    lines.append(" ".join(f"{n:>4}" for _, n in runs))
    lines.append("Selective dynamics")
    lines.append("Direct")
    fractional = to_fractional(mol.lattice, mol.positions)
    for atom, (fx, fy, fz) in zip(mol.atoms, fractional):
        flags = " ".join("F" if frozen else "T" for frozen in atom.freezing)
        lines.append(f"{fx:18.12f}{fy:18.12f}{fz:18.12f} {flags}")

    if mol.has_velocities():
        lines.append("")
        for vx, vy, vz in mol.velocities:
            lines.append(f"{vx:18.12f}{vy:18.12f}{vz:18.12f}")
    return "\n".join(lines) + "\n\n"


VASP_FORMAT = FormatDescriptor(
    tag=TAG,
    extensions=EXTENSIONS,
    boundary_policy=WholeStream(),
    parse_record=parse_poscar,
    format_molecule=format_poscar,
    matcher=is_vasp_file,
    description="VASP POSCAR/CONTCAR, matched by extension or file name prefix",
)
