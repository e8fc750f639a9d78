"""MDL SD files (V2000 connection tables), records terminated by ``$$$$``.

Data items (``> <name>`` blocks after ``M  END``) are kept as a dict in the
molecule property ``sdf/data``.

Single Responsibility: only handles SDF format.
"""

from __future__ import annotations

from typing import Iterable

from molrw.core.errors import FormatError, RecordParseError, report_mismatch
from molrw.core.logging_utils import get_logger
from molrw.core.molecule import Atom, BondKind, Molecule
from molrw.core.partition import TerminatedBySentinel
from molrw.formats.base import FormatDescriptor

logger = get_logger(__name__)

TAG = "text/sdf"
DATA_KEY = "sdf/data"
MAX_ENTRIES = 999

_BOND_ORDERS = {
    1: BondKind.SINGLE,
    2: BondKind.DOUBLE,
    3: BondKind.TRIPLE,
    4: BondKind.AROMATIC,
}

_BOND_CODES = {
    BondKind.SINGLE: 1,
    BondKind.DOUBLE: 2,
    BondKind.TRIPLE: 3,
    BondKind.AROMATIC: 4,
}


def is_record_end(line: str) -> bool:
    return line.strip() == "$$$$"


def _parse_data_items(lines: Iterable[str]) -> dict[str, str]:
    items: dict[str, str] = {}
    current: str | None = None
    buffer: list[str] = []

    for line in lines:
        if line.startswith(">"):
            if current is not None:
                items[current] = "\n".join(buffer).strip()
            start = line.find("<")
            end = line.find(">", start + 1)
            current = line[start + 1:end].strip() if start != -1 and end != -1 else None
            buffer = []
        elif current is not None:
            buffer.append(line.rstrip("\r"))

    if current is not None:
        items[current] = "\n".join(buffer).strip()
    return items


# ======================================================================
# Parsing
# ======================================================================

def _parse_atom_line(line: str) -> Atom:
    try:
        x, y, z = float(line[0:10]), float(line[10:20]), float(line[20:30])
        symbol = line[31:34].strip()
    except ValueError:
        tokens = line.split()
        if len(tokens) < 4:
            raise
        x, y, z = (float(t) for t in tokens[:3])
        symbol = tokens[3]
    if not symbol:
        raise ValueError(f"missing element symbol in {line!r}")
    return Atom(symbol, (x, y, z))


def _parse_bond_line(line: str) -> tuple[int, int, int]:
    try:
        return int(line[0:3]), int(line[3:6]), int(line[6:9])
    except ValueError:
        i, j, order = line.split()[:3]
        return int(i), int(j), int(order)


def parse_sdf(text: str) -> Molecule:
    lines = text.splitlines()
    if lines and is_record_end(lines[-1]):
        lines.pop()
    if len(lines) < 4:
        raise RecordParseError("SDF record shorter than its header block", tag=TAG)
    counts = lines[3]
    if "V3000" in counts:
        raise RecordParseError("V3000 connection tables are not supported", tag=TAG)
    try:
        natoms, nbonds = int(counts[0:3]), int(counts[3:6])
    except ValueError:
        raise RecordParseError(f"Invalid counts line: {counts!r}", tag=TAG) from None

    mol = Molecule(lines[0].strip())
    cursor = 4
    for line in lines[cursor:cursor + natoms]:
        try:
            mol.add_atom(_parse_atom_line(line))
        except ValueError:
            break
        cursor += 1
    if mol.num_atoms != natoms:
        report_mismatch(logger, f"Expected {natoms} atoms, but found {mol.num_atoms}")

    found_bonds = 0
    for line in lines[cursor:cursor + nbonds]:
        try:
            i, j, order = _parse_bond_line(line)
        except ValueError:
            break
        cursor += 1
        found_bonds += 1
        kind = _BOND_ORDERS.get(order)
        if kind is None:
            report_mismatch(logger, f"Unsupported bond order {order} between {i} and {j}; using single")
            kind = BondKind.SINGLE
        try:
            mol.add_bond(i, j, kind)
        except (IndexError, ValueError) as e:
            raise RecordParseError(f"Invalid bond {i}-{j}: {e}", tag=TAG) from e
    if found_bonds != nbonds:
        report_mismatch(logger, f"Expected {nbonds} bonds, but found {found_bonds}")

    tail = lines[cursor:]
    for k, line in enumerate(tail):
        if line.startswith("M  END"):
            items = _parse_data_items(tail[k + 1:])
            if items:
                mol.properties.store(DATA_KEY, items)
            break
    return mol


# ======================================================================
# Formatting
# ======================================================================

def format_sdf(mol: Molecule) -> str:
    if mol.num_atoms > MAX_ENTRIES or mol.num_bonds > MAX_ENTRIES:
        raise FormatError(f"V2000 holds at most {MAX_ENTRIES} atoms and bonds")
    if mol.lattice is not None:
        report_mismatch(logger, f"SDF has no lattice section; lattice of {mol.title!r} dropped")

    lines = [
        mol.title,
        "  molrw",
        "",
        f"{mol.num_atoms:3d}{mol.num_bonds:3d}  0  0  0  0  0  0  0  0999 V2000",
    ]
    for atom in mol.atoms:
        x, y, z = atom.position
        lines.append(f"{x:10.4f}{y:10.4f}{z:10.4f} {atom.symbol:<3} 0  0  0  0  0  0  0  0  0  0  0  0")
    for bond in mol.bonds:
        code = _BOND_CODES.get(bond.kind)
        if code is None:
            report_mismatch(logger, f"SDF has no {bond.kind.value} bond; bond {bond.i}-{bond.j} written as single")
            code = 1
        lines.append(f"{bond.i:3d}{bond.j:3d}{code:3d}  0  0  0  0")
    lines.append("M  END")

    items = mol.properties.get(DATA_KEY) or {}
    for name, value in items.items():
        lines.extend([f">  <{name}>", str(value), ""])
    lines.append("$$$$")
    return "\n".join(lines) + "\n"


SDF_FORMAT = FormatDescriptor(
    tag=TAG,
    extensions=(".sdf", ".sd", ".mol"),
    boundary_policy=TerminatedBySentinel(is_record_end),
    parse_record=parse_sdf,
    format_molecule=format_sdf,
    description="MDL SD file (V2000), records terminated by $$$$",
)
