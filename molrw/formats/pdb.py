"""Protein Data Bank format, fixed columns.

Each ``MODEL``/``ENDMDL`` block is one record; a file without ENDMDL is a
single record. Only coordinates, CRYST1 and CONECT are interpreted.

Atom properties:
    ``pdb/residue-name``    (str)
    ``pdb/chain-id``        (str)
    ``pdb/residue-number``  (int)

Single Responsibility: only handles PDB format.
"""

from __future__ import annotations

from molrw.core.errors import RecordParseError, report_mismatch
from molrw.core.elements import normalize_element
from molrw.core.lattice import Lattice
from molrw.core.logging_utils import get_logger
from molrw.core.molecule import Atom, Molecule
from molrw.core.partition import TerminatedBySentinel
from molrw.formats.base import FormatDescriptor

logger = get_logger(__name__)

TAG = "text/pdb"
RESIDUE_NAME_KEY = "pdb/residue-name"
CHAIN_ID_KEY = "pdb/chain-id"
RESIDUE_NUMBER_KEY = "pdb/residue-number"

MAX_SERIAL = 99999


def is_endmdl_line(line: str) -> bool:
    return line.startswith("ENDMDL")


_TRAILER_RECORDS = ("END", "MASTER", "CONECT")


def is_trailer(record: str) -> bool:
    """True for the END/MASTER lines that follow the last ENDMDL."""
    return all(line[:6].strip() in _TRAILER_RECORDS for line in record.splitlines() if line.strip())


def guess_element(name: str, element_field: str) -> str:
    """Element from columns 77-78, falling back to the atom name.

    The name fallback takes the first letter, skipping a leading digit
    (" CA " -> "C", "1HB " -> "H").
    """
    symbol = "".join(ch for ch in element_field if ch.isalpha())
    if symbol:
        return normalize_element(symbol)
    name = name.strip()
    if not name:
        return "X"
    return name[1:2] if name[0].isdigit() else name[0:1]


# ======================================================================
# Parsing
# ======================================================================

def _parse_cryst1(line: str) -> Lattice:
    try:
        a = float(line[6:15])
        b = float(line[15:24])
        c = float(line[24:33])
        alpha = float(line[33:40])
        beta = float(line[40:47])
        gamma = float(line[47:54])
    except (ValueError, IndexError):
        raise RecordParseError(f"Invalid CRYST1 record: {line.rstrip()!r}", tag=TAG) from None
    return Lattice.from_params(a, b, c, alpha, beta, gamma)


def _parse_atom(line: str) -> tuple[int, Atom]:
    try:
        serial = int(line[6:11])
        x = float(line[30:38])
        y = float(line[38:46])
        z = float(line[46:54])
    except (ValueError, IndexError):
        raise RecordParseError(f"Invalid atom record: {line.rstrip()!r}", tag=TAG) from None
    name = line[12:16]
    atom = Atom(guess_element(name, line[76:78]), (x, y, z), label=name.strip() or None)
    atom.properties.store(RESIDUE_NAME_KEY, line[17:20].strip())
    atom.properties.store(CHAIN_ID_KEY, line[21:22].strip())
    try:
        atom.properties.store(RESIDUE_NUMBER_KEY, int(line[22:26]))
    except ValueError:
        pass
    return serial, atom


def _conect_serials(line: str) -> list[int]:
    serials = []
    for start in range(6, len(line.rstrip()), 5):
        field = line[start:start + 5].strip()
        if not field:
            continue
        try:
            serials.append(int(field))
        except ValueError:
            break
    return serials


def parse_pdb(text: str) -> Molecule:
    mol = Molecule()
    serials: dict[int, int] = {}
    conect: list[list[int]] = []
    titles: dict[str, list[str]] = {}

    for line in text.splitlines():
        record = line[:6].strip()
        if record in ("ATOM", "HETATM"):
            serial, atom = _parse_atom(line)
            serials[serial] = mol.add_atom(atom)
        elif record == "CRYST1":
            mol.lattice = _parse_cryst1(line)
        elif record == "CONECT":
            conect.append(_conect_serials(line))
        elif record in ("TITLE", "COMPND"):
            titles.setdefault(record, []).append(line[10:80].strip())

    if mol.num_atoms == 0:
        raise RecordParseError("No ATOM/HETATM records", tag=TAG)
    parts = titles.get("TITLE") or titles.get("COMPND") or []
    mol.title = " ".join(p for p in parts if p)

    for entry in conect:
        if len(entry) < 2:
            continue
        origin = serials.get(entry[0])
        for other in entry[1:]:
            target = serials.get(other)
            if origin is None or target is None:
                report_mismatch(logger, f"CONECT {entry[0]}-{other} references an unknown atom")
                continue
            if origin != target:
                mol.add_bond(origin, target)
    return mol


# ======================================================================
# Formatting
# ======================================================================

def _atom_name(atom: Atom) -> str:
    name = (atom.label or atom.symbol)[:4]
    # one-letter elements start in column 14
    if len(name) < 4 and len(atom.symbol) == 1:
        return f" {name:<3}"
    return f"{name:<4}"


def format_pdb(mol: Molecule) -> str:
    if mol.num_atoms > MAX_SERIAL:
        report_mismatch(logger, f"PDB serials overflow above {MAX_SERIAL} atoms ({mol.num_atoms})")

    lines = ["REMARK   Created by molrw"]
    if mol.title:
        lines.append(f"TITLE     {mol.title[:70]}")
    if mol.lattice is not None:
        a, b, c = mol.lattice.lengths
        alpha, beta, gamma = mol.lattice.angles
        lines.append(f"CRYST1{a:9.3f}{b:9.3f}{c:9.3f}{alpha:7.2f}{beta:7.2f}{gamma:7.2f} P 1           1")

    for index, atom in enumerate(mol.atoms, start=1):
        x, y, z = atom.position
        props = atom.properties
        res_name = props.get(RESIDUE_NAME_KEY) or "MOL"
        chain = props.get(CHAIN_ID_KEY) or "A"
        res_seq = props.get(RESIDUE_NUMBER_KEY, 1)
        lines.append(
            f"ATOM  {index % 100000:5d} {_atom_name(atom)} {res_name:>3.3} {chain:1.1}{res_seq:4d}    "
            f"{x:8.3f}{y:8.3f}{z:8.3f}  1.00  0.00          {atom.symbol:>2.2}"
        )

    adjacency: dict[int, list[int]] = {}
    for bond in mol.bonds:
        adjacency.setdefault(bond.i, []).append(bond.j)
        adjacency.setdefault(bond.j, []).append(bond.i)
    for index in sorted(adjacency):
        partners = sorted(adjacency[index])
        for start in range(0, len(partners), 4):
            chunk = "".join(f"{p:5d}" for p in partners[start:start + 4])
            lines.append(f"CONECT{index:5d}{chunk}")
    lines.append("END")
    return "\n".join(lines) + "\n"


PDB_FORMAT = FormatDescriptor(
    tag=TAG,
    extensions=(".pdb", ".ent"),
    boundary_policy=TerminatedBySentinel(is_endmdl_line),
    parse_record=parse_pdb,
    format_molecule=format_pdb,
    record_separator="ENDMDL\n",
    trailer=is_trailer,
    description="Protein Data Bank, one record per MODEL/ENDMDL block",
)
