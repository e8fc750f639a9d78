"""Tripos MOL2: MOLECULE, ATOM, BOND and CRYSIN sections.

Atom properties:
    ``mol2/atom-type``  SYBYL atom type as written (str)
    ``mol2/charge``     partial charge (float)
"""

from __future__ import annotations

from collections import Counter
from typing import Optional

from molrw.core.errors import RecordParseError, report_mismatch
from molrw.core.elements import alpha_prefix
from molrw.core.lattice import Lattice
from molrw.core.logging_utils import get_logger
from molrw.core.molecule import Atom, BondKind, Molecule
from molrw.core.partition import PrecededBySentinel
from molrw.formats.base import FormatDescriptor

logger = get_logger(__name__)

TAG = "text/mol2"
ATOM_TYPE_KEY = "mol2/atom-type"
CHARGE_KEY = "mol2/charge"

_BOND_TYPES = {
    "1": BondKind.SINGLE,
    "2": BondKind.DOUBLE,
    "3": BondKind.TRIPLE,
    "4": BondKind.QUADRUPLE,
    "ar": BondKind.AROMATIC,
    "am": BondKind.AROMATIC,
    "wk": BondKind.PARTIAL,
    "nc": BondKind.DUMMY,
    "du": BondKind.DUMMY,
}

_BOND_CODES = {
    BondKind.SINGLE: "1",
    BondKind.DOUBLE: "2",
    BondKind.TRIPLE: "3",
    BondKind.QUADRUPLE: "4",
    BondKind.AROMATIC: "ar",
    BondKind.PARTIAL: "wk",
    BondKind.DUMMY: "nc",
}

_DEFAULT_TYPES = {"C": "C.3", "O": "O.2", "N": "N.3", "S": "S.2", "P": "P.3"}
_OCTAHEDRAL = ("Co", "Ru", "Ti", "Cr")


def is_molecule_line(line: str) -> bool:
    return line.strip().upper() == "@<TRIPOS>MOLECULE"


def _sections(text: str) -> dict[str, list[str]]:
    sections: dict[str, list[str]] = {}
    current: Optional[list[str]] = None
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.upper().startswith("@<TRIPOS>"):
            current = sections.setdefault(stripped[len("@<TRIPOS>"):].upper(), [])
        elif current is not None:
            current.append(line)
    return sections


# ======================================================================
# Parsing
# ======================================================================

def _parse_atoms(lines: list[str], mol: Molecule) -> dict[str, int]:
    ids: dict[str, int] = {}
    for line in lines:
        tokens = line.split()
        if not tokens or tokens[0].startswith("#"):
            continue
        if len(tokens) < 6:
            raise RecordParseError(f"Invalid ATOM line: {line.strip()!r}", tag=TAG)
        atom_id, name = tokens[0], tokens[1]
        try:
            position = tuple(float(t) for t in tokens[2:5])
        except ValueError:
            raise RecordParseError(f"Invalid ATOM coordinates: {line.strip()!r}", tag=TAG) from None
        atom_type = tokens[5]
        atom = Atom(alpha_prefix(atom_type.split(".")[0]) or atom_type, position, label=name)
        atom.properties.store(ATOM_TYPE_KEY, atom_type)
        if len(tokens) >= 9:
            try:
                atom.properties.store(CHARGE_KEY, float(tokens[8]))
            except ValueError:
                pass
        ids[atom_id] = mol.add_atom(atom)
    return ids


def _parse_bonds(lines: list[str], mol: Molecule, ids: dict[str, int]) -> int:
    count = 0
    for line in lines:
        tokens = line.split()
        if not tokens or tokens[0].startswith("#"):
            continue
        if len(tokens) < 4:
            raise RecordParseError(f"Invalid BOND line: {line.strip()!r}", tag=TAG)
        origin, target = ids.get(tokens[1]), ids.get(tokens[2])
        if origin is None or target is None:
            report_mismatch(logger, f"Bond {tokens[0]} references an unknown atom id; skipped")
            continue
        mol.add_bond(origin, target, _BOND_TYPES.get(tokens[3].lower(), BondKind.SINGLE))
        count += 1
    return count


def _parse_crysin(lines: list[str]) -> Optional[Lattice]:
    for line in lines:
        tokens = line.split()
        if len(tokens) >= 6:
            try:
                return Lattice.from_params(*(float(t) for t in tokens[:6]))
            except ValueError:
                raise RecordParseError(f"Invalid CRYSIN line: {line.strip()!r}", tag=TAG) from None
    return None


def parse_mol2(text: str) -> Molecule:
    sections = _sections(text)
    header = sections.get("MOLECULE", [])
    if not header:
        raise RecordParseError("Missing @<TRIPOS>MOLECULE section", tag=TAG)
    if "ATOM" not in sections:
        raise RecordParseError("Missing @<TRIPOS>ATOM section", tag=TAG)

    mol = Molecule(header[0].strip())
    counts = header[1].split() if len(header) > 1 else []

    ids = _parse_atoms(sections["ATOM"], mol)
    nbonds = _parse_bonds(sections.get("BOND", []), mol, ids)
    mol.lattice = _parse_crysin(sections.get("CRYSIN", []))

    try:
        stated = [int(t) for t in counts[:2]]
    except ValueError:
        stated = []
    if stated and stated[0] != mol.num_atoms:
        report_mismatch(logger, f"Expected {stated[0]} atoms, but found {mol.num_atoms}")
    if len(stated) > 1 and stated[1] != nbonds:
        report_mismatch(logger, f"Expected {stated[1]} bonds, but found {nbonds}")
    return mol


# ======================================================================
# Formatting
# ======================================================================

def _atom_type(atom: Atom) -> str:
    stored = atom.properties.get(ATOM_TYPE_KEY)
    if isinstance(stored, str) and alpha_prefix(stored.split(".")[0]) == atom.symbol:
        return stored
    if atom.symbol in _OCTAHEDRAL:
        return f"{atom.symbol}.oh"
    return _DEFAULT_TYPES.get(atom.symbol, atom.symbol)


def format_mol2(mol: Molecule) -> str:
    lines = [
        "#\tCreated by molrw",
        "",
        "@<TRIPOS>MOLECULE",
        mol.title,
        f"{mol.num_atoms:>5} {mol.num_bonds:>5}",
        "SMALL",
        "USER_CHARGES",
        "",
        "@<TRIPOS>ATOM",
    ]
    counter: Counter[str] = Counter()
    for index, atom in enumerate(mol.atoms, start=1):
        counter[atom.symbol] += 1
        name = atom.label or f"{atom.symbol}{counter[atom.symbol]}"
        x, y, z = atom.position
        charge = atom.properties.get(CHARGE_KEY, 0.0)
        lines.append(
            f"{index:5} {name:8} {x:12.5f} {y:12.5f} {z:12.5f} "
            f"{_atom_type(atom):8} {1:5} {'SUBUNIT':8} {charge:10.4f}"
        )
    if mol.num_bonds:
        lines.append("@<TRIPOS>BOND")
        for sn, bond in enumerate(mol.bonds, start=1):
            lines.append(f"{sn:4} {bond.i:4} {bond.j:4} {_BOND_CODES[bond.kind]:3}")
    if mol.lattice is not None:
        a, b, c = mol.lattice.lengths
        alpha, beta, gamma = mol.lattice.angles
        lines.append("@<TRIPOS>CRYSIN")
        lines.append(f"{a:10.4f} {b:10.4f} {c:10.4f} {alpha:8.4f} {beta:8.4f} {gamma:8.4f}  1  1")
    return "\n".join(lines) + "\n\n"


MOL2_FORMAT = FormatDescriptor(
    tag=TAG,
    extensions=(".mol2",),
    boundary_policy=PrecededBySentinel(is_molecule_line),
    parse_record=parse_mol2,
    format_molecule=format_mol2,
    preamble=is_molecule_line,
    description="Tripos MOL2 with optional CRYSIN cell",
)
