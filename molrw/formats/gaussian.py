"""Gaussian input files (cartesian molecule specification).

Layout of one job::

    %link0 commands
    # route section
    <blank>
    title section
    <blank>
    charge multiplicity
    atom lines
    <blank>
    optional connectivity table
    <blank>

Jobs are separated by ``--Link1--``. Per-atom extras (MM type and charge,
freeze code, fragment parameters, ONIOM layer and link atom) are kept in a
``GaussianAtomInfo`` stored under ``gaussian/atom-info``.

Molecule properties:
    ``gaussian/link0``               list[str]
    ``gaussian/route``               str
    ``gaussian/charge-multiplicity`` list[int]
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from molrw.core.errors import RecordParseError, report_mismatch
from molrw.core.lattice import Lattice
from molrw.core.logging_utils import get_logger
from molrw.core.molecule import Atom, BondKind, Molecule
from molrw.core.partition import TerminatedBySentinel, is_blank
from molrw.formats.base import FormatDescriptor

logger = get_logger(__name__)

TAG = "gaussian/input"
ATOM_INFO_KEY = "gaussian/atom-info"
LINK0_KEY = "gaussian/link0"
ROUTE_KEY = "gaussian/route"
CHARGE_KEY = "gaussian/charge-multiplicity"

DEFAULT_LINK0 = ["%nproc=1", "%mem=20MW"]
DEFAULT_ROUTE = "#p sp scf=tight HF/3-21G* geom=connect test"

_ATOM_RE = re.compile(
    r"^\s*(?P<element>[A-Za-z]+[A-Za-z0-9]*|\d+)"
    r"(?P<mm>-[^\s(]*)?"
    r"(?P<params>\([^)]*\))?"
    r"(?P<rest>[\s,].*)?$"
)
_CONNECT_RE = re.compile(r"^\s*\d+(\s+\d+\s+[-+]?\d*\.?\d+)*\s*$")

_ORDERS = {
    1.0: BondKind.SINGLE,
    1.5: BondKind.AROMATIC,
    2.0: BondKind.DOUBLE,
    3.0: BondKind.TRIPLE,
    0.5: BondKind.PARTIAL,
}


@dataclass
class GaussianAtomInfo:
    """Extra columns of a Gaussian atom line."""

    element_label: str = ""
    mm_type: Optional[str] = None
    mm_charge: Optional[float] = None
    frozen_code: Optional[int] = None
    params: dict[str, str] = field(default_factory=dict)
    oniom_layer: Optional[str] = None
    link_atom: Optional[str] = None
    link_host: Optional[int] = None

    def oniom_columns(self) -> str:
        parts = [p for p in (self.oniom_layer, self.link_atom) if p]
        if self.link_host is not None:
            parts.append(str(self.link_host))
        return " ".join(parts)


def is_link1_line(line: str) -> bool:
    return line.strip().lower() == "--link1--"


# ======================================================================
# Parsing
# ======================================================================

def _parse_mm(text: str) -> tuple[Optional[str], Optional[float]]:
    """"-CA--0.25" -> ("CA", -0.25), "-C_3" -> ("C_3", None)."""
    mm_type, _, charge = text[1:].partition("-")
    if not charge:
        return mm_type or None, None
    try:
        return mm_type or None, float(charge)
    except ValueError:
        return mm_type or None, None


def _is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def _parse_params(text: str) -> dict[str, str]:
    params = {}
    for item in text.strip("()").split(","):
        key, _, value = item.partition("=")
        if key.strip():
            params[key.strip().lower()] = value.strip()
    return params


def parse_atom_line(line: str) -> tuple[str, tuple[float, float, float], GaussianAtomInfo]:
    """Split one cartesian atom line into element, position and extras."""
    m = _ATOM_RE.match(line)
    if not m or not m.group("rest"):
        raise RecordParseError(f"Invalid atom line: {line.strip()!r}", tag=TAG)
    label = m.group("element")
    info = GaussianAtomInfo(element_label=label)
    if m.group("mm"):
        info.mm_type, info.mm_charge = _parse_mm(m.group("mm"))
    if m.group("params"):
        info.params = _parse_params(m.group("params"))

    tokens = m.group("rest").replace(",", " ").split()
    if len(tokens) >= 4 and re.fullmatch(r"-?\d+", tokens[0]) and all(_is_number(t) for t in tokens[1:4]):
        info.frozen_code = int(tokens[0])
        tokens = tokens[1:]
    try:
        x, y, z = (float(t) for t in tokens[:3])
    except ValueError:
        raise RecordParseError(
            f"Invalid cartesian coordinates (z-matrix input is not supported): {line.strip()!r}",
            tag=TAG,
        ) from None
    extra = tokens[3:]
    if extra:
        info.oniom_layer = extra[0]
    if len(extra) > 1:
        info.link_atom = extra[1]
    if len(extra) > 2:
        try:
            info.link_host = int(extra[2])
        except ValueError:
            pass

    element = label if label.isdigit() else re.match(r"[A-Za-z]+", label).group(0)
    return element, (x, y, z), info


def _take_section(lines: list[str], start: int) -> tuple[list[str], int]:
    """Lines from ``start`` up to the next blank line, and the index after it."""
    section = []
    i = start
    while i < len(lines) and not is_blank(lines[i]):
        section.append(lines[i])
        i += 1
    return section, i + 1


def _parse_connectivity(lines: list[str], mol: Molecule, natoms: int) -> None:
    for line in lines:
        if is_blank(line) or not _CONNECT_RE.match(line):
            break
        tokens = line.split()
        origin = int(tokens[0])
        for k in range(1, len(tokens) - 1, 2):
            target, order = int(tokens[k]), float(tokens[k + 1])
            if not (1 <= origin <= natoms and 1 <= target <= natoms):
                report_mismatch(logger, f"Connectivity {origin}-{target} references a missing atom")
                continue
            mol.add_bond(origin, target, _ORDERS.get(order, BondKind.SINGLE))


def parse_gaussian(text: str) -> Molecule:
    lines = [ln for ln in text.splitlines() if not is_link1_line(ln)]
    i = 0
    while i < len(lines) and is_blank(lines[i]):
        i += 1

    link0 = []
    while i < len(lines) and lines[i].lstrip().startswith("%"):
        link0.append(lines[i].strip())
        i += 1
    if i >= len(lines) or not lines[i].lstrip().startswith("#"):
        raise RecordParseError("Missing route section", tag=TAG)
    route, i = _take_section(lines, i)
    title, i = _take_section(lines, i)

    if i >= len(lines):
        raise RecordParseError("Missing charge and multiplicity line", tag=TAG)
    try:
        charge_spin = [int(t) for t in lines[i].replace(",", " ").split()]
    except ValueError:
        raise RecordParseError(f"Invalid charge and multiplicity: {lines[i]!r}", tag=TAG) from None
    atom_lines, i = _take_section(lines, i + 1)
    if not atom_lines:
        raise RecordParseError("No atoms in molecule specification", tag=TAG)

    mol = Molecule(" ".join(t.strip() for t in title))
    if link0:
        mol.properties.store(LINK0_KEY, link0)
    mol.properties.store(ROUTE_KEY, " ".join(r.strip() for r in route))
    mol.properties.store(CHARGE_KEY, charge_spin)

    vectors = []
    for line in atom_lines:
        element, position, info = parse_atom_line(line)
        if element.upper() == "TV":
            vectors.append(position)
            continue
        frozen = info.frozen_code == -1
        atom = Atom(element, position, freezing=(frozen, frozen, frozen))
        atom.properties.store(ATOM_INFO_KEY, info)
        mol.add_atom(atom)

    if vectors:
        if len(vectors) == 3:
            mol.lattice = Lattice(vectors)
        else:
            report_mismatch(logger, f"Expected 3 TV atoms, found {len(vectors)}; lattice ignored")

    _parse_connectivity(lines[i:], mol, mol.num_atoms)
    return mol


# ======================================================================
# Formatting
# ======================================================================

def _format_atom(atom: Atom) -> str:
    info = atom.properties.get(ATOM_INFO_KEY)
    if not isinstance(info, GaussianAtomInfo):
        info = GaussianAtomInfo()
    label = atom.symbol
    if info.mm_type:
        label += f"-{info.mm_type}"
        if info.mm_charge is not None:
            label += f"-{info.mm_charge:.4f}"
    if info.params:
        label += "(" + ",".join(f"{k}={v}" for k, v in info.params.items()) + ")"
    fcode = -1 if atom.is_frozen else 0
    x, y, z = atom.position
    line = f" {label:15} {fcode:2} {x:14.8f} {y:14.8f} {z:14.8f}"
    oniom = info.oniom_columns()
    return f"{line} {oniom}" if oniom else line


def format_gaussian(mol: Molecule) -> str:
    link0 = mol.properties.get(LINK0_KEY) or DEFAULT_LINK0
    route = mol.properties.get(ROUTE_KEY) or DEFAULT_ROUTE
    charge_spin = mol.properties.get(CHARGE_KEY) or [0, 1]

    lines = list(link0)
    lines.append(route)
    lines.append("")
    lines.append(mol.title or "Title Card Required")
    lines.append("")
    lines.append(" ".join(str(v) for v in charge_spin))
    lines.extend(_format_atom(a) for a in mol.atoms)
    if mol.lattice is not None:
        for x, y, z in mol.lattice.vectors:
            lines.append(f" {'TV':15} {0:2} {x:14.8f} {y:14.8f} {z:14.8f}")
    lines.append("")

    if "geom=connect" in route.lower().replace(" ", ""):
        for index in range(1, mol.num_atoms + 1):
            line = f"{index:<5}"
            for bond in mol.bonds:
                if bond.i == index:
                    line += f" {bond.j} {bond.order:.1f}"
            lines.append(line)
        lines.append("")
    return "\n".join(lines) + "\n"


GAUSSIAN_FORMAT = FormatDescriptor(
    tag=TAG,
    extensions=(".gjf", ".com", ".gau"),
    boundary_policy=TerminatedBySentinel(is_link1_line),
    parse_record=parse_gaussian,
    format_molecule=format_gaussian,
    record_separator="--Link1--\n",
    description="Gaussian input, cartesian coordinates, TV atoms for the lattice",
)
