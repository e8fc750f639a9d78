"""Materials Studio XSD documents (read only).

Periodic structures live under
``SymmetrySystem/MappingSet/MappingFamily/IdentityMapping`` with fractional
``XYZ`` attributes; molecular ones under ``Molecule`` (or ``RepeatUnit``)
with cartesian ``XYZ``.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Optional

from molrw.core.errors import RecordParseError
from molrw.core.lattice import Lattice, to_cartesian
from molrw.core.logging_utils import get_logger
from molrw.core.molecule import Atom, BondKind, Molecule
from molrw.core.partition import WholeStream
from molrw.formats.base import FormatDescriptor

logger = get_logger(__name__)

TAG = "xml/xsd"

_BOND_TYPES = {
    "double": BondKind.DOUBLE,
    "triple": BondKind.TRIPLE,
    "aromatic": BondKind.AROMATIC,
}


def _vector(text: Optional[str]) -> tuple[float, float, float]:
    if not text:
        raise RecordParseError("Missing vector attribute", tag=TAG)
    x, y, z = (float(v) for v in text.split(","))
    return x, y, z


def _find_lattice(root: ET.Element) -> tuple[Optional[Lattice], Optional[ET.Element]]:
    mapping = root.find(".//SymmetrySystem/MappingSet/MappingFamily/IdentityMapping")
    if mapping is None:
        return None, None
    group = root.find(".//SpaceGroup")
    if group is None:
        raise RecordParseError("Periodic XSD without a SpaceGroup", tag=TAG)
    name = group.get("Name", "P1")
    if name.replace(" ", "").upper() != "P1":
        raise RecordParseError(f"Only P1 structures are supported, got {name!r}", tag=TAG)
    lattice = Lattice([_vector(group.get(k)) for k in ("AVector", "BVector", "CVector")])
    return lattice, mapping


def _atom_parent(root: ET.Element) -> ET.Element:
    for path in (".//Molecule", ".//RepeatUnit"):
        node = root.find(path)
        if node is not None and node.find("Atom3d") is not None:
            return node
    return root


def parse_xsd(text: str) -> Molecule:
    root = ET.fromstring(text.strip())
    tree = root.find("AtomisticTreeRoot") if root.tag != "AtomisticTreeRoot" else root
    if tree is None:
        raise RecordParseError("No AtomisticTreeRoot element", tag=TAG)

    lattice, mapping = _find_lattice(tree)
    parent = mapping if mapping is not None else _atom_parent(tree)

    mol = Molecule()
    ids: dict[str, int] = {}
    for el in parent.iter("Atom3d"):
        symbol = el.get("Components")
        if not symbol:
            raise RecordParseError(f"Atom3d {el.get('ID')!r} has no Components", tag=TAG)
        position = _vector(el.get("XYZ"))
        if lattice is not None:
            position = tuple(to_cartesian(lattice, position))
        frozen = el.get("RestrictedProperties") is not None
        atom = Atom(symbol.split(",")[0], position, freezing=(frozen, frozen, frozen), label=el.get("Name"))
        index = mol.add_atom(atom)
        if el.get("ID"):
            ids[el.get("ID")] = index
    if mol.num_atoms == 0:
        raise RecordParseError("No Atom3d elements", tag=TAG)
    mol.lattice = lattice

    for el in parent.iter("Bond"):
        refs = (el.get("Connects") or "").split(",")
        if len(refs) != 2 or refs[0] not in ids or refs[1] not in ids:
            logger.debug("Skipping bond %r with unresolved Connects", el.get("ID"))
            continue
        kind = _BOND_TYPES.get((el.get("Type") or "").lower(), BondKind.SINGLE)
        mol.add_bond(ids[refs[0]], ids[refs[1]], kind)

    parent_name = parent.get("Name")
    if parent_name:
        mol.title = parent_name
    return mol


XSD_FORMAT = FormatDescriptor(
    tag=TAG,
    extensions=(".xsd",),
    boundary_policy=WholeStream(),
    parse_record=parse_xsd,
    description="Materials Studio XSD (read only)",
)
