"""Chemical Markup Language (CML) documents.

Parsed with ElementTree; element names are matched without their namespace
so both plain and ``xmlns="http://www.xml-cml.org/schema"`` documents work.
When a document holds several molecules the last one is returned.
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

TAG = "xml/cml"
CML_NAMESPACE = "http://www.xml-cml.org/schema"

_ORDERS = {
    "1": BondKind.SINGLE,
    "S": BondKind.SINGLE,
    "2": BondKind.DOUBLE,
    "D": BondKind.DOUBLE,
    "3": BondKind.TRIPLE,
    "T": BondKind.TRIPLE,
    "A": BondKind.AROMATIC,
}

_ORDER_CODES = {
    BondKind.SINGLE: "1",
    BondKind.DOUBLE: "2",
    BondKind.TRIPLE: "3",
    BondKind.AROMATIC: "A",
}


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _iter_local(node: ET.Element, name: str):
    return (el for el in node.iter() if _local(el.tag) == name)


# ======================================================================
# Parsing
# ======================================================================

def _parse_crystal(molecule: ET.Element) -> Optional[Lattice]:
    crystal = next(_iter_local(molecule, "crystal"), None)
    if crystal is None:
        return None
    params = {}
    for scalar in _iter_local(crystal, "scalar"):
        key = (scalar.get("title") or scalar.get("dictRef", "").split(":")[-1]).strip()
        try:
            params[key] = float(scalar.text or "")
        except ValueError:
            raise RecordParseError(f"Invalid crystal scalar {key!r}", tag=TAG) from None
    names = ("a", "b", "c", "alpha", "beta", "gamma")
    missing = [n for n in names if n not in params]
    if missing:
        raise RecordParseError(f"Crystal block misses {missing}", tag=TAG)
    return Lattice.from_params(*(params[n] for n in names))


def _parse_molecule(node: ET.Element) -> Molecule:
    mol = Molecule(node.get("title") or node.get("id") or "")
    lattice = _parse_crystal(node)
    ids: dict[str, int] = {}
    fractional: dict[int, tuple[float, float, float]] = {}

    for el in _iter_local(node, "atom"):
        symbol = el.get("elementType")
        if not symbol:
            raise RecordParseError(f"Atom {el.get('id')!r} has no elementType", tag=TAG)
        try:
            if el.get("x3") is not None:
                position = (float(el.get("x3")), float(el.get("y3")), float(el.get("z3")))
                index = mol.add_atom(Atom(symbol, position))
            elif el.get("xFract") is not None:
                index = mol.add_atom(Atom(symbol))
                fractional[index] = (
                    float(el.get("xFract")), float(el.get("yFract")), float(el.get("zFract")),
                )
            else:
                raise RecordParseError(f"Atom {el.get('id')!r} has no 3D coordinates", tag=TAG)
        except TypeError:
            raise RecordParseError(f"Atom {el.get('id')!r} has incomplete coordinates", tag=TAG) from None
        if el.get("id"):
            ids[el.get("id")] = index

    if fractional:
        if lattice is None:
            raise RecordParseError("Fractional coordinates without a crystal block", tag=TAG)
        for index, frac in fractional.items():
            mol.atom(index).position = tuple(float(v) for v in to_cartesian(lattice, frac))
    mol.lattice = lattice

    for el in _iter_local(node, "bond"):
        refs = (el.get("atomRefs2") or "").split()
        if len(refs) != 2 or refs[0] not in ids or refs[1] not in ids:
            logger.debug("Skipping bond with unresolved atomRefs2=%r", el.get("atomRefs2"))
            continue
        kind = _ORDERS.get((el.get("order") or "1").upper(), BondKind.SINGLE)
        mol.add_bond(ids[refs[0]], ids[refs[1]], kind)
    return mol


def parse_cml(text: str) -> Molecule:
    root = ET.fromstring(text.strip())
    molecules = list(_iter_local(root, "molecule"))
    if not molecules:
        raise RecordParseError("No <molecule> element", tag=TAG)
    if len(molecules) > 1:
        logger.debug("CML document holds %d molecules, using the last one", len(molecules))
    return _parse_molecule(molecules[-1])


# ======================================================================
# Formatting
# ======================================================================

def format_cml(mol: Molecule) -> str:
    root = ET.Element("molecule", {"xmlns": CML_NAMESPACE, "id": "m1"})
    if mol.title:
        root.set("title", mol.title)

    if mol.lattice is not None:
        crystal = ET.SubElement(root, "crystal")
        a, b, c = mol.lattice.lengths
        alpha, beta, gamma = mol.lattice.angles
        for name, value, units in (
            ("a", a, "units:angstrom"),
            ("b", b, "units:angstrom"),
            ("c", c, "units:angstrom"),
            ("alpha", alpha, "units:degree"),
            ("beta", beta, "units:degree"),
            ("gamma", gamma, "units:degree"),
        ):
            scalar = ET.SubElement(crystal, "scalar", {"title": name, "units": units})
            scalar.text = f"{value:.6f}"

    atom_array = ET.SubElement(root, "atomArray")
    for index, atom in enumerate(mol.atoms, start=1):
        x, y, z = atom.position
        ET.SubElement(atom_array, "atom", {
            "id": f"a{index}",
            "elementType": atom.symbol,
            "x3": f"{x:.6f}",
            "y3": f"{y:.6f}",
            "z3": f"{z:.6f}",
        })

    if mol.num_bonds:
        bond_array = ET.SubElement(root, "bondArray")
        for bond in mol.bonds:
            ET.SubElement(bond_array, "bond", {
                "atomRefs2": f"a{bond.i} a{bond.j}",
                "order": _ORDER_CODES.get(bond.kind, "1"),
            })

    ET.indent(root)
    return '<?xml version="1.0"?>\n' + ET.tostring(root, encoding="unicode") + "\n"


CML_FORMAT = FormatDescriptor(
    tag=TAG,
    extensions=(".cml",),
    boundary_policy=WholeStream(),
    parse_record=parse_cml,
    format_molecule=format_cml,
    description="Chemical Markup Language",
)
