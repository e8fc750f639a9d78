"""Chemical JSON (Avogadro ``.cjson``)."""

from __future__ import annotations

import json

from molrw.core.elements import atomic_number
from molrw.core.errors import RecordParseError
from molrw.core.lattice import Lattice, to_cartesian, to_fractional
from molrw.core.logging_utils import get_logger
from molrw.core.molecule import Atom, BondKind, Molecule
from molrw.core.partition import WholeStream
from molrw.formats.base import FormatDescriptor

logger = get_logger(__name__)

TAG = "text/cjson"
PROPERTIES_KEY = "cjson/properties"
CELL_KEYS = ("a", "b", "c", "alpha", "beta", "gamma")

_ORDERS = {1: BondKind.SINGLE, 2: BondKind.DOUBLE, 3: BondKind.TRIPLE, 4: BondKind.QUADRUPLE}


def _triples(values: list[float]) -> list[list[float]]:
    if not isinstance(values, list) or not all(_is_number(v) for v in values):
        raise RecordParseError("Coordinates must be a list of numbers", tag=TAG)
    if len(values) % 3:
        raise RecordParseError(f"Coordinate list length {len(values)} is not a multiple of 3", tag=TAG)
    return [values[k:k + 3] for k in range(0, len(values), 3)]


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _section(parent: dict, key: str, kind: type, default):
    """``parent[key]`` checked against ``kind``; ``default`` when absent or null."""
    value = parent.get(key)
    if value is None:
        return default
    if not isinstance(value, kind):
        raise RecordParseError(f"'{key}' must be a {kind.__name__}, got {type(value).__name__}", tag=TAG)
    return value


def _int_list(parent: dict, key: str) -> list[int]:
    values = _section(parent, key, list, [])
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        raise RecordParseError(f"'{key}' must be a list of integers", tag=TAG)
    return values


def parse_cjson(text: str) -> Molecule:
    doc = json.loads(text)
    if not isinstance(doc, dict) or "atoms" not in doc:
        raise RecordParseError("Not a chemical json document", tag=TAG)

    atoms = _section(doc, "atoms", dict, {})
    numbers = _int_list(_section(atoms, "elements", dict, {}), "number")
    coords = _section(atoms, "coords", dict, {})

    lattice = None
    cell = _section(doc, "unit cell", dict, {})
    if cell:
        if not all(_is_number(cell.get(k)) for k in CELL_KEYS):
            raise RecordParseError(f"'unit cell' needs numeric {', '.join(CELL_KEYS)}", tag=TAG)
        lattice = Lattice.from_params(*(float(cell[k]) for k in CELL_KEYS))

    if coords.get("3d") is not None:
        positions = _triples(coords["3d"])
    elif coords.get("3d fractional") is not None:
        if lattice is None:
            raise RecordParseError("Fractional coordinates without a unit cell", tag=TAG)
        positions = to_cartesian(lattice, _triples(coords["3d fractional"])).tolist()
    else:
        raise RecordParseError("No 3d coordinates", tag=TAG)
    if len(positions) != len(numbers):
        raise RecordParseError(f"{len(numbers)} elements but {len(positions)} positions", tag=TAG)

    mol = Molecule(_section(doc, "name", str, ""), lattice=lattice)
    for number, position in zip(numbers, positions):
        mol.add_atom(Atom(number, position))

    bonds = _section(doc, "bonds", dict, {})
    index = _int_list(_section(bonds, "connections", dict, {}), "index")
    orders = _int_list(bonds, "order")
    for k in range(0, len(index) - 1, 2):
        order = orders[k // 2] if k // 2 < len(orders) else 1
        mol.add_bond(index[k] + 1, index[k + 1] + 1, _ORDERS.get(order, BondKind.SINGLE))

    if doc.get("properties"):
        mol.properties.store(PROPERTIES_KEY, doc["properties"])
    return mol


def format_cjson(mol: Molecule) -> str:
    coords = {"3d": [round(float(v), 8) for v in mol.positions.ravel()]}
    doc: dict = {
        "chemical json": 0,
        "name": mol.title,
        "atoms": {
            "elements": {"number": [atomic_number(s) or 0 for s in mol.symbols]},
            "coords": coords,
        },
    }
    if mol.lattice is not None:
        a, b, c = mol.lattice.lengths
        alpha, beta, gamma = mol.lattice.angles
        doc["unit cell"] = dict(zip(CELL_KEYS, (a, b, c, alpha, beta, gamma)))
        frac = to_fractional(mol.lattice, mol.positions)
        coords["3d fractional"] = [round(float(v), 10) for v in frac.ravel()]
    if mol.num_bonds:
        doc["bonds"] = {
            "connections": {"index": [i for b in mol.bonds for i in (b.i - 1, b.j - 1)]},
            "order": [int(b.order) if b.order >= 1 else 1 for b in mol.bonds],
        }
    props = mol.properties.get(PROPERTIES_KEY)
    if props:
        doc["properties"] = props
    return json.dumps(doc, indent=2) + "\n"


CJSON_FORMAT = FormatDescriptor(
    tag=TAG,
    extensions=(".cjson",),
    boundary_policy=WholeStream(),
    parse_record=parse_cjson,
    format_molecule=format_cjson,
    description="Avogadro chemical JSON",
)
