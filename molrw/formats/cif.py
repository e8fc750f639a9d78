"""Crystallographic Information File (small-molecule CIF, P1 view).

Each ``data_`` block is one record. Cell parameters and the fractional atom
sites are read wherever they appear in the block; sites are converted to
cartesian once both are known.

Single Responsibility: only handles CIF format.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Optional

from molrw.core.errors import FormatError, RecordParseError, report_mismatch
from molrw.core.elements import alpha_prefix
from molrw.core.lattice import Lattice, to_cartesian, to_fractional
from molrw.core.logging_utils import get_logger
from molrw.core.molecule import Atom, Molecule
from molrw.core.partition import PrecededBySentinel
from molrw.formats.base import FormatDescriptor

logger = get_logger(__name__)

TAG = "text/cif"

CELL_KEYS = (
    "_cell_length_a",
    "_cell_length_b",
    "_cell_length_c",
    "_cell_angle_alpha",
    "_cell_angle_beta",
    "_cell_angle_gamma",
)

_UNCERTAINTY_RE = re.compile(r"^([^()]*)\(\d+\)$")


def is_data_line(line: str) -> bool:
    return line.startswith("data_")


def parse_cif_number(token: str) -> float:
    """Numeric value of a CIF token, dropping any ``(d)`` uncertainty suffix.

    ``"18.094(2)"`` -> 18.094
    """
    token = token.strip()
    m = _UNCERTAINTY_RE.match(token)
    if m:
        token = m.group(1)
    return float(token)


def _is_row_end(line: str) -> bool:
    stripped = line.strip()
    return (
        not stripped
        or stripped.startswith(("_", "#"))
        or stripped.lower().startswith(("loop_", "data_"))
    )


# ======================================================================
# Parsing
# ======================================================================

def _read_cell(lines: list[str]) -> Optional[Lattice]:
    values: dict[str, float] = {}
    for line in lines:
        tokens = line.split()
        if len(tokens) >= 2 and tokens[0].lower() in CELL_KEYS:
            try:
                values[tokens[0].lower()] = parse_cif_number(tokens[1])
            except ValueError:
                raise RecordParseError(f"Invalid cell value: {line.strip()!r}", tag=TAG) from None
    if "_cell_length_a" not in values:
        return None
    missing = [k for k in CELL_KEYS if k not in values]
    if missing:
        raise RecordParseError(f"Missing cell parameters: {missing}", tag=TAG)
    return Lattice.from_params(*(values[k] for k in CELL_KEYS))


def _site_header_groups(lines: list[str]) -> list[tuple[list[str], int]]:
    """Runs of ``_atom_site_*`` header lines: (column names, index of first row)."""
    groups = []
    i = 0
    while i < len(lines):
        if lines[i].strip().lower().startswith("_atom_site_"):
            columns = []
            while i < len(lines) and lines[i].strip().lower().startswith("_atom_site_"):
                columns.append(lines[i].split()[0].lower()[len("_atom_site_"):])
                i += 1
            groups.append((columns, i))
        else:
            i += 1
    return groups


def _read_sites(lines: list[str]) -> Optional[tuple[list[str], list[list[str]]]]:
    for columns, start in _site_header_groups(lines):
        if "fract_x" not in columns:
            continue
        rows = []
        i = start
        while i < len(lines) and not lines[i].strip():
            i += 1
        while i < len(lines) and not _is_row_end(lines[i]):
            tokens = lines[i].split()
            if len(tokens) != len(columns):
                report_mismatch(
                    logger,
                    f"Atom site row has {len(tokens)} fields, expected {len(columns)}: {lines[i].strip()!r}",
                )
            else:
                rows.append(tokens)
            i += 1
        return columns, rows
    return None


def parse_cif(text: str) -> Molecule:
    lines = text.splitlines()
    if not lines or not is_data_line(lines[0]):
        raise RecordParseError("CIF record must start with data_", tag=TAG)
    title = lines[0][len("data_"):].strip()
    mol = Molecule(title)

    lattice = _read_cell(lines[1:])
    sites = _read_sites(lines[1:])
    if sites is None:
        mol.lattice = lattice
        return mol

    columns, rows = sites
    missing = [c for c in ("fract_x", "fract_y", "fract_z", "label") if c not in columns]
    if missing:
        raise RecordParseError(f"Missing atom site columns: {missing}", tag=TAG)
    if lattice is None:
        raise RecordParseError("Fractional atom sites without cell parameters", tag=TAG)

    col = {name: k for k, name in enumerate(columns)}
    fractional = []
    for row in rows:
        label = row[col["label"]]
        if "type_symbol" in col:
            element = alpha_prefix(row[col["type_symbol"]])
        else:
            element = alpha_prefix(label)
        try:
            fractional.append([parse_cif_number(row[col[f"fract_{ax}"]]) for ax in "xyz"])
        except ValueError:
            raise RecordParseError(f"Invalid fractional coordinate for site {label}", tag=TAG) from None
        mol.add_atom(Atom(element, label=label))

    mol.lattice = lattice
    if fractional:
        mol.set_positions(to_cartesian(lattice, fractional))
    return mol


# ======================================================================
# Formatting
# ======================================================================

def format_cif(mol: Molecule) -> str:
    if mol.lattice is None:
        raise FormatError(f"CIF requires a periodic molecule, {mol.title!r} has no lattice")

    name = "_".join(mol.title.split()) or "untitled"
    a, b, c = mol.lattice.lengths
    alpha, beta, gamma = mol.lattice.angles
    lines = [
        f"data_{name}",
        "_audit_creation_method 'molrw'",
        "_symmetry_space_group_name_H-M 'P1'",
        "_symmetry_Int_Tables_number 1",
        "_symmetry_cell_setting triclinic",
        "",
        "loop_",
        "_symmetry_equiv_pos_as_xyz",
        "  x,y,z",
        "",
        f"_cell_length_a {a:10.6f}",
        f"_cell_length_b {b:10.6f}",
        f"_cell_length_c {c:10.6f}",
        f"_cell_angle_alpha {alpha:10.6f}",
        f"_cell_angle_beta {beta:10.6f}",
        f"_cell_angle_gamma {gamma:10.6f}",
        "",
        "loop_",
        "_atom_site_type_symbol",
        "_atom_site_label",
        "_atom_site_fract_x",
        "_atom_site_fract_y",
        "_atom_site_fract_z",
    ]

    # fractional coordinates do not depend on the cell orientation
    fractional = to_fractional(mol.lattice, mol.positions)
    counter: Counter[str] = Counter()
    for atom, (fx, fy, fz) in zip(mol.atoms, fractional):
        counter[atom.symbol] += 1
        label = atom.label or f"{atom.symbol}{counter[atom.symbol]}"
        lines.append(f"{atom.symbol:4} {label:6} {fx:12.8f} {fy:12.8f} {fz:12.8f}")
    return "\n".join(lines) + "\n\n"


CIF_FORMAT = FormatDescriptor(
    tag=TAG,
    extensions=(".cif",),
    boundary_policy=PrecededBySentinel(is_data_line),
    parse_record=parse_cif,
    format_molecule=format_cif,
    preamble=is_data_line,
    description="Crystallographic Information File, P1 atom sites",
)
