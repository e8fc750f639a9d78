"""Read-only projection of a Molecule for templates and JSON output."""

from __future__ import annotations

import json
from typing import Any

from molrw.core.elements import atomic_number
from molrw.core.molecule import Molecule


def _unit_cell(mol: Molecule) -> dict[str, Any] | None:
    if mol.lattice is None:
        return None
    a, b, c = mol.lattice.lengths
    alpha, beta, gamma = mol.lattice.angles
    va, vb, vc = mol.lattice.vectors
    return {
        "a": a,
        "b": b,
        "c": c,
        "alpha": alpha,
        "beta": beta,
        "gamma": gamma,
        "va": list(va),
        "vb": list(vb),
        "vc": list(vc),
    }


def to_view(mol: Molecule) -> dict[str, Any]:
    """Plain-data view of ``mol``: atoms, bonds, unit cell and species.

    Species and ``element_index`` are numbered 1, 2, ... in the order each
    element first appears. Fractional coordinates are zero for molecules
    without a lattice.
    """
    species = mol.species()
    species_index = {sym: i for i, (sym, _) in enumerate(species, start=1)}

    if mol.lattice is not None:
        fractional = mol.scaled_positions().tolist()
    else:
        fractional = [[0.0, 0.0, 0.0]] * mol.num_atoms

    atoms = []
    for index, (atom, frac) in enumerate(zip(mol.atoms, fractional), start=1):
        x, y, z = atom.position
        fx, fy, fz = frac
        vx, vy, vz = atom.velocity
        atoms.append({
            "index": index,
            "element_index": species_index[atom.symbol],
            "symbol": atom.symbol,
            "number": atom.number,
            "x": x,
            "y": y,
            "z": z,
            "fx": fx,
            "fy": fy,
            "fz": fz,
            "vx": vx,
            "vy": vy,
            "vz": vz,
            "freezing": list(atom.freezing),
        })

    return {
        "molecule": {
            "title": mol.title,
            "number_of_atoms": mol.num_atoms,
            "number_of_bonds": mol.num_bonds,
            "number_of_species": len(species),
            "unit_cell": _unit_cell(mol),
            "atoms": atoms,
            "bonds": [{"i": b.i, "j": b.j, "order": b.order} for b in mol.bonds],
            "element_types": [[sym, count] for sym, count in species],
            "species": [
                {
                    "index": i,
                    "element_symbol": sym,
                    "element_number": atomic_number(sym) or 0,
                    "number_of_atoms": count,
                }
                for i, (sym, count) in enumerate(species, start=1)
            ],
        }
    }


def to_json(mol: Molecule, indent: int = 2) -> str:
    return json.dumps(to_view(mol), indent=indent)
