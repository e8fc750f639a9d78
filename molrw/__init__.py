"""molrw: read and write molecular structure files.

One in-memory Molecule model, eleven text formats (XYZ, plain XYZ, CIF,
MOL2, PDB, SDF, Gaussian input, VASP POSCAR, CML, CJSON, XSD) and a streaming
reader that splits multi-molecule files record by record.

Usage::

    import molrw

    for mol in molrw.read("traj.xyz"):
        print(mol.title, mol.num_atoms, mol.is_periodic)

    mol = molrw.Molecule.from_file("POSCAR")
    mol.to_file("structure.cif")
    print(molrw.to_json(mol))
"""

from molrw.core.errors import (
    BoundaryError,
    FormatError,
    FormatMismatchWarning,
    MolrwError,
    RecordParseError,
    UnknownFormatError,
)
from molrw.core.lattice import Lattice, to_cartesian, to_fractional
from molrw.core.molecule import Atom, Bond, BondKind, Molecule, PropertyStore
from molrw.core.view import to_json, to_view
from molrw.formats import FormatDescriptor, MoleculeDataset, register_format
from molrw.io import (
    describe_all,
    format_as,
    from_file,
    from_str,
    guess_format,
    read,
    read_all,
    read_from,
    read_with_format,
    to_file,
    write,
    write_with_format,
)

__all__ = [
    # Model
    "Atom",
    "Bond",
    "BondKind",
    "Lattice",
    "Molecule",
    "PropertyStore",
    "to_cartesian",
    "to_fractional",
    # Views
    "to_json",
    "to_view",
    # IO
    "describe_all",
    "format_as",
    "from_file",
    "from_str",
    "guess_format",
    "read",
    "read_all",
    "read_from",
    "read_with_format",
    "to_file",
    "write",
    "write_with_format",
    # Formats
    "FormatDescriptor",
    "MoleculeDataset",
    "register_format",
    # Errors
    "BoundaryError",
    "FormatError",
    "FormatMismatchWarning",
    "MolrwError",
    "RecordParseError",
    "UnknownFormatError",
]
