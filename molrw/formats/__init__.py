"""molrw.formats: format descriptors, the format registry and datasets.

Architecture:
    - base.py: FormatDescriptor (boundary policy + parse/format functions)
    - registry.py: tag and file-name resolution, priority ordered
    - xyz.py, cif.py, mol2.py, pdb.py, sdf.py, gaussian.py, vasp.py,
      cml.py, cjson.py, xsd.py: one module per file format
    - dataset.py: MoleculeDataset (lazy collection of files)

Usage::

    from molrw.formats import describe_all, guess_format, resolve

    guess_format("CONTCAR")           # "vasp/input"
    resolve("x.cif").tag              # "text/cif"
    resolve("x.txt", "text/xyz").tag  # explicit tag wins

    # Register an extra format
    from molrw.formats import FormatDescriptor, register_format
    from molrw.core.partition import WholeStream
    register_format(FormatDescriptor("text/mine", (".mine",), WholeStream(), parse_mine))
"""

from molrw.formats.base import FormatDescriptor
from molrw.formats.dataset import MoleculeDataset
from molrw.formats.registry import (
    available_formats,
    describe_all,
    get_format,
    guess_format,
    register_format,
    resolve,
)

__all__ = [
    # Descriptor
    "FormatDescriptor",
    # Registry
    "available_formats",
    "describe_all",
    "get_format",
    "guess_format",
    "register_format",
    "resolve",
    # Collections
    "MoleculeDataset",
]
