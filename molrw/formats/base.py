"""Format descriptors: the value each file format registers.

A descriptor bundles how records are framed in a stream (boundary policy)
with the functions that turn one record into a Molecule and back.

Open/Closed: a new format is one more descriptor passed to
``register_format``; the read/write loop does not change.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from molrw.core.errors import FormatError
from molrw.core.molecule import Molecule
from molrw.core.partition import BoundaryPolicy, WholeStream
from molrw.core.text_source import LinePredicate

RecordParser = Callable[[str], Molecule]
RecordFormatter = Callable[[Molecule], str]


def strip_compression(name: str) -> str:
    """File name without a trailing ``.gz``."""
    return name[:-3] if name.lower().endswith(".gz") else name


@dataclass(frozen=True)
class FormatDescriptor:
    """Everything the read/write loop needs to know about one format.

    ``matcher`` replaces the default suffix test when a format is recognized
    by file name rather than extension. ``preamble`` is a line predicate
    applied once when the text source is opened, discarding any leading text
    before the first record. ``record_separator`` is written between two
    consecutive records. Records for which ``trailer`` returns True carry no
    molecule (the closing END of a multi-model PDB file) and are dropped.
    """

    tag: str
    extensions: tuple[str, ...]
    boundary_policy: BoundaryPolicy
    parse_record: RecordParser
    format_molecule: Optional[RecordFormatter] = None
    matcher: Optional[Callable[[Path], bool]] = None
    preamble: Optional[LinePredicate] = None
    record_separator: str = ""
    trailer: Optional[Callable[[str], bool]] = None
    description: str = ""

    @property
    def single_record(self) -> bool:
        """True for formats that hold exactly one molecule per file."""
        return isinstance(self.boundary_policy, WholeStream)

    @property
    def writable(self) -> bool:
        return self.format_molecule is not None

    def parsable(self, path: str | Path) -> bool:
        """Whether this format claims ``path``."""
        path = Path(strip_compression(str(path)))
        if self.matcher is not None:
            return self.matcher(path)
        name = path.name.lower()
        return any(name.endswith(ext.lower()) for ext in self.extensions)

    def format(self, mol: Molecule) -> str:
        if self.format_molecule is None:
            raise FormatError(f"Writing {self.tag} is not supported")
        return self.format_molecule(mol)

    def describe(self) -> dict:
        return {
            "tag": self.tag,
            "extensions": list(self.extensions),
            "description": self.description,
            "writable": self.writable,
        }

    def __repr__(self) -> str:
        return f"<FormatDescriptor {self.tag} extensions={list(self.extensions)}>"
