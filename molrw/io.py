"""Read and write molecules in any registered format.

Usage::

    from molrw import io

    for mol in io.read("traj.xyz"):              # format guessed from the name
        print(mol.title, mol.num_atoms)

    mols = io.read_all("batch.sdf")
    io.write("batch.mol2", mols)

    mol = io.from_file("POSCAR")                 # last molecule, errors raise
    text = io.format_as(mol, "text/cif")

Batch reads are lazy: the file is opened on the first pull and closed once the
iterator is exhausted or closed. Records that fail to parse are logged and
skipped unless ``strict=True`` (or ``MOLRW_STRICT``) is set.
"""

from __future__ import annotations

import gzip
import io
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, Iterator, Optional, TextIO

from molrw.config import load_settings
from molrw.core.errors import FormatError, RecordParseError
from molrw.core.logging_utils import get_logger
from molrw.core.molecule import Molecule
from molrw.core.partition import partition
from molrw.core.text_source import TextSource
from molrw.formats.base import FormatDescriptor
from molrw.formats.registry import describe_all, get_format, guess_format, resolve

logger = get_logger(__name__)

__all__ = [
    "read",
    "read_with_format",
    "read_from",
    "read_all",
    "write",
    "write_with_format",
    "describe_all",
    "guess_format",
    "parse_record",
    "from_file",
    "from_str",
    "to_file",
    "format_as",
]


# ======================================================================
# Record level
# ======================================================================

def parse_record(descriptor: FormatDescriptor, text: str, index: Optional[int] = None) -> Molecule:
    """Parse one raw record, normalizing every failure to RecordParseError."""
    try:
        return descriptor.parse_record(text)
    except RecordParseError as e:
        e.tag = e.tag or descriptor.tag
        e.index = index
        raise
    except (ValueError, IndexError, KeyError, ET.ParseError) as e:
        raise RecordParseError(str(e) or type(e).__name__, tag=descriptor.tag, index=index) from e


def _molecules(
    source: TextSource,
    descriptor: FormatDescriptor,
    strict: bool,
) -> Iterator[Molecule]:
    records = partition(source, descriptor.boundary_policy)
    for index, record in enumerate(records, start=1):
        if descriptor.trailer is not None and descriptor.trailer(record):
            logger.debug("Dropped trailer record %d of %s", index, source.name)
            continue
        try:
            yield parse_record(descriptor, record, index)
        except RecordParseError as e:
            if strict:
                raise
            logger.warning("Skipped record %d of %s (%s): %s", index, source.name, descriptor.tag, e)


def _strict(strict: Optional[bool]) -> bool:
    return load_settings().strict if strict is None else strict


# ======================================================================
# Reading
# ======================================================================

def _read_path(path: Path, descriptor: FormatDescriptor, strict: bool) -> Iterator[Molecule]:
    settings = load_settings()
    with TextSource.from_path(
        path,
        skip_until=descriptor.preamble,
        encoding=settings.encoding,
        errors=settings.encoding_errors,
    ) as source:
        yield from _molecules(source, descriptor, strict)


def read(path: str | Path, fmt: Optional[str] = None, strict: Optional[bool] = None) -> Iterator[Molecule]:
    """Lazily read every molecule in ``path``.

    The format is resolved immediately (UnknownFormatError is raised here);
    the file itself is opened on the first pull.
    """
    descriptor = resolve(path, fmt)
    return _read_path(Path(path), descriptor, _strict(strict))


def read_with_format(path: str | Path, fmt: str, strict: Optional[bool] = None) -> Iterator[Molecule]:
    """Like ``read`` but with an explicit format tag; the file name is ignored."""
    return read(path, fmt, strict=strict)


def _read_stream(stream: TextIO, descriptor: FormatDescriptor, strict: bool) -> Iterator[Molecule]:
    source = TextSource(stream, name=getattr(stream, "name", "<stream>"), skip_until=descriptor.preamble)
    yield from _molecules(source, descriptor, strict)


def read_from(source: str | TextIO, fmt: str, strict: Optional[bool] = None) -> Iterator[Molecule]:
    """Lazily read molecules from an open text stream or from text held in memory.

    A ``str`` argument is the content itself, not a path. Streams passed in
    are left open.
    """
    descriptor = get_format(fmt)
    stream = io.StringIO(source, newline="") if isinstance(source, str) else source
    return _read_stream(stream, descriptor, _strict(strict))


def read_all(path: str | Path, fmt: Optional[str] = None) -> list[Molecule]:
    """Parse every molecule in ``path`` into a list."""
    return list(read(path, fmt))


# ======================================================================
# Writing
# ======================================================================

def _open_for_write(path: Path) -> TextIO:
    settings = load_settings()
    opener = gzip.open if path.suffix == ".gz" else open
    return opener(path, "wt", encoding=settings.encoding, errors=settings.encoding_errors)


def write(path: str | Path, molecules: Iterable[Molecule] | Molecule, fmt: Optional[str] = None) -> int:
    """Write ``molecules`` to ``path`` (created or truncated); returns the count.

    Formats with one molecule per file (VASP, CML, CJSON) refuse a second one.
    """
    descriptor = resolve(path, fmt)
    if not descriptor.writable:
        raise FormatError(f"Writing {descriptor.tag} is not supported")
    if isinstance(molecules, Molecule):
        molecules = [molecules]

    path = Path(path)
    count = 0
    with _open_for_write(path) as fh:
        for mol in molecules:
            if count and descriptor.single_record:
                raise FormatError(f"{descriptor.tag} holds a single molecule per file")
            text = descriptor.format(mol)
            if count and descriptor.record_separator:
                fh.write(descriptor.record_separator)
            fh.write(text)
            count += 1
    logger.info("Wrote %d molecules to %s (%s)", count, path, descriptor.tag)
    return count


def write_with_format(path: str | Path, molecules: Iterable[Molecule] | Molecule, fmt: str) -> int:
    return write(path, molecules, fmt)


# ======================================================================
# Single molecule helpers
# ======================================================================

def _last(molecules: Iterator[Molecule], where: str) -> Molecule:
    last = None
    for mol in molecules:
        last = mol
    if last is None:
        raise RecordParseError(f"No molecule found in {where}")
    return last


def from_file(path: str | Path, fmt: Optional[str] = None) -> Molecule:
    """The last molecule in ``path``; any unparsable record raises."""
    return _last(read(path, fmt, strict=True), str(path))


def from_str(text: str, fmt: str) -> Molecule:
    """The last molecule in ``text``; any unparsable record raises."""
    return _last(read_from(text, fmt, strict=True), "string")


def to_file(mol: Molecule, path: str | Path, fmt: Optional[str] = None) -> None:
    write(path, [mol], fmt)


def format_as(mol: Molecule, fmt: str) -> str:
    """Render one molecule as text in format ``fmt``."""
    return get_format(fmt).format(mol)
