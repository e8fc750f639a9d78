"""Partition engine: split a text stream into raw records.

Each format frames its records with one of four boundary policies. The
engine only looks at boundaries; record content is validated later by the
format's parser.

Usage::

    from molrw.core.partition import TerminatedBySentinel, partition
    from molrw.core.text_source import TextSource

    source = TextSource.from_path("batch.sdf")
    policy = TerminatedBySentinel(lambda line: line.strip() == "$$$$")
    for record in partition(source, policy):
        ...
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

from molrw.core.errors import BoundaryError
from molrw.core.text_source import LinePredicate, TextSource

_HEADER_RE = re.compile(r"^\s*\d+\s*$")


def is_blank(line: str) -> bool:
    return not line.strip()


# ======================================================================
# Boundary policies
# ======================================================================

class BoundaryPolicy:
    """Marker base for the closed set of record framing strategies."""


@dataclass(frozen=True)
class FixedHeaderCount(BoundaryPolicy):
    """Integer header N, a title line, N body lines, then trailing annotations."""


@dataclass(frozen=True)
class PrecededBySentinel(BoundaryPolicy):
    """A record starts at every line matching ``predicate``."""

    predicate: LinePredicate


@dataclass(frozen=True)
class TerminatedBySentinel(BoundaryPolicy):
    """A record ends with (and includes) a line matching ``predicate``."""

    predicate: LinePredicate


@dataclass(frozen=True)
class WholeStream(BoundaryPolicy):
    """The remainder of the stream is one record."""


# ======================================================================
# Engine
# ======================================================================

def _is_header(line: str) -> bool:
    return bool(_HEADER_RE.match(line))


def _accumulate_until(source: TextSource, predicate: LinePredicate, inclusive: bool) -> list[str]:
    """Collect lines until ``predicate`` holds.

    ``inclusive`` evaluates the predicate on each line just read and keeps
    the matching line. Otherwise the predicate is evaluated on the next
    unread line and the matching line is left in the source.
    """
    lines: list[str] = []
    while True:
        if inclusive:
            line = source.read_line()
            if line is None:
                break
            lines.append(line)
            if predicate(line):
                break
        else:
            line = source.peek_line()
            if line is None or predicate(line):
                break
            lines.append(source.read_line())
    return lines


def _fixed_header_records(source: TextSource) -> Iterator[str]:
    while True:
        header = source.read_line()
        if header is None:
            return
        if not _is_header(header):
            raise BoundaryError(
                f"expected an atom count header in {source.name}, got {header.strip()!r}",
                line_number=source.line_number,
            )
        n = int(header)
        lines = [header]
        # title line plus n body lines; a short stream ends the record early
        for _ in range(n + 1):
            line = source.read_line()
            if line is None:
                break
            lines.append(line)
        lines.extend(_accumulate_until(source, _is_header, inclusive=False))
        yield "".join(lines)


def _preceded_records(source: TextSource, predicate: LinePredicate) -> Iterator[str]:
    while source.seek_to(predicate):
        lines = [source.read_line()]
        lines.extend(_accumulate_until(source, predicate, inclusive=False))
        yield "".join(lines)


def _terminated_records(source: TextSource, predicate: LinePredicate) -> Iterator[str]:
    while source.peek_line() is not None:
        lines = _accumulate_until(source, predicate, inclusive=True)
        record = "".join(lines)
        if record.strip():
            yield record


def _whole_stream_records(source: TextSource) -> Iterator[str]:
    record = source.read_rest()
    if record.strip():
        yield record


def partition(source: TextSource, policy: BoundaryPolicy) -> Iterator[str]:
    """Return a lazy iterator over the raw records of ``source``.

    Every pull reads just enough lines to complete one record.
    """
    if isinstance(policy, FixedHeaderCount):
        return _fixed_header_records(source)
    if isinstance(policy, PrecededBySentinel):
        return _preceded_records(source, policy.predicate)
    if isinstance(policy, TerminatedBySentinel):
        return _terminated_records(source, policy.predicate)
    if isinstance(policy, WholeStream):
        return _whole_stream_records(source)
    raise TypeError(f"Unsupported boundary policy: {policy!r}")
