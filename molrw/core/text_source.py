"""Line oriented text source with one line of look-ahead.

Every read operation owns exactly one TextSource. The partition engine pulls
lines from it; nothing else touches the underlying stream.
"""

from __future__ import annotations

import gzip
import io
from pathlib import Path
from typing import Callable, Optional, TextIO

LinePredicate = Callable[[str], bool]


class TextSource:
    """Buffered text stream supporting ``read_line``, ``peek_line`` and ``seek_to``.

    Lines are returned with their terminator. ``None`` marks end of stream.

    ``skip_until`` is applied once, at construction: every line before the
    first one satisfying the predicate is discarded. Formats that tolerate
    leading comments (CIF, MOL2) use it to drop the preamble before any
    record is framed.
    """

    def __init__(
        self,
        stream: TextIO,
        name: str = "<stream>",
        skip_until: Optional[LinePredicate] = None,
    ):
        self._stream = stream
        self._peeked: Optional[str] = None
        self._has_peeked = False
        self._line_number = 0
        self.name = name
        if skip_until is not None:
            self.seek_to(skip_until)

    @classmethod
    def from_path(
        cls,
        path: str | Path,
        skip_until: Optional[LinePredicate] = None,
        encoding: str = "utf-8",
        errors: str = "replace",
    ) -> "TextSource":
        """Open ``path`` for reading; ``.gz`` files are decompressed on the fly."""
        path = Path(path)
        opener = gzip.open if path.suffix == ".gz" else open
        stream = opener(path, "rt", encoding=encoding, errors=errors, newline="")
        return cls(stream, name=str(path), skip_until=skip_until)

    @classmethod
    def from_string(
        cls,
        text: str,
        name: str = "<string>",
        skip_until: Optional[LinePredicate] = None,
    ) -> "TextSource":
        return cls(io.StringIO(text, newline=""), name=name, skip_until=skip_until)

    @property
    def line_number(self) -> int:
        """Number of lines consumed so far."""
        return self._line_number

    def _next_raw(self) -> Optional[str]:
        line = self._stream.readline()
        return line or None

    def read_line(self) -> Optional[str]:
        if self._has_peeked:
            line = self._peeked
            self._peeked = None
            self._has_peeked = False
        else:
            line = self._next_raw()
        if line is not None:
            self._line_number += 1
        return line

    def peek_line(self) -> Optional[str]:
        if not self._has_peeked:
            self._peeked = self._next_raw()
            self._has_peeked = True
        return self._peeked

    def seek_to(self, predicate: LinePredicate) -> bool:
        """Discard lines until the next one satisfies ``predicate``.

        Returns True when such a line is now the next line to be read, False
        when the stream ended first.
        """
        while True:
            line = self.peek_line()
            if line is None:
                return False
            if predicate(line):
                return True
            self.read_line()

    def read_rest(self) -> str:
        """Consume and return everything left in the stream."""
        parts = []
        while True:
            line = self.read_line()
            if line is None:
                break
            parts.append(line)
        return "".join(parts)

    def close(self) -> None:
        self._stream.close()

    def __enter__(self) -> "TextSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<TextSource {self.name} line={self._line_number}>"
