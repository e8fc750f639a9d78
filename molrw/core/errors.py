"""Error taxonomy shared by the partition engine, the registry and the adapters.

Boundary and registry errors abort a whole read or write; record errors are
local to one record; mismatch warnings never stop anything.
"""

from __future__ import annotations

import logging
import warnings
from typing import Optional


class MolrwError(Exception):
    """Base class for every error raised by molrw."""


class BoundaryError(MolrwError):
    """The stream can no longer be split into records."""

    def __init__(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class RecordParseError(MolrwError):
    """One record does not match the grammar of its format."""

    def __init__(self, message: str, tag: Optional[str] = None, index: Optional[int] = None):
        super().__init__(message)
        self.tag = tag
        self.index = index

    def __str__(self) -> str:
        msg = super().__str__()
        where = []
        if self.tag:
            where.append(self.tag)
        if self.index is not None:
            where.append(f"record {self.index}")
        return f"{msg} ({', '.join(where)})" if where else msg


class FormatError(MolrwError):
    """A molecule cannot be rendered in the requested format."""


class UnknownFormatError(MolrwError, ValueError):
    """No registered format matches a tag or a path."""


class FormatMismatchWarning(UserWarning):
    """Stated counts or periodicity disagree with the data; data wins."""


def report_mismatch(logger: logging.Logger, message: str) -> None:
    """Log a recoverable mismatch and raise it as a FormatMismatchWarning."""
    logger.warning(message)
    warnings.warn(message, FormatMismatchWarning, stacklevel=3)
