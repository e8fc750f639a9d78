"""Format registry: resolve a format tag or a file path to a FormatDescriptor.

Descriptors are tried in registration order, which doubles as priority when
several formats could claim the same path.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from molrw.core.errors import UnknownFormatError
from molrw.core.logging_utils import get_logger
from molrw.formats.base import FormatDescriptor

logger = get_logger(__name__)

# ======================================================================
# Registry (Open/Closed: register new formats without changes)
# ======================================================================

_REGISTRY: dict[str, FormatDescriptor] = {}
_builtins_loaded = False


def register_format(descriptor: FormatDescriptor, replace: bool = False) -> None:
    """Register ``descriptor`` under its (lower-cased) tag.

    Built-in formats are always registered first, so they keep priority over
    formats added later.
    """
    _ensure_registry()
    key = descriptor.tag.lower()
    if key in _REGISTRY and not replace:
        raise ValueError(f"Format '{descriptor.tag}' is already registered")
    _REGISTRY[key] = descriptor


def _ensure_registry() -> None:
    global _builtins_loaded
    if _builtins_loaded:
        return
    _builtins_loaded = True
    from molrw.formats import cif, cjson, cml, gaussian, mol2, pdb, sdf, vasp, xsd, xyz

    for descriptor in (
        xyz.XYZ_FORMAT,
        xyz.PLAIN_XYZ_FORMAT,
        mol2.MOL2_FORMAT,
        cif.CIF_FORMAT,
        vasp.VASP_FORMAT,
        gaussian.GAUSSIAN_FORMAT,
        sdf.SDF_FORMAT,
        pdb.PDB_FORMAT,
        cml.CML_FORMAT,
        cjson.CJSON_FORMAT,
        xsd.XSD_FORMAT,
    ):
        register_format(descriptor)


def available_formats() -> list[FormatDescriptor]:
    _ensure_registry()
    return list(_REGISTRY.values())


def get_format(tag: str) -> FormatDescriptor:
    """Look a descriptor up by tag (case-insensitive)."""
    _ensure_registry()
    try:
        return _REGISTRY[tag.lower()]
    except KeyError:
        raise UnknownFormatError(
            f"Unknown format '{tag}'. Supported: {sorted(_REGISTRY)}"
        ) from None


def guess_format(path: str | Path) -> Optional[str]:
    """Tag of the first registered format that claims ``path``."""
    _ensure_registry()
    for descriptor in _REGISTRY.values():
        if descriptor.parsable(path):
            return descriptor.tag
    return None


def resolve(path: str | Path, fmt: Optional[str] = None) -> FormatDescriptor:
    """Descriptor for ``path``; an explicit ``fmt`` tag always wins."""
    if fmt:
        return get_format(fmt)
    tag = guess_format(path)
    if tag is None:
        raise UnknownFormatError(
            f"No format for '{path}'. Supported: {sorted(_REGISTRY)}"
        )
    logger.debug("Resolved %s as %s", path, tag)
    return _REGISTRY[tag.lower()]


def describe_all() -> list[dict]:
    """Tag, extensions and description of every registered format."""
    return [d.describe() for d in available_formats()]
