"""MoleculeDataset: a lazily parsed collection of molecule files.

Files are parsed on first access and cached. Each file may hold several
molecules (trajectory frames, SDF batches); indexing returns the molecules of
one file, iteration walks every molecule of every file in order.

Depends only on the format registry, not on specific formats: any format
registered with ``register_format`` is picked up without changes here.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterator, Optional, overload

import pandas as pd

from molrw.core.molecule import Molecule
from molrw.formats.registry import guess_format, resolve

logger = logging.getLogger(__name__)


def _is_hidden(path: Path, root: Path) -> bool:
    return any(part.startswith(".") for part in path.relative_to(root).parts)


class MoleculeDataset:
    """A dataset of molecule files in any registered format.

    Usage::

        from molrw.formats import MoleculeDataset

        ds = MoleculeDataset.from_directory("runs/", pattern="*.xyz")
        for mol in ds:
            print(mol.title, mol.num_atoms)

        frames = ds[0]                      # molecules of the first file
        df = ds.to_frame()                  # one row per molecule
        big = ds.filter(lambda m: m.num_atoms > 100)
    """

    def __init__(self, paths: list[Path], fmt: Optional[str] = None):
        self._paths = paths
        self._fmt = fmt
        self._cache: dict[int, list[Molecule]] = {}

    @classmethod
    def from_paths(cls, paths: list[str | Path], fmt: Optional[str] = None) -> "MoleculeDataset":
        """Create from a list of file paths (strings or Path objects)."""
        return cls([Path(p) for p in paths], fmt=fmt)

    @classmethod
    def from_directory(
        cls,
        directory: str | Path,
        pattern: str = "*",
        fmt: Optional[str] = None,
    ) -> "MoleculeDataset":
        """Create from all matching files below ``directory``.

        Hidden files and directories are skipped. Without ``fmt`` only files
        whose format can be guessed are kept.
        """
        d = Path(directory)
        paths = sorted(
            p for p in d.rglob(pattern)
            if p.is_file() and not _is_hidden(p, d) and (fmt or guess_format(p))
        )
        logger.info("MoleculeDataset: found %d files matching '%s' in %s", len(paths), pattern, d)
        return cls(paths, fmt=fmt)

    def __len__(self) -> int:
        return len(self._paths)

    @overload
    def __getitem__(self, idx: int) -> list[Molecule]: ...
    @overload
    def __getitem__(self, idx: slice) -> list[list[Molecule]]: ...

    def __getitem__(self, idx):
        if isinstance(idx, slice):
            return [self._load(i) for i in range(*idx.indices(len(self)))]
        if idx < 0:
            idx = len(self) + idx
        if not 0 <= idx < len(self):
            raise IndexError(f"MoleculeDataset index {idx} out of range")
        return self._load(idx)

    def __iter__(self) -> Iterator[Molecule]:
        for i in range(len(self)):
            yield from self._load(i)

    def _load(self, idx: int) -> list[Molecule]:
        if idx in self._cache:
            return self._cache[idx]
        # deferred import: molrw.io depends on this package
        from molrw.io import read_all

        path = self._paths[idx]
        try:
            molecules = read_all(path, self._fmt)
        except Exception as e:
            logger.error("Failed to read %s: %s", path, e)
            raise
        self._cache[idx] = molecules
        return molecules

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def filter(self, predicate: Callable[[Molecule], bool]) -> "MoleculeDataset":
        """Return a new dataset keeping files with at least one matching molecule.

        Only the matching molecules of each kept file are retained.
        Note: this triggers parsing of all files.
        """
        ds = MoleculeDataset([], fmt=self._fmt)
        for i in range(len(self)):
            kept = [m for m in self._load(i) if predicate(m)]
            if kept:
                ds._cache[len(ds._paths)] = kept
                ds._paths.append(self._paths[i])
        return ds

    def to_list(self) -> list[Molecule]:
        """Parse all files and return every molecule in one list."""
        return list(self)

    def to_frame(self) -> pd.DataFrame:
        """One row per molecule: path, record, format, title, counts, periodicity, formula."""
        rows = []
        for i, path in enumerate(self._paths):
            tag = resolve(path, self._fmt).tag
            for record, mol in enumerate(self._load(i), start=1):
                rows.append({
                    "path": str(path),
                    "record": record,
                    "format": tag,
                    "title": mol.title,
                    "num_atoms": mol.num_atoms,
                    "num_bonds": mol.num_bonds,
                    "periodic": mol.is_periodic,
                    "formula": mol.formula,
                })
        columns = ["path", "record", "format", "title", "num_atoms", "num_bonds", "periodic", "formula"]
        return pd.DataFrame(rows, columns=columns)

    def summary(self) -> dict:
        """Parse all and return summary statistics."""
        molecules = self.to_list()
        formats: dict[str, int] = {}
        for path in self._paths:
            tag = resolve(path, self._fmt).tag
            formats[tag] = formats.get(tag, 0) + 1
        return {
            "files": len(self._paths),
            "molecules": len(molecules),
            "periodic": sum(1 for m in molecules if m.is_periodic),
            "total_atoms": sum(m.num_atoms for m in molecules),
            "total_bonds": sum(m.num_bonds for m in molecules),
            "formats": formats,
        }

    def __repr__(self) -> str:
        return f"<MoleculeDataset n={len(self)} paths={self._paths[:3]}...>"
