"""Tests for MoleculeDataset."""

import shutil
from pathlib import Path

import pandas as pd
import pytest

from molrw.core.errors import BoundaryError
from molrw.formats import MoleculeDataset

FIXTURES = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    shutil.copy(FIXTURES / "multi.xyz", tmp_path / "multi.xyz")
    shutil.copy(FIXTURES / "multi.sdf", tmp_path / "multi.sdf")
    hidden = tmp_path / ".cache"
    hidden.mkdir()
    shutil.copy(FIXTURES / "multi.xyz", hidden / "copy.xyz")
    (tmp_path / "notes.txt").write_text("not a molecule\n")
    return tmp_path


class TestMoleculeDataset:
    def test_from_directory(self, data_dir: Path):
        ds = MoleculeDataset.from_directory(data_dir)
        assert [p.name for p in ds.paths] == ["multi.sdf", "multi.xyz"]
        assert len(ds) == 2

    def test_pattern(self, data_dir: Path):
        ds = MoleculeDataset.from_directory(data_dir, pattern="*.xyz")
        assert [p.name for p in ds.paths] == ["multi.xyz"]

    def test_getitem(self, data_dir: Path):
        ds = MoleculeDataset.from_directory(data_dir)
        assert [m.title for m in ds[0]] == ["water", "hcn", "carbon monoxide"]
        assert ds[-1][0].title == "water"
        assert len(ds[0:2]) == 2
        with pytest.raises(IndexError):
            ds[2]

    def test_iteration(self, data_dir: Path):
        ds = MoleculeDataset.from_directory(data_dir)
        assert len(list(ds)) == 6
        assert len(ds.to_list()) == 6

    def test_cache(self, data_dir: Path):
        ds = MoleculeDataset.from_directory(data_dir)
        assert ds[0] is ds[0]

    def test_filter(self, data_dir: Path):
        ds = MoleculeDataset.from_directory(data_dir)
        periodic = ds.filter(lambda m: m.is_periodic)
        assert [p.name for p in periodic.paths] == ["multi.xyz"]
        assert [m.title for m in periodic] == ["periodic argon"]

    def test_to_frame(self, data_dir: Path):
        df = MoleculeDataset.from_directory(data_dir).to_frame()
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == [
            "path", "record", "format", "title", "num_atoms", "num_bonds", "periodic", "formula",
        ]
        assert len(df) == 6
        assert df["format"].tolist()[:3] == ["text/sdf"] * 3
        assert df["record"].tolist()[3:] == [1, 2, 3]

    def test_summary(self, data_dir: Path):
        summary = MoleculeDataset.from_directory(data_dir).summary()
        assert summary["files"] == 2
        assert summary["molecules"] == 6
        assert summary["periodic"] == 1
        assert summary["formats"] == {"text/sdf": 1, "text/xyz": 1}

    def test_explicit_format(self, tmp_path: Path):
        path = tmp_path / "frames.txt"
        shutil.copy(FIXTURES / "multi.xyz", path)
        ds = MoleculeDataset.from_paths([str(path)], fmt="text/xyz")
        assert len(ds[0]) == 3

    def test_unreadable_file_raises(self, tmp_path: Path, caplog):
        path = tmp_path / "bad.xyz"
        path.write_text("nonsense\n")
        ds = MoleculeDataset.from_paths([path])
        with pytest.raises(BoundaryError):
            ds[0]
        assert "Failed to read" in caplog.text
