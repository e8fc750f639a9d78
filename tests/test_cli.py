"""Tests for the molrw command line."""

import json
import logging
import shutil
from pathlib import Path

import pandas as pd
from typer.testing import CliRunner

from molrw.cli import app
from molrw.io import read_all

FIXTURES = Path(__file__).resolve().parent / "fixtures"

runner = CliRunner()


def test_formats(caplog):
    caplog.set_level(logging.INFO)
    result = runner.invoke(app, ["formats"])
    assert result.exit_code == 0
    assert "text/xyz" in caplog.text
    assert "read only" in caplog.text


def test_guess(caplog):
    caplog.set_level(logging.INFO)
    result = runner.invoke(app, ["guess", "a.xyz", "CONTCAR", "b.unknown"])
    assert result.exit_code == 0
    assert "a.xyz: text/xyz" in caplog.text
    assert "CONTCAR: vasp/input" in caplog.text
    assert "b.unknown: unknown" in caplog.text


def test_convert(tmp_path: Path, caplog):
    caplog.set_level(logging.INFO)
    target = tmp_path / "frames.mol2"
    result = runner.invoke(app, ["convert", str(FIXTURES / "multi.xyz"), str(target)])
    assert result.exit_code == 0
    assert [m.title for m in read_all(target)] == ["water", "hcn fragment with velocities", "periodic argon"]
    assert "Converted 3 molecules" in caplog.text


def test_convert_explicit_formats(tmp_path: Path):
    source = tmp_path / "frames.txt"
    shutil.copy(FIXTURES / "multi.pxyz", source)
    target = tmp_path / "frames.out"
    result = runner.invoke(app, ["convert", str(source), str(target), "--from", "text/pxyz", "--to", "text/xyz"])
    assert result.exit_code == 0
    assert len(read_all(target, "text/xyz")) == 3


def test_convert_unknown_target(tmp_path: Path):
    result = runner.invoke(app, ["convert", str(FIXTURES / "multi.xyz"), str(tmp_path / "out.unknown")])
    assert result.exit_code != 0
    assert not (tmp_path / "out.unknown").exists()


def test_convert_failure(tmp_path: Path, caplog):
    result = runner.invoke(app, ["convert", str(FIXTURES / "multi.xyz"), str(tmp_path / "POSCAR")])
    assert result.exit_code == 1
    assert "Conversion failed" in caplog.text


def test_info(tmp_path: Path):
    csv = tmp_path / "table.csv"
    result = runner.invoke(app, ["info", str(FIXTURES / "multi.sdf"), "--csv", str(csv)])
    assert result.exit_code == 0
    assert "carbon monoxide" in result.output
    df = pd.read_csv(csv)
    assert df["num_atoms"].tolist() == [3, 3, 2]


def test_view():
    result = runner.invoke(app, ["view", str(FIXTURES / "POSCAR")])
    assert result.exit_code == 0
    view = json.loads(result.output)
    assert view["molecule"]["title"] == "Si2O cubic test"
    assert view["molecule"]["number_of_atoms"] == 3


def test_view_default_format(tmp_path: Path, monkeypatch):
    path = tmp_path / "frames.txt"
    shutil.copy(FIXTURES / "multi.xyz", path)
    monkeypatch.setenv("MOLRW_DEFAULT_FORMAT", "text/xyz")
    result = runner.invoke(app, ["view", str(path)])
    assert result.exit_code == 0
    assert json.loads(result.output)["molecule"]["title"] == "periodic argon"


def test_view_unreadable(tmp_path: Path):
    path = tmp_path / "bad.xyz"
    path.write_text("nonsense\n")
    result = runner.invoke(app, ["view", str(path)])
    assert result.exit_code == 1
