"""Tests for the classical and plain XYZ formats."""

from pathlib import Path

import pytest

from molrw.core.errors import FormatMismatchWarning, RecordParseError
from molrw.core.lattice import Lattice
from molrw.core.molecule import Atom, Molecule
from molrw.formats.xyz import (
    format_plain_xyz,
    format_xyz,
    parse_atom_line,
    parse_plain_xyz,
    parse_xyz,
)
from molrw.io import read, read_all

FIXTURES = Path(__file__).resolve().parent / "fixtures"

ETHANE = """8
ethane
C    0.000000    0.000000    0.762000
C    0.000000    0.000000   -0.762000
H    0.000000    1.018000    1.156000
H    0.881600   -0.509000    1.156000
H   -0.881600   -0.509000    1.156000
H    0.000000   -1.018000   -1.156000
H   -0.881600    0.509000   -1.156000
H    0.881600    0.509000   -1.156000
"""


class TestAtomLine:
    def test_element_and_position(self):
        assert parse_atom_line("C 1 2 3") == ("C", (1.0, 2.0, 3.0), (0.0, 0.0, 0.0))

    def test_velocity_columns(self):
        _, _, velocity = parse_atom_line("C 1 2 3 0.1 0.2 0.3")
        assert velocity == (0.1, 0.2, 0.3)

    def test_atomic_number_element(self):
        assert parse_atom_line("6 0 0 0")[0] == "6"

    def test_lattice_tokens(self):
        assert parse_atom_line("VEC1 5 0 0")[0] == "VEC1"

    @pytest.mark.parametrize("line", ["", "C 1 2", "energy= 1 2 3", "C x y z"])
    def test_not_an_atom(self, line):
        assert parse_atom_line(line) is None


class TestParseXYZ:
    def test_ethane(self):
        mol = parse_xyz(ETHANE)
        assert mol.title == "ethane"
        assert mol.num_atoms == 8
        assert mol.atom(1).position == (0.0, 0.0, 0.762)
        assert mol.formula == "C2H6"
        assert not mol.is_periodic

    def test_lattice_from_tv_lines(self):
        text = "5\nargon\nAr 0 0 0\nAr 2.5 2.5 0\nTV 5 0 0\nTV 0 5 0\nTV 0 0 5\n"
        mol = parse_xyz(text)
        assert mol.num_atoms == 2
        assert mol.lattice == Lattice.from_params(5.0, 5.0, 5.0)

    def test_count_excluding_lattice_lines(self):
        mol = parse_xyz("1\nsi\nSi 0 0 0\nTV 5 0 0\nTV 0 5 0\nTV 0 0 5\n")
        assert mol.num_atoms == 1
        assert mol.is_periodic

    def test_extxyz_lattice(self):
        text = '1\nLattice="4 0 0 0 4 0 0 0 4" Properties=species:S:1:pos:R:3\nNa 0 0 0\n'
        mol = parse_xyz(text)
        assert mol.lattice == Lattice.from_params(4.0, 4.0, 4.0)

    def test_count_mismatch_warns(self):
        with pytest.warns(FormatMismatchWarning, match="Expected 3 atoms"):
            mol = parse_xyz("3\nshort\nH 0 0 0\nH 0 0 0.74\n")
        assert mol.num_atoms == 2

    def test_two_lattice_lines_warn(self):
        with pytest.warns(FormatMismatchWarning, match="3 lattice vectors"):
            mol = parse_xyz("1\nx\nH 0 0 0\nTV 1 0 0\nTV 0 1 0\n")
        assert mol.lattice is None

    def test_no_atoms(self):
        with pytest.raises(RecordParseError, match="No atom lines"):
            parse_xyz("2\ntitle\nnot an atom line\n")

    def test_invalid_count(self):
        with pytest.raises(RecordParseError):
            parse_xyz("two\ntitle\nH 0 0 0\n")

    def test_empty_molecule(self):
        mol = parse_xyz("0\nnothing\n")
        assert mol.num_atoms == 0
        assert mol.title == "nothing"


class TestMultiFrame:
    def test_fixture(self):
        mols = read_all(FIXTURES / "multi.xyz")
        assert [m.num_atoms for m in mols] == [3, 2, 2]
        assert [m.title for m in mols] == ["water", "hcn fragment with velocities", "periodic argon"]
        assert mols[1].atom(1).velocity == (0.1, 0.0, 0.0)
        assert mols[2].is_periodic
        assert mols[2].lattice.lengths == pytest.approx((5.0, 5.0, 5.0))

    def test_read_is_lazy(self):
        frames = read(FIXTURES / "multi.xyz")
        first = next(frames)
        assert first.title == "water"
        frames.close()


class TestFormatXYZ:
    def test_layout(self):
        mol = Molecule("h2", [Atom("H", (0, 0, 0)), Atom("H", (0, 0, 0.74))])
        lines = format_xyz(mol).splitlines()
        assert lines[0] == "2"
        assert lines[1] == "h2"
        assert lines[3].split() == ["H", "0.000000", "0.000000", "0.740000"]

    def test_periodic_count_includes_tv_lines(self):
        mol = Molecule("si", [Atom("Si")], lattice=Lattice.from_params(5.43, 5.43, 5.43))
        lines = format_xyz(mol).splitlines()
        assert lines[0] == "4"
        assert [ln.split()[0] for ln in lines[2:]] == ["Si", "TV", "TV", "TV"]

    def test_round_trip(self):
        mol = parse_xyz(ETHANE)
        again = parse_xyz(format_xyz(mol))
        assert again.title == mol.title
        assert again.symbols == mol.symbols
        assert again.positions == pytest.approx(mol.positions)

    def test_round_trip_velocities_and_lattice(self):
        for mol in read_all(FIXTURES / "multi.xyz"):
            again = parse_xyz(format_xyz(mol))
            assert again.velocities == pytest.approx(mol.velocities)
            assert again.lattice == mol.lattice


class TestPlainXYZ:
    def test_fixture(self):
        mols = read_all(FIXTURES / "multi.pxyz")
        assert [m.num_atoms for m in mols] == [2, 3, 1]
        assert all(m.title == "" for m in mols)
        assert mols[2].lattice == Lattice.from_params(5.0, 5.0, 5.0)

    def test_no_atoms(self):
        with pytest.raises(RecordParseError):
            parse_plain_xyz("just a comment\n")

    def test_format(self):
        mol = Molecule("", [Atom("O", (0, 0, 0)), Atom("H", (0.96, 0, 0))])
        text = format_plain_xyz(mol)
        assert text.endswith("\n\n")
        assert text.splitlines()[1].split() == ["H", "0.96000000", "0.00000000", "0.00000000"]

    def test_round_trip(self):
        for mol in read_all(FIXTURES / "multi.pxyz"):
            again = parse_plain_xyz(format_plain_xyz(mol))
            assert again.symbols == mol.symbols
            assert again.positions == pytest.approx(mol.positions)
            assert again.lattice == mol.lattice
