"""Tests for the VASP POSCAR format."""

from pathlib import Path

import pytest

from molrw.core.errors import FormatError, RecordParseError
from molrw.core.lattice import Lattice
from molrw.core.molecule import Atom, Molecule
from molrw.formats.vasp import format_poscar, is_vasp_file, parse_poscar
from molrw.io import from_file, write

FIXTURES = Path(__file__).resolve().parent / "fixtures"

CARTESIAN = """scaled cartesian
2.0
1.0 0.0 0.0
0.0 1.0 0.0
0.0 0.0 1.0
Na Cl
1 1
Cartesian
0.0 0.0 0.0
0.5 0.5 0.5
"""


class TestMatcher:
    @pytest.mark.parametrize("name", ["POSCAR", "CONTCAR", "CONTCAR-1", "x.vasp", "x.POSCAR", "poscar"])
    def test_match(self, name):
        assert is_vasp_file(Path(name))

    @pytest.mark.parametrize("name", ["POSCAR.1", "x.xyz", "OUTCAR"])
    def test_no_match(self, name):
        assert not is_vasp_file(Path(name))


class TestParsePOSCAR:
    def test_fixture(self):
        mol = from_file(FIXTURES / "POSCAR")
        assert mol.title == "Si2O cubic test"
        assert mol.symbols == ["Si", "Si", "O"]
        assert mol.lattice.lengths == pytest.approx((5.43, 5.43, 5.43))
        assert mol.atom(2).position == pytest.approx((1.3575, 1.3575, 1.3575))

    def test_selective_dynamics(self):
        mol = from_file(FIXTURES / "POSCAR")
        assert mol.atom(1).freezing == (True, True, True)
        assert mol.atom(2).freezing == (False, False, False)
        assert mol.atom(3).freezing == (False, True, False)

    def test_velocities(self):
        mol = from_file(FIXTURES / "POSCAR")
        assert mol.atom(1).velocity == pytest.approx((0.01, 0.0, 0.0))
        assert mol.atom(3).velocity == pytest.approx((0.0, 0.0, 0.02))

    def test_cartesian_positions_are_scaled(self):
        mol = parse_poscar(CARTESIAN)
        assert mol.lattice.lengths == pytest.approx((2.0, 2.0, 2.0))
        assert mol.atom(2).position == pytest.approx((1.0, 1.0, 1.0))
        assert not mol.has_velocities()

    def test_negative_scale_is_volume(self):
        mol = parse_poscar(CARTESIAN.replace("\n2.0\n", "\n-27.0\n"))
        assert mol.lattice.volume == pytest.approx(27.0)
        assert mol.atom(2).position == pytest.approx((1.5, 1.5, 1.5))

    def test_vasp4_symbols_from_title(self):
        text = "Na Cl\n1.0\n4 0 0\n0 4 0\n0 0 4\n1 1\nDirect\n0 0 0\n0.5 0.5 0.5\n"
        mol = parse_poscar(text)
        assert mol.symbols == ["Na", "Cl"]
        assert mol.atom(2).position == pytest.approx((2.0, 2.0, 2.0))

    def test_vasp4_without_symbols(self):
        text = "some cell\n1.0\n4 0 0\n0 4 0\n0 0 4\n1 1\nDirect\n0 0 0\n0.5 0.5 0.5\n"
        with pytest.raises(RecordParseError, match="symbols"):
            parse_poscar(text)

    def test_unknown_mode(self):
        with pytest.raises(RecordParseError, match="coordinate mode"):
            parse_poscar(CARTESIAN.replace("Cartesian", "Polar"))

    def test_bad_lattice(self):
        with pytest.raises(RecordParseError):
            parse_poscar(CARTESIAN.replace("0.0 1.0 0.0", "0.0 one 0.0"))


class TestFormatPOSCAR:
    def test_requires_lattice(self):
        with pytest.raises(FormatError, match="lattice"):
            format_poscar(Molecule("gas", [Atom("He")]))

    def test_layout(self):
        mol = parse_poscar(CARTESIAN)
        lines = format_poscar(mol).splitlines()
        assert lines[0] == "scaled cartesian"
        assert lines[1] == "1.0"
        assert lines[5].split() == ["Na", "Cl"]
        assert lines[6].split() == ["1", "1"]
        assert lines[7] == "Selective dynamics"
        assert lines[8] == "Direct"
        assert lines[10].split() == ["0.500000000000", "0.500000000000", "0.500000000000", "T", "T", "T"]

    def test_species_runs(self):
        mol = Molecule("", [Atom("C"), Atom("C"), Atom("H"), Atom("C")], lattice=Lattice.from_params(5, 5, 5))
        lines = format_poscar(mol).splitlines()
        assert lines[5].split() == ["C", "H", "C"]
        assert lines[6].split() == ["2", "1", "1"]

    def test_round_trip(self):
        mol = from_file(FIXTURES / "POSCAR")
        again = parse_poscar(format_poscar(mol))
        assert again.title == mol.title
        assert again.symbols == mol.symbols
        assert again.lattice == mol.lattice
        assert again.positions == pytest.approx(mol.positions)
        assert [a.freezing for a in again.atoms] == [a.freezing for a in mol.atoms]
        assert again.velocities == pytest.approx(mol.velocities)

    def test_single_structure_per_file(self, tmp_path: Path):
        mol = from_file(FIXTURES / "POSCAR")
        with pytest.raises(FormatError, match="single molecule"):
            write(tmp_path / "POSCAR", [mol, mol])
