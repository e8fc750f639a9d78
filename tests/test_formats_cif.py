"""Tests for the CIF format."""

from pathlib import Path

import pytest

from molrw.core.errors import FormatError, FormatMismatchWarning, RecordParseError
from molrw.core.lattice import Lattice
from molrw.core.molecule import Atom, Molecule
from molrw.formats.cif import format_cif, parse_cif, parse_cif_number
from molrw.io import read_all

FIXTURES = Path(__file__).resolve().parent / "fixtures"


class TestCIFNumber:
    @pytest.mark.parametrize(
        "token, value",
        [("18.094(2)", 18.094), ("90", 90.0), ("0.4697(1)", 0.4697), ("-1.5", -1.5), ("5.64 ", 5.64)],
    )
    def test_values(self, token, value):
        assert parse_cif_number(token) == pytest.approx(value)

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_cif_number("?")


class TestParseCIF:
    @pytest.fixture(scope="class")
    def blocks(self):
        with pytest.warns(FormatMismatchWarning):
            return read_all(FIXTURES / "multi.cif")

    def test_two_blocks_after_preamble(self, blocks):
        assert [m.title for m in blocks] == ["sio2", "nacl"]

    def test_cell_with_uncertainties(self, blocks):
        lattice = blocks[0].lattice
        assert lattice.lengths == pytest.approx((4.9134, 4.9134, 5.4052))
        assert lattice.angles == pytest.approx((90.0, 90.0, 120.0))

    def test_sites_are_cartesian(self, blocks):
        si = blocks[0].atom(1)
        assert si.symbol == "Si"
        assert si.label == "Si1"
        assert si.position == pytest.approx((0.4697 * 4.9134, 0.0, 0.0))
        assert blocks[0].scaled_positions()[1] == pytest.approx([0.4135, 0.2669, 0.1191])

    def test_type_symbol_charges_are_stripped(self, blocks):
        assert blocks[0].symbols == ["Si", "O", "O"]

    def test_cell_after_sites(self, blocks):
        nacl = blocks[1]
        assert nacl.symbols == ["Na", "Cl"]
        assert nacl.atom(2).position == pytest.approx((2.82, 2.82, 2.82))

    def test_short_row_warns(self):
        text = (
            "data_x\n_cell_length_a 5\n_cell_length_b 5\n_cell_length_c 5\n"
            "_cell_angle_alpha 90\n_cell_angle_beta 90\n_cell_angle_gamma 90\n"
            "loop_\n_atom_site_label\n_atom_site_fract_x\n_atom_site_fract_y\n_atom_site_fract_z\n"
            "C1 0 0 0\nC2 0.5 0.5\n"
        )
        with pytest.warns(FormatMismatchWarning, match="3 fields, expected 4"):
            mol = parse_cif(text)
        assert mol.num_atoms == 1

    def test_sites_without_cell(self):
        text = "data_x\nloop_\n_atom_site_label\n_atom_site_fract_x\n_atom_site_fract_y\n_atom_site_fract_z\nC1 0 0 0\n"
        with pytest.raises(RecordParseError, match="without cell"):
            parse_cif(text)

    def test_incomplete_cell(self):
        with pytest.raises(RecordParseError, match="Missing cell parameters"):
            parse_cif("data_x\n_cell_length_a 5\n_cell_length_b 5\n")

    def test_cell_only(self):
        mol = parse_cif(
            "data_empty\n_cell_length_a 3\n_cell_length_b 3\n_cell_length_c 3\n"
            "_cell_angle_alpha 90\n_cell_angle_beta 90\n_cell_angle_gamma 90\n"
        )
        assert mol.num_atoms == 0
        assert mol.lattice.volume == pytest.approx(27.0)

    def test_must_start_with_data(self):
        with pytest.raises(RecordParseError):
            parse_cif("_cell_length_a 5\n")


class TestFormatCIF:
    def test_requires_lattice(self):
        with pytest.raises(FormatError, match="no lattice"):
            format_cif(Molecule("gas", [Atom("He")]))

    def test_layout(self):
        mol = Molecule("rock salt", [Atom("Na"), Atom("Cl", (2.82, 2.82, 2.82))], lattice=Lattice.from_params(5.64, 5.64, 5.64))
        text = format_cif(mol)
        lines = text.rstrip().splitlines()
        assert lines[0] == "data_rock_salt"
        assert "_symmetry_space_group_name_H-M 'P1'" in lines
        assert "_cell_length_a   5.640000" in lines
        assert lines[-1].split() == ["Cl", "Cl1", "0.50000000", "0.50000000", "0.50000000"]

    def test_untitled(self):
        mol = Molecule("", [Atom("Na")], lattice=Lattice.from_params(3, 3, 3))
        assert format_cif(mol).startswith("data_untitled\n")

    def test_round_trip(self):
        with pytest.warns(FormatMismatchWarning):
            original = read_all(FIXTURES / "multi.cif")
        for mol in original:
            again = parse_cif(format_cif(mol))
            assert again.title == mol.title
            assert again.symbols == mol.symbols
            assert again.lattice == mol.lattice
            assert again.positions == pytest.approx(mol.positions, abs=1e-6)
