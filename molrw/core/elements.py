"""Periodic table lookups used to normalize element tokens."""

from __future__ import annotations

from typing import Optional

SYMBOLS: tuple[str, ...] = (
    "H", "He", "Li", "Be", "B", "C", "N", "O", "F", "Ne",
    "Na", "Mg", "Al", "Si", "P", "S", "Cl", "Ar", "K", "Ca",
    "Sc", "Ti", "V", "Cr", "Mn", "Fe", "Co", "Ni", "Cu", "Zn",
    "Ga", "Ge", "As", "Se", "Br", "Kr", "Rb", "Sr", "Y", "Zr",
    "Nb", "Mo", "Tc", "Ru", "Rh", "Pd", "Ag", "Cd", "In", "Sn",
    "Sb", "Te", "I", "Xe", "Cs", "Ba", "La", "Ce", "Pr", "Nd",
    "Pm", "Sm", "Eu", "Gd", "Tb", "Dy", "Ho", "Er", "Tm", "Yb",
    "Lu", "Hf", "Ta", "W", "Re", "Os", "Ir", "Pt", "Au", "Hg",
    "Tl", "Pb", "Bi", "Po", "At", "Rn", "Fr", "Ra", "Ac", "Th",
    "Pa", "U", "Np", "Pu", "Am", "Cm", "Bk", "Cf", "Es", "Fm",
    "Md", "No", "Lr", "Rf", "Db", "Sg", "Bh", "Hs", "Mt", "Ds",
    "Rg", "Cn", "Nh", "Fl", "Mc", "Lv", "Ts", "Og",
)

_NUMBERS: dict[str, int] = {sym.upper(): i + 1 for i, sym in enumerate(SYMBOLS)}


def atomic_number(symbol: str) -> Optional[int]:
    """Atomic number for ``symbol`` (case-insensitive), None for dummy atoms."""
    return _NUMBERS.get(symbol.strip().upper())


def element_symbol(number: int) -> str:
    if not 1 <= number <= len(SYMBOLS):
        raise ValueError(f"Invalid atomic number: {number}")
    return SYMBOLS[number - 1]


def normalize_element(token: str | int) -> str:
    """Canonical symbol for an element token.

    Atomic numbers (int or digit string) map to symbols, known symbols get
    their canonical case ("SI" -> "Si"), anything else (dummy atoms such as
    "TV", "X", "Bq") is kept verbatim.
    """
    if isinstance(token, int):
        return element_symbol(token)
    text = token.strip()
    if text.isdigit():
        return element_symbol(int(text))
    number = _NUMBERS.get(text.upper())
    if number is not None:
        return SYMBOLS[number - 1]
    return text


def alpha_prefix(text: str) -> str:
    """Leading alphabetic characters of ``text`` ("C12" -> "C", "O2-" -> "O")."""
    end = 0
    while end < len(text) and text[end].isalpha():
        end += 1
    return text[:end]
