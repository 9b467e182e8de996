from __future__ import annotations
from typing import Tuple

# Index is the atomic number; index 0 is the free neutron.
ELEMENT_SYMBOLS: Tuple[str, ...] = (
    "n", "H", "He", "Li", "Be", "B", "C", "N", "O", "F", "Ne", "Na", "Mg",
    "Al", "Si", "P", "S", "Cl", "Ar", "K", "Ca", "Sc", "Ti", "V", "Cr",
    "Mn", "Fe", "Co", "Ni", "Cu", "Zn", "Ga", "Ge", "As", "Se", "Br", "Kr",
    "Rb", "Sr", "Y", "Zr", "Nb", "Mo", "Tc", "Ru", "Rh", "Pd", "Ag", "Cd",
    "In", "Sn", "Sb", "Te", "I", "Xe", "Cs", "Ba", "La", "Ce", "Pr", "Nd",
    "Pm", "Sm", "Eu", "Gd", "Tb", "Dy", "Ho", "Er", "Tm", "Yb", "Lu", "Hf",
    "Ta", "W", "Re", "Os", "Ir", "Pt", "Au", "Hg", "Tl", "Pb", "Bi", "Po",
    "At", "Rn", "Fr", "Ra", "Ac", "Th", "Pa", "U", "Np", "Pu", "Am", "Cm",
    "Bk", "Cf", "Es", "Fm", "Md", "No", "Lr", "Rf", "Db", "Sg", "Bh", "Hs",
    "Mt", "Ds", "Rg", "Cn", "Nh", "Fl", "Mc", "Lv", "Ts", "Og", "Uue", "Ubn",
)

MAX_Z = len(ELEMENT_SYMBOLS) - 1


def element_symbol(z: int) -> str:
    """Symbol for atomic number ``z``; raises ValueError outside the table."""
    if not 0 <= z <= MAX_Z:
        raise ValueError(f"Z={z} outside the element table (0..{MAX_Z})")
    return ELEMENT_SYMBOLS[z]


def isotope_key(a: int, z: int) -> str:
    """Canonical isotope label, e.g. (4, 2) -> '4He', (1, 0) -> '1n'."""
    return f"{a}{element_symbol(z)}"
