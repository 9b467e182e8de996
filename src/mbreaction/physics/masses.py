"""
mbreaction.physics.masses

Binding energies per nucleon from an Atomic Mass Evaluation table
(AME2020 ``mass_1.mas20`` layout).

The file is fixed width (Fortran ``a1,i3,i5,i5,i5,1x,a3,a4,1x,f14.6,f12.6,f13.5,...``);
only N-Z/N/Z/A, the element and the binding energy per nucleon are read.
Header lines are dropped because their A/Z columns do not parse as integers.

AME writes ``#`` instead of the decimal point for estimated (non-experimental)
values, e.g. ``7570#`` or ``1135.6#``.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple
import re

import pandas as pd

from .elements import isotope_key

# 0-based, end-exclusive column spans in mass_1.mas20
_AME_COLSPECS = [(1, 4), (4, 9), (9, 14), (14, 19), (20, 23), (54, 67)]
_AME_NAMES = ["NZ", "N", "Z", "A", "EL", "BE_A"]

_NOT_NUMERIC = re.compile(r"[^0-9+\-.]")


def parse_ame_value(raw) -> Optional[float]:
    """
    Convert one AME numeric field to float, or None if it cannot be parsed.

    '#' stands in for the decimal point when the field has none; any other
    marker characters are stripped before conversion.
    """
    if raw is None:
        return None
    s = str(raw).strip()
    if not s or s.lower() == "nan":
        return None
    if "." not in s:
        s = s.replace("#", ".", 1)
    s = _NOT_NUMERIC.sub("", s)
    try:
        return float(s)
    except ValueError:
        return None


@dataclass
class MassTable:
    """Isotope key ('4He') -> binding energy per nucleon [keV]. Read-only once built."""
    be_per_nucleon: Dict[str, float] = field(default_factory=dict)
    source: str = ""

    @classmethod
    def from_records(cls, records: Iterable[Tuple[int, int, float]], source: str = "") -> "MassTable":
        return cls({isotope_key(a, z): float(be) for a, z, be in records}, source=source)

    @classmethod
    def from_ame(cls, path: str | Path) -> "MassTable":
        """
        Build the table from an AME mass_1 file.

        Raises FileNotFoundError if the file is missing and ValueError if no
        isotope rows could be read from it.
        """
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Mass table not found: {p}")

        df = pd.read_fwf(
            p,
            colspecs=_AME_COLSPECS,
            names=_AME_NAMES,
            header=None,
            dtype=str,
        )
        for col in ("N", "Z", "A"):
            df[col] = pd.to_numeric(df[col], errors="coerce")
        df = df.dropna(subset=["N", "Z", "A"])
        # N + Z == A keeps stray header text with digits in those columns out
        df = df[(df["N"] + df["Z"]) == df["A"]]
        if df.empty:
            raise ValueError(f"No isotope rows found in mass table {p}")

        table: Dict[str, float] = {}
        for a, z, raw in zip(df["A"].astype(int), df["Z"].astype(int), df["BE_A"]):
            be = parse_ame_value(raw)
            if be is None:
                # unparseable rows stay out of the table and read as not found
                continue
            table[isotope_key(int(a), int(z))] = be
        return cls(table, source=str(p))

    def lookup(self, a: int, z: int) -> Optional[float]:
        """Binding energy per nucleon for (A, Z), or None if not tabulated."""
        return self.be_per_nucleon.get(isotope_key(a, z))

    def __len__(self) -> int:
        return len(self.be_per_nucleon)

    def __contains__(self, key) -> bool:
        if isinstance(key, tuple):
            key = isotope_key(*key)
        return key in self.be_per_nucleon
