"""
mbreaction.io.cuts

Named 2D polygon cuts used for particle identification.

Supported sources
-----------------
- ROOT files holding a TCutG (read through uproot; members fX/fY/fNpoints).
- JSON files mapping cut name -> {"x": [...], "y": [...]}.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import json

import numpy as np
from matplotlib.path import Path as PolygonPath

# Optional imports (guarded)
try:
    import uproot  # type: ignore
except Exception:  # pragma: no cover
    uproot = None  # type: ignore


@dataclass
class CutRegion:
    """Closed polygon in some 2D observable space (e.g. energy vs angle)."""
    name: str
    x: np.ndarray
    y: np.ndarray
    _path: PolygonPath = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.x = np.asarray(self.x, dtype=np.float64)
        self.y = np.asarray(self.y, dtype=np.float64)
        if self.x.shape != self.y.shape or self.x.ndim != 1:
            raise ValueError(f"Cut {self.name!r}: x and y must be 1D arrays of equal length")
        if self.x.size < 3:
            raise ValueError(f"Cut {self.name!r}: a polygon needs at least 3 points")
        self._path = PolygonPath(np.column_stack([self.x, self.y]), closed=False)

    @property
    def n_points(self) -> int:
        return int(self.x.size)

    def contains(self, x: float, y: float) -> bool:
        return bool(self._path.contains_point((float(x), float(y))))

    def contains_points(self, x, y) -> np.ndarray:
        pts = np.column_stack([np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64)])
        return self._path.contains_points(pts)


def _load_root_cut(p: Path, name: str) -> CutRegion:
    if uproot is None:
        raise RuntimeError("uproot is required to read cuts from ROOT files (pip install mbreaction[root])")
    with uproot.open(p) as f:
        if name not in f:
            raise KeyError(f"Cut {name!r} not found in {p.name}. Found keys: {sorted(f.keys())}")
        obj = f[name]
        n = int(obj.member("fNpoints"))
        x = np.asarray(obj.member("fX"), dtype=np.float64)[:n]
        y = np.asarray(obj.member("fY"), dtype=np.float64)[:n]
    return CutRegion(name, x, y)


def _load_json_cut(p: Path, name: str) -> CutRegion:
    data = json.loads(p.read_text())
    if name not in data:
        raise KeyError(f"Cut {name!r} not found in {p.name}. Found keys: {sorted(data)}")
    entry = data[name]
    return CutRegion(name, entry["x"], entry["y"])


def load_cut(path: str | Path, name: str) -> CutRegion:
    """Open ``path`` and return the cut called ``name``."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Cut file not found: {p}")
    if p.suffix.lower() == ".root":
        return _load_root_cut(p, name)
    if p.suffix.lower() == ".json":
        return _load_json_cut(p, name)
    raise ValueError(f"Unsupported cut file type {p.suffix!r} for {p.name}; use .root or .json")
