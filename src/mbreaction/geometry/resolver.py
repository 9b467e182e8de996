"""
mbreaction.geometry.resolver

Maps raw hit indices to lab-frame directions.

Any index outside the configured arrays resolves to a neutral value (zero
distance/offset, zero vector, zero angle) so that a partially configured
geometry never stops per-event processing. Every such access is counted in
GeometryDiagnostics and reported according to the diagnostics level.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
import numpy as np

from mbreaction.config.schemas import SettingsCfg
from mbreaction.geometry.cd import cd_position, vector_angles
from mbreaction.geometry.miniball import MiniballGeometry


@dataclass(frozen=True, slots=True)
class Slot:
    """A looked-up geometry value; ``configured`` is False for the neutral fallback."""
    value: float
    configured: bool

    def __float__(self) -> float:
        return self.value


@dataclass
class GeometryDiagnostics:
    unconfigured: int = 0
    reasons: Dict[str, int] = field(default_factory=dict)

    def inc(self, reason: str) -> int:
        self.unconfigured += 1
        self.reasons[reason] = self.reasons.get(reason, 0) + 1
        return self.reasons[reason]


@dataclass
class GeometryResolver:
    settings: SettingsCfg
    cd_dist: List[float]                 # mm, one per CD detector
    cd_offset: List[float]               # rad, one per CD detector
    target_offset: np.ndarray            # (3,) mm
    mb_geo: List[Optional[MiniballGeometry]] = field(default_factory=list)
    diagnostics_level: int = 1
    diagnostics: GeometryDiagnostics = field(default_factory=GeometryDiagnostics)

    def __post_init__(self) -> None:
        self.target_offset = np.asarray(self.target_offset, dtype=np.float64)

    # -- bookkeeping ---------------------------------------------------------

    def _unconfigured(self, reason: str) -> None:
        count = self.diagnostics.inc(reason)
        if self.diagnostics_level >= 2 or (self.diagnostics_level >= 1 and count == 1):
            print(f"[geometry] unconfigured {reason}, using neutral value")

    # -- CD ------------------------------------------------------------------

    def cd_distance(self, det: int) -> Slot:
        if 0 <= det < len(self.cd_dist):
            return Slot(self.cd_dist[det], True)
        self._unconfigured(f"CD detector {det} distance")
        return Slot(0.0, False)

    def cd_phi_offset(self, det: int) -> Slot:
        if 0 <= det < len(self.cd_offset):
            return Slot(self.cd_offset[det], True)
        self._unconfigured(f"CD detector {det} phi offset")
        return Slot(0.0, False)

    def _cd_indices_ok(self, sec: int, pid: int, nid: int) -> bool:
        s = self.settings
        return 0 <= sec < s.n_cd_sectors and 0 <= pid < s.n_cd_pstrips and 0 <= nid < s.n_cd_nstrips

    def cd_vector(self, det: int, sec: int, pid: int, nid: int) -> np.ndarray:
        """Pixel centre [mm] measured from the nominal target position."""
        dist = self.cd_distance(det)
        offset = self.cd_phi_offset(det)
        if not (dist.configured and offset.configured):
            return np.zeros(3)
        if not self._cd_indices_ok(sec, pid, nid):
            self._unconfigured(f"CD strip sec={sec} p={pid} n={nid}")
            return np.zeros(3)
        return cd_position(
            dist.value,
            offset.value,
            sec,
            pid,
            nid,
            self.settings.n_cd_pstrips,
            self.settings.n_cd_nstrips,
        )

    def particle_vector(self, det: int, sec: int, pid: int, nid: int) -> np.ndarray:
        """Pixel centre [mm] measured from the actual (offset) target position."""
        return self.cd_vector(det, sec, pid, nid) - self.target_offset

    def particle_angles(self, det: int, sec: int, pid: int, nid: int) -> Tuple[float, float]:
        return vector_angles(self.particle_vector(det, sec, pid, nid))

    def number_of_particle_thetas(self) -> int:
        return self.settings.n_cd_pstrips * self.settings.n_cd_detectors

    def particle_thetas(self) -> np.ndarray:
        """Theta [deg] of every (detector, ring) pair, flat, detector-major."""
        out = []
        for det in range(self.settings.n_cd_detectors):
            for pid in range(self.settings.n_cd_pstrips):
                theta, _ = vector_angles(self.cd_vector(det, 0, pid, 0))
                out.append(np.rad2deg(theta))
        return np.asarray(out, dtype=np.float64)

    # -- Miniball ------------------------------------------------------------

    def _cluster(self, clu: int, cry: int, seg: int) -> Optional[MiniballGeometry]:
        geo = self.mb_geo[clu] if 0 <= clu < len(self.mb_geo) else None
        if geo is None:
            self._unconfigured(f"Miniball cluster {clu}")
            return None
        if not (0 <= cry < geo.n_crystals and 0 <= seg < geo.n_segments):
            self._unconfigured(f"Miniball cluster {clu} crystal {cry} segment {seg}")
            return None
        return geo

    def gamma_theta(self, clu: int, cry: int, seg: int) -> float:
        geo = self._cluster(clu, cry, seg)
        return 0.0 if geo is None else geo.get_seg_theta(cry, seg)

    def gamma_phi(self, clu: int, cry: int, seg: int) -> float:
        geo = self._cluster(clu, cry, seg)
        return 0.0 if geo is None else geo.get_seg_phi(cry, seg)


def densify(values: Sequence, size: int, default, what: str, diagnostics_level: int = 1) -> list:
    """
    Pad or truncate a per-detector list to exactly ``size`` entries.

    Missing entries take ``default``; surplus entries are dropped.
    """
    out = list(values[:size])
    if len(values) > size and diagnostics_level >= 1:
        print(f"[geometry] {len(values)} {what} entries configured, only {size} used")
    if len(out) < size:
        if diagnostics_level >= 1:
            print(f"[geometry] {what} entries {len(out)}..{size - 1} not configured, using defaults")
        out.extend(default for _ in range(size - len(out)))
    return out
