"""
Strip geometry of the annular CD detector.

Front (p-side) strips are concentric rings, strip 0 outermost. Back (n-side)
strips divide each quadrant ("sector") in phi. Positions are strip centres in
the detector plane; the detector sits at z = distance downstream of the
nominal target position.
"""
from __future__ import annotations
from typing import Tuple
import numpy as np

CD_R_INNER_MM = 9.0
CD_R_OUTER_MM = 41.0
CD_SECTOR_PHI_DEG = 90.0       # angular extent of one quadrant
CD_SECTOR_DEAD_PHI_DEG = 4.0   # inactive rim at the start of each quadrant
CD_SECTOR_ACTIVE_PHI_DEG = 82.0


def strip_radius(pid: int, n_pstrips: int) -> float:
    """Centre radius [mm] of ring strip ``pid``."""
    pitch = (CD_R_OUTER_MM - CD_R_INNER_MM) / n_pstrips
    return CD_R_OUTER_MM - (pid + 0.5) * pitch


def strip_phi(sec: int, nid: int, n_nstrips: int) -> float:
    """Local phi [rad] of back strip ``nid`` in quadrant ``sec``, before the detector rotation."""
    pitch = CD_SECTOR_ACTIVE_PHI_DEG / n_nstrips
    phi_deg = sec * CD_SECTOR_PHI_DEG + CD_SECTOR_DEAD_PHI_DEG + (nid + 0.5) * pitch
    return float(np.deg2rad(phi_deg))


def cd_position(
    distance: float,
    phi_offset: float,
    sec: int,
    pid: int,
    nid: int,
    n_pstrips: int,
    n_nstrips: int,
) -> np.ndarray:
    """
    Pixel centre [mm] relative to the nominal target position.

    phi_offset rotates the whole detector about the beam axis [rad].
    """
    r = strip_radius(pid, n_pstrips)
    phi = strip_phi(sec, nid, n_nstrips) + phi_offset
    return np.array([r * np.cos(phi), r * np.sin(phi), distance], dtype=np.float64)


def vector_angles(v: np.ndarray) -> Tuple[float, float]:
    """
    Polar and azimuthal angle [rad] of ``v`` about the beam (z) axis.

    A zero vector gives (0, 0).
    """
    x, y, z = (float(c) for c in v)
    theta = float(np.arctan2(np.hypot(x, y), z))
    phi = float(np.arctan2(y, x))
    return theta, phi
