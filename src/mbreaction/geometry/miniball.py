from __future__ import annotations
from dataclasses import dataclass, field
import numpy as np

from .cd import vector_angles

# Triple-cluster layout in the plane of the cluster face [mm]
CRYSTAL_AXIS_OFFSET_MM = 34.0   # crystal centre to cluster axis
SEGMENT_RADIUS_MM = 17.0        # segment centroid to crystal axis
INTERACTION_DEPTH_MM = 20.0     # mean first-interaction depth behind the face


def _unit(v: np.ndarray) -> np.ndarray:
    n = np.linalg.norm(v)
    if n == 0:
        raise ValueError("Zero-length vector")
    return v / n


@dataclass
class MiniballGeometry:
    """
    One Miniball triple cluster.

    The cluster axis points from the nominal target to the face centre at
    polar angle theta, azimuth phi and distance r. Alpha rotates the three
    crystals about that axis. Segment 0 is the crystal core; segments
    1..n_segments-1 sit at equal azimuthal steps around it.

    seg_theta / seg_phi hold (n_crystals, n_segments) lab angles [rad] as
    seen from the (offset) target position.
    """
    theta: float  # rad
    phi: float    # rad
    alpha: float  # rad
    r: float      # mm
    offset: np.ndarray = field(default_factory=lambda: np.zeros(3))
    n_crystals: int = 3
    n_segments: int = 7
    seg_theta: np.ndarray = field(init=False, repr=False)
    seg_phi: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.offset = np.asarray(self.offset, dtype=np.float64)
        self.seg_theta = np.zeros((self.n_crystals, self.n_segments))
        self.seg_phi = np.zeros((self.n_crystals, self.n_segments))
        for cry in range(self.n_crystals):
            for seg in range(self.n_segments):
                t, p = vector_angles(self.segment_position(cry, seg) - self.offset)
                self.seg_theta[cry, seg] = t
                self.seg_phi[cry, seg] = p

    @classmethod
    def from_degrees(cls, theta, phi, alpha, r, offset=None, n_crystals=3, n_segments=7):
        return cls(
            float(np.deg2rad(theta)),
            float(np.deg2rad(phi)),
            float(np.deg2rad(alpha)),
            float(r),
            offset=np.zeros(3) if offset is None else np.asarray(offset, dtype=np.float64),
            n_crystals=n_crystals,
            n_segments=n_segments,
        )

    def _basis(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        st, ct = np.sin(self.theta), np.cos(self.theta)
        sp, cp = np.sin(self.phi), np.cos(self.phi)
        axis = _unit(np.array([st * cp, st * sp, ct]))
        e1 = np.array([ct * cp, ct * sp, -st])
        e2 = np.array([-sp, cp, 0.0])
        return axis, e1, e2

    def segment_position(self, cry: int, seg: int) -> np.ndarray:
        """Segment centroid [mm] relative to the nominal target position."""
        axis, e1, e2 = self._basis()
        cry_ang = self.alpha + cry * 2.0 * np.pi / self.n_crystals
        u = CRYSTAL_AXIS_OFFSET_MM * np.cos(cry_ang)
        v = CRYSTAL_AXIS_OFFSET_MM * np.sin(cry_ang)
        if seg > 0 and self.n_segments > 1:
            n_outer = self.n_segments - 1
            seg_ang = cry_ang + (seg - 0.5) * 2.0 * np.pi / n_outer
            u += SEGMENT_RADIUS_MM * np.cos(seg_ang)
            v += SEGMENT_RADIUS_MM * np.sin(seg_ang)
        return (self.r + INTERACTION_DEPTH_MM) * axis + u * e1 + v * e2

    def get_seg_theta(self, cry: int, seg: int) -> float:
        return float(self.seg_theta[cry, seg])

    def get_seg_phi(self, cry: int, seg: int) -> float:
        return float(self.seg_phi[cry, seg])
