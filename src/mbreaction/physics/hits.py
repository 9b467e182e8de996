from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(slots=True)
class ParticleHit:
    """
    Charged-particle hit in the CD.

    detector: CD detector id
    sector: quadrant of the detector
    strip_p: front (ring) strip
    strip_n: back (sector) strip
    energy: deposited energy [keV]
    time: hit time [ns]
    """
    detector: int
    sector: int
    strip_p: int
    strip_n: int
    energy: float = 0.0
    time: float = 0.0

    extras: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class GammaRayHit:
    """Miniball hit addressed by cluster/crystal/segment (segment 0 is the core)."""
    cluster: int
    crystal: int
    segment: int
    energy: float = 0.0
    time: float = 0.0

    extras: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class GammaRayAddbackHit(GammaRayHit):
    """
    Addback-combined gamma ray: energies summed over the crystals of one
    cluster, position taken from the primary (highest energy) interaction.
    """
    n_crystals: int = 1
