from __future__ import annotations
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List


class SettingsCfg(BaseModel):
    """
    Array sizing for the CD and Miniball (the "settings" file).

    TOML:

    [cd]
    detectors = 1
    sectors = 4
    pstrips = 16
    nstrips = 12

    [miniball]
    clusters = 8
    crystals = 3
    segments = 7       # core + 6 segments
    """

    n_cd_detectors: int = Field(1, ge=0)
    n_cd_sectors: int = Field(4, ge=1)
    n_cd_pstrips: int = Field(16, ge=1)
    n_cd_nstrips: int = Field(12, ge=1)

    n_clusters: int = Field(8, ge=0)
    n_crystals: int = Field(3, ge=1)
    n_segments: int = Field(7, ge=1)


class NucleusCfg(BaseModel):
    A: int = Field(..., ge=1)
    Z: int = Field(..., ge=0)
    Ex: float = 0.0  # excitation energy in keV

    @model_validator(mode="after")
    def _z_le_a(self) -> "NucleusCfg":
        if self.Z > self.A:
            raise ValueError(f"Z={self.Z} exceeds A={self.A}")
        return self


class BeamCfg(NucleusCfg):
    E: float = Field(..., ge=0.0)  # laboratory beam energy in keV/u


class EbisCfg(BaseModel):
    """EBIS beam-gate windows in ns."""

    on: float = 1.2e6
    off: float = 2.52e7

    @model_validator(mode="after")
    def _window(self) -> "EbisCfg":
        if not self.on < self.off:
            raise ValueError(
                f"EBIS window must satisfy on < off, got on={self.on}, off={self.off}"
            )
        return self


class TargetOffsetCfg(BaseModel):
    # mm, relative to the nominal CD / Miniball origin
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class CDCfg(BaseModel):
    distance: float = Field(32.0, ge=0.0)  # target to CD in mm
    phi_offset: float = 0.0                # degrees


class MiniballClusterCfg(BaseModel):
    theta: float  # degrees
    phi: float    # degrees
    alpha: float  # degrees, rotation of the cluster about its own axis
    r: float = Field(..., gt=0.0)  # mm, target to cluster face


class CutCfg(BaseModel):
    file: str
    name: str


class CutsCfg(BaseModel):
    beam: Optional[CutCfg] = None
    target: Optional[CutCfg] = None


class ReactionCfg(BaseModel):
    """
    Top-level reaction-description TOML.

    mass_table = "mass_1.mas20"
    diagnostics_level = 1

    [beam]
    A = 22
    Z = 10
    E = 4500.0

    [target]
    A = 12
    Z = 6

    [[cd]]
    distance = 32.0
    phi_offset = 0.0
    """

    mass_table: str
    diagnostics_level: int = 1  # 0=off, 1=minimal, 2=verbose

    beam: BeamCfg
    target: NucleusCfg
    ejectile: Optional[NucleusCfg] = None  # defaults to the beam (elastic)
    recoil: Optional[NucleusCfg] = None    # defaults to the target (elastic)

    ebis: EbisCfg = Field(default_factory=EbisCfg)
    target_offset: TargetOffsetCfg = Field(default_factory=TargetOffsetCfg)
    cd: List[CDCfg] = Field(default_factory=list)
    miniball: List[MiniballClusterCfg] = Field(default_factory=list)
    cuts: CutsCfg = Field(default_factory=CutsCfg)

    @field_validator("diagnostics_level")
    def _diag_range(cls, v: int) -> int:
        if v not in (0, 1, 2):
            raise ValueError("diagnostics_level must be 0, 1, or 2")
        return v

    @model_validator(mode="after")
    def _entrance_ground_state(self) -> "ReactionCfg":
        for role, nc in (("beam", self.beam), ("target", self.target)):
            if nc.Ex != 0.0:
                raise ValueError(f"{role} must be in its ground state, got Ex={nc.Ex} keV")
        return self

    @model_validator(mode="after")
    def _elastic_defaults(self) -> "ReactionCfg":
        if self.ejectile is None:
            self.ejectile = NucleusCfg(A=self.beam.A, Z=self.beam.Z)
        if self.recoil is None:
            self.recoil = NucleusCfg(A=self.target.A, Z=self.target.Z)
        return self
