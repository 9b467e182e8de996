"""
mbreaction.physics.reaction

Reaction = beam + target -> ejectile + recoil, plus the CD / Miniball
geometry and identification cuts for one analysis run.

Construction does all file I/O (mass table, cut files). Afterwards every
accessor is a pure function of stored state. Per-event kinematics come back
as fresh KinematicsSnapshot objects; the reaction particles are not touched.
Energies in keV (masses keV/c^2), distances mm, times ns, angles rad.
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple, Union
import numpy as np

from mbreaction.config.load import load_reaction_config, load_settings
from mbreaction.config.schemas import CDCfg, NucleusCfg, ReactionCfg, SettingsCfg
from mbreaction.geometry.cd import vector_angles
from mbreaction.geometry.miniball import MiniballGeometry
from mbreaction.geometry.resolver import GeometryResolver, Slot, densify
from mbreaction.io.cuts import CutRegion, load_cut
from mbreaction.physics.hits import GammaRayHit, ParticleHit
from mbreaction.physics.kinematics import (
    KinematicsSnapshot,
    solve_recoil_theta_lab,
    solve_theta_cm,
    solve_theta_lab,
)
from mbreaction.physics.masses import MassTable
from mbreaction.physics.particle import Particle

# Reaction.beta() is the non-relativistic sqrt(2T/M); above this T/M it
# deviates from the true beta by more than ~4%.
NONREL_TM_LIMIT = 0.05

CDIndex = Union[ParticleHit, int]
MBIndex = Union[GammaRayHit, int]


@dataclass
class Reaction:
    beam: Particle
    target: Particle
    ejectile: Particle
    recoil: Particle
    eb: float            # laboratory beam energy, keV/u
    ebis_on: float       # ns
    ebis_off: float      # ns
    geometry: GeometryResolver
    mass_table: MassTable
    beam_cut: Optional[CutRegion] = None
    target_cut: Optional[CutRegion] = None
    diagnostics_level: int = 1
    input_file: Optional[str] = None

    # -- construction --------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        cfg: ReactionCfg,
        settings: Optional[SettingsCfg] = None,
        mass_table: Optional[MassTable] = None,
    ) -> "Reaction":
        """
        Build a reaction from a validated config.

        ``mass_table`` overrides reading ``cfg.mass_table`` (tests, or sharing one
        table between several reactions).
        """
        settings = settings or SettingsCfg()
        diag = cfg.diagnostics_level
        if mass_table is None:
            mass_table = MassTable.from_ame(cfg.mass_table)
        if diag >= 2:
            print(f"[masses] {len(mass_table)} isotopes from {mass_table.source or '<records>'}")

        beam = _make_particle(cfg.beam, mass_table, "beam", diag)
        target = _make_particle(cfg.target, mass_table, "target", diag)
        ejectile = _make_particle(cfg.ejectile, mass_table, "ejectile", diag)
        recoil = _make_particle(cfg.recoil, mass_table, "recoil", diag)
        beam.energy_lab = cfg.beam.E * beam.a

        if (beam.a + target.a != ejectile.a + recoil.a
                or beam.z + target.z != ejectile.z + recoil.z) and diag >= 1:
            print(
                f"[reaction] A/Z not conserved: {beam.isotope}({target.isotope},"
                f"{ejectile.isotope}){recoil.isotope}"
            )

        offset = np.array(
            [cfg.target_offset.x, cfg.target_offset.y, cfg.target_offset.z],
            dtype=np.float64,
        )
        cds = densify(cfg.cd, settings.n_cd_detectors, CDCfg(), "CD detector", diag)
        clusters = densify(cfg.miniball, settings.n_clusters, None, "Miniball cluster", diag)
        mb_geo = [
            None if c is None else MiniballGeometry.from_degrees(
                c.theta, c.phi, c.alpha, c.r,
                offset=offset,
                n_crystals=settings.n_crystals,
                n_segments=settings.n_segments,
            )
            for c in clusters
        ]
        geometry = GeometryResolver(
            settings=settings,
            cd_dist=[c.distance for c in cds],
            cd_offset=[float(np.deg2rad(c.phi_offset)) for c in cds],
            target_offset=offset,
            mb_geo=mb_geo,
            diagnostics_level=diag,
        )

        beam_cut = target_cut = None
        if cfg.cuts.beam is not None:
            beam_cut = load_cut(cfg.cuts.beam.file, cfg.cuts.beam.name)
        if cfg.cuts.target is not None:
            target_cut = load_cut(cfg.cuts.target.file, cfg.cuts.target.name)
        if diag >= 2:
            for role, cut in (("beam", beam_cut), ("target", target_cut)):
                if cut is not None:
                    print(f"[cuts] {role} cut {cut.name!r} with {cut.n_points} points")

        rx = cls(
            beam=beam,
            target=target,
            ejectile=ejectile,
            recoil=recoil,
            eb=cfg.beam.E,
            ebis_on=cfg.ebis.on,
            ebis_off=cfg.ebis.off,
            geometry=geometry,
            mass_table=mass_table,
            beam_cut=beam_cut,
            target_cut=target_cut,
            diagnostics_level=diag,
        )
        if diag >= 1:
            print(f"[reaction] {rx.label}  Eb={rx.eb} keV/u  Q={rx.q_value():.3f} keV")
        return rx

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        settings: Optional[SettingsCfg | str | Path] = None,
    ) -> "Reaction":
        if not isinstance(settings, SettingsCfg):
            settings = load_settings(settings)
        rx = cls.from_config(load_reaction_config(path), settings)
        rx.input_file = str(path)
        return rx

    @property
    def label(self) -> str:
        return f"{self.beam.isotope}({self.target.isotope},{self.ejectile.isotope}){self.recoil.isotope}"

    # -- reaction calculations ----------------------------------------------

    def q_value(self) -> float:
        """Rest-mass energy released [keV]; positive is exothermic."""
        return (self.beam.mass + self.target.mass
                - self.ejectile.mass - self.recoil.mass)

    def energy_tot_lab(self) -> float:
        return self.beam.energy_tot_lab + self.target.energy_tot_lab

    def energy_tot_cm(self) -> float:
        """Invariant mass sqrt(s) for a target at rest."""
        etot = self.beam.excited_mass**2
        etot += self.target.excited_mass**2
        etot += 2.0 * self.beam.energy_tot_lab * self.target.excited_mass
        return float(np.sqrt(etot))

    def beta(self) -> float:
        """
        Non-relativistic beam velocity sqrt(2T/M).

        Downstream Doppler correction expects exactly this value. Valid for
        T/M well below NONREL_TM_LIMIT (a few MeV/u against ~GeV/c^2 per
        nucleon); use KinematicsSnapshot.beta_cm for the relativistic one.
        """
        tm = self.beam.energy_lab / self.beam.mass
        if tm > NONREL_TM_LIMIT and self.diagnostics_level >= 2:
            print(f"[reaction] T/M={tm:.3f} outside the non-relativistic beta range")
        return float(np.sqrt(2.0 * tm))

    def gamma(self) -> float:
        b = self.beta()
        if b >= 1.0:
            raise ValueError(f"Non-physical beta={b:.4f} from the non-relativistic formula")
        return float(1.0 / np.sqrt(1.0 - b**2))

    # -- EBIS ----------------------------------------------------------------

    def ebis_on_time(self) -> float:
        return self.ebis_on

    def ebis_off_time(self) -> float:
        return self.ebis_off

    def ebis_ratio(self) -> float:
        """Beam-on / beam-off window length, for background scaling."""
        width = self.ebis_off - self.ebis_on
        if width == 0:
            raise ValueError(f"Degenerate EBIS window: on == off == {self.ebis_on} ns")
        return self.ebis_on / width

    # -- per-event kinematics ------------------------------------------------

    def _outgoing(self, ex: Optional[float], ex_ejectile: Optional[float]) -> Tuple[Particle, Particle]:
        # None keeps the excitation energy from the reaction description
        ej = self.ejectile if ex_ejectile is None else replace(self.ejectile, ex=ex_ejectile)
        rec = self.recoil if ex is None else replace(self.recoil, ex=ex)
        return ej, rec

    def kinematics_from_theta_cm(self, theta_cm: float, ex: Optional[float] = None, ex_ejectile: Optional[float] = None) -> KinematicsSnapshot:
        """
        Ejectile at ``theta_cm``.

        ``ex`` excites the recoil and ``ex_ejectile`` the ejectile; None keeps
        the Ex from the reaction description, 0 forces the ground state.
        """
        ej, rec = self._outgoing(ex, ex_ejectile)
        return solve_theta_cm(self.beam, self.target, ej, rec, theta_cm)

    def kinematics_from_theta_lab(
        self,
        theta_lab: float,
        ex: Optional[float] = None,
        ex_ejectile: Optional[float] = None,
        backward: bool = False,
    ) -> KinematicsSnapshot:
        ej, rec = self._outgoing(ex, ex_ejectile)
        return solve_theta_lab(self.beam, self.target, ej, rec, theta_lab, backward=backward)

    def kinematics_from_recoil_theta_lab(
        self,
        theta_lab: float,
        ex: Optional[float] = None,
        ex_ejectile: Optional[float] = None,
        backward: bool = False,
    ) -> KinematicsSnapshot:
        ej, rec = self._outgoing(ex, ex_ejectile)
        return solve_recoil_theta_lab(self.beam, self.target, ej, rec, theta_lab, backward=backward)

    # -- geometry pass-through -----------------------------------------------

    def cd_distance(self, det: int) -> Slot:
        return self.geometry.cd_distance(det)

    def cd_phi_offset(self, det: int) -> Slot:
        return self.geometry.cd_phi_offset(det)

    def target_offset(self) -> np.ndarray:
        return self.geometry.target_offset.copy()

    def cd_vector(self, det: CDIndex, sec: int = 0, pid: int = 0, nid: int = 0) -> np.ndarray:
        return self.geometry.cd_vector(*_cd_indices(det, sec, pid, nid))

    def particle_vector(self, det: CDIndex, sec: int = 0, pid: int = 0, nid: int = 0) -> np.ndarray:
        return self.geometry.particle_vector(*_cd_indices(det, sec, pid, nid))

    def particle_theta(self, det: CDIndex, sec: int = 0, pid: int = 0, nid: int = 0) -> float:
        return vector_angles(self.particle_vector(det, sec, pid, nid))[0]

    def particle_phi(self, det: CDIndex, sec: int = 0, pid: int = 0, nid: int = 0) -> float:
        return vector_angles(self.particle_vector(det, sec, pid, nid))[1]

    def number_of_particle_thetas(self) -> int:
        return self.geometry.number_of_particle_thetas()

    def particle_thetas(self) -> np.ndarray:
        return self.geometry.particle_thetas()

    def gamma_theta(self, clu: MBIndex, cry: int = 0, seg: int = 0) -> float:
        return self.geometry.gamma_theta(*_mb_indices(clu, cry, seg))

    def gamma_phi(self, clu: MBIndex, cry: int = 0, seg: int = 0) -> float:
        return self.geometry.gamma_phi(*_mb_indices(clu, cry, seg))


def _make_particle(nc: NucleusCfg, table: MassTable, role: str, diag: int) -> Particle:
    p = Particle(a=nc.A, z=nc.Z, ex=nc.Ex)
    be = table.lookup(nc.A, nc.Z)
    if be is None:
        if diag >= 1:
            print(f"[masses] {role} {p.isotope} not found in mass table, using zero binding energy")
        be = 0.0
    p.binding_energy = be
    return p


def _cd_indices(det: CDIndex, sec: int, pid: int, nid: int) -> Tuple[int, int, int, int]:
    if isinstance(det, ParticleHit):
        return det.detector, det.sector, det.strip_p, det.strip_n
    return det, sec, pid, nid


def _mb_indices(clu: MBIndex, cry: int, seg: int) -> Tuple[int, int, int]:
    if isinstance(clu, GammaRayHit):
        return clu.cluster, clu.crystal, clu.segment
    return clu, cry, seg
