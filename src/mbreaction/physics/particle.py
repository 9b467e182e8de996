# src/mbreaction/physics/particle.py
from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict
import numpy as np

from .elements import isotope_key

# Constants in keV/c^2
P_MASS = 938272.08816   # proton
N_MASS = 939565.42052   # neutron
U_MASS = 931494.10242   # atomic mass unit


@dataclass(slots=True)
class Particle:
    """
    One reaction participant (beam, target, ejectile or recoil).

    a, z: mass and atomic number
    binding_energy: binding energy per nucleon [keV/c^2]
    energy_lab: laboratory kinetic energy [keV]
    ecm_tot: total energy in the centre-of-mass frame [keV]
    theta_lab, theta_cm: polar angles [rad]
    ex: excitation energy [keV]

    Everything else is derived on access and never stored.
    """
    a: int = 1
    z: int = 0
    binding_energy: float = 0.0
    energy_lab: float = 0.0
    ecm_tot: float = 0.0
    theta_lab: float = 0.0
    theta_cm: float = 0.0
    ex: float = 0.0

    def __post_init__(self) -> None:
        if self.a < 1 or not 0 <= self.z <= self.a:
            raise ValueError(f"Non-physical nucleus A={self.a}, Z={self.z}")

    @property
    def n(self) -> int:
        return self.a - self.z

    @property
    def mass(self) -> float:
        """Rest mass in keV/c^2 from free-nucleon masses minus binding."""
        mass = float(self.n) * N_MASS
        mass += float(self.z) * P_MASS
        mass -= float(self.a) * self.binding_energy
        return mass

    @property
    def mass_u(self) -> float:
        return self.mass / U_MASS

    @property
    def isotope(self) -> str:
        return isotope_key(self.a, self.z)

    @property
    def excited_mass(self) -> float:
        """Rest mass including the excitation energy; equals ``mass`` for ex=0."""
        return self.mass + self.ex

    @property
    def energy_tot_lab(self) -> float:
        return self.excited_mass + self.energy_lab

    @property
    def momentum_lab(self) -> float:
        return float(np.sqrt(self.energy_tot_lab**2 - self.excited_mass**2))

    @property
    def momentum_cm(self) -> float:
        """
        sqrt(ecm_tot^2 - M^2) with M the excited mass.

        Returns 0 when ecm_tot is below M, which covers the unset (zero) CM
        energy of a particle that has not been through a snapshot.
        """
        m = self.excited_mass
        return float(np.sqrt(max(self.ecm_tot**2 - m**2, 0.0)))

    @property
    def gamma(self) -> float:
        return self.energy_tot_lab / self.excited_mass

    def to_record(self) -> Dict[str, Any]:
        """Flat dict of stored and derived values for output records."""
        rec = asdict(self)
        rec.update(isotope=self.isotope, mass=self.mass, n=self.n)
        return rec
