# src/mbreaction/physics/kinematics.py
"""
Relativistic two-body kinematics for beam + target -> ejectile + recoil,
with the target at rest in the laboratory.

Each call builds a fresh KinematicsSnapshot from copies of the reaction
particles, so the reaction itself is never modified event by event.
All energies in keV, momenta in keV/c, angles in rad.
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Any, Dict
import numpy as np

from .particle import Particle


def cm_energy(sqrt_s: float, m_self: float, m_other: float) -> float:
    """Total CM energy of one body in a two-body system of invariant mass sqrt_s."""
    return (sqrt_s**2 + m_self**2 - m_other**2) / (2.0 * sqrt_s)


def cm_beta(beam: Particle, target: Particle) -> float:
    """Velocity of the CM frame in the lab (full relativistic)."""
    return beam.momentum_lab / (beam.energy_tot_lab + target.excited_mass)


def cm_to_lab(e_cm: float, p_cm: float, theta_cm: float, beta: float, gamma: float) -> tuple[float, float]:
    """Boost a CM four-momentum along z; returns (total lab energy, lab theta)."""
    pz = gamma * (p_cm * np.cos(theta_cm) + beta * e_cm)
    pt = p_cm * np.sin(theta_cm)
    e_lab = gamma * (e_cm + beta * p_cm * np.cos(theta_cm))
    return float(e_lab), float(np.arctan2(pt, pz))


def lab_to_cm_theta(theta_lab: float, beta: float, gamma: float, beta_cm_body: float, backward: bool = False) -> float:
    """
    CM polar angle that boosts to ``theta_lab``.

    Solves tan(theta_lab) = sin(t) / (gamma * (cos(t) + g)) with
    g = beta / beta_cm_body. For g > 1 two solutions exist inside the
    kinematic cone; ``backward`` selects the larger CM angle.
    """
    g = beta / beta_cm_body
    st, ct = np.sin(theta_lab), np.cos(theta_lab)
    R = np.hypot(ct, gamma * st)
    phi0 = np.arctan2(gamma * st, ct)
    arg = gamma * g * st / R
    if abs(arg) > 1.0:
        raise ValueError(
            f"Lab angle {np.rad2deg(theta_lab):.2f} deg is outside the kinematic limit"
        )
    if backward:
        if g <= 1.0:
            raise ValueError("Only one CM solution exists when beta_cm/beta_body <= 1")
        return float(phi0 + np.pi - np.arcsin(arg))
    return float(phi0 + np.arcsin(arg))


@dataclass(frozen=True)
class KinematicsSnapshot:
    """One solved reaction: copies of all four particles with CM/lab fields set."""
    beam: Particle
    target: Particle
    ejectile: Particle
    recoil: Particle
    sqrt_s: float
    beta_cm: float
    gamma_cm: float
    p_cm: float

    def to_record(self) -> Dict[str, Any]:
        rec: Dict[str, Any] = {
            "sqrt_s": self.sqrt_s,
            "beta_cm": self.beta_cm,
            "gamma_cm": self.gamma_cm,
            "p_cm": self.p_cm,
        }
        for role in ("ejectile", "recoil"):
            p: Particle = getattr(self, role)
            rec[f"{role}_energy_lab"] = p.energy_lab
            rec[f"{role}_theta_lab"] = p.theta_lab
            rec[f"{role}_theta_cm"] = p.theta_cm
            rec[f"{role}_ex"] = p.ex
        return rec


def solve_theta_cm(
    beam: Particle,
    target: Particle,
    ejectile: Particle,
    recoil: Particle,
    theta_cm: float,
) -> KinematicsSnapshot:
    """
    Kinematics for the ejectile emitted at ``theta_cm`` in the CM frame.

    Every particle enters with its excited mass (mass + ex). Raises
    ValueError below the reaction threshold.
    """
    m1, m2 = beam.excited_mass, target.excited_mass
    m3 = ejectile.excited_mass
    m4 = recoil.excited_mass

    sqrt_s = float(np.sqrt(m1**2 + m2**2 + 2.0 * beam.energy_tot_lab * m2))
    if sqrt_s < m3 + m4:
        raise ValueError(
            f"Below threshold: sqrt(s)={sqrt_s:.3f} keV < {m3 + m4:.3f} keV"
        )

    beta = cm_beta(beam, target)
    gamma = 1.0 / np.sqrt(1.0 - beta**2)

    e3 = cm_energy(sqrt_s, m3, m4)
    e4 = cm_energy(sqrt_s, m4, m3)
    p_cm = float(np.sqrt(max(e3**2 - m3**2, 0.0)))

    e3_lab, th3_lab = cm_to_lab(e3, p_cm, theta_cm, beta, gamma)
    theta4_cm = np.pi - theta_cm
    e4_lab, th4_lab = cm_to_lab(e4, p_cm, theta4_cm, beta, gamma)

    return KinematicsSnapshot(
        beam=replace(beam, ecm_tot=cm_energy(sqrt_s, m1, m2)),
        target=replace(target, ecm_tot=cm_energy(sqrt_s, m2, m1)),
        ejectile=replace(
            ejectile,
            ecm_tot=e3,
            energy_lab=e3_lab - m3,
            theta_cm=float(theta_cm),
            theta_lab=th3_lab,
        ),
        recoil=replace(
            recoil,
            ecm_tot=e4,
            energy_lab=e4_lab - m4,
            theta_cm=float(theta4_cm),
            theta_lab=th4_lab,
        ),
        sqrt_s=sqrt_s,
        beta_cm=float(beta),
        gamma_cm=float(gamma),
        p_cm=p_cm,
    )


def solve_theta_lab(
    beam: Particle,
    target: Particle,
    ejectile: Particle,
    recoil: Particle,
    theta_lab: float,
    backward: bool = False,
) -> KinematicsSnapshot:
    """Kinematics for the ejectile detected at ``theta_lab``."""
    first = solve_theta_cm(beam, target, ejectile, recoil, 0.0)
    beta3 = first.p_cm / first.ejectile.ecm_tot
    if beta3 == 0.0:
        raise ValueError("Ejectile is at rest in the CM frame (exactly at threshold)")
    theta_cm = lab_to_cm_theta(theta_lab, first.beta_cm, first.gamma_cm, beta3, backward=backward)
    return solve_theta_cm(beam, target, ejectile, recoil, theta_cm)


def solve_recoil_theta_lab(
    beam: Particle,
    target: Particle,
    ejectile: Particle,
    recoil: Particle,
    theta_lab: float,
    backward: bool = False,
) -> KinematicsSnapshot:
    """Kinematics for the recoil detected at ``theta_lab``."""
    first = solve_theta_cm(beam, target, ejectile, recoil, 0.0)
    beta4 = first.p_cm / first.recoil.ecm_tot
    if beta4 == 0.0:
        raise ValueError("Recoil is at rest in the CM frame (exactly at threshold)")
    theta4_cm = lab_to_cm_theta(theta_lab, first.beta_cm, first.gamma_cm, beta4, backward=backward)
    return solve_theta_cm(beam, target, ejectile, recoil, np.pi - theta4_cm)
