from __future__ import annotations
from typing import Any, Dict, Optional, Sequence
import h5py
import numpy as np
from datetime import datetime, timezone
from mbreaction.config.load import snapshot_config_toml
from mbreaction.physics.kinematics import KinematicsSnapshot
from mbreaction.physics.reaction import Reaction

FORMAT_VERSION = "1.0"


def reaction_attrs(reaction: Reaction) -> Dict[str, Any]:
    """Summary values stored as /reaction attrs."""
    attrs: Dict[str, Any] = {"label": reaction.label}
    for role in ("beam", "target", "ejectile", "recoil"):
        p = getattr(reaction, role)
        attrs[f"{role}.isotope"] = p.isotope
        attrs[f"{role}.A"] = p.a
        attrs[f"{role}.Z"] = p.z
        attrs[f"{role}.Ex_keV"] = p.ex
        attrs[f"{role}.mass_keV"] = p.mass
        attrs[f"{role}.binding_energy_keV"] = p.binding_energy
    attrs["Eb_keV_per_u"] = reaction.eb
    attrs["Q_keV"] = reaction.q_value()
    attrs["Ecm_tot_keV"] = reaction.energy_tot_cm()
    attrs["beta"] = reaction.beta()
    attrs["gamma"] = reaction.gamma()
    attrs["ebis.on_ns"] = reaction.ebis_on
    attrs["ebis.off_ns"] = reaction.ebis_off
    attrs["target_offset_mm"] = reaction.target_offset()
    return attrs


def write_init(path: str, reaction: Reaction, cfg_path: Optional[str] = None) -> h5py.File:
    # everything that can fail on the reaction side runs before the file exists
    rx_attrs = reaction_attrs(reaction)
    cfg_path = cfg_path or reaction.input_file
    cfg_text = snapshot_config_toml(cfg_path) if cfg_path else None

    f = h5py.File(path, "w")
    try:
        # Root attrs
        f.attrs["format_version"] = FORMAT_VERSION
        f.attrs["created_utc"] = datetime.now(timezone.utc).isoformat()
        f.attrs["software"] = "mbreaction 0.1.0"
        if cfg_text is not None:
            f.attrs["config_text"] = cfg_text

        rx = f.create_group("reaction")
        for k, v in rx_attrs.items():
            rx.attrs[k] = v
    except Exception:
        f.close()
        raise
    return f


def write_particle_thetas(f: h5py.File, reaction: Reaction) -> None:
    """
    Store the CD ring angles under /cd.

    /cd/theta_deg : (n_cd_detectors, n_cd_pstrips) float
    /cd/distance_mm, /cd/phi_offset_rad : (n_cd_detectors,) float
    """
    s = reaction.geometry.settings
    grp = f.require_group("cd")
    for name in ("theta_deg", "distance_mm", "phi_offset_rad"):
        if name in grp:
            del grp[name]
    thetas = reaction.particle_thetas().reshape(s.n_cd_detectors, s.n_cd_pstrips)
    grp.create_dataset("theta_deg", data=thetas)
    grp.create_dataset("distance_mm", data=np.asarray(reaction.geometry.cd_dist, dtype=np.float64))
    grp.create_dataset("phi_offset_rad", data=np.asarray(reaction.geometry.cd_offset, dtype=np.float64))


def write_kinematics(f: h5py.File, snapshots: Sequence[KinematicsSnapshot]) -> None:
    """One row per snapshot; one dataset per KinematicsSnapshot.to_record() key."""
    grp = f.require_group("kinematics")
    records = [s.to_record() for s in snapshots]
    keys = list(records[0]) if records else []
    for k in list(grp):
        del grp[k]
    for k in keys:
        grp.create_dataset(k, data=np.asarray([r[k] for r in records], dtype=np.float64), compression="gzip")


def read_particle_thetas(path: str) -> np.ndarray:
    with h5py.File(path, "r") as f:
        if "/cd/theta_deg" not in f:
            raise KeyError(f"/cd/theta_deg not found in {path}")
        return np.array(f["/cd/theta_deg"])
