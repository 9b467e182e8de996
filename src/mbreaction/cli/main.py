from __future__ import annotations

import typer
from typing import Optional

import numpy as np

from mbreaction.physics.reaction import Reaction

app = typer.Typer(help="Reaction kinematics and CD / Miniball angles")


@app.command("info")
def info(
    cfg_path: str = typer.Argument(..., help="Reaction TOML file"),
    settings: Optional[str] = typer.Option(None, "--settings", "-s", help="Settings TOML file"),
):
    """Print masses, Q-value and beam-frame quantities for a reaction."""
    rx = Reaction.from_file(cfg_path, settings)
    typer.echo(rx.label)
    for role in ("beam", "target", "ejectile", "recoil"):
        p = getattr(rx, role)
        typer.echo(f"  {role:<9s}{p.isotope:>7s}  M = {p.mass:.3f} keV/c^2 ({p.mass_u:.6f} u)")
    typer.echo(f"  Eb       = {rx.eb:.3f} keV/u")
    typer.echo(f"  Q        = {rx.q_value():.3f} keV")
    typer.echo(f"  E_cm,tot = {rx.energy_tot_cm():.3f} keV")
    typer.echo(f"  beta     = {rx.beta():.5f}   gamma = {rx.gamma():.5f}")
    typer.echo(f"  EBIS on/off ratio = {rx.ebis_ratio():.5f}")


@app.command("cd-angles")
def cd_angles(
    cfg_path: str = typer.Argument(..., help="Reaction TOML file"),
    settings: Optional[str] = typer.Option(None, "--settings", "-s", help="Settings TOML file"),
    out: Optional[str] = typer.Option(None, "--out", "-o", help="Write the angle table to this HDF5 file"),
    png: bool = typer.Option(False, "--png", help="Also render the table to PNG"),
):
    """List theta of every CD ring strip."""
    rx = Reaction.from_file(cfg_path, settings)
    s = rx.geometry.settings
    thetas = rx.particle_thetas().reshape(s.n_cd_detectors, s.n_cd_pstrips)
    for det in range(s.n_cd_detectors):
        row = " ".join(f"{t:6.2f}" for t in thetas[det])
        typer.echo(f"CD {det}: {row}")

    if out:
        from mbreaction.io.store import write_init, write_particle_thetas

        f = write_init(out, rx)
        try:
            write_particle_thetas(f, rx)
        finally:
            f.close()
        typer.echo(f"Wrote {out}")
    if png:
        from mbreaction.vis.angles import save_particle_thetas_png

        typer.echo(f"Wrote {save_particle_thetas_png(rx)}")


@app.command("kinematics")
def kinematics(
    cfg_path: str = typer.Argument(..., help="Reaction TOML file"),
    theta_lab: float = typer.Option(..., "--theta-lab", "-t", help="Ejectile lab angle [deg]"),
    ex: Optional[float] = typer.Option(None, "--ex", help="Recoil excitation energy [keV]"),
    backward: bool = typer.Option(False, "--backward", help="Take the second (backward CM) solution"),
    settings: Optional[str] = typer.Option(None, "--settings", "-s", help="Settings TOML file"),
):
    """Solve the two-body kinematics for an ejectile at a given lab angle."""
    rx = Reaction.from_file(cfg_path, settings)
    try:
        snap = rx.kinematics_from_theta_lab(np.deg2rad(theta_lab), ex=ex, backward=backward)
    except ValueError as exc:
        typer.echo(f"[kinematics] {exc}", err=True)
        raise typer.Exit(code=1)
    for role in ("ejectile", "recoil"):
        p = getattr(snap, role)
        typer.echo(
            f"{role:<9s}{p.isotope:>7s}  E_lab = {p.energy_lab:.3f} keV  "
            f"theta_lab = {np.rad2deg(p.theta_lab):.3f} deg  theta_cm = {np.rad2deg(p.theta_cm):.3f} deg"
        )


if __name__ == "__main__":
    app()
