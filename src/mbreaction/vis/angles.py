import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from pathlib import Path

from mbreaction.physics.reaction import Reaction


def save_particle_thetas_png(reaction: Reaction, out_png: str | None = None) -> str:
    """Plot theta of every CD ring, one line per detector."""
    s = reaction.geometry.settings
    thetas = reaction.particle_thetas().reshape(s.n_cd_detectors, s.n_cd_pstrips)

    if out_png is None:
        stem = Path(reaction.input_file).stem if reaction.input_file else "reaction"
        out_png = f"{stem}_cd_thetas.png"

    plt.figure()
    strips = np.arange(s.n_cd_pstrips)
    for det in range(s.n_cd_detectors):
        plt.plot(strips, thetas[det], marker="o", label=f"CD {det}")
    plt.xlabel("p-strip")
    plt.ylabel("theta [deg]")
    plt.title(reaction.label)
    if s.n_cd_detectors:
        plt.legend()
    plt.tight_layout()
    plt.savefig(out_png, dpi=150)
    plt.close()
    return str(out_png)
