from pathlib import Path

import h5py
from typer.testing import CliRunner

from mbreaction.cli.main import app
from conftest import MASS_EXCERPT

runner = CliRunner()


def _write_cfg(tmp_path: Path) -> Path:
    p = tmp_path / "reaction.toml"
    p.write_text(
        f'mass_table = "{MASS_EXCERPT.as_posix()}"\n'
        "diagnostics_level = 0\n"
        "[beam]\nA = 4\nZ = 2\nE = 3000.0\n"
        "[target]\nA = 12\nZ = 6\n"
        "[[cd]]\ndistance = 32.0\n"
    )
    return p


def test_info(tmp_path):
    res = runner.invoke(app, ["info", str(_write_cfg(tmp_path))])
    assert res.exit_code == 0, res.output
    assert "4He(12C,4He)12C" in res.output
    assert "Q        = 0.000 keV" in res.output


def test_cd_angles_writes_hdf5(tmp_path):
    out = tmp_path / "angles.h5"
    res = runner.invoke(app, ["cd-angles", str(_write_cfg(tmp_path)), "--out", str(out)])
    assert res.exit_code == 0, res.output
    assert res.output.startswith("CD 0:")
    assert out.exists()


def test_kinematics(tmp_path):
    res = runner.invoke(app, ["kinematics", str(_write_cfg(tmp_path)), "--theta-lab", "30"])
    assert res.exit_code == 0, res.output
    assert "ejectile" in res.output and "recoil" in res.output


def test_kinematics_forbidden_angle(tmp_path):
    p = _write_cfg(tmp_path)
    p.write_text(p.read_text().replace("A = 12\nZ = 6", "A = 1\nZ = 1").replace("A = 4\nZ = 2", "A = 22\nZ = 10"))
    res = runner.invoke(app, ["kinematics", str(p), "--theta-lab", "20"])
    assert res.exit_code == 1


def test_cd_angles_closes_file_on_failure(tmp_path, monkeypatch):
    import mbreaction.io.store as store

    def broken(f, rx):
        raise RuntimeError("disk full")

    monkeypatch.setattr(store, "write_particle_thetas", broken)
    out = tmp_path / "angles.h5"
    res = runner.invoke(app, ["cd-angles", str(_write_cfg(tmp_path)), "--out", str(out)])
    assert res.exit_code != 0
    assert isinstance(res.exception, RuntimeError)
    # reopening for writing fails while another handle is still open
    with h5py.File(out, "w") as f:
        f.attrs["ok"] = 1
