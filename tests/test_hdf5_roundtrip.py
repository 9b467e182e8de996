import h5py
import numpy as np
import pytest

from mbreaction.io.store import read_particle_thetas, write_init, write_kinematics, write_particle_thetas


def test_hdf5_write_read(reaction, tmp_path):
    out = tmp_path / "rx.h5"
    f = write_init(str(out), reaction)
    write_particle_thetas(f, reaction)
    snaps = [reaction.kinematics_from_theta_cm(t) for t in np.linspace(0.1, 3.0, 5)]
    write_kinematics(f, snaps)
    f.close()

    thetas = read_particle_thetas(str(out))
    assert thetas.shape == (2, 16)
    np.testing.assert_allclose(thetas.ravel(), reaction.particle_thetas())

    with h5py.File(out, "r") as f:
        rx = f["reaction"]
        assert rx.attrs["label"] == "22Ne(12C,22Ne)12C"
        assert rx.attrs["Q_keV"] == pytest.approx(0.0)
        assert rx.attrs["beam.A"] == 22
        assert "config_text" not in f.attrs
        np.testing.assert_allclose(f["/cd/distance_mm"][...], [32.0, 28.0])
        e = f["/kinematics/ejectile_energy_lab"][...]
        assert e.shape == (5,)
        # larger CM angle, less energy for the ejectile
        assert np.all(np.diff(e) < 0)


def test_read_missing_dataset(tmp_path):
    out = tmp_path / "empty.h5"
    with h5py.File(out, "w"):
        pass
    with pytest.raises(KeyError):
        read_particle_thetas(str(out))


def test_failed_summary_leaves_no_open_file(reaction, tmp_path, monkeypatch):
    out = tmp_path / "rx.h5"

    def bad_gamma():
        raise ValueError("beta >= 1")

    monkeypatch.setattr(reaction, "gamma", bad_gamma)
    with pytest.raises(ValueError):
        write_init(str(out), reaction)
    assert not out.exists()
