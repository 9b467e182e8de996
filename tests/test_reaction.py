import json

import numpy as np
import pytest

from mbreaction.config.schemas import SettingsCfg
from mbreaction.physics.particle import N_MASS, P_MASS
from mbreaction.physics.reaction import Reaction
from conftest import make_cfg


def _reaction(mass_table, **overrides):
    return Reaction.from_config(make_cfg(**overrides), SettingsCfg(), mass_table=mass_table)


def test_binding_energies_from_table(reaction):
    assert reaction.beam.isotope == "22Ne"
    assert reaction.beam.binding_energy == pytest.approx(8080.4656)
    assert reaction.target.binding_energy == pytest.approx(7680.1446)
    assert reaction.label == "22Ne(12C,22Ne)12C"


def test_beam_energy_is_per_nucleon(reaction):
    assert reaction.eb == 4500.0
    assert reaction.beam.energy_lab == pytest.approx(4500.0 * 22)
    assert reaction.target.energy_lab == 0.0


def test_q_value_dd_to_3he_n(mass_table):
    rx = _reaction(
        mass_table,
        beam={"A": 2, "Z": 1, "E": 100.0},
        target={"A": 2, "Z": 1},
        ejectile={"A": 3, "Z": 2},
        recoil={"A": 1, "Z": 0},
    )
    assert rx.q_value() == pytest.approx(3 * 2572.68044 - 4 * 1112.2831, abs=1e-6)


def test_q_value_dt_fusion(mass_table):
    rx = _reaction(
        mass_table,
        beam={"A": 3, "Z": 1, "E": 100.0},
        target={"A": 2, "Z": 1},
        ejectile={"A": 4, "Z": 2},
        recoil={"A": 1, "Z": 0},
    )
    assert rx.q_value() == pytest.approx(17589.3, abs=0.1)


def test_q_value_antisymmetric_under_time_reversal(mass_table):
    fwd = _reaction(
        mass_table,
        beam={"A": 2, "Z": 1, "E": 100.0},
        target={"A": 2, "Z": 1},
        ejectile={"A": 3, "Z": 2},
        recoil={"A": 1, "Z": 0},
    )
    rev = _reaction(
        mass_table,
        beam={"A": 3, "Z": 2, "E": 100.0},
        target={"A": 1, "Z": 0},
        ejectile={"A": 2, "Z": 1},
        recoil={"A": 2, "Z": 1},
    )
    assert rev.q_value() == pytest.approx(-fwd.q_value(), abs=1e-6)


def test_elastic_q_value_is_zero(reaction):
    assert reaction.q_value() == 0.0


def test_missing_isotope_uses_zero_binding(mass_table, capsys):
    rx = _reaction(mass_table, diagnostics_level=1, target={"A": 208, "Z": 82})
    assert rx.target.binding_energy == 0.0
    assert rx.target.mass == 126 * N_MASS + 82 * P_MASS
    assert "208Pb not found" in capsys.readouterr().out


def test_energy_tot_lab(reaction):
    expected = reaction.beam.mass + reaction.beam.energy_lab + reaction.target.mass
    assert reaction.energy_tot_lab() == pytest.approx(expected)


def test_energy_tot_cm_at_rest(mass_table):
    rx = _reaction(mass_table, beam={"A": 22, "Z": 10, "E": 0.0})
    assert rx.energy_tot_cm() == pytest.approx(rx.beam.mass + rx.target.mass, rel=1e-12)


def test_energy_tot_cm_is_invariant_mass(reaction):
    e = reaction.energy_tot_lab()
    p = reaction.beam.momentum_lab
    assert reaction.energy_tot_cm() == pytest.approx(np.sqrt(e**2 - p**2), rel=1e-12)


def test_nonrelativistic_beta_gamma(reaction):
    b = np.sqrt(2.0 * reaction.beam.energy_lab / reaction.beam.mass)
    assert reaction.beta() == b
    assert reaction.gamma() == pytest.approx(1.0 / np.sqrt(1.0 - b**2))
    # ~4.5 MeV/u: about 0.098 c
    assert 0.09 < reaction.beta() < 0.11


def test_ebis(reaction):
    assert reaction.ebis_on_time() == 100.0
    assert reaction.ebis_off_time() == 1100.0
    assert reaction.ebis_ratio() == pytest.approx(0.1)


def test_degenerate_ebis_raises(reaction):
    reaction.ebis_off = reaction.ebis_on
    with pytest.raises(ValueError):
        reaction.ebis_ratio()


def test_cuts_bound_by_name(mass_table, tmp_path):
    p = tmp_path / "cuts.json"
    p.write_text(json.dumps({
        "beamcut": {"x": [0, 10, 10, 0], "y": [0, 0, 10, 10]},
        "recoilcut": {"x": [20, 30, 25], "y": [0, 0, 10]},
    }))
    rx = _reaction(
        mass_table,
        cuts={"beam": {"file": str(p), "name": "beamcut"}, "target": {"file": str(p), "name": "recoilcut"}},
    )
    assert rx.beam_cut.contains(5, 5)
    assert not rx.beam_cut.contains(15, 5)
    assert rx.target_cut.contains(25, 2)


def test_no_cuts_configured(reaction):
    assert reaction.beam_cut is None
    assert reaction.target_cut is None


def test_missing_cut_file_fails_at_startup(mass_table, tmp_path):
    with pytest.raises(FileNotFoundError):
        _reaction(mass_table, cuts={"beam": {"file": str(tmp_path / "missing.json"), "name": "b"}})


def test_missing_mass_table_fails_at_startup(tmp_path):
    cfg = make_cfg(mass_table=str(tmp_path / "missing.mas20"))
    with pytest.raises(FileNotFoundError):
        Reaction.from_config(cfg, SettingsCfg())


def test_from_file(tmp_path):
    from conftest import MASS_EXCERPT

    p = tmp_path / "rx.toml"
    p.write_text(
        f'mass_table = "{MASS_EXCERPT.as_posix()}"\n'
        "diagnostics_level = 0\n"
        "[beam]\nA = 4\nZ = 2\nE = 1000.0\n"
        "[target]\nA = 12\nZ = 6\n"
    )
    rx = Reaction.from_file(p)
    assert rx.input_file == str(p)
    assert rx.label == "4He(12C,4He)12C"
    assert rx.number_of_particle_thetas() == 16
