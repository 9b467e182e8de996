from pathlib import Path

import pytest

from mbreaction.config.schemas import ReactionCfg, SettingsCfg
from mbreaction.physics.masses import MassTable
from mbreaction.physics.reaction import Reaction

DATA = Path(__file__).parent / "data"
MASS_EXCERPT = DATA / "mass_excerpt.mas20"


@pytest.fixture(scope="session")
def mass_table() -> MassTable:
    return MassTable.from_ame(MASS_EXCERPT)


def make_cfg(**overrides) -> ReactionCfg:
    data = {
        "mass_table": str(MASS_EXCERPT),
        "diagnostics_level": 0,
        "beam": {"A": 22, "Z": 10, "E": 4500.0},
        "target": {"A": 12, "Z": 6},
        "ebis": {"on": 100.0, "off": 1100.0},
        "target_offset": {"x": 1.5, "y": -0.5, "z": 2.0},
        "cd": [{"distance": 32.0, "phi_offset": 0.0}, {"distance": 28.0, "phi_offset": 45.0}],
        "miniball": [
            {"theta": 60.0, "phi": 30.0, "alpha": 10.0, "r": 110.0},
            {"theta": 120.0, "phi": 210.0, "alpha": 0.0, "r": 110.0},
        ],
    }
    data.update(overrides)
    return ReactionCfg(**data)


@pytest.fixture
def settings() -> SettingsCfg:
    return SettingsCfg(n_cd_detectors=2, n_clusters=3)


@pytest.fixture
def reaction(mass_table, settings) -> Reaction:
    return Reaction.from_config(make_cfg(), settings, mass_table=mass_table)
