from __future__ import annotations
from .schemas import ReactionCfg, SettingsCfg
from pathlib import Path
from typing import Optional

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # py<=310

# settings TOML section/key -> SettingsCfg field
_SETTINGS_KEYS = {
    ("cd", "detectors"): "n_cd_detectors",
    ("cd", "sectors"): "n_cd_sectors",
    ("cd", "pstrips"): "n_cd_pstrips",
    ("cd", "nstrips"): "n_cd_nstrips",
    ("miniball", "clusters"): "n_clusters",
    ("miniball", "crystals"): "n_crystals",
    ("miniball", "segments"): "n_segments",
}


def load_reaction_config(path: str | Path) -> ReactionCfg:
    """
    Parse a reaction-description TOML file.

    Relative ``mass_table`` and cut-file paths are resolved against the
    folder of the config file, so configs can ship next to their data.
    """
    p = Path(path)
    data = tomllib.loads(p.read_text())
    cfg = ReactionCfg(**data)
    cfg.mass_table = _resolve(p.parent, cfg.mass_table)
    for cut in (cfg.cuts.beam, cfg.cuts.target):
        if cut is not None:
            cut.file = _resolve(p.parent, cut.file)
    return cfg


def _resolve(base: Path, raw: str) -> str:
    q = Path(raw)
    if not q.is_absolute():
        q = (base / q).resolve()
    return str(q)


def load_settings(path: Optional[str | Path] = None) -> SettingsCfg:
    """Parse a settings TOML file; ``None`` gives the default array layout."""
    if path is None:
        return SettingsCfg()
    data = tomllib.loads(Path(path).read_text())
    kwargs = {}
    for (section, key), field in _SETTINGS_KEYS.items():
        if key in data.get(section, {}):
            kwargs[field] = data[section][key]
    return SettingsCfg(**kwargs)


def snapshot_config_toml(path: str | Path) -> str:
    """Return the raw TOML text for embedding in HDF5 metadata."""
    return Path(path).read_text()
