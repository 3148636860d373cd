"""
Load and parse the config file for other modules

usage:

    from transit_heatmaps.heat_utils.config import load_config
    cfg = load_config("config.yml")

Values come from, in increasing priority: DEFAULTS, the named preset (if any),
then the keys in the file itself.
"""

import os
import yaml

from .render import COLOR_MODES, get_colormap
from .window import POLICIES

DEFAULTS = {
    "data_dir": "data",
    "output_dir": "heatmaps",
    "resolution": 1024,
    "window_minutes": 5,
    "window_policy": "count",
    "splat": True,
    "color_mode": "color",
    "colormap": "inferno",
    "max_count": 10,
}

""" Named bundles of settings, one per style of heatmap """
PRESETS = {
    "fine": {
        "resolution": 1024,
        "splat": True,
        "color_mode": "color",
        "window_policy": "count",
    },
    "coarse": {
        "resolution": 256,
        "splat": False,
        "color_mode": "grayscale",
        "window_policy": "range",
    },
}

AUTO = "auto"


def load_config(config_path=None, overrides=None) -> dict:
    """
    Build the run configuration.

    Args:

        config_path: Optional path to a yaml file. A missing path gives the defaults.
        overrides: Optional dict of values that win over everything else
            (e.g. from the command line). None values are ignored.

    Returns:

        Validated config dict
    """
    file_cfg = {}
    if config_path is not None and os.path.exists(config_path):
        with open(config_path, "r") as ymlfile:
            file_cfg = yaml.load(ymlfile, Loader=yaml.FullLoader) or {}
        if not isinstance(file_cfg, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping")
    extra = {k: v for k, v in (overrides or {}).items() if v is not None}
    preset = extra.get("preset", file_cfg.get("preset"))
    cfg = dict(DEFAULTS)
    if preset is not None:
        if preset not in PRESETS:
            raise ValueError(f"Unknown preset '{preset}', must be one of {list(PRESETS)}")
        cfg.update(PRESETS[preset])
    cfg.update(file_cfg)
    cfg.update(extra)
    return validate_config(cfg)


def parse_max_count(value):
    """
    'auto' (per-frame maximum) or a non-negative integer.
    """
    if isinstance(value, str):
        if value.strip().lower() == AUTO:
            return AUTO
        try:
            value = int(value)
        except ValueError:
            raise ValueError(f"max_count must be an integer or '{AUTO}', got '{value}'") from None
    if isinstance(value, bool) or value is None or value < 0:
        raise ValueError(f"max_count must be a non-negative integer or '{AUTO}', got {value!r}")
    return int(value)


def parse_positive_int(key, value) -> int:
    """
    A whole number >= 1, given as an int, an integral float (3.0) or a string ('3').
    """
    original = value
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            value = None
    elif isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{key} must be a positive integer, got {original!r}")
    return value


def validate_config(cfg: dict) -> dict:
    """
    Check and normalise the config values, raising ValueError on anything invalid.
    """
    for key in ("resolution", "window_minutes"):
        cfg[key] = parse_positive_int(key, cfg[key])
    if cfg["window_policy"] not in POLICIES:
        raise ValueError(
            f"window_policy must be one of {POLICIES}, got '{cfg['window_policy']}'"
        )
    if cfg["color_mode"] not in COLOR_MODES:
        raise ValueError(f"color_mode must be one of {COLOR_MODES}, got '{cfg['color_mode']}'")
    get_colormap(cfg["colormap"])
    cfg["splat"] = bool(cfg["splat"])
    cfg["max_count"] = parse_max_count(cfg["max_count"])
    return cfg
