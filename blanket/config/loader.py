"""YAML config loader with runtime get/set by dotted key."""

import json
from pathlib import Path
from typing import Any

import yaml

from blanket.config.defaults import DEFAULT_RANGES
from blanket.config.schema import BlanketConfig


def load_config(path: str | Path) -> BlanketConfig:
    """Load and validate config from a YAML file.

    A missing file is treated like an empty one. If no color ranges are
    specified, injects DEFAULT_RANGES.
    """
    path = Path(path)
    raw: dict = {}
    if path.exists():
        with open(path) as f:
            raw = yaml.safe_load(f) or {}

    colors = raw.setdefault("colors", {}) or {}
    raw["colors"] = colors
    if "ranges" not in colors:
        colors["ranges"] = [r.model_dump() for r in DEFAULT_RANGES]

    return BlanketConfig(**raw)


def save_config(config: BlanketConfig, path: str | Path) -> None:
    """Write config back to YAML, keeping the previous file as .yaml.bak."""
    path = Path(path)
    if path.exists():
        path.with_suffix(".yaml.bak").write_text(path.read_text())
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)


def get_config_value(config: BlanketConfig, dotted_key: str) -> Any:
    """Get a config value by dotted key path. E.g. 'api.limit'."""
    parts = dotted_key.split(".")
    obj: Any = config
    for part in parts:
        if isinstance(obj, list):
            obj = obj[int(part)]
        elif hasattr(obj, part):
            obj = getattr(obj, part)
        elif isinstance(obj, dict):
            obj = obj[part]
        else:
            raise KeyError(f"Config key not found: {dotted_key}")
    return obj


def set_config_value(config: BlanketConfig, dotted_key: str, value: Any) -> BlanketConfig:
    """Set a config value by dotted key path and re-validate.

    Returns a new BlanketConfig instance.
    """
    data = json.loads(config.model_dump_json())
    parts = dotted_key.split(".")
    target = data
    for part in parts[:-1]:
        target = target[int(part)] if isinstance(target, list) else target[part]
    old_value = target.get(parts[-1])
    if isinstance(value, str):
        if isinstance(old_value, bool):
            value = value.lower() in ("1", "true", "yes", "on")
        elif isinstance(old_value, int):
            value = int(value)
        elif isinstance(old_value, float):
            value = float(value)
    target[parts[-1]] = value
    return BlanketConfig(**data)
