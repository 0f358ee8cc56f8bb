from __future__ import annotations
import copy
import logging
from pathlib import Path
import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = {
    "complexity": {"warn_at": 10},
    "flow": {"default_depth": 3},
    "exclude": [],
    "max_bytes": 2_000_000,
}

def _merge(base: dict, override: dict) -> dict:
    out = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out

def load_settings(settings_path: Path | None) -> dict:
    """Read an optional .fos.yaml and layer it over DEFAULT_SETTINGS."""
    if not settings_path or not settings_path.exists():
        return copy.deepcopy(DEFAULT_SETTINGS)
    try:
        raw = yaml.safe_load(settings_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        logger.warning("Ignoring unreadable settings file %s: %s", settings_path, e)
        return copy.deepcopy(DEFAULT_SETTINGS)
    if not isinstance(raw, dict):
        logger.warning("Ignoring settings file %s: top level must be a mapping", settings_path)
        return copy.deepcopy(DEFAULT_SETTINGS)
    return _merge(DEFAULT_SETTINGS, raw)
