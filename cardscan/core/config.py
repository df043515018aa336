"""
YAML configuration loading and dict merging shared by every stage.
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Optional
import yaml

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "scanner.yaml"


def merge_cfg(defaults: Dict, cfg: Optional[Dict]) -> Dict:
    """Overlay cfg on defaults; nested dicts are merged one level deep."""
    merged = dict(defaults)
    if not cfg:
        return merged
    for k, v in cfg.items():
        if isinstance(v, dict) and k in merged and isinstance(merged[k], dict):
            merged[k] = {**merged[k], **v}
        else:
            merged[k] = v
    return merged


def load_config(path: str | Path | None = None) -> Dict:
    """
    Read the scanner YAML config.

    With no path, config/scanner.yaml is used if present (empty config otherwise).
    An explicit path that does not exist raises FileNotFoundError.
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return {}
        path = DEFAULT_CONFIG_PATH
    with open(path, "r") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config at {path} must be a mapping, got {type(data).__name__}")
    return data
