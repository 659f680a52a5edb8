"""
Config helpers: per-stage defaults live next to each stage as _DEFAULT_CFG;
this module merges user overrides over them and loads YAML config files.
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Optional, Union
import yaml

SECTIONS = ("enhance", "detect", "rectify", "gate", "capture", "ingest")


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


def load_config(path: Union[str, Path]) -> Dict[str, Dict]:
    """
    Read a YAML config with optional sections enhance/detect/rectify/gate/
    capture/ingest. Each section is a partial override for that stage.
    A top-level `debug: true` is copied into every section.

    Raises FileNotFoundError if the file is missing and ValueError if the
    document is not a mapping.
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"Config file not found: {p}")
    with open(p, "r") as f:
        doc = yaml.safe_load(f) or {}
    if not isinstance(doc, dict):
        raise ValueError(f"Config must be a mapping, got {type(doc).__name__}")

    debug = bool(doc.get("debug", False))
    out: Dict[str, Dict] = {}
    for name in SECTIONS:
        section = doc.get(name) or {}
        if not isinstance(section, dict):
            raise ValueError(f"Config section '{name}' must be a mapping")
        section = dict(section)
        if debug:
            section.setdefault("debug", True)
        # YAML has no tuples; ranges come back as lists
        for key in ("aspect_range",):
            if key in section:
                section[key] = tuple(section[key])
        out[name] = section
    return out
