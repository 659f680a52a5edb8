"""
YAML config loading and default merging.
"""
from __future__ import annotations
import inspect
from pathlib import Path

import pytest

from nidscan.capture.gate import DEFAULT_THRESHOLD_RATIO
from nidscan.capture.scheduler import CaptureScheduler
from nidscan.core.config import SECTIONS, load_config, merge_cfg
from nidscan.geometry import detect as detect_mod
from nidscan.geometry import enhance as enhance_mod
from nidscan.geometry import rectify as rectify_mod
from nidscan.io.ingest import decode_still, save_jpeg

REPO_CONFIG = Path(__file__).resolve().parent.parent / "config" / "nidscan.yaml"


def test_merge_cfg_overlays_one_level_deep():
    defaults = {"a": 1, "canny": {"low": 30, "high": 200}}
    merged = merge_cfg(defaults, {"a": 2, "canny": {"low": 40}})
    assert merged == {"a": 2, "canny": {"low": 40, "high": 200}}
    assert defaults["canny"] == {"low": 30, "high": 200}


def test_merge_cfg_none_copies_defaults():
    defaults = {"a": 1}
    merged = merge_cfg(defaults, None)
    assert merged == defaults and merged is not defaults


@pytest.mark.parametrize("section, defaults", [
    ("enhance", enhance_mod._DEFAULT_CFG),
    ("detect", detect_mod._DEFAULT_CFG),
    ("rectify", rectify_mod._DEFAULT_CFG),
])
def test_repo_config_matches_stage_defaults(section, defaults):
    cfg = load_config(REPO_CONFIG)[section]
    assert set(cfg) == set(defaults) - {"debug"}
    for key, value in cfg.items():
        assert value == defaults[key], key


def test_repo_config_matches_other_defaults():
    cfg = load_config(REPO_CONFIG)
    assert set(cfg) == set(SECTIONS)
    assert cfg["detect"]["aspect_range"] == (1.3, 1.8)
    assert cfg["gate"]["threshold_ratio"] == DEFAULT_THRESHOLD_RATIO
    assert cfg["capture"]["capture_delay_s"] == CaptureScheduler(lambda: None).delay_s
    assert cfg["ingest"]["max_side"] == inspect.signature(decode_still).parameters["max_side"].default
    assert cfg["ingest"]["jpeg_quality"] == inspect.signature(save_jpeg).parameters["quality"].default


def test_debug_flag_reaches_every_section(tmp_path):
    p = tmp_path / "c.yaml"
    p.write_text("debug: true\ndetect:\n  min_extent: 0.5\n")
    cfg = load_config(p)
    assert all(cfg[name]["debug"] for name in SECTIONS)
    assert cfg["detect"]["min_extent"] == 0.5


def test_empty_file_gives_empty_sections(tmp_path):
    p = tmp_path / "empty.yaml"
    p.write_text("")
    assert load_config(p) == {name: {} for name in SECTIONS}


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


@pytest.mark.parametrize("text", ["- 1\n- 2\n", "detect: 3\n"])
def test_malformed_documents_raise(tmp_path, text):
    p = tmp_path / "bad.yaml"
    p.write_text(text)
    with pytest.raises(ValueError):
        load_config(p)
