#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Tests for the ConfigManager class.
"""

import json

import numpy as np
import pytest

from bearing_triangulation.utils.config_manager import ConfigManager
from bearing_triangulation.utils.constants import TRIANGULATION


@pytest.fixture
def config_path(tmp_path):
    """Path to a configuration file that does not exist yet."""
    return tmp_path / "triangulation_config.json"


def test_defaults_without_file(config_path):
    """A missing file leaves the defaults in place."""
    manager = ConfigManager(config_path)
    settings = manager.get_triangulation_settings()
    assert settings["method"] == TRIANGULATION.method
    assert settings["min_angle"] == pytest.approx(TRIANGULATION.min_angle_deg * np.pi / 180.0)
    assert settings["min_depth"] == TRIANGULATION.min_depth
    assert "min_angle_deg" not in settings


def test_save_and_reload(config_path):
    """Saved settings are restored by a new manager."""
    manager = ConfigManager(config_path)
    manager.set_triangulation_settings({"method": "nonlinear", "sub_method": "trf",
                                        "min_angle": np.pi / 90.0, "min_depth": -1.0}, save=True)
    assert config_path.exists()

    reloaded = ConfigManager(config_path).get_triangulation_settings()
    assert reloaded["method"] == "nonlinear"
    assert reloaded["sub_method"] == "trf"
    assert reloaded["min_angle"] == pytest.approx(np.pi / 90.0)
    assert reloaded["min_depth"] == -1.0


def test_partial_file_keeps_missing_defaults(config_path):
    """Keys absent from the file keep their default values."""
    config_path.write_text(json.dumps({"triangulation_settings": {"method": "midpoint"}}))
    manager = ConfigManager(config_path)
    assert manager.get_value("triangulation_settings", "method") == "midpoint"
    assert manager.get_value("triangulation_settings", "reprojection_threshold") == \
        TRIANGULATION.reprojection_threshold


def test_malformed_file_falls_back_to_defaults(config_path):
    """Invalid JSON is logged and ignored."""
    config_path.write_text("{not json")
    manager = ConfigManager(config_path)
    assert not manager.load_config()
    assert manager.get_section("triangulation_settings") == manager.default_config["triangulation_settings"]


def test_unknown_method_is_replaced(config_path):
    """An unknown stored method is reported as the default."""
    manager = ConfigManager(config_path)
    manager.set_triangulation_settings({"method": "magic"})
    assert manager.get_triangulation_settings()["method"] == TRIANGULATION.method


def test_get_and_set(config_path):
    """Plain keys can be stored and read back."""
    manager = ConfigManager(config_path)
    manager.set("dataset", "synthetic")
    assert manager.get("dataset") == "synthetic"
    assert manager.get("missing", 42) == 42
    assert manager.get_value("missing_section", "key", "default") == "default"
