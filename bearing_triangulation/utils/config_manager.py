#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Configuration Manager module.
This module contains the ConfigManager class for managing triangulation settings.
"""

import copy
import json
import logging
from pathlib import Path

from bearing_triangulation.core.geometry.primitives import DEG2RAD, RAD2DEG

from bearing_triangulation.utils.constants import TRIANGULATION, VALID_METHODS
from bearing_triangulation.utils.error_handling import error_handler, ErrorAction


class ConfigManager:
    """
    Configuration manager for the triangulation package.
    Manages loading and saving configuration to a JSON file.
    """

    def __init__(self, config_file="triangulation_config.json"):
        """
        Initialize the configuration manager.

        Args:
            config_file (str): Path to the configuration file
        """
        # Default configuration
        self.default_config = {
            "triangulation_settings": {
                "method": TRIANGULATION.method,
                "sub_method": TRIANGULATION.sub_method,
                "linear_method": TRIANGULATION.linear_method,
                "reprojection_threshold": TRIANGULATION.reprojection_threshold,  # radians
                "min_angle_deg": TRIANGULATION.min_angle_deg,
                "min_depth": TRIANGULATION.min_depth,  # negative disables the depth check
                "refine": TRIANGULATION.refine,
                "refinement_iterations": TRIANGULATION.refinement_iterations,
                "max_workers": TRIANGULATION.max_workers
            }
        }

        # Current configuration
        self.config = copy.deepcopy(self.default_config)

        # Configuration file path
        self.config_file = Path(config_file)

        # Load configuration from file if it exists
        self.load_config()

    def load_config(self):
        """
        Load configuration from the configuration file.
        If the file doesn't exist or is invalid, use default configuration.

        Returns:
            bool: True if a file was loaded, False otherwise
        """
        if not self.config_file.exists():
            logging.debug(f"No configuration file at {self.config_file}, using defaults")
            return False

        with error_handler("Error loading configuration: {error}",
                           exception_types=(OSError, ValueError)) as handled:
            with open(self.config_file, "r") as f:
                loaded_config = json.load(f)

            if not isinstance(loaded_config, dict):
                raise ValueError(f"expected a JSON object, got {type(loaded_config).__name__}")

            # Merge sections so missing keys keep their defaults
            for section, values in loaded_config.items():
                if isinstance(values, dict) and isinstance(self.config.get(section), dict):
                    self.config[section].update(values)
                else:
                    self.config[section] = values
            logging.info(f"Configuration loaded from {self.config_file}")

        if handled.error_occurred:
            self.config = copy.deepcopy(self.default_config)
            return False
        return True

    def save_config(self):
        """
        Save the current configuration to the configuration file.

        Returns:
            bool: True if saving succeeded, False otherwise
        """
        with error_handler("Error saving configuration: {error}",
                           action=ErrorAction.RETURN_FALSE,
                           exception_types=(OSError, TypeError)) as handled:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w") as f:
                json.dump(self.config, f, indent=4)
            logging.info(f"Configuration saved to {self.config_file}")

        return not handled.error_occurred

    def get(self, key, default=None):
        """
        Get a configuration value.

        Args:
            key (str): Configuration key
            default: Default value if the key doesn't exist

        Returns:
            Configuration value
        """
        return self.config.get(key, default)

    def set(self, key, value):
        """
        Set a configuration value.

        Args:
            key (str): Configuration key
            value: Configuration value
        """
        self.config[key] = value

    def get_section(self, section_name, default=None):
        """
        Get a configuration section.

        Args:
            section_name (str): Name of the configuration section
            default: Default value if the section doesn't exist

        Returns:
            Configuration section dict or default value
        """
        return self.config.get(section_name, default)

    def get_value(self, section, key, default=None):
        """
        Get a specific value from a configuration section.

        Args:
            section (str): Section name
            key (str): Key within the section
            default: Default value if the key or section doesn't exist

        Returns:
            Configuration value or default
        """
        section_data = self.config.get(section, {})
        return section_data.get(key, default)

    def get_triangulation_settings(self):
        """
        Get the triangulation settings ready for the solvers.

        The stored minimum angle is in degrees; the returned dictionary carries
        it as ``min_angle`` in radians.

        Returns:
            dict: Triangulation settings
        """
        settings = self.get("triangulation_settings", self.default_config["triangulation_settings"]).copy()

        if settings.get("method") not in VALID_METHODS:
            logging.warning(f"Unknown triangulation method {settings.get('method')!r}, "
                            f"using {TRIANGULATION.method!r}")
            settings["method"] = TRIANGULATION.method

        settings["min_angle"] = float(settings.pop("min_angle_deg", TRIANGULATION.min_angle_deg)) * DEG2RAD
        return settings

    def set_triangulation_settings(self, triangulation_settings, save=False):
        """
        Update the triangulation settings.

        Args:
            triangulation_settings (dict): Settings to merge; ``min_angle`` in
                radians is converted and stored as ``min_angle_deg``
            save (bool): Write the configuration file afterwards
        """
        updates = dict(triangulation_settings)
        if "min_angle" in updates:
            updates["min_angle_deg"] = float(updates.pop("min_angle")) * RAD2DEG

        current_settings = self.get("triangulation_settings", {}).copy()
        current_settings.update(updates)
        self.set("triangulation_settings", current_settings)

        if save:
            self.save_config()
