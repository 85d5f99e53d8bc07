#!/usr/bin/env python3
"""
YAML configuration for the plate watcher.

A user file (``config.yaml`` by default) is layered over ``DEFAULT_CONFIG``:
nested mappings merge key by key, anything else in the file replaces the
default outright. The manager never fails on a bad file; it logs and keeps
the defaults so the command line can still supply every value.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from utils.constants import (
    DEC_DEGREES_PER_TURN,
    DEFAULT_ASTAP_PATH,
    DEFAULT_ASTAP_SEARCH_RADIUS,
    DEFAULT_FILE_WRITE_DELAY_MS,
    DEFAULT_MOUNT_NAME,
    DEFAULT_NUMBER_OF_REGIONS,
    DEFAULT_PLATESOLVE2_PATH,
    DEFAULT_WATCH_EXTENSIONS,
    RA_SECONDS_PER_PRESS,
)

DEFAULT_CONFIG: Dict[str, Any] = {
    'target': {
        'ra': None,    # HH:MM:SS
        'dec': None,   # ±DD:MM:SS
    },
    'telescope': {
        'focal_length': 1000,    # mm
        'reducer_factor': 1.0,
    },
    'camera': {
        'sensor_width': 23.5,    # mm
        'sensor_height': 15.7,   # mm
        'crop_factor': 1.0,
    },
    'plate_solve': {
        'default_solver': 'platesolve2',
        'platesolve2': {
            'executable_path': DEFAULT_PLATESOLVE2_PATH,
            'number_of_regions': DEFAULT_NUMBER_OF_REGIONS,
        },
        'astap': {
            'executable_path': DEFAULT_ASTAP_PATH,
            'search_radius': DEFAULT_ASTAP_SEARCH_RADIUS,   # degrees
        },
    },
    'watch': {
        'directory': None,
        'file_write_delay_ms': DEFAULT_FILE_WRITE_DELAY_MS,
        'extensions': list(DEFAULT_WATCH_EXTENSIONS),
    },
    'mount': {
        'name': DEFAULT_MOUNT_NAME,
        'ra_seconds_per_press': RA_SECONDS_PER_PRESS,
        'dec_degrees_per_turn': DEC_DEGREES_PER_TURN,
    },
    'logging': {
        'level': 'INFO',
        'log_to_file': False,
        'log_file': 'plate_watch.log',
    },
}


def deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``base`` with ``overlay`` applied recursively."""
    merged = copy.deepcopy(base)
    for key, value in overlay.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ConfigManager:
    """Section-based access to the merged configuration."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or "config.yaml"
        self.logger = logging.getLogger(__name__)
        self.config: Dict[str, Any] = {}
        self.user_config: Dict[str, Any] = {}
        self.reload()

    def _read_user_config(self) -> Dict[str, Any]:
        path = Path(self.config_path)
        if not path.exists():
            self.logger.debug(f"No configuration file at {path}, using defaults")
            return {}
        try:
            with path.open('r', encoding='utf-8') as fh:
                data = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as e:
            self.logger.warning(f"Failed to load configuration from {path}: {e}")
            return {}
        if data is None:
            return {}
        if not isinstance(data, dict):
            self.logger.warning(f"Configuration in {path} is not a mapping, ignoring it")
            return {}
        self.logger.info(f"Configuration loaded from {path}")
        return data

    def reload(self) -> None:
        """Re-read the file and rebuild the merged configuration."""
        self.user_config = self._read_user_config()
        self.config = deep_merge(DEFAULT_CONFIG, self.user_config)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Look up a value by dotted path, e.g. ``plate_solve.astap.search_radius``."""
        node: Any = self.config
        for key in key_path.split('.'):
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def has_user_value(self, key_path: str) -> bool:
        """True if the configuration file itself sets ``key_path`` (to anything but null)."""
        node: Any = self.user_config
        for key in key_path.split('.'):
            if not isinstance(node, dict) or node.get(key) is None:
                return False
            node = node[key]
        return True

    def section(self, name: str) -> Dict[str, Any]:
        value = self.config.get(name)
        return value if isinstance(value, dict) else {}

    def get_target_config(self) -> Dict[str, Any]:
        return self.section('target')

    def get_telescope_config(self) -> Dict[str, Any]:
        return self.section('telescope')

    def get_camera_config(self) -> Dict[str, Any]:
        return self.section('camera')

    def get_plate_solve_config(self) -> Dict[str, Any]:
        """Solver selection plus one sub-section per solver backend."""
        return self.section('plate_solve')

    def get_watch_config(self) -> Dict[str, Any]:
        return self.section('watch')

    def get_mount_config(self) -> Dict[str, Any]:
        """Mount name and its empirical press/turn constants."""
        return self.section('mount')

    def get_logging_config(self) -> Dict[str, Any]:
        return self.section('logging')

    def save_default_config(self, path: Optional[str] = None) -> None:
        """Write ``DEFAULT_CONFIG`` as YAML, to ``<config_path>.default`` unless a path is given."""
        target = Path(path) if path else Path(f"{self.config_path}.default")
        try:
            with target.open('w', encoding='utf-8') as fh:
                yaml.safe_dump(DEFAULT_CONFIG, fh, default_flow_style=False, allow_unicode=True, sort_keys=False)
        except OSError as e:
            self.logger.error(f"Error saving default configuration: {e}")
            return
        self.logger.info(f"Default configuration saved to {target}")
