#!/usr/bin/env python3
"""
Immutable session settings shared by the watcher, pipeline and solvers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from config_manager import DEFAULT_CONFIG
from coordinates import MountCalibration, SensorGeometry, TargetCoordinate
from exceptions import ConfigFormatError, ConfigurationError
from platesolve.solver import SolveRequest, SolverKind
from utils.constants import (
    DEFAULT_ASTAP_SEARCH_RADIUS,
    DEFAULT_FILE_WRITE_DELAY_MS,
    DEFAULT_NUMBER_OF_REGIONS,
    DEFAULT_WATCH_EXTENSIONS,
)

logger = logging.getLogger(__name__)


def _pick(overrides: Dict[str, Any], key: str, fallback: Any) -> Any:
    value = overrides.get(key)
    return fallback if value is None else value


def _section(cfg: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = cfg.get(key)
    return value if isinstance(value, dict) else {}


def _coordinate_text(value: Any, name: str, example: str) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # YAML 1.1 reads unquoted 19:03:07 as a base-60 integer
        raise ConfigFormatError(
            f"Target {name} was read as the number {value!r}; quote it in the configuration file, "
            f"e.g. {name}: \"{example}\"",
            details={"value": value},
        )
    return str(value)


def _optics_value(config, overrides: Dict[str, Any], override_key: str, key_path: str, option: str) -> Any:
    """Command line, then configuration file, then the built-in default with a warning."""
    if overrides.get(override_key) is not None:
        return overrides[override_key]
    value = config.get(key_path)
    if value is not None and config.has_user_value(key_path):
        return value
    section, key = key_path.split(".")
    fallback = DEFAULT_CONFIG[section][key]
    logger.warning(f"{key_path} not set (use {option} or the configuration file), assuming {fallback}")
    return fallback


def _as_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for {name}: {value!r}") from e


@dataclass(frozen=True)
class WatchSettings:
    """Everything a watch session needs, fixed at startup."""

    solver: SolverKind
    executable_path: str
    target: TargetCoordinate
    sensor: SensorGeometry
    watch_directory: Optional[Path] = None
    input_file: Optional[Path] = None
    file_write_delay_ms: int = DEFAULT_FILE_WRITE_DELAY_MS
    number_of_regions: int = DEFAULT_NUMBER_OF_REGIONS
    search_radius_deg: float = DEFAULT_ASTAP_SEARCH_RADIUS
    extensions: frozenset = field(default_factory=lambda: frozenset(DEFAULT_WATCH_EXTENSIONS))
    calibration: MountCalibration = field(default_factory=MountCalibration)

    @property
    def single_shot(self) -> bool:
        return self.input_file is not None

    @property
    def file_write_delay_s(self) -> float:
        return self.file_write_delay_ms / 1000.0

    def make_request(self, image_path: Path | str) -> SolveRequest:
        return SolveRequest(
            image_path=str(image_path),
            sensor=self.sensor,
            target=self.target,
            number_of_regions=self.number_of_regions,
            search_radius_deg=self.search_radius_deg,
        )

    @classmethod
    def from_config(cls, config, **overrides: Any) -> "WatchSettings":
        """Build settings from a ConfigManager, letting non-None overrides win.

        Recognized overrides: solver, executable_path, ra, dec, watch_directory,
        input_file, file_write_delay_ms, number_of_regions, sensor_width,
        sensor_height, focal_length. A ``focal_length`` override is taken as
        the effective focal length (reducer and crop factor already applied).

        Raises:
            ConfigFormatError: target coordinates are malformed or out of range.
            ConfigurationError: anything else is missing or invalid.
        """
        ps_cfg = config.get_plate_solve_config()
        solver_name = _pick(overrides, 'solver', ps_cfg.get('default_solver') or 'platesolve2')
        kind = SolverKind.from_name(solver_name)
        if kind is None:
            raise ConfigurationError(f"Unknown solver type: {solver_name}",
                                     details={'supported': [k.value for k in SolverKind]})
        solver_cfg = _section(ps_cfg, kind.value)
        executable_path = _pick(overrides, 'executable_path',
                                solver_cfg.get('executable_path') or kind.default_executable)

        target_cfg = config.get_target_config()
        ra_text = _coordinate_text(_pick(overrides, 'ra', target_cfg.get('ra')), 'ra', '19:03:07')
        dec_text = _coordinate_text(_pick(overrides, 'dec', target_cfg.get('dec')), 'dec', '29:50:28')
        if ra_text is None or dec_text is None:
            raise ConfigurationError("Target right ascension and declination are required")
        target = TargetCoordinate.parse(ra_text, dec_text)

        camera_cfg = config.get_camera_config()
        telescope_cfg = config.get_telescope_config()
        if overrides.get('focal_length') is not None:
            focal_length = _as_float(overrides['focal_length'], 'focal_length')
        else:
            focal_length = (
                _as_float(_optics_value(config, overrides, 'focal_length', 'telescope.focal_length', '-f'),
                          'telescope.focal_length')
                * _as_float(_pick(telescope_cfg, 'reducer_factor', 1.0), 'telescope.reducer_factor')
                * _as_float(_pick(camera_cfg, 'crop_factor', 1.0), 'camera.crop_factor')
            )
        sensor = SensorGeometry(
            width_mm=_as_float(_optics_value(config, overrides, 'sensor_width', 'camera.sensor_width', '-w'),
                               'sensor_width'),
            height_mm=_as_float(_optics_value(config, overrides, 'sensor_height', 'camera.sensor_height', '-H'),
                                'sensor_height'),
            focal_length_mm=focal_length,
        )

        watch_cfg = config.get_watch_config()
        directory = _pick(overrides, 'watch_directory', watch_cfg.get('directory'))
        input_file = overrides.get('input_file')
        delay_ms = int(_as_float(_pick(overrides, 'file_write_delay_ms',
                                       _pick(watch_cfg, 'file_write_delay_ms', DEFAULT_FILE_WRITE_DELAY_MS)),
                                 'file_write_delay_ms'))
        if delay_ms < 0:
            raise ConfigurationError("file_write_delay_ms must not be negative")
        extensions_cfg = watch_cfg.get('extensions') or DEFAULT_WATCH_EXTENSIONS
        if isinstance(extensions_cfg, str):
            extensions_cfg = [extensions_cfg]
        extensions = frozenset(
            (e if str(e).startswith('.') else f'.{e}').lower()
            for e in extensions_cfg
        )

        mount_cfg = config.get_mount_config()
        calibration = MountCalibration(
            name=str(_pick(mount_cfg, 'name', MountCalibration.name)),
            ra_seconds_per_press=_as_float(_pick(mount_cfg, 'ra_seconds_per_press', MountCalibration.ra_seconds_per_press),
                                           'mount.ra_seconds_per_press'),
            dec_degrees_per_turn=_as_float(_pick(mount_cfg, 'dec_degrees_per_turn', MountCalibration.dec_degrees_per_turn),
                                           'mount.dec_degrees_per_turn'),
        )

        number_of_regions = int(_as_float(
            _pick(overrides, 'number_of_regions',
                  _pick(_section(ps_cfg, 'platesolve2'), 'number_of_regions', DEFAULT_NUMBER_OF_REGIONS)),
            'number_of_regions'))
        search_radius = _as_float(_pick(_section(ps_cfg, 'astap'), 'search_radius', DEFAULT_ASTAP_SEARCH_RADIUS),
                                  'astap.search_radius')

        return cls(
            solver=kind,
            executable_path=str(executable_path),
            target=target,
            sensor=sensor,
            watch_directory=Path(directory) if directory else None,
            input_file=Path(input_file) if input_file else None,
            file_write_delay_ms=delay_ms,
            number_of_regions=number_of_regions,
            search_radius_deg=search_radius,
            extensions=extensions,
            calibration=calibration,
        )
