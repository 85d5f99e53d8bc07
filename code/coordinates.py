#!/usr/bin/env python3
"""
Coordinate math for target acquisition.

Sexagesimal parsing, hour/degree/radian conversions, field-of-view estimation
and the mapping from a pointing error to a manual mount correction. Everything
here is a pure function or an immutable value; nothing touches the filesystem
or shared state.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
import math
from typing import Optional, Protocol

from astropy.coordinates import Angle
import astropy.units as u

from exceptions import ConfigFormatError, ConfigurationError
from utils.constants import (
    DEC_DEGREES_PER_TURN,
    DEC_DIRECTION_NEGATIVE,
    DEC_DIRECTION_POSITIVE,
    DEFAULT_MOUNT_NAME,
    FOV_DEGREES_PER_RADIAN,
    RA_DIRECTION_NEGATIVE,
    RA_DIRECTION_POSITIVE,
    RA_SECONDS_PER_PRESS,
)


class SkyPosition(Protocol):
    """Anything that can report a pointing in hours/degrees."""

    @property
    def ra_hours(self) -> float: ...

    @property
    def dec_degrees(self) -> float: ...


def _split_sexagesimal(text: str, kind: str, usage: str) -> list[str]:
    if not isinstance(text, str):
        raise ConfigFormatError(f"Invalid {kind}: expected text, got {type(text).__name__}",
                                details={'value': text})
    parts = text.strip().split(':')
    if len(parts) != 3:
        raise ConfigFormatError(f"Invalid {kind} format '{text}'. Use {usage}",
                                details={'value': text, 'fields': len(parts)})
    return parts


def _to_float_fields(parts: list[str], text: str, kind: str) -> list[float]:
    try:
        values = [float(p) for p in parts]
    except ValueError as e:
        raise ConfigFormatError(f"Invalid {kind} '{text}'. Use numeric values.",
                                details={'value': text}) from e
    if not all(math.isfinite(v) for v in values):
        raise ConfigFormatError(f"Invalid {kind} '{text}'. Values must be finite.",
                                details={'value': text})
    return values


def parse_sexagesimal_hours(text: str) -> float:
    """Parse ``HH:MM:SS(.sss)`` into decimal hours.

    Raises:
        ConfigFormatError: if the text does not hold exactly three numeric fields.
    """
    parts = _split_sexagesimal(text, 'right ascension', 'HH:MM:SS')
    hours, minutes, seconds = _to_float_fields(parts, text, 'right ascension')
    return hours + minutes / 60.0 + seconds / 3600.0


def parse_sexagesimal_degrees(text: str) -> float:
    """Parse ``±DD:MM:SS(.ss)`` into decimal degrees.

    The sign belongs to the degrees field only and is applied once to the
    combined magnitude, so ``-5:30:00`` is -5.5 and ``-0:30:00`` is -0.5.

    Raises:
        ConfigFormatError: if the text does not hold exactly three numeric fields.
    """
    parts = _split_sexagesimal(text, 'declination', '±DD:MM:SS')
    degrees, minutes, seconds = _to_float_fields(parts, text, 'declination')
    sign = -1.0 if parts[0].strip().startswith('-') else 1.0
    magnitude = abs(degrees) + abs(minutes) / 60.0 + abs(seconds) / 3600.0
    return sign * magnitude


def hours_to_radians(hours: float) -> float:
    return hours / 24.0 * (2 * math.pi)


def radians_to_hours(radians: float) -> float:
    return radians / (2 * math.pi) * 24.0


def degrees_to_radians(degrees: float) -> float:
    return degrees * (math.pi / 180.0)


def radians_to_degrees(radians: float) -> float:
    return radians / math.pi * 180.0


def radians_to_time_of_day(radians: float) -> timedelta:
    """Convert an RA in radians to a clock-like duration (display only)."""
    return timedelta(hours=24 / 360.0 * radians_to_degrees(radians))


def degrees_to_time_of_day(degrees: float) -> timedelta:
    """Convert an RA in degrees to a clock-like duration (display only)."""
    return timedelta(hours=degrees / 360.0 * 24)


def format_sexagesimal_hours(hours: float, precision: int = 3) -> str:
    return Angle(hours, unit=u.hourangle).to_string(
        unit=u.hourangle, sep=':', precision=precision, pad=True
    )


def format_sexagesimal_degrees(degrees: float, precision: int = 2) -> str:
    return Angle(degrees, unit=u.deg).to_string(
        unit=u.deg, sep=':', precision=precision, pad=True, alwayssign=True
    )


def field_of_view(sensor_dimension_mm: float, focal_length_mm: float) -> float:
    """Angular extent in degrees of one sensor side (small-angle approximation)."""
    if focal_length_mm <= 0:
        raise ValueError(f"Focal length must be positive, got {focal_length_mm}")
    return (FOV_DEGREES_PER_RADIAN / focal_length_mm) * sensor_dimension_mm


@dataclass(frozen=True)
class TargetCoordinate:
    """Target supplied by the operator in sexagesimal text."""

    ra_text: str
    dec_text: str
    ra_hours: float
    dec_degrees: float

    @classmethod
    def parse(cls, ra_text: str, dec_text: str) -> "TargetCoordinate":
        ra_hours = parse_sexagesimal_hours(ra_text)
        dec_degrees = parse_sexagesimal_degrees(dec_text)
        if not 0.0 <= ra_hours < 24.0:
            raise ConfigFormatError(f"Right ascension {ra_text} outside 0h..24h",
                                    details={'ra_hours': ra_hours})
        if not -90.0 <= dec_degrees <= 90.0:
            raise ConfigFormatError(f"Declination {dec_text} outside -90°..90°",
                                    details={'dec_degrees': dec_degrees})
        return cls(ra_text=ra_text.strip(), dec_text=dec_text.strip(),
                   ra_hours=ra_hours, dec_degrees=dec_degrees)

    @property
    def ra_radians(self) -> float:
        return hours_to_radians(self.ra_hours)

    @property
    def dec_radians(self) -> float:
        return degrees_to_radians(self.dec_degrees)

    def __str__(self) -> str:
        return f"RA {self.ra_text} ({self.ra_hours:.5f}h), Dec {self.dec_text} ({self.dec_degrees:.5f}°)"


@dataclass(frozen=True)
class SensorGeometry:
    """Sensor size and effective focal length (reducer and crop factor applied)."""

    width_mm: float
    height_mm: float
    focal_length_mm: float

    def __post_init__(self) -> None:
        if self.focal_length_mm <= 0:
            raise ConfigurationError("Focal length must be positive",
                                     details={'focal_length_mm': self.focal_length_mm})
        if self.width_mm <= 0 or self.height_mm <= 0:
            raise ConfigurationError("Sensor dimensions must be positive",
                                     details={'width_mm': self.width_mm, 'height_mm': self.height_mm})

    @property
    def fov_width_deg(self) -> float:
        return field_of_view(self.width_mm, self.focal_length_mm)

    @property
    def fov_height_deg(self) -> float:
        return field_of_view(self.height_mm, self.focal_length_mm)

    @property
    def fov_width_rad(self) -> float:
        return degrees_to_radians(self.fov_width_deg)

    @property
    def fov_height_rad(self) -> float:
        return degrees_to_radians(self.fov_height_deg)


@dataclass(frozen=True)
class MountCalibration:
    """Empirical response of a manually driven mount."""

    name: str = DEFAULT_MOUNT_NAME
    ra_seconds_per_press: float = RA_SECONDS_PER_PRESS
    dec_degrees_per_turn: float = DEC_DEGREES_PER_TURN

    def __post_init__(self) -> None:
        if self.ra_seconds_per_press <= 0 or self.dec_degrees_per_turn <= 0:
            raise ConfigurationError(
                "Mount calibration constants must be positive",
                details={
                    'ra_seconds_per_press': self.ra_seconds_per_press,
                    'dec_degrees_per_turn': self.dec_degrees_per_turn,
                },
            )


@dataclass(frozen=True)
class CorrectionVector:
    ra_delta_hours: float
    ra_delta_seconds: float
    ra_press_seconds: float
    ra_direction: str
    dec_delta_degrees: float
    dec_turns: float
    dec_direction: str

    @property
    def ra_press_abs(self) -> float:
        return abs(self.ra_press_seconds)

    @property
    def dec_turns_abs(self) -> float:
        return abs(self.dec_turns)


def compute_correction(
    target: SkyPosition,
    solved: SkyPosition,
    calibration: Optional[MountCalibration] = None,
) -> CorrectionVector:
    """Map the target/solved pointing difference to button presses and knob turns.

    RA: seconds of time between target and solved center, divided by the
    mount's seconds-per-press and rounded to whole seconds. Dec: degrees
    between target and solved center, divided by the degrees-per-turn and
    rounded to hundredths of a turn.
    """
    calibration = calibration or MountCalibration()

    ra_delta_hours = target.ra_hours - solved.ra_hours
    ra_delta_seconds = ra_delta_hours * 3600.0
    ra_press_seconds = round(ra_delta_seconds / calibration.ra_seconds_per_press, 0)
    ra_direction = RA_DIRECTION_POSITIVE if ra_delta_seconds > 0 else RA_DIRECTION_NEGATIVE

    dec_delta = target.dec_degrees - solved.dec_degrees
    dec_turns = round(dec_delta / calibration.dec_degrees_per_turn, 2)
    dec_direction = DEC_DIRECTION_POSITIVE if dec_delta > 0 else DEC_DIRECTION_NEGATIVE

    return CorrectionVector(
        ra_delta_hours=ra_delta_hours,
        ra_delta_seconds=ra_delta_seconds,
        ra_press_seconds=ra_press_seconds,
        ra_direction=ra_direction,
        dec_delta_degrees=dec_delta,
        dec_turns=dec_turns,
        dec_direction=dec_direction,
    )
