#!/usr/bin/env python3
"""
Shared constants for the plate watch system.
"""

from __future__ import annotations

from typing import Final

# Mount calibration (SkyWatcher Adventurer, hand-controller slewing).
# One second of button press moves the mount by ~12 seconds of RA.
RA_SECONDS_PER_PRESS: Final[float] = 12.0
# One full turn of the declination knob moves the mount by ~3 degrees.
DEC_DEGREES_PER_TURN: Final[float] = 3.0
DEFAULT_MOUNT_NAME: Final[str] = 'SkyWatcher Adventurer'

# Small-angle approximation used for field of view: degrees per radian, rounded.
FOV_DEGREES_PER_RADIAN: Final[float] = 57.3

# Direction labels used in the compensation report
RA_DIRECTION_POSITIVE: Final[str] = 'left'
RA_DIRECTION_NEGATIVE: Final[str] = 'right'
DEC_DIRECTION_POSITIVE: Final[str] = 'counter-clockwise'
DEC_DIRECTION_NEGATIVE: Final[str] = 'clockwise'

# Default solver executables
DEFAULT_PLATESOLVE2_PATH: Final[str] = 'C:\\Program Files\\PlateSolve2.28\\PlateSolve2.exe'
DEFAULT_ASTAP_PATH: Final[str] = 'C:\\Program Files\\astap\\astap.exe'

# Solver result file extensions
APM_EXTENSION: Final[str] = '.apm'
INI_EXTENSION: Final[str] = '.ini'

# ASTAP retry search radius in degrees
DEFAULT_ASTAP_SEARCH_RADIUS: Final[float] = 20.0
# PlateSolve 2 regions to test before giving up
DEFAULT_NUMBER_OF_REGIONS: Final[int] = 200

# Watched image formats
RAW_EXTENSIONS: Final[set[str]] = {'.cr2', '.cr3', '.nef', '.arw', '.dng', '.orf', '.rw2', '.raw'}
DEFAULT_WATCH_EXTENSIONS: Final[tuple[str, ...]] = ('.cr2', '.raw', '.jpg', '.png')
PLATESOLVE2_IMAGE_EXTENSION: Final[str] = '.jpg'

# Wait before touching a freshly created file (milliseconds)
DEFAULT_FILE_WRITE_DELAY_MS: Final[int] = 5000
