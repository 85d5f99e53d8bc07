#!/usr/bin/env python3
"""
ASTAP integration.
Command: -r <radius> -ra <hours> -sdp <dec + 90> -fov <degrees> -f <image>
ASTAP takes the south pole distance (declination + 90°) instead of the
declination. The solution is written to a sibling .ini file with
``KEY=value`` lines; CRVAL1/CRVAL2 hold the center RA/Dec in degrees.
"""

import math
from pathlib import Path
from typing import Dict, List

from coordinates import degrees_to_time_of_day
from exceptions import MalformedResult, MissingKey
from utils.constants import INI_EXTENSION

from .solver import PlateSolver, SolveRequest, SolveResult


def read_ini_values(result_path: Path) -> Dict[str, str]:
    values: Dict[str, str] = {}
    with open(result_path, "r", encoding="utf-8", errors="replace") as f:
        for line in f:
            if "=" not in line:
                continue
            key, value = line.split("=", 1)
            values.setdefault(key.strip().upper(), value.strip())
    return values


class AstapSolver(PlateSolver):
    """ASTAP Integration. Reads RAW, PNG and JPG directly."""

    result_extension = INI_EXTENSION
    required_image_extension = None

    def get_name(self) -> str:
        return "ASTAP"

    def build_invocation(self, request: SolveRequest) -> List[str]:
        return [
            "-r", f"{request.search_radius_deg:g}",
            "-ra", str(request.target.ra_hours),
            "-sdp", str(request.target.dec_degrees + 90),
            "-fov", str(request.sensor.fov_width_deg),
            "-f", str(request.image_path),
        ]

    def parse_result(self, result_path: Path, request: SolveRequest) -> SolveResult:
        values = read_ini_values(result_path)
        ra_deg = self._numeric(values, "CRVAL1", result_path)
        dec_deg = self._numeric(values, "CRVAL2", result_path)
        self.logger.debug(f"RA: {ra_deg}, DEC: {dec_deg}")
        return SolveResult(
            ra=degrees_to_time_of_day(ra_deg),
            dec_degrees=dec_deg,
            solver=self.get_name(),
            result_path=str(result_path),
        )

    @staticmethod
    def _numeric(values: Dict[str, str], key: str, result_path: Path) -> float:
        if key not in values:
            details = {'result_file': str(result_path), 'key': key}
            if "ERROR" in values:
                details['astap_error'] = values["ERROR"]
            if "PLTSOLVD" in values:
                details['solved_flag'] = values["PLTSOLVD"]
            raise MissingKey(f"{key} missing from ASTAP result", details=details)
        try:
            number = float(values[key])
        except ValueError as e:
            raise MalformedResult(
                f"{key} is not numeric: '{values[key]}'",
                details={'result_file': str(result_path)},
            ) from e
        if not math.isfinite(number):
            raise MalformedResult(f"{key} is not finite: '{values[key]}'",
                                  details={'result_file': str(result_path)})
        return number
