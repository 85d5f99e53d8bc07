#!/usr/bin/env python3
"""
PlateSolve 2 integration using its command line format.
Format: ra,dec,width_field_of_view,height_field_of_view,number_of_regions_to_test,path_to_image,"1"
All coordinates and FOV must be in radians. The solution is written to a
sibling .apm file whose first line starts with the center RA and Dec in radians.
"""

import math
from pathlib import Path
from typing import List

from coordinates import radians_to_degrees, radians_to_time_of_day
from exceptions import MalformedResult
from utils.constants import APM_EXTENSION, PLATESOLVE2_IMAGE_EXTENSION

from .solver import PlateSolver, SolveRequest, SolveResult


class PlateSolve2Solver(PlateSolver):
    """PlateSolve 2 Integration."""

    result_extension = APM_EXTENSION
    required_image_extension = PLATESOLVE2_IMAGE_EXTENSION

    def get_name(self) -> str:
        return "PlateSolve 2"

    def build_invocation(self, request: SolveRequest) -> List[str]:
        return [self._build_command_string(request)]

    def _build_command_string(self, request: SolveRequest) -> str:
        cmd_parts = [
            str(request.target.ra_radians),
            str(request.target.dec_radians),
            str(request.sensor.fov_width_rad),
            str(request.sensor.fov_height_rad),
            str(request.number_of_regions),
            str(request.image_path),
            "1",
        ]
        return ",".join(cmd_parts)

    def parse_result(self, result_path: Path, request: SolveRequest) -> SolveResult:
        with open(result_path, "r", encoding="utf-8", errors="replace") as f:
            first_line = f.readline().strip()

        parts = first_line.split(",")
        if len(parts) < 2:
            raise MalformedResult(
                f".apm first line has fewer than 2 fields: '{first_line}'",
                details={'result_file': str(result_path)},
            )
        try:
            ra_rad = float(parts[0])
            dec_rad = float(parts[1])
        except ValueError as e:
            raise MalformedResult(
                f".apm first line is not numeric: '{first_line}'",
                details={'result_file': str(result_path)},
            ) from e
        if not (math.isfinite(ra_rad) and math.isfinite(dec_rad)):
            raise MalformedResult(
                f".apm first line is not finite: '{first_line}'",
                details={'result_file': str(result_path)},
            )

        self.logger.debug(f"Parsed RA: {ra_rad} rad, Dec: {dec_rad} rad")
        return SolveResult(
            ra=radians_to_time_of_day(ra_rad),
            dec_degrees=radians_to_degrees(dec_rad),
            solver=self.get_name(),
            result_path=str(result_path),
        )
