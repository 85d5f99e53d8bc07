"""Console report of a solved field and the mount correction to apply."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from coordinates import CorrectionVector, MountCalibration, format_sexagesimal_degrees, format_sexagesimal_hours
from platesolve.solver import SolveResult


@dataclass(frozen=True)
class CorrectionReport:
    result: SolveResult
    correction: CorrectionVector
    lines: List[str]

    def __str__(self) -> str:
        return "\n".join(self.lines)


def format_report(result: SolveResult, correction: CorrectionVector,
                  calibration: MountCalibration) -> List[str]:
    return [
        "Center Coordinate:",
        f"    RA: {format_sexagesimal_hours(result.ra_hours)}",
        f"    Dec: {format_sexagesimal_degrees(result.dec_degrees)} ({result.dec_degrees:.4f}°)",
        "",
        f"Compensation ({calibration.name}):",
        f"    RA: {correction.ra_delta_hours:+.6f} h => "
        f"Press {correction.ra_direction} button {correction.ra_press_abs:.0f} seconds",
        f"    Dec: {correction.dec_delta_degrees:+.6f}° => "
        f"turn declination knob {correction.dec_turns_abs:.2f} {correction.dec_direction}",
    ]
