#!/usr/bin/env python3
"""
Solve pipeline for a single image file.

Drives one file through normalization, plate solving and correction
reporting. Every failure is caught here, logged with its detail and returned
as an error status so a watch session keeps going with the next image.

Stages:
    DETECTED -> STABILIZING -> NORMALIZING -> SOLVING -> REPORTING -> DONE
    or FAILED from any stage after detection.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
import threading
import time
from typing import Callable, Optional

from coordinates import compute_correction
from exceptions import ConfigurationError, PlateWatchError
from platesolve.solver import PlateSolver, PlateSolverFactory
from processing.format_conversion import converted_path, needs_conversion, normalize
from processing.report import CorrectionReport, format_report
from settings import WatchSettings
from status import FileProcessingStatus, FileStage, file_done_status, file_failed_status


class SolvePipeline:
    """Normalize, solve and report one image at a time.

    ``process_file`` may be called from several threads at once; it only
    reads the shared settings. The set of files written by the normalizer is
    the one piece of mutable state and is guarded by a lock.
    """

    def __init__(
        self,
        settings: WatchSettings,
        solver: Optional[PlateSolver] = None,
        report_sink: Callable[[str], None] = print,
        logger=None,
    ) -> None:
        self.settings = settings
        self.logger = logger or logging.getLogger(__name__)
        self.solver = solver or PlateSolverFactory.create_solver(
            settings.solver, executable_path=settings.executable_path, logger=self.logger
        )
        if self.solver is None:
            raise ConfigurationError(f"No solver available for {settings.solver}")
        self.report_sink = report_sink
        self._generated: set[str] = set()
        self._generated_lock = threading.Lock()

    @staticmethod
    def _generated_key(path: Path | str) -> str:
        return os.path.normcase(os.path.abspath(path))

    def is_generated(self, path: Path | str) -> bool:
        """True if the file was written by this pipeline's normalizer and not yet seen by the watcher."""
        with self._generated_lock:
            return self._generated_key(path) in self._generated

    def consume_generated(self, path: Path | str) -> bool:
        """Like ``is_generated``, but forgets the file so later events for the same name are processed."""
        key = self._generated_key(path)
        with self._generated_lock:
            if key not in self._generated:
                return False
            self._generated.discard(key)
            return True

    def _remember_generated(self, path: Path) -> None:
        with self._generated_lock:
            self._generated.add(self._generated_key(path))

    def _forget_generated(self, path: Path) -> None:
        with self._generated_lock:
            self._generated.discard(self._generated_key(path))

    def _normalize(self, path: Path) -> Path:
        target_ext = self.solver.required_image_extension
        if target_ext is None:
            self.logger.debug(f"{self.solver.get_name()} reads {path.suffix} directly, skipping conversion")
            return path
        if not needs_conversion(path, target_ext):
            return path
        output = converted_path(path, target_ext)
        self._remember_generated(output)
        try:
            return normalize(path, target_ext, log=self.logger)
        except Exception:
            # Nothing was written, no creation event will come
            self._forget_generated(output)
            raise

    def process_file(self, image_path: Path | str) -> FileProcessingStatus:
        path = Path(image_path).absolute()
        self.logger.info(f"Processing {path}")
        stage = FileStage.NORMALIZING
        start_time = time.time()
        try:
            solve_path = self._normalize(path)

            stage = FileStage.SOLVING
            result = self.solver.solve(self.settings.make_request(solve_path))

            stage = FileStage.REPORTING
            correction = compute_correction(self.settings.target, result, self.settings.calibration)
            report = CorrectionReport(
                result=result,
                correction=correction,
                lines=format_report(result, correction, self.settings.calibration),
            )
            for line in report.lines:
                self.report_sink(line)
        except PlateWatchError as e:
            self.logger.error(f"{stage.value.capitalize()} failed for {path.name}: {e}")
            return file_failed_status(
                str(path), str(e), stage,
                details={'error_type': type(e).__name__, **e.details,
                         'solving_time': time.time() - start_time},
            )
        except Exception as e:
            self.logger.exception(f"Did not work as expected while {stage.value} {path.name}: {e}")
            return file_failed_status(
                str(path), f"Unexpected error: {e}", stage,
                details={'error_type': type(e).__name__, 'solving_time': time.time() - start_time},
            )

        solving_time = time.time() - start_time
        self.logger.info(
            f"{path.name}: press {correction.ra_direction} {correction.ra_press_abs:.0f}s, "
            f"turn Dec knob {correction.dec_turns_abs:.2f} {correction.dec_direction} "
            f"(solved in {solving_time:.1f}s)"
        )
        return file_done_status(
            str(path), "Solved and reported", data=report,
            details={'solving_time': solving_time, 'method': result.solver},
        )
