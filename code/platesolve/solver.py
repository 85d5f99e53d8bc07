#!/usr/bin/env python3
"""
Plate Solver Module for Astronomical Image Processing

This module provides a unified interface for the external plate-solving tools
PlateSolve 2 and ASTAP. Each tool is driven the same way: build a command
line, run the executable as a subprocess, wait for it to exit and read the
result file it leaves next to the image.

Key Features:
- Unified interface for both plate-solving engines
- Factory pattern for solver instantiation
- Results normalized to RA time-of-day and Dec degrees regardless of backend
- Exceptions for every way a solve can fail to produce a usable answer

Architecture:
- Abstract base class with a template ``solve`` method
- Backends implement ``build_invocation`` and ``parse_result``
- Factory class maps the closed set of solver kinds to classes

Dependencies:
- External plate-solving software (PlateSolve 2, ASTAP)
- Coordinate math for parameter building
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
import logging
import os
from pathlib import Path
import shutil
import subprocess
from typing import Dict, List, Optional, Type

from coordinates import SensorGeometry, TargetCoordinate
from exceptions import MissingResultFile, SolverInvocationError
from utils.constants import (
    DEFAULT_ASTAP_PATH,
    DEFAULT_ASTAP_SEARCH_RADIUS,
    DEFAULT_NUMBER_OF_REGIONS,
    DEFAULT_PLATESOLVE2_PATH,
)


class SolverKind(Enum):
    """Closed set of supported solver backends."""

    PLATESOLVE2 = "platesolve2"
    ASTAP = "astap"

    @classmethod
    def from_name(cls, name: str) -> Optional["SolverKind"]:
        aliases = {
            "platesolve2": cls.PLATESOLVE2,
            "platesolve": cls.PLATESOLVE2,
            "ps2": cls.PLATESOLVE2,
            "astap": cls.ASTAP,
        }
        return aliases.get(str(name).strip().lower())

    @property
    def default_executable(self) -> str:
        if self is SolverKind.ASTAP:
            return DEFAULT_ASTAP_PATH
        return DEFAULT_PLATESOLVE2_PATH


@dataclass(frozen=True)
class SolveRequest:
    """One image to solve, with the hints the backend needs."""

    image_path: str
    sensor: SensorGeometry
    target: TargetCoordinate
    number_of_regions: int = DEFAULT_NUMBER_OF_REGIONS
    search_radius_deg: float = DEFAULT_ASTAP_SEARCH_RADIUS


@dataclass(frozen=True)
class SolveResult:
    """Solved field center."""

    ra: timedelta
    dec_degrees: float
    solver: str = ""
    result_path: Optional[str] = None

    @property
    def ra_hours(self) -> float:
        return self.ra.total_seconds() / 3600.0

    def __str__(self) -> str:
        return f"SolveResult(RA={self.ra}, Dec={self.dec_degrees:.4f}°, method={self.solver})"


class PlateSolver(ABC):
    """Abstract base class for plate-solving engines."""

    result_extension: str = ""
    # None means the backend reads the camera's original format
    required_image_extension: Optional[str] = None

    def __init__(self, executable_path: Optional[str] = None, logger=None):
        self.executable_path: str = executable_path or ""
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    def build_invocation(self, request: SolveRequest) -> List[str]:
        """Arguments passed to the executable, without the executable itself."""

    @abstractmethod
    def parse_result(self, result_path: Path, request: SolveRequest) -> SolveResult:
        pass

    @abstractmethod
    def get_name(self) -> str:
        pass

    def is_available(self) -> bool:
        if not self.executable_path:
            return False
        return Path(self.executable_path).exists() or shutil.which(self.executable_path) is not None

    def result_path(self, image_path) -> Path:
        return Path(image_path).with_suffix(self.result_extension)

    def solve(self, request: SolveRequest) -> SolveResult:
        """Run the solver on one image and return the solved center.

        Blocks until the external process exits; there is no timeout. The
        exit code is only logged: the result file alone decides success.

        Raises:
            SolverInvocationError: executable not configured or not startable.
            MissingResultFile: the process exited without a result file.
            MalformedResult / MissingKey: the result file is unusable.
        """
        result_path = self.result_path(request.image_path)
        self._remove_stale_result(result_path)

        args = self.build_invocation(request)
        self._execute(args)

        if not result_path.exists():
            raise MissingResultFile(
                f"{self.get_name()} did not write a result file",
                details={'expected': str(result_path), 'image': request.image_path},
            )
        result = self.parse_result(result_path, request)
        self.logger.info(f"{self.get_name()} solved {Path(request.image_path).name}: {result}")
        return result

    def _remove_stale_result(self, result_path: Path) -> None:
        if result_path.exists():
            os.remove(result_path)
            self.logger.debug(f"Removed old result file: {result_path}")

    def _execute(self, args: List[str]) -> int:
        if not self.executable_path:
            raise SolverInvocationError(f"{self.get_name()} executable path not configured")
        cmd = [self.executable_path, *args]
        self.logger.info(f"Calling {self.get_name()}: {' '.join(args)}")
        try:
            completed = subprocess.run(cmd, check=False)
        except OSError as e:
            raise SolverInvocationError(
                f"Could not start {self.get_name()}: {e}",
                details={'executable': self.executable_path},
            ) from e
        self.logger.debug(f"{self.get_name()} exited with code {completed.returncode}")
        return completed.returncode


class PlateSolverFactory:
    """Factory for plate solver instances."""

    @staticmethod
    def _registry() -> Dict[SolverKind, Type[PlateSolver]]:
        from .astap import AstapSolver
        from .platesolve2 import PlateSolve2Solver

        return {
            SolverKind.PLATESOLVE2: PlateSolve2Solver,
            SolverKind.ASTAP: AstapSolver,
        }

    @staticmethod
    def create_solver(
        solver_type, executable_path: Optional[str] = None, logger=None
    ) -> Optional[PlateSolver]:
        kind = solver_type if isinstance(solver_type, SolverKind) else SolverKind.from_name(solver_type)
        if kind is None:
            (logger or logging.getLogger(__name__)).error(f"Unknown solver type: {solver_type}")
            return None
        solver_class = PlateSolverFactory._registry()[kind]
        return solver_class(executable_path=executable_path or kind.default_executable, logger=logger)

    @staticmethod
    def get_available_solvers(logger=None) -> Dict[str, bool]:
        return {
            kind.value: PlateSolverFactory.create_solver(kind, logger=logger).is_available()
            for kind in SolverKind
        }
