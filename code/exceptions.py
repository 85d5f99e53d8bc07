#!/usr/bin/env python3
"""
Errors raised by the plate watcher.

Every error carries a human-readable message plus a ``details`` mapping with
the paths and values needed to diagnose it from the log alone.
"""

from typing import Any, Dict, Optional


class PlateWatchError(Exception):
    """Base exception for all plate watch errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})

    def __str__(self) -> str:
        if not self.details:
            return self.message
        extra = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} ({extra})"


class ConfigurationError(PlateWatchError):
    """Missing or invalid setting; fatal at startup."""


class ConfigFormatError(ConfigurationError):
    """A sexagesimal coordinate cannot be parsed or is out of range."""


class ConversionError(PlateWatchError):
    """An image could not be decoded or re-encoded."""


class PlateSolveError(PlateWatchError):
    """Base for everything that goes wrong around the external solver."""


class SolverInvocationError(PlateSolveError):
    """The solver executable is not configured or cannot be started."""


class MalformedResult(PlateSolveError):
    """The solver ran but left nothing usable behind."""


class MissingResultFile(MalformedResult):
    """The solver exited without writing its result file."""


class MissingKey(MalformedResult):
    """A required key is absent from the solver's result file."""
