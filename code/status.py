#!/usr/bin/env python3
"""
Outcome of running one image through the solve pipeline.

The pipeline never raises to its caller; it returns a ``FileProcessingStatus``
that records where the file got to and, on success, the correction report.
"""

from dataclasses import dataclass, field
from enum import Enum
import time
from typing import Any, Dict, Optional


class StatusLevel(Enum):
    SUCCESS = "success"
    ERROR = "error"


class FileStage(Enum):
    """Processing stages of a single image file."""
    DETECTED = "detected"
    STABILIZING = "stabilizing"
    NORMALIZING = "normalizing"
    SOLVING = "solving"
    REPORTING = "reporting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class FileProcessingStatus:
    level: StatusLevel
    message: str
    file_path: str
    stage: FileStage
    failed_stage: Optional[FileStage] = None
    data: Any = None
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    @property
    def is_success(self) -> bool:
        return self.level is StatusLevel.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.level is StatusLevel.ERROR

    @property
    def solving_time(self) -> Optional[float]:
        """Seconds from the start of normalization to the end of this attempt."""
        return self.details.get('solving_time')

    def __str__(self) -> str:
        where = self.stage.value if self.failed_stage is None else f"{self.failed_stage.value} failed"
        return f"{self.level.value.upper()} [{where}] {self.file_path}: {self.message}"


def file_done_status(file_path: str, message: str, data: Any = None,
                     details: Optional[Dict[str, Any]] = None) -> FileProcessingStatus:
    """Create a success status for a fully processed file."""
    return FileProcessingStatus(StatusLevel.SUCCESS, message, file_path, FileStage.DONE,
                                data=data, details=dict(details or {}))


def file_failed_status(file_path: str, message: str, failed_stage: FileStage,
                       details: Optional[Dict[str, Any]] = None) -> FileProcessingStatus:
    """Create an error status for a file that could not be processed."""
    return FileProcessingStatus(StatusLevel.ERROR, message, file_path, FileStage.FAILED,
                                failed_stage=failed_stage, details=dict(details or {}))
