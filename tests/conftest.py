import logging as _global_logging
from pathlib import Path as _Path
from typing import Any, List, Optional

import pytest

from config_manager import ConfigManager


def pytest_ignore_collect(collection_path: _Path, config):
    """Skip the integration directory unless explicitly requested via -m integration."""
    try:
        marker_expr = config.getoption("-m") or ""
    except Exception:
        marker_expr = ""
    if "integration" in set(collection_path.parts) and "integration" not in marker_expr:
        return True
    return False


@pytest.fixture
def config(tmp_path):
    """Default ConfigManager that never picks up a config.yaml from the working directory."""
    return ConfigManager(str(tmp_path / "missing_config.yaml"))


@pytest.fixture
def logger():
    """Provide a simple logger for tests expecting a 'logger' fixture."""
    import logging as _logging

    _logging.basicConfig(level=_logging.INFO)
    return _logging.getLogger("tests")


# Default logger fallbacks for tests that pass logger=None
if not _global_logging.getLogger().handlers:
    _global_logging.basicConfig(level=_global_logging.INFO)


@pytest.fixture
def target():
    from coordinates import TargetCoordinate

    return TargetCoordinate.parse("19:03:07", "29:50:28")


@pytest.fixture
def sensor():
    from coordinates import SensorGeometry

    return SensorGeometry(width_mm=22.3, height_mm=14.9, focal_length_mm=510.0)


@pytest.fixture
def make_settings(target, sensor):
    """Build WatchSettings for a given solver kind with no write delay."""
    from platesolve.solver import SolverKind
    from settings import WatchSettings

    def _make(kind: SolverKind = SolverKind.ASTAP, **kwargs: Any) -> WatchSettings:
        kwargs.setdefault("executable_path", "solver-under-test")
        kwargs.setdefault("file_write_delay_ms", 0)
        return WatchSettings(solver=kind, target=target, sensor=sensor, **kwargs)

    return _make


class FakeSolver:
    """Solver double: returns queued outcomes and records each request."""

    def __init__(self, outcomes: List[Any], required_image_extension: Optional[str] = None) -> None:
        self.outcomes = list(outcomes)
        self.required_image_extension = required_image_extension
        self.requests: List[Any] = []

    def get_name(self) -> str:
        return "Fake"

    def is_available(self) -> bool:
        return True

    def solve(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def fake_solver():
    return FakeSolver


@pytest.fixture
def solved_result():
    """Field center 19:00:00 / +30°, about 3 minutes of RA short of the default target."""
    from datetime import timedelta

    from platesolve.solver import SolveResult

    return SolveResult(ra=timedelta(hours=19), dec_degrees=30.0, solver="Fake")


@pytest.fixture
def data_assets(tmp_path):
    """Create tiny sample images in the formats a camera directory may hold."""
    from PIL import Image as _Image
    import numpy as _np

    assets: dict[str, str] = {}

    png = tmp_path / "light frame.png"
    _Image.new("RGBA", (10, 8), (0, 0, 255, 128)).save(png)
    assets["png"] = str(png)

    jpg = tmp_path / "IMG_0001.jpg"
    _Image.new("RGB", (12, 9), (40, 40, 40)).save(jpg)
    assets["jpg"] = str(jpg)

    png16 = tmp_path / "mono16.png"
    ramp = (_np.arange(16 * 12, dtype=_np.uint16).reshape(12, 16) * 300).astype(_np.uint16)
    _Image.fromarray(ramp).save(png16)
    assets["png16"] = str(png16)

    broken = tmp_path / "broken.png"
    broken.write_bytes(b"not an image at all")
    assets["broken"] = str(broken)

    return assets
