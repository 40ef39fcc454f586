"""Pytest configuration and shared fixtures for the star annotator.

Provides temporary image files, configuration objects, a recording pipeline
view and helpers for simulating the annotation service with
``httpx.MockTransport``.
"""
import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Callable, List, Tuple

import httpx
import numpy as np
import pytest
from PIL import Image

from star_annotator.config.settings import Config


# Disable some verbose loggers during testing
logging.getLogger('PIL').setLevel(logging.WARNING)
logging.getLogger('httpx').setLevel(logging.WARNING)

UPLOAD_URL = "http://annotator.test/upload"
BACKGROUND = (10, 20, 40)


class RecordingView:
    """Pipeline view that records every call in order."""

    def __init__(self):
        self.calls: List[Tuple[str, Any]] = []

    def report_busy(self, busy: bool) -> None:
        self.calls.append(("report_busy", busy))

    def set_controls_enabled(self, enabled: bool) -> None:
        self.calls.append(("set_controls_enabled", enabled))

    def display_image(self, image) -> None:
        self.calls.append(("display_image", image))

    def display_error(self, message: str) -> None:
        self.calls.append(("display_error", message))

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.calls]

    @property
    def images(self) -> list:
        return [arg for name, arg in self.calls if name == "display_image"]

    @property
    def errors(self) -> List[str]:
        return [arg for name, arg in self.calls if name == "display_error"]


@pytest.fixture
def temp_dir():
    """Provide a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_image_file(temp_dir) -> Callable[..., Path]:
    """Factory writing a solid-colour image file and returning its path."""

    def _make(name: str = "photo.jpg", size: Tuple[int, int] = (800, 600),
              color: Tuple[int, int, int] = BACKGROUND, fmt: str = None) -> Path:
        path = temp_dir / name
        Image.new("RGB", size, color).save(path, format=fmt)
        return path

    return _make


@pytest.fixture
def sample_jpeg(make_image_file) -> Path:
    """Valid 800x600 JPEG named photo.jpg."""
    return make_image_file("photo.jpg", (800, 600))


@pytest.fixture
def sample_png(make_image_file) -> Path:
    """Lossless 200x150 image for exact pixel assertions."""
    return make_image_file("frame.png", (200, 150))


@pytest.fixture
def noisy_png(temp_dir) -> Path:
    """Random-pixel RGB image."""
    rng = np.random.default_rng(1234)
    pixels = rng.integers(0, 256, size=(120, 160, 3), dtype=np.uint8)
    path = temp_dir / "noise.png"
    Image.fromarray(pixels).save(path)
    return path


@pytest.fixture
def empty_file(temp_dir) -> Path:
    path = temp_dir / "empty.jpg"
    path.write_bytes(b"")
    return path


@pytest.fixture
def corrupt_file(temp_dir) -> Path:
    path = temp_dir / "corrupt.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0 definitely not a complete jpeg")
    return path


@pytest.fixture
def recording_view() -> RecordingView:
    return RecordingView()


@pytest.fixture
def real_config(temp_dir) -> Config:
    """Configuration pointing at the fake service with temporary directories."""
    scratch = temp_dir / "scratch"
    scratch.mkdir()
    return Config(
        upload_url=UPLOAD_URL,
        temp_dir=str(scratch),
        output_dir=str(temp_dir / "results"),
        log_dir=str(temp_dir / "logs"),
        enable_file_logging=False,
    )


def _stars_body(*stars: Tuple[str, float, float]) -> str:
    return json.dumps({"stars": [{"name": n, "x": x, "y": y} for n, x, y in stars]})


@pytest.fixture
def stars_body() -> Callable[..., str]:
    """Build a service response body from (name, x, y) tuples."""
    return _stars_body


@pytest.fixture
def service_transport() -> Callable[..., httpx.MockTransport]:
    """Factory for a mock annotation service answering every request with status/body.

    Requests are appended to ``captured`` when a list is given.
    """

    def _make(status: int = 200, body: str = "", captured: list = None) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            if captured is not None:
                captured.append(request)
            return httpx.Response(status, text=body)

        return httpx.MockTransport(handler)

    return _make


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")
