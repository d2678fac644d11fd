"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import os

import pytest

from altimeter.config import runtime
from altimeter.process_hunter_helpers.port_tool_detector import PortToolDetector
from tests.helpers.discovery_fakes import FakeCommandRunner, FakeProber


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep developer .env files and ALTIMETER_* variables out of tests."""
    for name in list(os.environ):
        if name.startswith("ALTIMETER_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(runtime, "_DOTENV_CANDIDATES", ())
    runtime._DEFAULT_VALUES = None
    yield
    runtime._DEFAULT_VALUES = None


@pytest.fixture
def fake_runner() -> FakeCommandRunner:
    return FakeCommandRunner()


@pytest.fixture
def fake_prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def resolved_detector() -> PortToolDetector:
    """Detector that already settled on ``ss`` so scans skip the tool probe."""
    detector = PortToolDetector()
    detector._resolved = True
    detector._tool = "ss"
    return detector
