"""
Pytest configuration and shared fixtures for the buildcycle test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules in the buildcycle project. External tools are replaced
by small Python scripts under ``tests/fixtures`` and the compiled "artifact"
is run with the current interpreter, so no Node toolchain is required.
"""

import shutil
import sys
import tempfile
import time
from pathlib import Path
from typing import Callable

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from buildcycle.config import clear_settings_cache, set_settings_path  # noqa: E402
from buildcycle.models import BuildConfig, CompileOptions, ToolSettings  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"
FAKE_BUNDLER = FIXTURES_DIR / "fake_bundler.py"
FAKE_CHECKER = FIXTURES_DIR / "fake_checker.py"


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def temp_output_dir(temp_dir, monkeypatch):
    """Redirect temporary artifacts into a private directory so leaks are visible."""
    path = temp_dir / "tmp"
    path.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(path))
    return path


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Make every test start from the default settings lookup."""
    set_settings_path(None)
    clear_settings_cache()
    yield
    set_settings_path(None)
    clear_settings_cache()


@pytest.fixture
def project_dir(temp_dir, monkeypatch):
    """A private copy of the sample project, used as the working directory."""
    project = temp_dir / "project"
    shutil.copytree(FIXTURES_DIR / "project", project)
    monkeypatch.chdir(project)
    return project


@pytest.fixture
def tool_settings():
    """Settings that drive the fixture bundler and run artifacts with Python."""
    return ToolSettings(
        bundler_command=[sys.executable, str(FAKE_BUNDLER), "{entry}", "{output}"],
        dev_args=["--dev"],
        release_args=["--release"],
        alias_args=["--aliases"],
        externals_args=["--externals"],
        checker_command=[sys.executable, str(FAKE_CHECKER), "{entry}"],
        runtime_command=[sys.executable],
        poll_interval=0.05,
        watch_extensions=[".py", ".json"],
        termination_timeout=2.0,
    )


@pytest.fixture
def make_options(project_dir):
    """Factory for CompileOptions rooted in the sample project."""

    def _make(entry: str = "basics.py", **kwargs) -> CompileOptions:
        kwargs.setdefault("ts_config_path", str(project_dir / "tsconfig.json"))
        return CompileOptions(entry=str(project_dir / entry), **kwargs)

    return _make


@pytest.fixture
def build_config(temp_dir):
    """A resolved-looking BuildConfig that does not touch the filesystem."""
    return BuildConfig(
        entry=str(temp_dir / "src" / "index.ts"),
        output_dir=str(temp_dir / "dist"),
        output_filename="index.js",
        ts_config_path=str(temp_dir / "tsconfig.json"),
    )


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    """Poll a predicate until it holds or the timeout expires."""

    def _wait(predicate: Callable[[], bool], timeout: float = 10.0, interval: float = 0.02) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return _wait
