from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Generator, Iterator
from pathlib import Path

import pytest

from celltemplate.document import MemoryWorkbook, MemoryWorksheet
from celltemplate.registry import TemplateRegistry


@pytest.fixture(autouse=True)
def configure_test_logging() -> Generator[None, None, None]:
    """Configure structlog for test environment.

    This fixture runs automatically for all tests to ensure logging
    is properly configured to output to stderr (not stdout) and
    suppress verbose log output during tests.
    """
    from celltemplate.logging import configure_logging

    configure_logging(level=logging.WARNING)
    yield


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files.

    Also saves and restores the current working directory to prevent
    tests that use os.chdir() from affecting other tests.
    """
    original_cwd = os.getcwd()
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
    os.chdir(original_cwd)


@pytest.fixture
def clean_env(temp_dir: Path) -> Generator[None, None, None]:
    """Remove all CELLTEMPLATE_ environment variables for clean testing.

    HOME points at an empty directory so no user config file is read.
    """
    original_env = os.environ.copy()
    for key in list(os.environ.keys()):
        if key.startswith("CELLTEMPLATE_"):
            del os.environ[key]
    os.environ["HOME"] = str(temp_dir / "home")
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def workbook() -> MemoryWorkbook:
    """Empty in-memory workbook."""
    return MemoryWorkbook()


@pytest.fixture
def sheet(workbook: MemoryWorkbook) -> MemoryWorksheet:
    """Visible worksheet named "Sheet1" of the ``workbook`` fixture."""
    return workbook.create_sheet("Sheet1")


@pytest.fixture
def registry() -> TemplateRegistry:
    """Registry with no handlers."""
    return TemplateRegistry()


@pytest.fixture
def sample_settings_yaml() -> str:
    """Return sample celltemplate.yaml content for testing."""
    return """
temp_variable_prefix: "_tmp_"
error_font_color: "#c00000"
division_by_zero: zero
process_hidden_sheets: true
verbosity: "info"
"""
