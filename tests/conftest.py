"""
Pytest configuration and fixtures
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Define paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent
BACKEND_ROOT = PROJECT_ROOT / "backend"

# Make ``src.<subpackage>`` importable without installing the project
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture
def sample_file(tmp_path: Path) -> Path:
    """Small text file to scan"""
    path = tmp_path / "sample.txt"
    path.write_text("hello world\n")
    return path
