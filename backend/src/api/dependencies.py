"""Shared FastAPI dependencies for the scan routes."""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import Callable

from fastapi import Request

from ..config.settings import Settings
from ..scanner.deadline import ScanScope
from ..scanner.models import Report
from ..scanner.pipeline import run_scan

Scanner = Callable[[ScanScope, Path], Report]


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_scanner(request: Request) -> Scanner:
    """Return the function that scans one uploaded file.

    Tests override this dependency to avoid invoking the external tools.
    """
    settings: Settings = request.app.state.settings
    return partial(run_scan, commands=settings.tool_commands)
