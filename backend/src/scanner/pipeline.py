from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

from .deadline import ScanScope
from .errors import MandatoryToolError, ScanCancelledError
from .magic_probe import probe_magic
from .models import MagicResult, Report, ScanRequest, ToolInvocationOutcome
from .parsers import parse_exiftool_output, parse_ssdeep_output, parse_trid_output
from .runner import run_tool

logger = logging.getLogger(__name__)

PLUGIN_NAME = "apkfile"
PLUGIN_CATEGORY = "metadata"

Runner = Callable[[ScanScope, str, Sequence[str]], ToolInvocationOutcome]
MagicProbe = Callable[[ScanScope, Path], MagicResult]


@dataclass(frozen=True)
class ToolCommands:
    """Command prefixes for each external tool; the scanned path is appended."""

    ssdeep: Tuple[str, ...] = ("ssdeep",)
    trid: Tuple[str, ...] = ("trid",)
    exiftool: Tuple[str, ...] = ("exiftool",)
    archive: Tuple[str, ...] = ("java", "-jar", "apkfile.jar")


def build_report(
    magic: MagicResult,
    ssdeep: str,
    trid: List[str],
    exiftool: Dict[str, str],
    apk_file: str,
) -> Report:
    return Report(magic=magic, ssdeep=ssdeep, trid=tuple(trid), exiftool=exiftool, apk_file=apk_file)


def file_sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _invoke(scope: ScanScope, runner: Runner, command: Tuple[str, ...], path: Path) -> ToolInvocationOutcome:
    program, *args = command
    return runner(scope, program, [*args, str(path)])


def run_scan(
    scope: ScanScope,
    path: Path,
    *,
    commands: ToolCommands = ToolCommands(),
    runner: Runner = run_tool,
    magic_probe: MagicProbe = probe_magic,
) -> Report:
    """
    Scan one file with every tool, in order, under ``scope``.

    The ssdeep, TRiD and exiftool steps degrade to error text on failure. The
    archive tool is mandatory: if it fails the scan is aborted with
    MandatoryToolError, or with the scope's own error if the deadline or a
    cancellation caused the failure.
    """
    request = ScanRequest(path=Path(path).resolve(), deadline=scope.deadline)
    logger.info("Scanning %s (%.1fs left)", request.path, scope.remaining())

    magic = magic_probe(scope, request.path)

    ssdeep = parse_ssdeep_output(*_unpack(_invoke(scope, runner, commands.ssdeep, request.path)))
    trid = parse_trid_output(*_unpack(_invoke(scope, runner, commands.trid, request.path)))
    exiftool = parse_exiftool_output(*_unpack(_invoke(scope, runner, commands.exiftool, request.path)))

    archive = _invoke(scope, runner, commands.archive, request.path)
    if archive.error is not None:
        if isinstance(archive.error, ScanCancelledError):
            raise archive.error
        raise MandatoryToolError(f"archive metadata tool failed: {archive.error}") from archive.error

    return build_report(magic, ssdeep, trid, exiftool, archive.raw_output)


def _unpack(outcome: ToolInvocationOutcome):
    return outcome.raw_output, outcome.error
