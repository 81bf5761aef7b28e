from __future__ import annotations

import logging
import os
import signal
import subprocess
from typing import Sequence

from .deadline import ScanScope
from .errors import ToolInvocationError
from .models import ToolInvocationOutcome

logger = logging.getLogger(__name__)

# How often a running tool is checked against an explicitly cancelled scope.
POLL_INTERVAL_SECONDS = 0.1

# How long a killed tool may take to release its output pipe.
KILL_GRACE_SECONDS = 1.0


def _decode(output: bytes | None) -> str:
    return (output or b"").decode("utf-8", errors="replace")


def run_tool(scope: ScanScope, program: str, args: Sequence[str] = ()) -> ToolInvocationOutcome:
    """
    Run one external analysis program under the scan deadline.

    stdout and stderr are captured together since the tools report "file not
    found" style diagnostics on either stream. The program is killed if the
    scope ends first; whatever it printed up to then is still returned.
    """
    command = [program, *args]
    if scope.done():
        return ToolInvocationOutcome(raw_output="", error=scope.error())

    logger.debug("Running %s", " ".join(command))
    try:
        process = subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )
    except OSError as exc:
        message = f"{program}: {exc.strerror or exc}"
        logger.warning("Could not start %s", message)
        return ToolInvocationOutcome(raw_output="", error=ToolInvocationError(message, program))

    while True:
        try:
            output, _ = process.communicate(timeout=min(POLL_INTERVAL_SECONDS, scope.remaining()))
            break
        except subprocess.TimeoutExpired:
            if scope.done():
                output = _kill(process)
                logger.warning("Killed %s: %s", program, scope.error())
                return ToolInvocationOutcome(raw_output=_decode(output), error=scope.error())

    raw_output = _decode(output)
    if process.returncode != 0:
        logger.warning("%s exited with status %s", program, process.returncode)
        return ToolInvocationOutcome(
            raw_output=raw_output,
            error=ToolInvocationError(
                f"{program} exited with status {process.returncode}",
                program,
                returncode=process.returncode,
            ),
        )
    return ToolInvocationOutcome(raw_output=raw_output)


def _kill(process: subprocess.Popen) -> bytes:
    """Kill the tool's whole process group and drain what it printed.

    A child that left the group can hold the pipe open; it is abandoned after
    the grace period and its output is lost.
    """
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    try:
        output, _ = process.communicate(timeout=KILL_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        process.stdout.close()
        process.wait()
        return b""
    return output
