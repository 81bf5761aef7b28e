from __future__ import annotations

import sys
import threading
import time

from src.scanner.deadline import ScanScope
from src.scanner.errors import DeadlineExceededError, ScanCancelledError, ToolInvocationError
from src.scanner.runner import KILL_GRACE_SECONDS, run_tool

PYTHON = sys.executable


def test_captures_stdout_and_stderr():
    with ScanScope(10) as scope:
        outcome = run_tool(
            scope,
            PYTHON,
            ["-c", "import sys; print('out'); sys.stdout.flush(); print('err', file=sys.stderr)"],
        )
    assert outcome.ok
    assert "out" in outcome.raw_output
    assert "err" in outcome.raw_output


def test_nonzero_exit_keeps_output():
    with ScanScope(10) as scope:
        outcome = run_tool(
            scope,
            PYTHON,
            ["-c", "import sys; print('/x: No such file or directory'); sys.exit(3)"],
        )
    assert isinstance(outcome.error, ToolInvocationError)
    assert outcome.error.returncode == 3
    assert "No such file or directory" in outcome.raw_output


def test_missing_program_is_reported():
    with ScanScope(10) as scope:
        outcome = run_tool(scope, "definitely-not-an-installed-tool-xyz", ["file"])
    assert isinstance(outcome.error, ToolInvocationError)
    assert outcome.error.program == "definitely-not-an-installed-tool-xyz"
    assert outcome.raw_output == ""


def test_slow_tool_is_killed_at_deadline():
    scope = ScanScope(0.3)
    started = time.monotonic()
    outcome = run_tool(scope, PYTHON, ["-c", "import time; time.sleep(30)"])
    elapsed = time.monotonic() - started
    assert isinstance(outcome.error, DeadlineExceededError)
    assert elapsed < 5


def test_deadline_kills_children_of_the_tool():
    scope = ScanScope(0.5)
    started = time.monotonic()
    outcome = run_tool(scope, "sh", ["-c", "sleep 8; echo done"])
    assert isinstance(outcome.error, DeadlineExceededError)
    assert "done" not in outcome.raw_output
    assert time.monotonic() - started < 3


def test_detached_child_holding_output_is_abandoned():
    # the grandchild starts its own session, so killing the tool's group misses it
    script = (
        "import subprocess, sys, time; "
        "subprocess.Popen([sys.executable, '-c', 'import time; time.sleep(8)'], start_new_session=True); "
        "time.sleep(30)"
    )
    scope = ScanScope(0.3)
    started = time.monotonic()
    outcome = run_tool(scope, PYTHON, ["-c", script])
    assert isinstance(outcome.error, DeadlineExceededError)
    assert time.monotonic() - started < 0.3 + KILL_GRACE_SECONDS + 2


def test_explicit_cancel_kills_tool():
    scope = ScanScope(30)
    threading.Timer(0.2, scope.cancel, args=("request closed",)).start()
    started = time.monotonic()
    outcome = run_tool(scope, PYTHON, ["-c", "import time; time.sleep(30)"])
    assert isinstance(outcome.error, ScanCancelledError)
    assert time.monotonic() - started < 5


def test_does_not_start_after_scope_ended(tmp_path):
    marker = tmp_path / "ran"
    scope = ScanScope(10)
    scope.cancel()
    outcome = run_tool(scope, PYTHON, ["-c", f"open({str(marker)!r}, 'w').close()"])
    assert isinstance(outcome.error, ScanCancelledError)
    assert not marker.exists()
