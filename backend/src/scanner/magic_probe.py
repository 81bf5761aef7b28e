from __future__ import annotations

import contextlib
import logging
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, ContextManager, Iterator, TypeVar

import magic

from .deadline import ScanScope
from .errors import MagicDetectionError, ScanCancelledError
from .models import MagicResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Returns a context manager yielding an object with ``from_file(path) -> str``.
HandleFactory = Callable[..., ContextManager["magic.Magic"]]


@contextlib.contextmanager
def open_magic_handle(*, mime: bool) -> Iterator["magic.Magic"]:
    """Open a private libmagic handle and close it on every exit path."""
    handle = magic.Magic(mime=mime)
    try:
        yield handle
    finally:
        magic.magic_close(handle.cookie)
        handle.cookie = None


def run_in_background(scope: ScanScope, operation: Callable[[], T]) -> T:
    """
    Run ``operation`` on a worker thread and wait for it or the scope, whichever ends first.

    When the scope ends first the worker is still joined before the scope's
    error is raised; a libmagic call cannot be interrupted and must be allowed
    to close its handle.
    """
    scope.check()
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="magic-probe")
    try:
        future = executor.submit(operation)
        if not scope.wait_for(future):
            logger.debug("Scan scope ended during magic detection; waiting for worker")
            wait([future])
            raise scope.error()
        return future.result()
    finally:
        executor.shutdown(wait=True)


def retry_once_unless_cancelled(scope: ScanScope, operation: Callable[[], T]) -> T:
    """Call ``operation`` and retry it exactly once if it fails while the scope is still live."""
    try:
        return operation()
    except ScanCancelledError:
        raise
    except MagicDetectionError as exc:
        if scope.done():
            raise
        logger.debug("Magic detection failed (%s); retrying once", exc)
    return operation()


def _detect(scope: ScanScope, path: Path, *, mime: bool, open_handle: HandleFactory) -> str:
    target = str(Path(path).resolve())

    def lookup() -> str:
        try:
            with open_handle(mime=mime) as handle:
                return handle.from_file(target)
        except (magic.MagicException, OSError) as exc:
            raise MagicDetectionError(str(exc)) from exc

    return run_in_background(scope, lookup)


def detect_mime_type(scope: ScanScope, path: Path, *, open_handle: HandleFactory = open_magic_handle) -> str:
    return _detect(scope, path, mime=True, open_handle=open_handle)


def detect_description(scope: ScanScope, path: Path, *, open_handle: HandleFactory = open_magic_handle) -> str:
    return _detect(scope, path, mime=False, open_handle=open_handle)


def _field_value(scope: ScanScope, operation: Callable[[], str]) -> str:
    try:
        return retry_once_unless_cancelled(scope, operation)
    except (MagicDetectionError, ScanCancelledError) as exc:
        logger.warning("Magic detection gave up: %s", exc)
        return str(exc)


def probe_mime_type(scope: ScanScope, path: Path, *, open_handle: HandleFactory = open_magic_handle) -> str:
    """MIME type of ``path``, or the error text when it could not be detected."""
    return _field_value(scope, lambda: detect_mime_type(scope, path, open_handle=open_handle))


def probe_magic(scope: ScanScope, path: Path, *, open_handle: HandleFactory = open_magic_handle) -> MagicResult:
    return MagicResult(
        mime=probe_mime_type(scope, path, open_handle=open_handle),
        description=_field_value(
            scope, lambda: detect_description(scope, path, open_handle=open_handle)
        ),
    )
