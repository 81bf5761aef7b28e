from __future__ import annotations

from typing import Optional


class ScanError(Exception):
    def __init__(self, message: str, code: str) -> None:
        super().__init__(message)
        self.code = code


class ScanCancelledError(ScanError):
    """The scan scope was cancelled before the operation could finish."""

    def __init__(self, message: str = "scan cancelled", code: str = "SCAN_CANCELLED") -> None:
        super().__init__(message, code)


class DeadlineExceededError(ScanCancelledError):
    def __init__(self, message: str = "scan deadline exceeded") -> None:
        super().__init__(message, code="DEADLINE_EXCEEDED")


class MagicDetectionError(ScanError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code="MAGIC_FAILED")


class ToolInvocationError(ScanError):
    def __init__(self, message: str, program: str, returncode: Optional[int] = None) -> None:
        super().__init__(message, code="TOOL_FAILED")
        self.program = program
        self.returncode = returncode


class MandatoryToolError(ScanError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code="MANDATORY_TOOL_FAILED")


class IndexStoreError(ScanError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code="INDEX_STORE_FAILED")


class WebhookError(ScanError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code="WEBHOOK_FAILED")
