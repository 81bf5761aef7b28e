from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ScanRequest:
    """A single file to scan and the monotonic-clock instant its scan must end by."""

    path: Path
    deadline: float


@dataclass(frozen=True)
class MagicResult:
    """MIME type and libmagic description of a file.

    Either field holds the error text in place of the detected value when the
    lookup failed, so both are always populated.
    """

    mime: str
    description: str


@dataclass(frozen=True)
class ToolInvocationOutcome:
    raw_output: str
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Report:
    """Aggregate scan result handed to every sink.

    Fields are never missing: a tool that failed contributes its error text or
    an empty value instead.
    """

    magic: MagicResult
    ssdeep: str
    trid: Tuple[str, ...]
    exiftool: Mapping[str, str]
    apk_file: str
    markdown: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "trid", tuple(self.trid))
        object.__setattr__(self, "exiftool", MappingProxyType(dict(self.exiftool)))

    def with_markdown(self, markdown: str) -> "Report":
        return replace(self, markdown=markdown)

    def to_dict(self, *, include_markdown: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "magic": {"mime": self.magic.mime, "description": self.magic.description},
            "ssdeep": self.ssdeep,
            "trid": list(self.trid),
            "exiftool": dict(self.exiftool),
        }
        if include_markdown and self.markdown:
            payload["markdown"] = self.markdown
        payload["apk_file"] = self.apk_file
        return payload
