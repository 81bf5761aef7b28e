"""Turn the raw text printed by ssdeep, TRiD and exiftool into report fields.

Every parser takes ``(raw_output, error)`` as produced by the tool runner and
never raises: an invocation error becomes the field's value, and output that
does not look like what the tool normally prints degrades to an empty value.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

SSDEEP_MISSING_FILE = "No such file or directory"
TRID_NO_FILES = "Error: found no file(s) to analyze!"
EXIFTOOL_MISSING_FILE = "File not found"

# TRiD prints a fixed banner before its ranked matches. This depends on the
# TRiD release installed; a banner change only needs this number updated.
TRID_BANNER_LINES = 6

# Filesystem details the caller already knows about the scanned file.
EXIFTOOL_IGNORED_TAGS = frozenset(
    {
        "Directory",
        "File Name",
        "File Permissions",
        "File Modification Date/Time",
    }
)

_WORD_RE = re.compile(r"[0-9A-Za-z]+")


def _contains(lines: List[str], marker: str) -> bool:
    return any(marker in line for line in lines)


def camel_case(value: str) -> str:
    """Join the alphanumeric words of ``value``, capitalising each one.

    >>> camel_case("File Modification Date/Time")
    'FileModificationDateTime'
    """
    return "".join(word[:1].upper() + word[1:] for word in _WORD_RE.findall(value))


_IGNORED_KEYS = frozenset(camel_case(tag) for tag in EXIFTOOL_IGNORED_TAGS)


def parse_ssdeep_output(output: str, error: Optional[Exception] = None) -> str:
    if error is not None:
        return str(error)

    lines = output.split("\n")
    logger.debug("ssdeep lines: %s", lines)

    if _contains(lines, SSDEEP_MISSING_FILE):
        return ""
    if len(lines) < 2:
        return ""

    digest, _, _ = lines[1].partition(",")
    return digest.strip()


def parse_trid_output(output: str, error: Optional[Exception] = None) -> List[str]:
    if error is not None:
        return [str(error)]

    lines = output.split("\n")
    logger.debug("TRiD lines: %s", lines)

    if _contains(lines, TRID_NO_FILES):
        return []

    return [line.strip() for line in lines[TRID_BANNER_LINES:] if line.strip()]


def parse_exiftool_output(output: str, error: Optional[Exception] = None) -> Dict[str, str]:
    if error is not None:
        return {"error": str(error)}

    lines = output.split("\n")
    logger.debug("Exiftool lines: %s", lines)

    if _contains(lines, EXIFTOOL_MISSING_FILE):
        return {}

    tags: Dict[str, str] = {}
    for line in lines:
        raw_key, separator, value = line.partition(":")
        if not separator:
            continue
        key = camel_case(raw_key)
        if not key or raw_key.strip() in EXIFTOOL_IGNORED_TAGS or key in _IGNORED_KEYS:
            continue
        tags[key] = value.strip()
    return tags
