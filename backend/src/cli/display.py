from __future__ import annotations

from typing import Iterable

from ..scanner.models import Report

PLACEHOLDER = "-"


def _escape_cell(value: str) -> str:
    return value.replace("|", "\\|").replace("\n", " ").strip()


def format_markdown_table(header: tuple[str, str], rows: Iterable[tuple[str, str]]) -> str:
    """Build a two-column Markdown table padded so it also reads well as plain text."""
    escaped = [(_escape_cell(key), _escape_cell(value)) for key, value in rows]
    col_widths = [len(header[0]), len(header[1])]
    for key, value in escaped:
        col_widths[0] = max(col_widths[0], len(key))
        col_widths[1] = max(col_widths[1], len(value))

    def join(parts: tuple[str, str]) -> str:
        return "| " + " | ".join(part.ljust(col_widths[idx]) for idx, part in enumerate(parts)) + " |"

    separator = "|" + "|".join("-" * (width + 2) for width in col_widths) + "|"
    lines = [join(header), separator]
    lines.extend(join(parts) for parts in escaped)
    return "\n".join(lines)


def render_markdown(report: Report) -> str:
    """Render a report as the Markdown document shown by ``--table``."""
    magic_table = format_markdown_table(
        ("Field", "Value"),
        [("Mime", report.magic.mime), ("Description", report.magic.description)],
    )
    trid = "\n".join(f" - {candidate}" for candidate in report.trid) or PLACEHOLDER
    if report.exiftool:
        exiftool = format_markdown_table(("Field", "Value"), sorted(report.exiftool.items()))
    else:
        exiftool = PLACEHOLDER

    sections = [
        "#### File Info",
        "##### Magic",
        magic_table,
        "##### SSDeep",
        f" - `{report.ssdeep}`" if report.ssdeep else PLACEHOLDER,
        "##### TRiD",
        trid,
        "##### Exiftool",
        exiftool,
    ]
    return "\n\n".join(sections) + "\n"
