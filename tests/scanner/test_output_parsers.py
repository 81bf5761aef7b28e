from __future__ import annotations

import pytest

from src.scanner.errors import ToolInvocationError
from src.scanner.parsers import (
    TRID_BANNER_LINES,
    camel_case,
    parse_exiftool_output,
    parse_ssdeep_output,
    parse_trid_output,
)

TRID_BANNER = (
    "\n"
    "TrID/32 - File Identifier v2.24 - (C) 2003-16 By M.Pontello\n"
    "Definitions found:  12117\n"
    "Analyzing...\n"
    "\n"
    "Collecting data from file: sample.apk\n"
)

EXIFTOOL_OUTPUT = """ExifTool Version Number         : 10.65
File Name                       : foo.exe
Directory                       : /malware
File Size                       : 10 kB
File Modification Date/Time     : 2017:11:20 10:11:12+00:00
File Permissions                : rw-r--r--
File Type                       : Win32 EXE
MIME Type                       : application/octet-stream
"""


def _failure() -> ToolInvocationError:
    return ToolInvocationError("ssdeep exited with status 1", "ssdeep", returncode=1)


@pytest.mark.parametrize("parser", [parse_ssdeep_output, parse_trid_output, parse_exiftool_output])
@pytest.mark.parametrize("output", ["", "\n", "garbage", "a\nb"])
def test_parsers_never_raise_on_odd_output(parser, output):
    parser(output, None)


class TestSsdeep:
    def test_extracts_digest_from_second_line(self):
        output = "ssdeep,1.1--blocksize:hash:hash,filename\n3:digesthash:abc,\"/malware/sample\"\n"
        assert parse_ssdeep_output(output) == "3:digesthash:abc"

    def test_digest_is_trimmed_left_part_of_first_comma(self):
        assert parse_ssdeep_output("header\ndigesthash,path\n") == "digesthash"
        assert parse_ssdeep_output("header\n  digesthash  ,a,b\n") == "digesthash"

    def test_missing_second_line_is_empty(self):
        assert parse_ssdeep_output("header\n") == ""
        assert parse_ssdeep_output("header") == ""

    def test_missing_file_is_empty(self):
        output = "ssdeep: /malware/nope: No such file or directory\n"
        assert parse_ssdeep_output(output) == ""

    def test_invocation_error_becomes_value(self):
        assert parse_ssdeep_output("partial", _failure()) == "ssdeep exited with status 1"


class TestTrid:
    def test_keeps_ranked_candidates_in_order(self):
        candidates = [
            " 62.5% (.APK) Android Package (4000/1/2)",
            " 25.0% (.JAR) Java Archive (1600/1)",
            " 12.5% (.ZIP) ZIP compressed archive (800/1)",
        ]
        output = TRID_BANNER + "\n".join(candidates) + "\n"
        assert parse_trid_output(output) == [line.strip() for line in candidates]

    def test_banner_is_fixed_size(self):
        assert TRID_BANNER.count("\n") == TRID_BANNER_LINES
        assert parse_trid_output(TRID_BANNER) == []

    def test_blank_lines_dropped(self):
        output = TRID_BANNER + "\n  90.0% match  \n\n\n"
        assert parse_trid_output(output) == ["90.0% match"]

    def test_no_files_is_empty(self):
        output = TRID_BANNER + "Error: found no file(s) to analyze!\n"
        assert parse_trid_output(output) == []

    def test_short_output_is_empty(self):
        assert parse_trid_output("only\ntwo lines") == []

    def test_invocation_error_is_single_entry(self):
        error = ToolInvocationError("trid: No such file or directory", "trid")
        assert parse_trid_output("", error) == ["trid: No such file or directory"]


class TestExiftool:
    def test_parses_and_normalizes_keys(self):
        tags = parse_exiftool_output(EXIFTOOL_OUTPUT)
        assert tags == {
            "ExifToolVersionNumber": "10.65",
            "FileSize": "10 kB",
            "FileType": "Win32 EXE",
            "MIMEType": "application/octet-stream",
        }

    def test_drops_filesystem_tags(self):
        tags = parse_exiftool_output("File Name: foo.exe\nFileName: bar.exe\n")
        assert "File Name" not in tags
        assert "FileName" not in tags

    def test_value_keeps_text_after_first_colon(self):
        tags = parse_exiftool_output("Create Date : 2017:01:01 12:00:00\n")
        assert tags == {"CreateDate": "2017:01:01 12:00:00"}

    def test_lines_without_separator_skipped(self):
        assert parse_exiftool_output("no separator here\n: orphan value\n") == {}

    def test_later_duplicate_wins(self):
        tags = parse_exiftool_output("Title: first\nTitle: second\n")
        assert tags == {"Title": "second"}

    def test_file_not_found_is_empty(self):
        assert parse_exiftool_output("Error: File not found - /malware/nope\n") == {}

    def test_invocation_error_is_error_entry(self):
        error = ToolInvocationError("exiftool exited with status 2", "exiftool", returncode=2)
        assert parse_exiftool_output("", error) == {"error": "exiftool exited with status 2"}


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("File Size", "FileSize"),
        ("FileSize", "FileSize"),
        ("  MIME Type ", "MIMEType"),
        ("File Modification Date/Time", "FileModificationDateTime"),
        ("image width", "ImageWidth"),
        ("x resolution", "XResolution"),
        ("---", ""),
    ],
)
def test_camel_case(raw, expected):
    assert camel_case(raw) == expected
