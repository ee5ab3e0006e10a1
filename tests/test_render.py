"""
Tests for toolcore.render: timestamp normalization and Markdown report
primitives.
"""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from toolcore.render import Report, enabled_label, format_timestamp, format_value


class TestFormatTimestamp:

    def test_utc(self):
        assert format_timestamp("2024-03-01T12:34:56Z") == "2024-03-01 12:34:56"

    def test_fractional_seconds(self):
        assert format_timestamp("2024-03-01T12:34:56.123456789Z") == "2024-03-01 12:34:56"

    def test_offset_kept_as_wall_clock(self):
        assert format_timestamp("2024-03-01T12:34:56+02:00") == "2024-03-01 12:34:56"

    def test_unparseable_returned_verbatim(self):
        assert format_timestamp("yesterday") == "yesterday"
        assert format_timestamp("2024-13-45T99:00:00Z") == "2024-13-45T99:00:00Z"

    def test_empty(self):
        assert format_timestamp("") == ""
        assert format_timestamp(None) is None


class TestValues:

    def test_labels(self):
        assert enabled_label(True) == "Enabled"
        assert enabled_label(False) == "Disabled"

    def test_format_value(self):
        assert format_value(True) == "Yes"
        assert format_value(False) == "No"
        assert format_value(3.0) == "3"
        assert format_value(2.5) == "2.5"
        assert format_value(7) == "7"


class TestReport:

    def test_empty_report(self):
        report = Report()
        assert not report
        assert report.render() == ""

    def test_blocks_joined_by_blank_lines(self):
        report = Report().heading("Title").paragraph("Body")
        assert report.render() == "# Title\n\nBody\n"

    def test_fields_skip_empty_values(self):
        report = Report().fields([
            ("Name", "web"),
            ("Description", ""),
            ("Labels", {}),
            ("Zones", []),
            ("Missing", None),
            ("Count", 0),
        ])
        assert report.render() == "- **Name**: web\n- **Count**: 0\n"

    def test_fields_nested_list_and_mapping(self):
        report = Report().fields([
            ("Zones", ["us-central1-a", "us-central1-b"]),
            ("Labels", {"env": "prod", "team": "sre"}),
        ])
        assert report.render() == (
            "- **Zones**:\n"
            "  - us-central1-a\n"
            "  - us-central1-b\n"
            "- **Labels**:\n"
            "  - env: prod\n"
            "  - team: sre\n"
        )

    def test_all_empty_fields_add_nothing(self):
        report = Report().fields([("A", ""), ("B", None)])
        assert not report

    def test_table(self):
        report = Report().table(("Time", "Value"), [("2024-01-01 00:00:00", "1|2")])
        assert report.render() == (
            "| Time | Value |\n"
            "| ---- | ----- |\n"
            "| 2024-01-01 00:00:00 | 1\\|2 |\n"
        )

    def test_numbered_and_code_block(self):
        report = Report().numbered(["one", "two"]).code_block("x = 1", "python")
        assert report.render() == "1. one\n2. two\n\n```python\nx = 1\n```\n"
