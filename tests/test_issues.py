"""
Tests for gcptools.issues: list_active_issues and get_issue_details against
a stub authorized session.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from gcptools.issues import ErrorGroupStats, time_range_period

GROUP_STATS = {
    "group": {"name": "projects/demo/groups/abc123", "groupId": "abc123"},
    "count": "42",
    "firstSeenTime": "2024-02-28T08:00:00Z",
    "lastSeenTime": "2024-03-01T11:00:00.5Z",
    "affectedServices": [{"service": "checkout", "version": "v7"}],
    "representative": {"message": "NullPointerException at Checkout.java:10"},
}

EVENT = {
    "eventTime": "2024-03-01T11:00:00Z",
    "serviceContext": {"service": "checkout", "version": "v7"},
    "message": "Traceback (most recent call last): ...",
    "context": {
        "httpRequest": {
            "method": "POST",
            "url": "/cart",
            "remoteIp": "10.0.0.1",
            "userAgent": "curl/8.0",
        },
        "reportLocation": {"filePath": "cart.py", "lineNumber": 88, "functionName": "add"},
    },
}


class TestTimeRangePeriod:

    @pytest.mark.parametrize("hours,period", [
        (0.5, "PERIOD_1_HOUR"),
        (1, "PERIOD_1_HOUR"),
        (3, "PERIOD_6_HOURS"),
        (24, "PERIOD_1_DAY"),
        (48, "PERIOD_1_WEEK"),
        (1000, "PERIOD_30_DAYS"),
    ])
    def test_smallest_covering_period(self, hours, period):
        assert time_range_period(hours) == period


class TestRecords:

    def test_group_id_from_name(self):
        stats = ErrorGroupStats.from_json({"group": {"name": "projects/demo/groups/xyz"}})
        assert stats.group_id == "xyz"
        assert stats.count == 0


class TestListActiveIssues:

    def test_no_issues(self, dispatcher, session):
        session.add({})
        result = dispatcher.invoke("list_active_issues", {"project_id": "demo"})
        assert not result.is_error
        assert result.text_content == "No active issues found in the specified time range."

    def test_request_parameters(self, dispatcher, session):
        session.add({})
        dispatcher.invoke("list_active_issues", {"project_id": "demo", "max_results": 3, "time_range_hours": 6})
        method, url, kwargs = session.calls[0]
        assert method == "GET"
        assert url == "https://clouderrorreporting.googleapis.com/v1beta1/projects/demo/groupStats"
        assert kwargs["params"] == {
            "timeRange.period": "PERIOD_6_HOURS",
            "pageSize": 3,
            "order": "COUNT_DESC",
            "alignment": "ALIGNMENT_EQUAL_ROUNDED",
        }

    def test_default_period_is_one_day(self, dispatcher, session):
        session.add({})
        dispatcher.invoke("list_active_issues", {"project_id": "demo"})
        assert session.calls[0][2]["params"]["timeRange.period"] == "PERIOD_1_DAY"
        assert session.calls[0][2]["params"]["pageSize"] == 10

    def test_groups_rendered(self, dispatcher, session):
        session.add({"errorGroupStats": [GROUP_STATS]})
        text = dispatcher.invoke("list_active_issues", {"project_id": "demo"}).text_content
        assert text.startswith("Found 1 active issues in project demo:")
        assert "### 1. Error Group: abc123" in text
        assert "- **Count**: 42 occurrences" in text
        assert "- **First Seen**: 2024-02-28 08:00:00" in text
        assert "- **Last Seen**: 2024-03-01 11:00:00" in text
        assert "  - checkout (version: v7)" in text
        assert "NullPointerException" in text
        assert text.rstrip().endswith("use the get_issue_details tool.")

    def test_zero_values_use_defaults(self, dispatcher, session):
        session.add({})
        result = dispatcher.invoke(
            "list_active_issues", {"project_id": "demo", "max_results": 0, "time_range_hours": 0}
        )
        assert not result.is_error
        params = session.calls[0][2]["params"]
        assert params["pageSize"] == 10
        assert params["timeRange.period"] == "PERIOD_1_DAY"


class TestGetIssueDetails:

    ARGS = {"project_id": "demo", "error_group_id": "abc123"}

    def test_events_rendered(self, dispatcher, session):
        session.add({"errorEvents": [EVENT]})
        text = dispatcher.invoke("get_issue_details", self.ARGS).text_content
        assert text.startswith("## Error Group: abc123\n")
        assert "#### Event 1" in text
        assert "- **Time**: 2024-03-01 11:00:00" in text
        assert "- **Service**: checkout (version: v7)" in text
        assert "- **Location**: cart.py:88 in add" in text
        assert "- **Request**: POST /cart" in text
        assert "- **Remote IP**: 10.0.0.1" in text
        assert "```\nTraceback (most recent call last): ...\n```" in text
        assert "### Potential Causes and Solutions" in text
        assert "5. Consider temporary mitigations" in text

    def test_request_parameters(self, dispatcher, session):
        session.add({})
        dispatcher.invoke("get_issue_details", self.ARGS)
        _, url, kwargs = session.calls[0]
        assert url.endswith("/projects/demo/events")
        assert kwargs["params"] == {"groupId": "abc123", "pageSize": 10}

    def test_no_events(self, dispatcher, session):
        session.add({})
        text = dispatcher.invoke("get_issue_details", self.ARGS).text_content
        assert "No recent error events found." in text
        assert "### Potential Causes and Solutions" in text

    def test_transport_failure(self, dispatcher, session):
        import requests

        session.add_error(requests.ConnectionError("connection refused"))
        result = dispatcher.invoke("get_issue_details", self.ARGS)
        assert result.is_error
        assert result.text_content.startswith("Error making request to Error Reporting API:")
