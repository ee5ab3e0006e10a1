"""
Error Reporting tools (REST v1beta1).

Tools: ``list_active_issues``, ``get_issue_details``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Any

from gcptools import decode as d
from gcptools.api import GoogleAPIClient, decode
from toolcore import schema
from toolcore.dispatch import CallContext
from toolcore.registry import ToolRegistry
from toolcore.render import Report, format_timestamp
from toolcore.schema import ToolDefinition

ERROR_REPORTING_BASE_URL = "https://clouderrorreporting.googleapis.com/v1beta1"
API_NAME = "Error Reporting API"

# Smallest supported period that covers the requested window.
_PERIODS = (
    (1, "PERIOD_1_HOUR"),
    (6, "PERIOD_6_HOURS"),
    (24, "PERIOD_1_DAY"),
    (24 * 7, "PERIOD_1_WEEK"),
)
_LONGEST_PERIOD = "PERIOD_30_DAYS"

EVENTS_PAGE_SIZE = 10

POTENTIAL_CAUSES = (
    "Check the error messages and stack traces for clues about the root cause.",
    "Look for patterns in the affected services and versions.",
    "Check recent deployments or changes to affected services.",
    "Examine logs around the time of the errors for related issues.",
    "Consider temporary mitigations like rolling back to a previous version if errors persist.",
)


def time_range_period(hours: float) -> str:
    for limit, period in _PERIODS:
        if hours <= limit:
            return period
    return _LONGEST_PERIOD


@dataclass
class ServiceContext:
    service: str
    version: str

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "ServiceContext":
        return cls(service=d.string(data, "service"), version=d.string(data, "version"))

    def __str__(self) -> str:
        return f"{self.service} (version: {self.version or 'unknown'})"


@dataclass
class ErrorGroupStats:
    group_id: str
    count: int
    first_seen: str
    last_seen: str
    affected_services: list[ServiceContext] = field(default_factory=list)
    representative_message: str = ""

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "ErrorGroupStats":
        group = d.obj(data, "group")
        # Fall back to the last segment of projects/<p>/groups/<id>.
        group_id = d.string(group, "groupId") or d.string(group, "name").rsplit("/", 1)[-1]
        return cls(
            group_id=group_id,
            count=d.integer(data, "count"),
            first_seen=d.string(data, "firstSeenTime"),
            last_seen=d.string(data, "lastSeenTime"),
            affected_services=[ServiceContext.from_json(s) for s in d.objects(data, "affectedServices")],
            representative_message=d.string(d.obj(data, "representative"), "message"),
        )


@dataclass
class ErrorEvent:
    event_time: str
    service: ServiceContext | None
    message: str
    file_path: str = ""
    line_number: int = 0
    function_name: str = ""
    http_method: str = ""
    http_url: str = ""
    remote_ip: str = ""
    user_agent: str = ""
    referrer: str = ""

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "ErrorEvent":
        service = d.optional_obj(data, "serviceContext")
        context = d.obj(data, "context")
        location = d.obj(context, "reportLocation")
        http = d.obj(context, "httpRequest")
        return cls(
            event_time=d.string(data, "eventTime"),
            service=ServiceContext.from_json(service) if service is not None else None,
            message=d.string(data, "message"),
            file_path=d.string(location, "filePath"),
            line_number=d.integer(location, "lineNumber"),
            function_name=d.string(location, "functionName"),
            http_method=d.string(http, "method"),
            http_url=d.string(http, "url"),
            remote_ip=d.string(http, "remoteIp"),
            user_agent=d.string(http, "userAgent"),
            referrer=d.string(http, "referrer"),
        )

    @property
    def location(self) -> str:
        if not self.file_path:
            return ""
        text = f"{self.file_path}:{self.line_number}"
        if self.function_name:
            text += f" in {self.function_name}"
        return text

    @property
    def request_line(self) -> str:
        return f"{self.http_method} {self.http_url}".strip()


def _parse_group_stats(data: dict[str, Any]) -> list[ErrorGroupStats]:
    return [ErrorGroupStats.from_json(item) for item in d.objects(data, "errorGroupStats")]


def _parse_events(data: dict[str, Any]) -> list[ErrorEvent]:
    return [ErrorEvent.from_json(item) for item in d.objects(data, "errorEvents")]


def handle_list_active_issues(api: GoogleAPIClient, ctx: CallContext, args: dict[str, Any]) -> str:
    project_id = args["project_id"]
    params = {
        "timeRange.period": time_range_period(args["time_range_hours"]),
        "pageSize": int(args["max_results"]),
        "order": "COUNT_DESC",
        "alignment": "ALIGNMENT_EQUAL_ROUNDED",
    }

    url = f"{ERROR_REPORTING_BASE_URL}/projects/{project_id}/groupStats"
    with api.connect(ctx, API_NAME) as conn:
        data = conn.get_json(url, params, what="error groups")
    groups = decode(_parse_group_stats, data, "error groups")

    if not groups:
        return "No active issues found in the specified time range."

    report = Report()
    report.paragraph(f"Found {len(groups)} active issues in project {project_id}:")
    for i, group in enumerate(groups, start=1):
        report.heading(f"{i}. Error Group: {group.group_id}", level=3)
        report.fields([
            ("Count", f"{group.count} occurrences"),
            ("First Seen", format_timestamp(group.first_seen)),
            ("Last Seen", format_timestamp(group.last_seen)),
            ("Affected Services", [str(s) for s in group.affected_services]),
        ])
        if group.representative_message:
            report.code_block(group.representative_message)
    report.paragraph("To get more details about a specific error group, use the get_issue_details tool.")
    return report.render()


def handle_get_issue_details(api: GoogleAPIClient, ctx: CallContext, args: dict[str, Any]) -> str:
    project_id = args["project_id"]
    group_id = args["error_group_id"]
    params = {"groupId": group_id, "pageSize": EVENTS_PAGE_SIZE}

    url = f"{ERROR_REPORTING_BASE_URL}/projects/{project_id}/events"
    with api.connect(ctx, API_NAME) as conn:
        data = conn.get_json(url, params, what="error events")
    events = decode(_parse_events, data, "error events")

    report = Report()
    report.heading(f"Error Group: {group_id}", level=2)
    report.heading("Recent Error Events", level=3)

    if not events:
        report.paragraph("No recent error events found.")

    for i, event in enumerate(events, start=1):
        report.heading(f"Event {i}", level=4)
        report.fields([
            ("Time", format_timestamp(event.event_time)),
            ("Service", str(event.service) if event.service else None),
            ("Location", event.location),
            ("Request", event.request_line),
            ("Remote IP", event.remote_ip),
            ("User Agent", event.user_agent),
            ("Referrer", event.referrer),
        ])
        if event.message:
            report.code_block(event.message)

    report.heading("Potential Causes and Solutions", level=3)
    report.numbered(POTENTIAL_CAUSES)
    return report.render()


_PROJECT_ID = schema.string("project_id", "The Google Cloud project ID", required=True)


def register(registry: ToolRegistry, api: GoogleAPIClient) -> None:
    registry.register(ToolDefinition(
        name="list_active_issues",
        description="Lists active issues from GCP Error Reporting",
        parameters=(
            _PROJECT_ID,
            schema.number(
                "time_range_hours", "Time range for issues in hours (default: 24)",
                default=24, positive=True,
            ),
            schema.number(
                "max_results", "Maximum number of results to return (default: 10)",
                default=10, positive=True,
            ),
        ),
        handler=partial(handle_list_active_issues, api),
    ))
    registry.register(ToolDefinition(
        name="get_issue_details",
        description="Gets detailed information about a specific error group",
        parameters=(
            _PROJECT_ID,
            schema.string("error_group_id", "The ID of the error group", required=True),
        ),
        handler=partial(handle_get_issue_details, api),
    ))
