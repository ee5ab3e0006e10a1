"""
Cloud Logging tools (REST v2, ``entries:list``).

Tools: ``query_logs``, ``get_pod_logs``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import partial
from typing import Any

from gcptools import decode as d
from gcptools.api import GoogleAPIClient, decode
from toolcore import schema
from toolcore.dispatch import CallContext
from toolcore.errors import ValidationError
from toolcore.registry import ToolRegistry
from toolcore.render import Report, format_timestamp
from toolcore.schema import ToolDefinition

LOGGING_BASE_URL = "https://logging.googleapis.com/v2"
API_NAME = "Logging API"

RFC3339_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def time_window(hours: float, end: datetime | None = None) -> tuple[str, str]:
    """Return (start, end) RFC3339 strings for the last *hours* hours."""
    end = end or _now()
    try:
        start = end - timedelta(hours=hours)
    except OverflowError as exc:
        raise ValidationError("time_range_hours", f"time_range_hours is out of range: {hours:g}") from exc
    return start.strftime(RFC3339_FORMAT), end.strftime(RFC3339_FORMAT)


@dataclass
class LogEntry:
    timestamp: str
    severity: str
    log_name: str
    resource_type: str
    resource_labels: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    text_payload: str = ""
    json_payload: dict[str, Any] | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "LogEntry":
        resource = d.obj(data, "resource")
        return cls(
            timestamp=d.string(data, "timestamp"),
            severity=d.string(data, "severity"),
            log_name=d.string(data, "logName"),
            resource_type=d.string(resource, "type"),
            resource_labels=d.string_map(resource, "labels"),
            labels=d.string_map(data, "labels"),
            text_payload=d.string(data, "textPayload"),
            json_payload=d.optional_obj(data, "jsonPayload"),
        )

    @property
    def container(self) -> str:
        return self.resource_labels.get("container_name", "")

    def message(self) -> str:
        """One-line rendering of the payload for a log tail."""
        if self.text_payload:
            return self.text_payload
        if self.json_payload is not None:
            if "message" in self.json_payload:
                return str(self.json_payload["message"])
            return json.dumps(self.json_payload)
        return ""


@dataclass
class LogPage:
    entries: list[LogEntry]
    next_page_token: str

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "LogPage":
        return cls(
            entries=[LogEntry.from_json(item) for item in d.objects(data, "entries")],
            next_page_token=d.string(data, "nextPageToken"),
        )


def _list_entries(api: GoogleAPIClient, ctx: CallContext, project_id: str, filter_: str, page_size: int) -> LogPage:
    body = {
        "resourceNames": [f"projects/{project_id}"],
        "filter": filter_,
        "orderBy": "timestamp desc",
        "pageSize": page_size,
    }
    with api.connect(ctx, API_NAME) as conn:
        data = conn.post_json(f"{LOGGING_BASE_URL}/entries:list", body)
    return decode(LogPage.from_json, data)


def build_query_filter(filter_: str, hours: float, end: datetime | None = None) -> str:
    """Append a timestamp window unless the filter already constrains time."""
    if "timestamp" in filter_:
        return filter_
    start, stop = time_window(hours, end)
    return f'{filter_} AND timestamp >= "{start}" AND timestamp <= "{stop}"'


def build_pod_filter(
    project_id: str,
    location: str,
    cluster_name: str,
    namespace: str,
    pod_name: str,
    container_name: str,
    hours: float,
    end: datetime | None = None,
) -> str:
    clauses = [
        'resource.type="k8s_container"',
        f'resource.labels.project_id="{project_id}"',
        f'resource.labels.location="{location}"',
        f'resource.labels.cluster_name="{cluster_name}"',
        f'resource.labels.namespace_name="{namespace}"',
        f'resource.labels.pod_name="{pod_name}"',
    ]
    if container_name:
        clauses.append(f'resource.labels.container_name="{container_name}"')
    start, stop = time_window(hours, end)
    clauses.append(f'timestamp >= "{start}"')
    clauses.append(f'timestamp <= "{stop}"')
    return " AND ".join(clauses)


def handle_query_logs(api: GoogleAPIClient, ctx: CallContext, args: dict[str, Any]) -> str:
    filter_ = build_query_filter(args["filter"], args["time_range_hours"])
    page = _list_entries(api, ctx, args["project_id"], filter_, int(args["max_results"]))

    if not page.entries:
        return "No logs found matching the filter criteria."

    report = Report()
    report.paragraph(f"Found {len(page.entries)} log entries matching the filter criteria:")
    for i, entry in enumerate(page.entries, start=1):
        report.heading(f"Log Entry {i}", level=3)
        report.fields([
            ("Timestamp", format_timestamp(entry.timestamp)),
            ("Severity", entry.severity),
            ("Log Name", entry.log_name),
            ("Resource Type", entry.resource_type),
            ("Resource Labels", entry.resource_labels),
            ("Labels", entry.labels),
        ])
        if entry.text_payload:
            report.code_block(entry.text_payload)
        elif entry.json_payload is not None:
            report.code_block(json.dumps(entry.json_payload, indent=2), "json")
        else:
            report.paragraph("No payload")

    if page.next_page_token:
        report.paragraph(
            "Note: There are more log entries available. "
            "Refine your filter or increase max_results to see more."
        )
    return report.render()


def handle_get_pod_logs(api: GoogleAPIClient, ctx: CallContext, args: dict[str, Any]) -> str:
    namespace = args["namespace"]
    pod_name = args["pod_name"]
    container_name = args["container_name"] or ""
    hours = args["time_range_hours"]

    filter_ = build_pod_filter(
        args["project_id"], args["location"], args["cluster_name"],
        namespace, pod_name, container_name, hours,
    )
    page = _list_entries(api, ctx, args["project_id"], filter_, int(args["max_results"]))

    if not page.entries:
        return f"No logs found for pod {pod_name} in namespace {namespace}."

    title = f"Logs for pod {pod_name}"
    if container_name:
        title += f", container {container_name}"
    title += f" in namespace {namespace}"

    # The API returns the newest entries first; show the page oldest first.
    lines = []
    for entry in reversed(page.entries):
        stamp = format_timestamp(entry.timestamp)
        if container_name:
            lines.append(f"[{stamp}] {entry.message()}")
        else:
            lines.append(f"[{stamp}] [{entry.container}] {entry.message()}")

    report = Report()
    report.heading(title, level=2)
    report.paragraph(f"Found {len(page.entries)} log entries in the last {hours:.1f} hours:")
    report.code_block("\n".join(lines))
    if page.next_page_token:
        report.paragraph(
            "Note: There are more log entries available. "
            "Increase time_range_hours or max_results to see more."
        )
    return report.render()


_PROJECT_ID = schema.string("project_id", "The Google Cloud project ID", required=True)


def register(registry: ToolRegistry, api: GoogleAPIClient) -> None:
    registry.register(ToolDefinition(
        name="query_logs",
        description="Queries logs from GCP Cloud Logging",
        parameters=(
            _PROJECT_ID,
            schema.string("filter", "The filter expression for the logs query", required=True),
            schema.number(
                "time_range_hours", "Time range for logs in hours (default: 1)",
                default=1, positive=True,
            ),
            schema.number(
                "max_results", "Maximum number of results to return (default: 50)",
                default=50, positive=True,
            ),
        ),
        handler=partial(handle_query_logs, api),
    ))
    registry.register(ToolDefinition(
        name="get_pod_logs",
        description="Gets logs for a specific Kubernetes pod",
        parameters=(
            _PROJECT_ID,
            schema.string("location", "The GKE cluster location", required=True),
            schema.string("cluster_name", "The GKE cluster name", required=True),
            schema.string("namespace", "The Kubernetes namespace", required=True),
            schema.string("pod_name", "The name of the pod", required=True),
            schema.string(
                "container_name",
                "The name of the container (if not provided, logs from all containers will be returned)",
            ),
            schema.number(
                "time_range_hours", "Time range for logs in hours (default: 1)",
                default=1, positive=True,
            ),
            schema.number(
                "max_results", "Maximum number of results to return (default: 100)",
                default=100, positive=True,
            ),
        ),
        handler=partial(handle_get_pod_logs, api),
    ))
