"""
Cloud Monitoring tools (REST v3).

Tools: ``query_metrics``, ``list_alerts``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Any

from gcptools import decode as d
from gcptools.api import GoogleAPIClient, decode
from gcptools.logs import time_window
from toolcore import schema
from toolcore.dispatch import CallContext
from toolcore.registry import ToolRegistry
from toolcore.render import Report, format_timestamp, format_value
from toolcore.schema import ToolDefinition

MONITORING_BASE_URL = "https://monitoring.googleapis.com/v3"
API_NAME = "Monitoring API"

RECOMMENDED_ACTIONS = (
    "Check the affected resources for any recent changes or deployments",
    "Review logs around the time the alert was triggered",
    "Check for related alerts that might indicate a broader issue",
    "Verify resource utilization and performance metrics",
    "Consider scaling resources if the alert is related to resource constraints",
)


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

@dataclass
class Point:
    end_time: str
    value: str

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Point":
        return cls(
            end_time=d.string(d.obj(data, "interval"), "endTime"),
            value=_typed_value(d.obj(data, "value")),
        )


def _typed_value(value: dict[str, Any]) -> str:
    if "doubleValue" in value:
        return f"{d.floating(value, 'doubleValue'):.6f}"
    if "int64Value" in value:
        return str(d.integer(value, "int64Value"))
    if "boolValue" in value:
        return format_value(d.boolean(value, "boolValue"))
    if "stringValue" in value:
        return d.string(value, "stringValue")
    if "distributionValue" in value:
        dist = d.obj(value, "distributionValue")
        mean = d.floating(dist, "mean") or 0.0
        return f"count={d.integer(dist, 'count')} mean={mean:.6f}"
    return "N/A"


@dataclass
class TimeSeries:
    metric_type: str
    resource_type: str
    labels: dict[str, str] = field(default_factory=dict)
    points: list[Point] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "TimeSeries":
        metric = d.obj(data, "metric")
        resource = d.obj(data, "resource")
        labels = d.string_map(resource, "labels")
        labels.update(d.string_map(metric, "labels"))
        return cls(
            metric_type=d.string(metric, "type"),
            resource_type=d.string(resource, "type"),
            labels=labels,
            points=[Point.from_json(p) for p in d.objects(data, "points")],
        )


def _parse_time_series(data: dict[str, Any]) -> list[TimeSeries]:
    return [TimeSeries.from_json(item) for item in d.objects(data, "timeSeries")]


def build_metric_filter(metric_type: str, extra: str) -> str:
    filter_ = f'metric.type="{metric_type}"'
    if extra:
        filter_ += f" AND {extra}"
    return filter_


def handle_query_metrics(api: GoogleAPIClient, ctx: CallContext, args: dict[str, Any]) -> str:
    project_id = args["project_id"]
    metric_type = args["metric_type"]
    start, end = time_window(args["time_range_hours"])
    params = {
        "filter": build_metric_filter(metric_type, args["filter"] or ""),
        "interval.startTime": start,
        "interval.endTime": end,
        "aggregation.alignmentPeriod": f"{args['alignment_period_seconds']:.0f}s",
        "aggregation.perSeriesAligner": "ALIGN_MEAN",
    }

    url = f"{MONITORING_BASE_URL}/projects/{project_id}/timeSeries"
    with api.connect(ctx, API_NAME) as conn:
        data = conn.get_json(url, params, what="time series")
    series = decode(_parse_time_series, data, "time series")

    if not series:
        return f"No metrics data found for metric type {metric_type} in the specified time range."

    report = Report()
    report.heading(f"Metrics Data for {metric_type}")
    for i, ts in enumerate(series, start=1):
        report.heading(f"Time Series {i}", level=2)
        report.heading("Labels", level=3)
        report.fields([("Resource Type", ts.resource_type)])
        report.fields(ts.labels.items())
        report.heading("Data Points", level=3)
        if ts.points:
            report.table(
                ("Time", "Value"),
                [(format_timestamp(p.end_time), p.value) for p in ts.points],
            )
        else:
            report.paragraph("No data points available.")
    return report.render()


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------

@dataclass
class AlertPolicy:
    name: str
    display_name: str
    documentation: str
    conditions: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "AlertPolicy":
        return cls(
            name=d.string(data, "name"),
            display_name=d.string(data, "displayName"),
            documentation=d.string(d.obj(data, "documentation"), "content"),
            conditions={
                d.string(c, "name"): d.string(c, "displayName")
                for c in d.objects(data, "conditions")
            },
        )


@dataclass
class Incident:
    name: str
    resource_name: str
    resource_display_name: str
    policy_name: str
    condition_name: str
    state: str
    severity: str
    start_time: str
    summary: str

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Incident":
        return cls(
            name=d.string(data, "name"),
            resource_name=d.string(data, "resourceName"),
            resource_display_name=d.string(data, "resourceDisplayName"),
            policy_name=d.string(data, "policyName"),
            condition_name=d.string(data, "conditionName"),
            state=d.string(data, "state"),
            severity=d.string(data, "severity"),
            start_time=d.string(data, "startTime"),
            summary=d.string(data, "summary"),
        )

    @property
    def is_open(self) -> bool:
        return self.state == "OPEN"


def _parse_policies(data: dict[str, Any]) -> dict[str, AlertPolicy]:
    policies = [AlertPolicy.from_json(item) for item in d.objects(data, "alertPolicies")]
    return {p.name: p for p in policies}


def _parse_incidents(data: dict[str, Any]) -> list[Incident]:
    return [Incident.from_json(item) for item in d.objects(data, "incidents")]


def handle_list_alerts(api: GoogleAPIClient, ctx: CallContext, args: dict[str, Any]) -> str:
    project_id = args["project_id"]
    filter_ = args["filter"] or ""

    base = f"{MONITORING_BASE_URL}/projects/{project_id}"
    with api.connect(ctx, API_NAME) as conn:
        policies_data = conn.get_json(
            f"{base}/alertPolicies",
            {"filter": filter_} if filter_ else None,
            what="alert policies response",
        )
        policies = decode(_parse_policies, policies_data, "alert policies response")
        incidents_data = conn.get_json(f"{base}/incidents", what="incidents response")
        incidents = decode(_parse_incidents, incidents_data, "incidents response")

    active = [incident for incident in incidents if incident.is_open]
    if not active:
        return "No active alerts found."

    report = Report()
    report.heading(f"Active Alerts in Project {project_id}")
    report.paragraph(f"Found {len(active)} active alerts:")
    for i, incident in enumerate(active, start=1):
        policy = policies.get(incident.policy_name)
        policy_name = "Unknown Policy"
        condition_name = "Unknown Condition"
        if policy is not None:
            policy_name = policy.display_name or policy_name
            condition_name = policy.conditions.get(incident.condition_name) or condition_name

        report.heading(f"{i}. Alert: {incident.resource_display_name or incident.resource_name}", level=2)
        report.fields([
            ("Policy", policy_name),
            ("Condition", condition_name),
            ("Severity", incident.severity),
            ("Started", format_timestamp(incident.start_time)),
            ("Summary", incident.summary),
        ])
        if policy is not None and policy.documentation:
            report.heading("Documentation", level=3)
            report.paragraph(policy.documentation)

    report.heading("Recommended Actions", level=2)
    report.numbered(RECOMMENDED_ACTIONS)
    return report.render()


_PROJECT_ID = schema.string("project_id", "The Google Cloud project ID", required=True)


def register(registry: ToolRegistry, api: GoogleAPIClient) -> None:
    registry.register(ToolDefinition(
        name="query_metrics",
        description="Queries metrics from GCP Cloud Monitoring",
        parameters=(
            _PROJECT_ID,
            schema.string(
                "metric_type",
                "The metric type to query (e.g., kubernetes.io/container/cpu/utilization)",
                required=True,
            ),
            schema.string("filter", "Additional filter for the metrics query"),
            schema.number(
                "time_range_hours", "Time range for metrics in hours (default: 1)",
                default=1, positive=True,
            ),
            schema.number(
                "alignment_period_seconds", "Alignment period in seconds (default: 300)",
                default=300, positive=True,
            ),
        ),
        handler=partial(handle_query_metrics, api),
    ))
    registry.register(ToolDefinition(
        name="list_alerts",
        description="Lists active alerts from GCP Cloud Monitoring",
        parameters=(
            _PROJECT_ID,
            schema.string("filter", "Additional filter for the alerts query"),
        ),
        handler=partial(handle_list_alerts, api),
    ))
