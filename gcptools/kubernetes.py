"""
GKE cluster tools backed by the Container API v1.

Tools: ``list_clusters``, ``get_cluster_info``, ``list_node_pools``.
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
from toolcore.render import Report, enabled_label, format_timestamp
from toolcore.schema import ToolDefinition

CONTAINER_BASE_URL = "https://container.googleapis.com/v1"
API_NAME = "Container API"


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass
class MaintenanceWindow:
    start_time: str
    duration: str


@dataclass
class Cluster:
    name: str
    description: str
    location: str
    status: str
    node_count: int
    master_version: str
    node_version: str
    network: str
    subnetwork: str
    cluster_ipv4_cidr: str
    services_ipv4_cidr: str
    endpoint: str
    create_time: str
    addons: dict[str, bool] = field(default_factory=dict)
    locations: list[str] = field(default_factory=list)
    resource_labels: dict[str, str] = field(default_factory=dict)
    maintenance_window: MaintenanceWindow | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Cluster":
        addons_config = d.obj(data, "addonsConfig")
        addons = {
            label: not d.boolean(d.obj(addons_config, key), "disabled")
            for label, key in (
                ("HTTP Load Balancing", "httpLoadBalancing"),
                ("Horizontal Pod Autoscaling", "horizontalPodAutoscaling"),
                ("Kubernetes Dashboard", "kubernetesDashboard"),
                ("Network Policy", "networkPolicyConfig"),
            )
        }

        window = None
        daily = d.obj(d.obj(d.obj(data, "maintenancePolicy"), "window"), "dailyMaintenanceWindow")
        if d.string(daily, "startTime"):
            window = MaintenanceWindow(d.string(daily, "startTime"), d.string(daily, "duration"))

        return cls(
            name=d.string(data, "name"),
            description=d.string(data, "description"),
            location=d.string(data, "location"),
            status=d.string(data, "status"),
            node_count=d.integer(data, "currentNodeCount"),
            master_version=d.string(data, "currentMasterVersion"),
            node_version=d.string(data, "currentNodeVersion"),
            network=d.string(data, "network"),
            subnetwork=d.string(data, "subnetwork"),
            cluster_ipv4_cidr=d.string(data, "clusterIpv4Cidr"),
            services_ipv4_cidr=d.string(data, "servicesIpv4Cidr"),
            endpoint=d.string(data, "endpoint"),
            create_time=d.string(data, "createTime"),
            addons=addons,
            locations=d.strings(data, "locations"),
            resource_labels=d.string_map(data, "resourceLabels"),
            maintenance_window=window,
        )

    @property
    def version_summary(self) -> str:
        return f"{self.master_version} (master) / {self.node_version} (nodes)"


@dataclass
class NodePool:
    name: str
    status: str
    version: str
    initial_node_count: int
    machine_type: str
    disk_size_gb: int
    preemptible: bool
    service_account: str
    oauth_scopes: list[str]
    labels: dict[str, str]
    autoscaling_enabled: bool
    min_node_count: int
    max_node_count: int
    auto_upgrade: bool
    auto_repair: bool
    locations: list[str]

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "NodePool":
        config = d.obj(data, "config")
        autoscaling = d.obj(data, "autoscaling")
        management = d.obj(data, "management")
        return cls(
            name=d.string(data, "name"),
            status=d.string(data, "status"),
            version=d.string(data, "version"),
            initial_node_count=d.integer(data, "initialNodeCount"),
            machine_type=d.string(config, "machineType"),
            disk_size_gb=d.integer(config, "diskSizeGb"),
            preemptible=d.boolean(config, "preemptible"),
            service_account=d.string(config, "serviceAccount"),
            oauth_scopes=d.strings(config, "oauthScopes"),
            labels=d.string_map(config, "labels"),
            autoscaling_enabled=d.boolean(autoscaling, "enabled"),
            min_node_count=d.integer(autoscaling, "minNodeCount"),
            max_node_count=d.integer(autoscaling, "maxNodeCount"),
            auto_upgrade=d.boolean(management, "autoUpgrade"),
            auto_repair=d.boolean(management, "autoRepair"),
            locations=d.strings(data, "locations"),
        )


def _parse_clusters(data: dict[str, Any]) -> list[Cluster]:
    return [Cluster.from_json(item) for item in d.objects(data, "clusters")]


def _parse_node_pools(data: dict[str, Any]) -> list[NodePool]:
    return [NodePool.from_json(item) for item in d.objects(data, "nodePools")]


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

def handle_list_clusters(api: GoogleAPIClient, ctx: CallContext, args: dict[str, Any]) -> str:
    project_id = args["project_id"]
    location = args["location"] or ""

    url = f"{CONTAINER_BASE_URL}/projects/{project_id}/locations/{location or '-'}/clusters"
    with api.connect(ctx, API_NAME) as conn:
        data = conn.get_json(url)
    clusters = decode(_parse_clusters, data)

    where = f" in project {project_id}"
    if location:
        where += f" in location {location}"

    if not clusters:
        return f"No GKE clusters found{where}."

    report = Report()
    report.paragraph(f"Found {len(clusters)} GKE clusters{where}:")
    for i, cluster in enumerate(clusters, start=1):
        report.heading(f"{i}. Cluster: {cluster.name}", level=3)
        report.fields([
            ("Location", cluster.location),
            ("Status", cluster.status),
            ("Node Count", cluster.node_count),
            ("Kubernetes Version", cluster.version_summary),
            ("Endpoint", cluster.endpoint),
            ("Network", cluster.network),
            ("Subnetwork", cluster.subnetwork),
            ("Pod CIDR", cluster.cluster_ipv4_cidr),
            ("Service CIDR", cluster.services_ipv4_cidr),
            ("Created", format_timestamp(cluster.create_time)),
            ("Description", cluster.description),
        ])
    return report.render()


def handle_get_cluster_info(api: GoogleAPIClient, ctx: CallContext, args: dict[str, Any]) -> str:
    project_id = args["project_id"]
    location = args["location"]
    cluster_name = args["cluster_name"]

    url = f"{CONTAINER_BASE_URL}/projects/{project_id}/locations/{location}/clusters/{cluster_name}"
    with api.connect(ctx, API_NAME) as conn:
        data = conn.get_json(url)
    cluster = decode(Cluster.from_json, data)

    report = Report()
    report.heading(f"GKE Cluster: {cluster.name or cluster_name}")

    report.heading("Basic Information", level=2)
    report.fields([
        ("Location", cluster.location),
        ("Status", cluster.status),
        ("Node Count", cluster.node_count),
        ("Kubernetes Version", cluster.version_summary),
        ("Endpoint", cluster.endpoint),
        ("Created", format_timestamp(cluster.create_time)),
        ("Description", cluster.description),
    ])

    report.heading("Network Configuration", level=2)
    report.fields([
        ("Network", cluster.network),
        ("Subnetwork", cluster.subnetwork),
        ("Pod CIDR", cluster.cluster_ipv4_cidr),
        ("Service CIDR", cluster.services_ipv4_cidr),
    ])

    report.heading("Add-ons Configuration", level=2)
    report.fields([(label, enabled_label(on)) for label, on in cluster.addons.items()])

    if cluster.locations:
        report.heading("Node Locations", level=2)
        report.bullets(cluster.locations)

    if cluster.resource_labels:
        report.heading("Resource Labels", level=2)
        report.fields(cluster.resource_labels.items())

    if cluster.maintenance_window is not None:
        report.heading("Maintenance Window", level=2)
        report.fields([
            ("Start Time", format_timestamp(cluster.maintenance_window.start_time)),
            ("Duration", cluster.maintenance_window.duration),
        ])

    return report.render()


def handle_list_node_pools(api: GoogleAPIClient, ctx: CallContext, args: dict[str, Any]) -> str:
    project_id = args["project_id"]
    location = args["location"]
    cluster_name = args["cluster_name"]

    url = (
        f"{CONTAINER_BASE_URL}/projects/{project_id}/locations/{location}"
        f"/clusters/{cluster_name}/nodePools"
    )
    with api.connect(ctx, API_NAME) as conn:
        data = conn.get_json(url)
    pools = decode(_parse_node_pools, data)

    if not pools:
        return f"No node pools found in cluster {cluster_name} in location {location}."

    report = Report()
    report.heading(f"Node Pools in Cluster {cluster_name}")
    for i, pool in enumerate(pools, start=1):
        report.heading(f"{i}. Node Pool: {pool.name}", level=2)
        report.fields([
            ("Status", pool.status),
            ("Version", pool.version),
            ("Initial Node Count", pool.initial_node_count),
        ])

        report.heading("Machine Configuration", level=3)
        report.fields([
            ("Machine Type", pool.machine_type),
            ("Disk Size", f"{pool.disk_size_gb} GB"),
            ("Preemptible", pool.preemptible),
            ("Service Account", pool.service_account),
            ("OAuth Scopes", pool.oauth_scopes),
            ("Labels", pool.labels),
        ])

        report.heading("Autoscaling", level=3)
        if pool.autoscaling_enabled:
            report.fields([
                ("Enabled", True),
                ("Min Nodes", pool.min_node_count),
                ("Max Nodes", pool.max_node_count),
            ])
        else:
            report.fields([("Enabled", False)])

        report.heading("Management", level=3)
        report.fields([
            ("Auto Upgrade", pool.auto_upgrade),
            ("Auto Repair", pool.auto_repair),
        ])

        if pool.locations:
            report.heading("Locations", level=3)
            report.bullets(pool.locations)

    return report.render()


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

_PROJECT_ID = schema.string("project_id", "The Google Cloud project ID", required=True)


def register(registry: ToolRegistry, api: GoogleAPIClient) -> None:
    registry.register(ToolDefinition(
        name="list_clusters",
        description="Lists GKE clusters in a project",
        parameters=(
            _PROJECT_ID,
            schema.string(
                "location",
                "The location to list clusters from (optional, if not provided, "
                "all locations will be queried)",
            ),
        ),
        handler=partial(handle_list_clusters, api),
    ))
    registry.register(ToolDefinition(
        name="get_cluster_info",
        description="Gets detailed information about a GKE cluster",
        parameters=(
            _PROJECT_ID,
            schema.string("location", "The location of the cluster", required=True),
            schema.string("cluster_name", "The name of the cluster", required=True),
        ),
        handler=partial(handle_get_cluster_info, api),
    ))
    registry.register(ToolDefinition(
        name="list_node_pools",
        description="Lists node pools in a GKE cluster",
        parameters=(
            _PROJECT_ID,
            schema.string("location", "The location of the cluster", required=True),
            schema.string("cluster_name", "The name of the cluster", required=True),
        ),
        handler=partial(handle_list_node_pools, api),
    ))
