"""GCP and Kubernetes incident-response tools, grouped by capability area."""

from __future__ import annotations

from functools import partial

from gcptools import docs, issues, kubernetes, logs, monitoring
from gcptools.api import DEFAULT_REQUEST_TIMEOUT, GoogleAPIClient
from gcptools.auth import AuthHandler
from toolcore.registry import CapabilityArea, ToolRegistry, register_capability_areas


def capability_areas(api: GoogleAPIClient) -> list[CapabilityArea]:
    """Registration functions in the order their tools are listed."""
    return [
        ("GCP issues", partial(issues.register, api=api)),
        ("logging", partial(logs.register, api=api)),
        ("Kubernetes", partial(kubernetes.register, api=api)),
        ("monitoring", partial(monitoring.register, api=api)),
        ("documentation", docs.register),
    ]


def build_registry(auth: AuthHandler, request_timeout: float = DEFAULT_REQUEST_TIMEOUT) -> ToolRegistry:
    """Register every capability area against *auth* and return the frozen registry."""
    api = GoogleAPIClient(auth, request_timeout=request_timeout)
    return register_capability_areas(ToolRegistry(), capability_areas(api))


__all__ = ["AuthHandler", "GoogleAPIClient", "build_registry", "capability_areas"]
