"""
Documentation lookup tools over built-in catalogs (no network).

Tools: ``search_gcp_docs``, ``search_k8s_docs``, ``get_error_docs``.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any

from toolcore import schema
from toolcore.dispatch import CallContext
from toolcore.errors import ValidationError
from toolcore.registry import ToolRegistry
from toolcore.render import Report
from toolcore.schema import ToolDefinition


@dataclass(frozen=True)
class DocPage:
    title: str
    link: str
    snippet: str

    def matches(self, query: str) -> bool:
        needle = query.lower()
        return needle in self.title.lower() or needle in self.snippet.lower()


@dataclass(frozen=True)
class ErrorDoc:
    code: str
    title: str
    description: str
    solution: tuple[str, ...]
    references: tuple[str, ...]


GCP_DOCS = (
    DocPage(
        "Error Reporting | Google Cloud",
        "https://cloud.google.com/error-reporting",
        "Error Reporting counts, analyzes, and aggregates the crashes in your running cloud services.",
    ),
    DocPage(
        "Monitoring | Google Cloud",
        "https://cloud.google.com/monitoring",
        "Gain visibility into the performance, availability, and health of your applications and infrastructure.",
    ),
    DocPage(
        "Logging | Google Cloud",
        "https://cloud.google.com/logging",
        "Logging allows you to store, search, analyze, monitor, and alert on log data and events "
        "from Google Cloud and Amazon Web Services.",
    ),
    DocPage(
        "Kubernetes Engine | Google Cloud",
        "https://cloud.google.com/kubernetes-engine",
        "Google Kubernetes Engine (GKE) is a managed, production-ready environment for running "
        "containerized applications.",
    ),
    DocPage(
        "Troubleshooting GKE | Google Cloud",
        "https://cloud.google.com/kubernetes-engine/docs/troubleshooting",
        "This page provides troubleshooting information for common issues that you might encounter "
        "when using Google Kubernetes Engine.",
    ),
)

_K8S_DEBUG_SNIPPET = (
    "This guide is to help users debug applications that are deployed into Kubernetes "
    "and not behaving correctly."
)

K8S_DOCS = (
    DocPage(
        "Troubleshooting Clusters | Kubernetes",
        "https://kubernetes.io/docs/tasks/debug/debug-cluster/",
        _K8S_DEBUG_SNIPPET,
    ),
    DocPage(
        "Troubleshooting Applications | Kubernetes",
        "https://kubernetes.io/docs/tasks/debug/debug-application/",
        _K8S_DEBUG_SNIPPET,
    ),
    DocPage(
        "Debugging Pods | Kubernetes",
        "https://kubernetes.io/docs/tasks/debug/debug-application/debug-pods/",
        _K8S_DEBUG_SNIPPET,
    ),
    DocPage(
        "Debugging Services | Kubernetes",
        "https://kubernetes.io/docs/tasks/debug/debug-application/debug-service/",
        _K8S_DEBUG_SNIPPET,
    ),
    DocPage(
        "Debugging Init Containers | Kubernetes",
        "https://kubernetes.io/docs/tasks/debug/debug-application/debug-init-containers/",
        _K8S_DEBUG_SNIPPET,
    ),
)

_API_ERRORS_REF = "https://cloud.google.com/apis/design/errors"

ERROR_DOCS = {
    doc.code: doc
    for doc in (
        ErrorDoc(
            "RESOURCE_EXHAUSTED",
            "Resource Exhausted Error",
            "This error occurs when a resource quota has been exceeded. It typically happens when "
            "you've reached the limit for a particular resource in your Google Cloud project.",
            (
                "Check your current quota usage in the Google Cloud Console.",
                "Request a quota increase if needed.",
                "Optimize your resource usage to stay within limits.",
            ),
            (
                "https://cloud.google.com/docs/quota",
                "https://cloud.google.com/compute/docs/resource-quotas",
            ),
        ),
        ErrorDoc(
            "PERMISSION_DENIED",
            "Permission Denied Error",
            "This error occurs when the authenticated user does not have sufficient permissions "
            "to perform the requested operation.",
            (
                "Check the IAM permissions for the user or service account.",
                "Grant the necessary roles or permissions.",
                "Verify that the service account has the required scopes.",
            ),
            (
                "https://cloud.google.com/iam/docs/overview",
                "https://cloud.google.com/iam/docs/troubleshooting-access",
            ),
        ),
        ErrorDoc(
            "NOT_FOUND",
            "Resource Not Found Error",
            "This error occurs when the requested resource does not exist or is not accessible.",
            (
                "Verify that the resource name or ID is correct.",
                "Check if the resource exists in the specified project and region.",
                "Ensure that the resource hasn't been deleted.",
            ),
            (_API_ERRORS_REF,),
        ),
        ErrorDoc(
            "FAILED_PRECONDITION",
            "Failed Precondition Error",
            "This error occurs when the system is not in a state required for the operation's execution.",
            (
                "Check the current state of the resource.",
                "Ensure all prerequisites for the operation are met.",
                "Retry the operation after resolving any conflicts.",
            ),
            (_API_ERRORS_REF,),
        ),
        ErrorDoc(
            "DEADLINE_EXCEEDED",
            "Deadline Exceeded Error",
            "This error occurs when the operation took longer than the deadline specified by the "
            "client or the system.",
            (
                "Increase the timeout for the operation if possible.",
                "Break down large operations into smaller ones.",
                "Check for performance issues in your application.",
            ),
            (_API_ERRORS_REF,),
        ),
    )
}


def search_pages(pages: tuple[DocPage, ...], query: str, max_results: int) -> list[DocPage]:
    return [page for page in pages if page.matches(query)][:max_results]


def find_error_doc(error_code: str, error_message: str) -> ErrorDoc | None:
    """Look up by status code first, then by message text.

    A message matches an entry whose description contains it, or which it
    names by code (e.g. ``"rpc error: code = PERMISSION_DENIED"``).
    """
    if error_code:
        doc = ERROR_DOCS.get(error_code.strip().upper())
        if doc is not None:
            return doc
    if error_message:
        needle = error_message.lower()
        for doc in ERROR_DOCS.values():
            if needle in doc.description.lower():
                return doc
        normalized = error_message.upper().replace(" ", "_")
        for doc in ERROR_DOCS.values():
            if doc.code in normalized:
                return doc
    return None


def _search_handler(pages: tuple[DocPage, ...], site: str, home: str, ctx: CallContext, args: dict[str, Any]) -> str:
    query = args["query"]
    found = search_pages(pages, query, int(args["max_results"]))
    if not found:
        return f"No documentation found for query: {query}"

    report = Report()
    report.heading(f'{site} Documentation Search Results for "{query}"')
    for i, page in enumerate(found, start=1):
        report.heading(f"{i}. {page.title}", level=2)
        report.paragraph(f"**URL**: [{page.link}]({page.link})")
        report.paragraph(page.snippet)
    report.paragraph(f"For more results, visit the [{site} documentation]({home}).")
    return report.render()


def handle_get_error_docs(ctx: CallContext, args: dict[str, Any]) -> str:
    error_code = args["error_code"] or ""
    error_message = args["error_message"] or ""
    if not error_code and not error_message:
        raise ValidationError("error_code", "either error_code or error_message must be provided")

    doc = find_error_doc(error_code, error_message)
    if doc is None:
        text = "No documentation found for the specified error."
        if error_code:
            text += f" Error code: {error_code}"
        if error_message:
            text += f" Error message: {error_message}"
        report = Report()
        report.paragraph(text)
        report.paragraph(
            "Try searching the Google Cloud documentation or Kubernetes documentation for more information."
        )
        return report.render()

    report = Report()
    report.heading(doc.title)
    report.heading("Description", level=2)
    report.paragraph(doc.description)
    report.heading("Solution", level=2)
    report.numbered(doc.solution)
    if doc.references:
        report.heading("References", level=2)
        report.bullets(f"[{ref}]({ref})" for ref in doc.references)
    return report.render()


def register(registry: ToolRegistry) -> None:
    max_results = schema.number(
        "max_results", "Maximum number of results to return (default: 5)",
        default=5, positive=True,
    )
    registry.register(ToolDefinition(
        name="search_gcp_docs",
        description="Searches Google Cloud documentation",
        parameters=(schema.string("query", "The search query", required=True), max_results),
        handler=partial(_search_handler, GCP_DOCS, "Google Cloud", "https://cloud.google.com/docs"),
    ))
    registry.register(ToolDefinition(
        name="search_k8s_docs",
        description="Searches Kubernetes documentation",
        parameters=(schema.string("query", "The search query", required=True), max_results),
        handler=partial(_search_handler, K8S_DOCS, "Kubernetes", "https://kubernetes.io/docs/"),
    ))
    registry.register(ToolDefinition(
        name="get_error_docs",
        description="Gets documentation for a specific error code or message",
        parameters=(
            schema.string("error_code", "The error code to look up"),
            schema.string("error_message", "The error message to look up"),
        ),
        handler=handle_get_error_docs,
    ))
