"""Configuration scan summaries aggregated on the fly from workload summaries."""

from __future__ import annotations

from typing import Any, Callable, Iterable

from .errors import OPERATION_NOT_SUPPORTED, InvalidObjectError, KeyNotFoundError
from .storage import (
    STORAGE_V1BETA1_API_VERSION,
    APIObjectVersioner,
    Preconditions,
    StorageImpl,
    get_namespace_from_key,
)

GROUP_NAME = "spdx.softwarecomposition.kubescape.io"
CONFIGURATION_SCAN_SUMMARY_KIND = "ConfigurationScanSummary"
WORKLOAD_SUMMARY_KIND = "WorkloadConfigurationScanSummary"
WORKLOAD_SUMMARIES_RESOURCE = "workloadconfigurationscansummaries"

SEVERITY_LEVELS = ("critical", "high", "medium", "low", "unknown")


def _severities_of(summary: dict) -> dict:
    return (summary.get("spec") or {}).get("severities") or {}


def _metadata_of(summary: dict) -> dict:
    return summary.get("metadata") or {}


def build_configuration_scan_summary(summaries: Iterable[dict], namespace: str) -> dict:
    """Aggregate workload configuration scan summaries into one summary for a namespace."""
    totals = dict.fromkeys(SEVERITY_LEVELS, 0)
    identifiers = []
    for summary in summaries:
        severities = _severities_of(summary)
        for level in SEVERITY_LEVELS:
            totals[level] += int(severities.get(level, 0) or 0)
        meta = _metadata_of(summary)
        identifiers.append(
            {
                "namespace": meta.get("namespace", ""),
                "kind": WORKLOAD_SUMMARY_KIND,
                "name": meta.get("name", ""),
            }
        )
    return {
        "kind": CONFIGURATION_SCAN_SUMMARY_KIND,
        "apiVersion": STORAGE_V1BETA1_API_VERSION,
        "metadata": {"name": namespace},
        "spec": {"severities": totals, "summaryRef": identifiers},
    }


def build_configuration_scan_summary_for_cluster(summaries: Iterable[dict]) -> dict:
    """Build a list holding one configuration scan summary per namespace."""
    by_namespace: dict[str, list[dict]] = {}
    for summary in summaries:
        namespace = _metadata_of(summary).get("namespace", "")
        by_namespace.setdefault(namespace, []).append(summary)
    return {
        "kind": CONFIGURATION_SCAN_SUMMARY_KIND,
        "apiVersion": STORAGE_V1BETA1_API_VERSION,
        "items": [
            build_configuration_scan_summary(items, namespace)
            for namespace, items in by_namespace.items()
        ],
    }


class ConfigurationScanSummaryStorage:
    """Read-only storage that generates configuration scan summaries from stored workload summaries."""

    def __init__(self, real_store: StorageImpl) -> None:
        self.real_store = real_store
        self.versioner = APIObjectVersioner()

    def create(self, key: str, obj: Any) -> None:
        """Not supported: summaries are generated, not stored."""
        raise InvalidObjectError(key, OPERATION_NOT_SUPPORTED)

    def delete(self, key: str) -> None:
        """Not supported: summaries are generated, not stored."""
        raise InvalidObjectError(key, OPERATION_NOT_SUPPORTED)

    def watch(self, key: str) -> None:
        """Not supported: summaries are generated, not stored."""
        raise InvalidObjectError(key, OPERATION_NOT_SUPPORTED)

    def get(self, key: str) -> dict:
        """Return the summary for the namespace named by key."""
        namespace = get_namespace_from_key(key)
        summaries = self.real_store.get_by_namespace(
            GROUP_NAME, WORKLOAD_SUMMARIES_RESOURCE, namespace
        )
        if not summaries:
            raise KeyNotFoundError(key, 0)
        return build_configuration_scan_summary(summaries, namespace)

    def get_list(self, key: str) -> dict:
        """Return a list with a summary for every namespace in the cluster."""
        summaries = self.real_store.get_by_cluster(GROUP_NAME, WORKLOAD_SUMMARIES_RESOURCE)
        return build_configuration_scan_summary_for_cluster(summaries)

    def guaranteed_update(
        self,
        key: str,
        ignore_not_found: bool = False,
        preconditions: Preconditions | None = None,
        try_update: Callable[[dict], dict] | None = None,
        cached_existing_object: dict | None = None,
    ) -> None:
        """Not supported: summaries are generated, not stored."""
        raise InvalidObjectError(key, OPERATION_NOT_SUPPORTED)

    def count(self, key: str) -> int:
        """Not supported: summaries are generated, not stored."""
        raise InvalidObjectError(key, OPERATION_NOT_SUPPORTED)