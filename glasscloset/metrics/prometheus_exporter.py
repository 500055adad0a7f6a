"""Prometheus exporter helpers."""

from __future__ import annotations

from prometheus_client import Counter, Gauge


pipeline_runs_total = Counter(
    "closet_pipeline_runs_total",
    "Completed capture pipeline cycles by terminal outcome.",
    ["outcome"],
)

pipeline_rejected_total = Counter(
    "closet_pipeline_rejected_total",
    "Capture requests rejected because a cycle was already in flight.",
)

api_requests_total = Counter(
    "closet_api_requests_total",
    "Requests issued to the closet backend.",
    ["endpoint", "outcome"],
)

closet_items = Gauge(
    "closet_items",
    "Number of clothing items currently held in the closet index.",
)
