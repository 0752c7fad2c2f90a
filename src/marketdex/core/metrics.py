"""
Prometheus metrics for the indexing pipeline.

Module-level metric objects (process-wide singletons) recorded by
[MarketplaceEventHandler][marketdex.handlers.marketplace.service.MarketplaceEventHandler]
when ``metrics.enabled`` is set in its configuration. Exposition is left to
the hosting process (e.g. ``prometheus_client.start_http_server``).

Architecture:
    EVENTS_TOTAL:              Processed logs by event name and outcome.
    PROCESS_DURATION_SECONDS:  Histogram of ``process()`` latency by category.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram
from pydantic import BaseModel, Field


class MetricsConfig(BaseModel):
    """Toggle for metrics collection."""

    enabled: bool = Field(default=False, description="Enable metrics collection")


# Events: marketplace event names, with anything else collapsed to "unknown".
# Outcomes: indexed, disabled, or the exception class name on failure.
EVENTS_TOTAL = Counter(
    "marketdex_events_total",
    "Marketplace logs processed, by event name and outcome",
    ["event", "outcome"],
)

PROCESS_DURATION_SECONDS = Histogram(
    "marketdex_process_duration_seconds",
    "Duration of one process() call in seconds",
    ["category"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30, 60),
)
