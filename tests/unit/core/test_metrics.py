"""Unit tests for core.metrics module."""

from prometheus_client import REGISTRY

from marketdex.core.metrics import EVENTS_TOTAL, PROCESS_DURATION_SECONDS, MetricsConfig


class TestMetricsConfig:
    def test_disabled_by_default(self):
        assert MetricsConfig().enabled is False


class TestMetricObjects:
    def test_events_counter_labels(self):
        before = (
            REGISTRY.get_sample_value(
                "marketdex_events_total", {"event": "ListingData", "outcome": "indexed"}
            )
            or 0.0
        )
        EVENTS_TOTAL.labels(event="ListingData", outcome="indexed").inc()
        after = REGISTRY.get_sample_value(
            "marketdex_events_total", {"event": "ListingData", "outcome": "indexed"}
        )
        assert after == before + 1

    def test_duration_histogram(self):
        PROCESS_DURATION_SECONDS.labels(category="listing").observe(0.2)
        count = REGISTRY.get_sample_value(
            "marketdex_process_duration_seconds_count", {"category": "listing"}
        )
        assert count is not None
        assert count >= 1
