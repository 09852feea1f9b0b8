"""
Prometheus metrics for monitoring the briefing pipeline.

Defines and exposes metrics for:
- Crawl runs and item throughput per platform
- Enrichment progress (translation, sentiment)
- LLM call outcomes
- Digest generation

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    start_http_server,
)

from briefing.config.settings import get_settings

logger = logging.getLogger(__name__)

# Crawls include network round trips, so buckets reach further than usual
LATENCY_BUCKETS = (0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the briefing pipeline.

    Usage:
        metrics = get_metrics()
        metrics.start_server()

        metrics.record_crawl("reddit", "success", saved=4, updated=1, latency=2.3)
        metrics.record_enrichment("translation", processed=10, failed=1)
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        # Crawl metrics
        self.crawl_runs = Counter(
            "briefing_crawl_runs_total",
            "Total crawl runs",
            ["platform", "status"],  # status: success, partial, failed
        )

        self.items_saved = Counter(
            "briefing_items_saved_total",
            "Total content items inserted by crawls",
            ["platform"],
        )

        self.items_updated = Counter(
            "briefing_items_updated_total",
            "Total content items whose counters were refreshed",
            ["platform"],
        )

        self.crawl_latency = Histogram(
            "briefing_crawl_latency_seconds",
            "Wall time of one crawl run",
            ["platform"],
            buckets=LATENCY_BUCKETS,
        )

        # Enrichment metrics
        self.enrichment_processed = Counter(
            "briefing_enrichment_processed_total",
            "Total records enriched",
            ["task"],  # task: translation, sentiment
        )

        self.enrichment_failed = Counter(
            "briefing_enrichment_failed_total",
            "Total records that failed enrichment",
            ["task"],
        )

        # LLM metrics
        self.llm_calls = Counter(
            "briefing_llm_calls_total",
            "Total LLM completion calls",
            ["provider", "outcome"],  # outcome: success, failure
        )

        # Digest metrics
        self.digest_runs = Counter(
            "briefing_digest_runs_total",
            "Total digest generation runs",
            ["outcome"],  # outcome: sent, draft, skipped, failed
        )

        logger.info("Prometheus metrics initialized")

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_crawl(
        self,
        platform: str,
        status: str,
        saved: int = 0,
        updated: int = 0,
        latency: float | None = None,
    ) -> None:
        """
        Record the outcome of one crawl run.

        Args:
            platform: Source platform
            status: Terminal crawl status
            saved: Number of items inserted
            updated: Number of items whose counters changed
            latency: Optional run duration in seconds
        """
        self.crawl_runs.labels(platform=platform, status=status).inc()
        if saved:
            self.items_saved.labels(platform=platform).inc(saved)
        if updated:
            self.items_updated.labels(platform=platform).inc(updated)
        if latency is not None:
            self.crawl_latency.labels(platform=platform).observe(latency)

    def record_enrichment(self, task: str, processed: int, failed: int) -> None:
        """Record one enrichment batch."""
        if processed:
            self.enrichment_processed.labels(task=task).inc(processed)
        if failed:
            self.enrichment_failed.labels(task=task).inc(failed)

    def record_llm_call(self, provider: str, success: bool) -> None:
        self.llm_calls.labels(
            provider=provider,
            outcome="success" if success else "failure",
        ).inc()

    def record_digest(self, outcome: str) -> None:
        self.digest_runs.labels(outcome=outcome).inc()


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
