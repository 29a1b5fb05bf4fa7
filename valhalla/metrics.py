"""Prometheus collectors for Valhalla queries and the /metrics endpoint."""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

valhalla_queries = Counter(
    "valhalla_queries_total",
    "Valhalla queries by operation and outcome",
    ["operation", "outcome"],
)

valhalla_query_duration = Histogram(
    "valhalla_query_duration_seconds",
    "End-to-end Valhalla query latency, including pool acquisition",
    ["operation"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)


def record_query(operation: str, ok: bool, elapsed: float) -> None:
    valhalla_queries.labels(operation=operation, outcome="ok" if ok else "error").inc()
    valhalla_query_duration.labels(operation=operation).observe(elapsed)


async def metrics_endpoint() -> Response:
    """Expose Prometheus metrics in the text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
