"""Prometheus metrics shared by the HTTP middleware and the books query."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint"],
)
BOOKS_QUERY_LATENCY = Histogram(
    "books_query_duration_seconds",
    "Database time spent issuing the books listing query",
    ["outcome"],
)
