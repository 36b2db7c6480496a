from __future__ import annotations

from prometheus_client import Counter, Histogram

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

GATEWAY_OPERATIONS_TOTAL = Counter(
    "gateway_operations_total",
    "Gateway adapter operations by outcome",
    ["operation", "outcome"],
)
