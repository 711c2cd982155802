"""Prometheus metrics collection and registry"""

import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

from registry_auth.core.config import settings

metrics_registry = REGISTRY

# ====================
# Service Information
# ====================

service_info = Info(
    "registry_auth_service",
    "registry-auth service information",
    registry=metrics_registry
)

service_info.info({
    "version": settings.app_version,
    "environment": settings.environment,
    "service": settings.app_name
})

process_start_time = Gauge(
    "registry_auth_start_time_seconds",
    "Start time of the service since unix epoch in seconds",
    registry=metrics_registry
)

process_start_time.set(time.time())

# ====================
# HTTP Metrics
# ====================

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint", "status"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=metrics_registry
)

http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status"],
    registry=metrics_registry
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests currently being processed",
    ["method", "endpoint"],
    registry=metrics_registry
)

# ====================
# Upstream Metrics
# ====================

upstream_queries_total = Counter(
    "upstream_queries_total",
    "Total number of GraphQL requests sent upstream",
    ["query", "status"],
    registry=metrics_registry
)

upstream_query_duration_seconds = Histogram(
    "upstream_query_duration_seconds",
    "Latency of GraphQL requests sent upstream",
    ["query"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    registry=metrics_registry
)

# ====================
# Cache Metrics
# ====================

result_cache_requests_total = Counter(
    "result_cache_requests_total",
    "Result cache lookups by operation",
    ["operation", "result"],
    registry=metrics_registry
)

# ====================
# Authentication / Authorization Metrics
# ====================

auth_attempts_total = Counter(
    "auth_attempts_total",
    "Total number of authentication attempts",
    ["result"],
    registry=metrics_registry
)

access_checks_total = Counter(
    "access_checks_total",
    "Total number of package access checks",
    ["action", "allowed"],
    registry=metrics_registry
)

# ====================
# Logging Metrics
# ====================

log_messages_total = Counter(
    "log_messages_total",
    "Total number of log messages",
    ["level"],
    registry=metrics_registry
)


class Timer:
    """Context manager observing the elapsed time into a histogram"""

    def __init__(self, histogram: Histogram, **labels):
        self.histogram = histogram
        self.labels = labels
        self.start_time = None

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time
        self.histogram.labels(**self.labels).observe(duration)


def get_metrics() -> bytes:
    return generate_latest(metrics_registry)


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
