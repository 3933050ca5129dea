"""Prometheus metric inventory.

All metrics are declared here so the set of things the service measures
lives in one file; the owning modules import and increment them.

The progress-specific counters exist to make the two degraded modes
visible on a dashboard:

  cache_operations_total{result="error"}
      the cache backend is failing and reads are falling through to the
      stores (slower, still correct)

  approach_count_queries_total{path="fallback"}
      the grouped approach-count query is failing and list views are
      issuing one count per question
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # 5ms cache hits through to multi-second cold category joins
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Progress subsystem
# ---------------------------------------------------------------------------

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache reads by namespace and result",
    ["namespace", "result"],  # result: hit|miss|error
)

CACHE_INVALIDATIONS = Counter(
    "cache_invalidations_total",
    "Invalidation passes issued by write paths",
    ["trigger"],  # progress|category|question
)

APPROACH_COUNT_QUERIES = Counter(
    "approach_count_queries_total",
    "Bulk approach-count computations by the path that served them",
    ["path"],  # grouped|fallback
)

PROGRESS_UPDATES = Counter(
    "progress_updates_total",
    "Progress writes by resulting solved state",
    ["solved"],  # true|false
)
