"""Prometheus metric inventory.

Every metric the service exports is declared here; the modules that own
the behavior import and increment them.  Scraped through GET /metrics.
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
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Domain metrics
# ---------------------------------------------------------------------------

ENROLLMENT_TRANSITIONS = Counter(
    "enrollment_transitions_total",
    "Enrollment state changes",
    ["transition"],  # register|request_completion|approve|reject
)

ASSET_RESOLUTIONS = Counter(
    "asset_resolutions_total",
    "Asset reference resolutions by result",
    ["result"],  # passthrough|signed|failed|empty
)

UPLOADS = Counter(
    "asset_uploads_total",
    "Upload pipeline outcomes",
    ["category", "result"],  # category: signatures|courses|home|videos
)

NOTIFICATIONS = Counter(
    "notifications_published_total",
    "User-visible notifications by type",
    ["type"],  # success|info|email
)

VIDEO_JOBS = Counter(
    "video_generation_jobs_total",
    "Finished video generation jobs by outcome",
    ["outcome"],  # succeeded|failed|cancelled|timed_out
)

SESSION_REVOCATION_CHECKS = Counter(
    "session_revocation_checks_total",
    "Access-token revocation lookups by result",
    ["result"],  # valid|revoked
)
