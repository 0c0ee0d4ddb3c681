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
# Assessment and certificate metrics
# ---------------------------------------------------------------------------
# Incremented by the services that own the behavior; defined here so the
# metric inventory lives in one place.

ASSESSMENT_SUBMISSIONS = Counter(
    "assessment_submissions_total",
    "Graded assessment submissions by outcome",
    ["outcome"],  # "passed" or "failed"
)

DUPLICATE_SUBMISSIONS = Counter(
    "assessment_duplicate_submissions_total",
    "Submissions rejected because the user already submitted",
)

CERTIFICATES_ISSUED = Counter(
    "certificates_issued_total",
    "Certificate issuance calls by result",
    ["result"],  # "created" or "existing"
)

CERTIFICATE_ISSUE_FAILURES = Counter(
    "certificate_issue_failures_total",
    "Certificate issuance errors swallowed on the submission path",
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache get operations by result",
    ["operation"],  # "hit" or "miss"
)
