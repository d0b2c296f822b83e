"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Registration metrics
registration_attempts = Counter(
    'registration_attempts_total',
    'Total event registration attempts',
    ['path', 'result']  # self/admin, success/conflict/invalid/error
)

registration_latency = Histogram(
    'registration_latency_seconds',
    'Registration request latency',
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

registration_cancellations = Counter(
    'registration_cancellations_total',
    'Registrations cancelled'
)

payment_status_updates = Counter(
    'payment_status_updates_total',
    'Payment status updates by resulting status',
    ['status', 'changed']  # changed: yes/no (idempotent re-apply)
)

# Evidence storage metrics
evidence_uploads = Counter(
    'evidence_uploads_total',
    'Payment evidence uploads',
    ['result']  # stored, deferred, rejected, failed
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set, hit/miss
)


def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_registration_attempt(path: str, result: str):
    """Record registration attempt. Path: self, admin. Result: success, conflict, invalid, error"""
    registration_attempts.labels(path=path, result=result).inc()


def record_cancellation():
    registration_cancellations.inc()


def record_payment_status_update(status: str, changed: bool):
    payment_status_updates.labels(status=status, changed="yes" if changed else "no").inc()


def record_evidence_upload(result: str):
    """Result: stored, deferred, rejected, failed"""
    evidence_uploads.labels(result=result).inc()


def record_cache_operation(operation: str, hit: bool):
    """Record cache operation."""
    result = "hit" if hit else "miss"
    cache_operations.labels(operation=operation, result=result).inc()
