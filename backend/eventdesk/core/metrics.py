"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Registration metrics
registration_attempts = Counter(
    'registration_attempts_total',
    'Total registration attempts',
    ['status']  # created, duplicate, rejected, error
)

# Seat allocation metrics
seat_admissions = Counter(
    'seat_admissions_total',
    'Seat allocator decisions',
    ['result']  # admitted, exhausted, gate_rejected
)

# Check-in metrics
checkin_attempts = Counter(
    'checkin_attempts_total',
    'Check-in attempts by outcome',
    ['outcome', 'channel']  # success/already_checked_in/not_found/invalid, qr/manual
)

checkin_latency = Histogram(
    'checkin_latency_seconds',
    'Check-in request latency',
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

checkin_races_lost = Counter(
    'checkin_races_lost_total',
    'Check-ins that found the registration already flipped at write time'
)

# Side effects
notification_publishes = Counter(
    'notification_publishes_total',
    'Fan-out publish results',
    ['type', 'result']  # newRegistration/newCheckin, delivered/dropped/error
)

notification_subscribers = Gauge(
    'notification_subscribers',
    'Connected live dashboard subscribers'
)

email_deliveries = Counter(
    'email_deliveries_total',
    'Confirmation email results',
    ['result']  # sent, failed, skipped
)

consultation_requests = Counter(
    'consultation_requests_total',
    'Consultation desk operations',
    ['action']  # submitted, pending, completed, checked_in
)

# Redis admission gate
redis_connection_errors = Counter(
    'redis_connection_errors_total',
    'Redis connection errors'
)

redis_circuit_breaker_open = Gauge(
    'redis_circuit_breaker_open',
    'Redis circuit breaker state (1=open, 0=closed)'
)


def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Usage:
        @app.get("/metrics")
        def metrics():
            return metrics_endpoint()
    """
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


def record_registration(status: str):
    """Record registration attempt. Status: created, duplicate, rejected, error"""
    registration_attempts.labels(status=status).inc()


def record_admission(result: str):
    """Record seat allocator decision."""
    seat_admissions.labels(result=result).inc()


def record_checkin(outcome: str, channel: str):
    checkin_attempts.labels(outcome=outcome, channel=channel).inc()


def record_notification(message_type: str, result: str):
    notification_publishes.labels(type=message_type, result=result).inc()


def record_email(result: str):
    email_deliveries.labels(result=result).inc()


def record_consultation(action: str):
    consultation_requests.labels(action=action).inc()
