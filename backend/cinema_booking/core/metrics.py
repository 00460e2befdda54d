"""
Metrics instrumentation for observability.
Exposes Prometheus-compatible metrics at /metrics endpoint.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Reservation metrics
reservation_attempts = Counter(
    'seat_reservation_attempts_total',
    'Atomic seat reservation calls',
    ['backend', 'status']  # reserved, conflict, not_found, error
)

reservation_latency = Histogram(
    'seat_reservation_latency_seconds',
    'Latency of the conditional reservation write',
    ['backend'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0]
)

seat_conflicts = Counter(
    'seat_conflicts_total',
    'Seat-keys rejected because they were already taken',
    ['stage']  # precheck, commit
)

# Order metrics
orders = Counter(
    'orders_total',
    'Order creation outcomes',
    ['result']  # confirmed, validation, not_found, conflict, error
)

tickets_confirmed = Counter(
    'tickets_confirmed_total',
    'Tickets confirmed across all orders'
)

# Cache metrics
cache_operations = Counter(
    'cache_operations_total',
    'Cache operations',
    ['operation', 'result']  # get/set/invalidate, hit/miss/ok/error
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


def record_reservation(backend: str, status: str):
    """Record a reservation call. Status: reserved, conflict, not_found, error"""
    reservation_attempts.labels(backend=backend, status=status).inc()


def record_seat_conflicts(stage: str, count: int):
    if count:
        seat_conflicts.labels(stage=stage).inc(count)


def record_order(result: str, tickets: int = 0):
    orders.labels(result=result).inc()
    if tickets:
        tickets_confirmed.inc(tickets)


def record_cache_operation(operation: str, result: str):
    cache_operations.labels(operation=operation, result=result).inc()
