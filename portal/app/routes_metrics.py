# routes_metrics.py

"""Prometheus metrics and /metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, generate_latest

# Counters
store_requests_total = Counter(
    "store_requests_total", "Requests sent to the hosted store", ["op", "outcome"]
)
store_requests_total.labels(op="select", outcome="ok").inc(0)

order_actions_total = Counter(
    "order_actions_total", "Accept/reject actions issued by drivers", ["action"]
)
order_actions_total.labels(action="accept").inc(0)
order_actions_total.labels(action="reject").inc(0)

code_rotations_total = Counter(
    "code_rotations_total", "Pickup code rotations", ["outcome"]
)
code_rotations_total.labels(outcome="ok").inc(0)
code_rotations_total.labels(outcome="error").inc(0)

change_events_total = Counter(
    "change_events_total", "Change notifications delivered to subscribers", ["table"]
)

# Gauges
sse_clients_gauge = Gauge("sse_clients", "Open driver order streams")
rotation_timers_gauge = Gauge("rotation_timers", "Active pickup code timers")

router = APIRouter()


@router.get("/metrics")
async def metrics_endpoint(request: Request) -> Response:
    """Expose Prometheus metrics."""
    data = generate_latest()
    return Response(data, media_type=CONTENT_TYPE_LATEST)
