"""
Prometheus metrics endpoint.

Example:
    GET /metrics

    Response:
        # HELP venue_payments_registered_total Total number of payment log entries added
        # TYPE venue_payments_registered_total counter
        venue_payments_registered_total{payment_method="cash"} 42.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """
    Metrics in Prometheus text exposition format, scraped at regular intervals.
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
