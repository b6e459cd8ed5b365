"""Prometheus scrape endpoint.

Returns every metric from app/core/metrics.py in the text exposition
format, for example:

  # TYPE policy_rejections_total counter
  policy_rejections_total{rule="cooldown"} 12.0
  quiz_attempts_total{result="passed"} 318.0

Restrict /metrics to the Prometheus server in production: rejection
counts by rule describe how the grading policy is tuned.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
