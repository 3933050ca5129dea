"""Prometheus scrape endpoint.

Plain text exposition format, not JSON.  Besides the HTTP metrics it
carries the cache and approach-count counters from core/metrics.py, e.g.

  cache_operations_total{namespace="progress:bulk",result="hit"} 812.0
  approach_count_queries_total{path="fallback"} 3.0

Restrict access at the network layer in production.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
