"""Prometheus request metrics."""

import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from rotasmart.core.events import REQUEST_DURATION, REQUESTS_TOTAL, RESPONSES_TOTAL
from rotasmart.core.logging import get_logger

logger = get_logger()

UNMATCHED_ROUTE = "<unmatched>"
# Scrapes are not traffic
SKIPPED_PATHS = frozenset({"/metrics"})


def route_label(request: Request) -> str:
    """Path template of the route that served the request.

    Unknown paths share one label so scanners cannot grow the number of series.
    """
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Middleware recording request counts and durations per route.

    A batch waits on provider rate limits for every row, so request duration
    grows with batch size; the histogram buckets reach several minutes.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        if request.url.path in SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            route = route_label(request)
            REQUESTS_TOTAL.labels(method=request.method, path=route).inc()
            logger.error(
                "request_failed",
                method=request.method,
                route=route,
                error=str(e),
            )
            raise

        duration = time.perf_counter() - start_time
        # Routing has run, so the matched route is on the scope now
        route = route_label(request)
        REQUESTS_TOTAL.labels(method=request.method, path=route).inc()
        REQUEST_DURATION.labels(method=request.method, path=route).observe(duration)
        RESPONSES_TOTAL.labels(status_code=str(response.status_code)).inc()
        logger.info(
            "request_processed",
            method=request.method,
            route=route,
            status_code=response.status_code,
            duration=round(duration, 4),
        )
        return response
