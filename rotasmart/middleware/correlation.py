"""Request and batch correlation for log lines."""

import re
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp
from structlog.contextvars import bind_contextvars, clear_contextvars

CORRELATION_HEADER = "X-Request-ID"
# Set by the route planner when one spreadsheet import is split across requests
BATCH_HEADER = "X-Batch-ID"

# UUIDs as well as caller ids such as "rota-2024-05-17-001"
_ID_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9._:-]{7,63}")


def is_valid_correlation_id(value: str | None) -> bool:
    """Check a caller-supplied request or batch id.

    Accepted ids are 8 to 64 characters of letters, digits, ``.``, ``_``,
    ``:`` and ``-``, starting with a letter or digit. Anything else is
    replaced so header contents never end up verbatim in the logs.
    """
    if not value:
        return False
    return _ID_PATTERN.fullmatch(value) is not None


def request_context(request: Request, correlation_id: str) -> dict[str, str]:
    """Log context bound for the lifetime of one request.

    Args:
    ----
        request: The incoming request
        correlation_id: Id chosen for the request

    Returns:
    -------
        Context with the correlation id, method, path and, when the caller
        sent a valid one, the batch id
    """
    context = {
        "correlation_id": correlation_id,
        "method": request.method,
        "path": request.url.path,
    }
    batch_id = request.headers.get(BATCH_HEADER)
    if is_valid_correlation_id(batch_id):
        context["batch_id"] = str(batch_id)
    return context


class CorrelationMiddleware(BaseHTTPMiddleware):
    """
    Middleware binding request identity to the structlog context.

    Every log line written while the request runs, including the per-row lines
    of the geocoding core that go through stdlib logging, carries the
    correlation id, the endpoint and the caller's batch id.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """
        Bind the request context, run the request and echo the ids back.

        Args:
        ----
            request: The incoming request
            call_next: The next handler in the middleware chain

        Returns:
        -------
            The downstream response with the correlation headers set
        """
        clear_contextvars()

        header_value = request.headers.get(CORRELATION_HEADER)
        if is_valid_correlation_id(header_value):
            correlation_id = str(header_value)
        else:
            correlation_id = str(uuid.uuid4())

        context = request_context(request, correlation_id)
        bind_contextvars(**context)
        request.state.correlation_id = correlation_id
        request.state.batch_id = context.get("batch_id")

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        if "batch_id" in context:
            response.headers[BATCH_HEADER] = context["batch_id"]
        return response
