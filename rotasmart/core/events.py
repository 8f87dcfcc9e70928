"""Application startup and shutdown events."""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from prometheus_client import Counter, Histogram

from rotasmart.core.config import settings
from rotasmart.core.geocoding.constants import PROVIDER_LOCATIONIQ
from rotasmart.core.geocoding.service import get_geocoding_service
from rotasmart.core.logging import configure_logging, get_logger

# Prometheus metrics
REQUESTS_TOTAL = Counter(
    "app_http_requests_total",
    "Total number of HTTP requests",
    labelnames=["method", "path"],
)

RESPONSES_TOTAL = Counter(
    "app_http_responses_total",
    "Total number of HTTP responses",
    labelnames=["status_code"],
)

REQUEST_DURATION = Histogram(
    "app_http_request_duration_seconds",
    "HTTP request duration by route",
    labelnames=["method", "path"],
    buckets=(0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
)

logger = get_logger()


def create_start_app_handler(app: Any) -> Callable[[], Awaitable[None]]:
    """Create startup handler.

    Configures logging and builds the geocoding service so provider
    configuration problems show up at boot rather than on the first batch.

    Args:
        app: FastAPI application instance

    Returns:
        Async startup handler
    """

    async def start_app() -> None:
        configure_logging(level=settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)
        service = get_geocoding_service()
        app.state.geocoding_providers = service.provider_names
        logger.info(
            "geocoding_service_ready",
            providers=service.provider_names,
            country_codes=service.country_codes,
        )
        if PROVIDER_LOCATIONIQ not in service.provider_names:
            logger.warning("locationiq_disabled", reason="LOCATIONIQ_API_KEY not set")

    return start_app


def create_stop_app_handler(app: Any) -> Callable[[], Awaitable[None]]:
    """Create shutdown handler.

    Args:
        app: FastAPI application instance

    Returns:
        Async shutdown handler
    """

    async def stop_app() -> None:
        logger.info("application_shutdown", app_name=settings.app_name)

    return stop_app


@asynccontextmanager
async def lifespan(app: Any) -> AsyncIterator[None]:
    """Run the startup handler, serve, then run the shutdown handler."""
    await create_start_app_handler(app)()
    yield
    await create_stop_app_handler(app)()
