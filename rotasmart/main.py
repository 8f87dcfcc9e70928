"""Main FastAPI application module."""

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette import status

from rotasmart.api.v1.router import router as v1_router
from rotasmart.core.config import Settings
from rotasmart.core.events import lifespan
from rotasmart.middleware.correlation import (
    BATCH_HEADER,
    CORRELATION_HEADER,
    CorrelationMiddleware,
)
from rotasmart.middleware.errors import (
    ErrorHandlingMiddleware,
    register_exception_handlers,
)
from rotasmart.middleware.metrics import MetricsMiddleware


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with its middleware and routes.

    Args:
        settings: Optional settings, read from the environment by default

    Returns:
        Configured FastAPI application
    """
    settings = settings or Settings()

    application = FastAPI(
        title=settings.app_name,
        description="Address geocoding and reconciliation for delivery routes",
        version=settings.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        default_response_class=JSONResponse,
        lifespan=lifespan,
    )

    # Added inside -> out: error handling, metrics, correlation, CORS
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(MetricsMiddleware)
    application.add_middleware(CorrelationMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*", "Content-Type", CORRELATION_HEADER, BATCH_HEADER],
        expose_headers=[CORRELATION_HEADER, BATCH_HEADER],
        max_age=600,
    )
    register_exception_handlers(application)

    @application.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose Prometheus metrics."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @application.get("/", include_in_schema=False)
    async def root_redirect() -> Response:
        """Redirect root path to docs."""
        return RedirectResponse(
            url="/docs", status_code=status.HTTP_307_TEMPORARY_REDIRECT
        )

    application.include_router(v1_router, prefix=settings.api_prefix)
    return application


app = create_app()
