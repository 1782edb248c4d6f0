"""FastAPI application entry point.

Creates the trigger API: sync endpoints guarded by CRON_SECRET and a
liveness probe.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from moviebonus import __version__
from moviebonus.api.dependencies.auth import PipelineRunner
from moviebonus.api.routers import cron
from moviebonus.api.schemas import ErrorResponse, HealthResponse
from moviebonus.etl.errors import AuthorizationError, ConfigurationError
from moviebonus.etl.pipeline import run_sync
from moviebonus.settings import Settings, load_settings

logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION FACTORY
# =============================================================================


def create_app(
    settings: Settings | None = None,
    run_pipeline: PipelineRunner | None = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Application settings, loaded from the environment when omitted.
        run_pipeline: Pipeline entry point, ``run_sync`` by default.

    Returns:
        Configured FastAPI instance.
    """
    settings = settings or load_settings()
    app = FastAPI(
        title=settings.api.title,
        version=__version__,
        description="Cinema bonus scrape, merge and sync trigger",
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )
    app.state.settings = settings
    app.state.run_pipeline = run_pipeline or run_sync
    logger.info(f"Settings: {settings.masked()}")

    if not settings.trigger.is_configured:
        logger.warning("⚠️ CRON_SECRET not set, sync endpoints will refuse every request")

    _register_exception_handlers(app)
    _register_routers(app)
    return app


def _register_exception_handlers(app: FastAPI) -> None:
    """Map trigger errors to HTTP responses.

    Args:
        app: FastAPI application instance.
    """

    @app.exception_handler(AuthorizationError)
    async def handle_unauthorized(_request: Request, exc: AuthorizationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=ErrorResponse(error="Unauthorized", message=str(exc)).model_dump(),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(ConfigurationError)
    async def handle_misconfigured(_request: Request, exc: ConfigurationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Server misconfiguration", message=str(exc)).model_dump(),
        )


def _register_routers(app: FastAPI) -> None:
    """Register API routers.

    Args:
        app: FastAPI application instance.
    """
    app.include_router(cron.router)

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["Health"],
        summary="Health check",
    )
    def health_check(request: Request) -> HealthResponse:
        """Liveness probe (no authentication required)."""
        settings: Settings = request.app.state.settings
        return HealthResponse(
            status="healthy",
            version=__version__,
            environment=settings.api.environment,
            trigger_configured=settings.trigger.is_configured,
        )


app = create_app()
