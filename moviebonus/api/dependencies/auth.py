"""Trigger authorization dependencies for FastAPI.

The sync trigger is guarded by a shared secret (``CRON_SECRET``), sent
either as a Bearer token or as a ``secret`` query parameter. An unset
secret fails closed: every request is refused with a configuration
error rather than served unauthenticated.
"""

import hmac
import logging
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from moviebonus.etl.errors import AuthorizationError, ConfigurationError
from moviebonus.etl.schemas import RunReport
from moviebonus.settings import Settings

logger = logging.getLogger(__name__)

PipelineRunner = Callable[[Settings], Awaitable[RunReport]]

# =============================================================================
# SECURITY SCHEME
# =============================================================================

# Missing header is reported by authorize_trigger, not by FastAPI
security_scheme = HTTPBearer(
    scheme_name="CronSecret",
    description="CRON_SECRET sent as 'Authorization: Bearer <secret>'",
    auto_error=False,
)


def authorize_trigger(
    expected: str | None,
    bearer_token: str | None = None,
    query_secret: str | None = None,
) -> None:
    """Check a trigger credential against the configured secret.

    Args:
        expected: Configured CRON_SECRET.
        bearer_token: Token from the Authorization header.
        query_secret: Value of the ``secret`` query parameter.

    Raises:
        ConfigurationError: If no secret is configured.
        AuthorizationError: If no candidate matches the secret.
    """
    if not expected:
        logger.error("CRON_SECRET is not configured, refusing trigger")
        raise ConfigurationError("CRON_SECRET is required")

    expected_bytes = expected.encode("utf-8")
    for candidate in (bearer_token, query_secret):
        if candidate and hmac.compare_digest(candidate.encode("utf-8"), expected_bytes):
            return

    logger.warning("Unauthorized trigger attempt")
    raise AuthorizationError("Invalid or missing CRON_SECRET")


# =============================================================================
# DEPENDENCIES
# =============================================================================


def get_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_pipeline_runner(request: Request) -> PipelineRunner:
    """Pipeline entry point the application was created with."""
    return request.app.state.run_pipeline


AppSettings = Annotated[Settings, Depends(get_settings)]
Runner = Annotated[PipelineRunner, Depends(get_pipeline_runner)]


def require_bearer_secret(
    settings: AppSettings,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security_scheme)],
) -> None:
    """Accept only ``Authorization: Bearer <secret>``."""
    authorize_trigger(
        settings.trigger.cron_secret,
        bearer_token=credentials.credentials if credentials else None,
    )


def require_query_secret(
    settings: AppSettings,
    secret: Annotated[str | None, Query(description="CRON_SECRET")] = None,
) -> None:
    """Accept only ``?secret=<secret>``."""
    authorize_trigger(settings.trigger.cron_secret, query_secret=secret)


def require_any_secret(
    settings: AppSettings,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security_scheme)],
    secret: Annotated[str | None, Query(description="CRON_SECRET")] = None,
) -> None:
    """Accept either the Bearer token or the query parameter."""
    authorize_trigger(
        settings.trigger.cron_secret,
        bearer_token=credentials.credentials if credentials else None,
        query_secret=secret,
    )
