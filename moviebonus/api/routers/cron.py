"""Sync trigger endpoints.

Every route authorizes first, then calls the pipeline in-process and
returns the run report as camelCase JSON.
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from moviebonus.api.dependencies.auth import (
    AppSettings,
    Runner,
    require_any_secret,
    require_bearer_secret,
    require_query_secret,
)
from moviebonus.api.schemas import ErrorResponse
from moviebonus.etl.schemas import RunReport

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Sync"],
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)


def _report_response(report: RunReport) -> JSONResponse:
    """Serialize a report; failed runs answer 500 with the same body."""
    return JSONResponse(
        content=report.model_dump(mode="json", by_alias=True),
        status_code=status.HTTP_200_OK if report.success else status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.get(
    "/cron/sync-movies",
    summary="Scheduled sync",
    description="Run the pipeline; authorized by 'Authorization: Bearer <CRON_SECRET>'.",
    dependencies=[Depends(require_bearer_secret)],
)
async def scheduled_sync(settings: AppSettings, run_pipeline: Runner) -> JSONResponse:
    """Run triggered by the periodic scheduler."""
    logger.info("Scheduled sync triggered")
    return _report_response(await run_pipeline(settings))


@router.post(
    "/cron/sync-movies",
    summary="Manual sync",
    description="Run the pipeline; authorized by '?secret=<CRON_SECRET>'.",
    dependencies=[Depends(require_query_secret)],
)
async def manual_sync(settings: AppSettings, run_pipeline: Runner) -> JSONResponse:
    """Run triggered by hand."""
    logger.info("Manual sync triggered")
    return _report_response(await run_pipeline(settings))


@router.post(
    "/scrape",
    summary="Scrape and sync",
    description="Run the pipeline; accepts the Bearer token or the secret query parameter.",
    dependencies=[Depends(require_any_secret)],
)
async def scrape(settings: AppSettings, run_pipeline: Runner) -> JSONResponse:
    """Run the pipeline and return its report."""
    logger.info("Scrape triggered")
    return _report_response(await run_pipeline(settings))
