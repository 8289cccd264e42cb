"""
Route handlers for tracking lookups.

Failure mapping: invalid input -> 400, exhausted without data -> 404,
anything unexpected -> 500. Response bodies carry user-safe messages only.
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from api.schemas import ErrorResponse, TrackResponse
from api.services.tracking_service import TrackingService
from shared.logging import get_logger
from worker.errors import ExhaustedError, ValidationError, get_user_safe_error_summary

logger = get_logger(__name__)
router = APIRouter(tags=["tracking"])


def get_tracking_service(request: Request) -> TrackingService:
    """Dependency returning the process-wide TrackingService."""
    return request.app.state.tracking_service


@router.get(
    "/track",
    response_model=TrackResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    summary="Look up tracking events and parcel info",
)
@router.get("/api/track", response_model=TrackResponse, include_in_schema=False)
async def track(
    service: Annotated[TrackingService, Depends(get_tracking_service)],
    num: Annotated[Optional[str], Query(description="Tracking number")] = None,
) -> TrackResponse:
    """
    Scrape the tracking page for `num`.

    Runs up to the configured number of browser attempts; returns the
    events and parcel info from the first attempt that yields events.
    """
    try:
        payload = await service.track(num)
    except ValidationError as e:
        logger.warning("track.invalid_request", error=e.message, detail=e.detail)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=get_user_safe_error_summary(e, fallback="Tracking number is invalid"),
        )
    except ExhaustedError as e:
        logger.warning(
            "track.exhausted",
            reason=e.reason,
            attempts=e.attempts,
            detail=e.detail,
        )
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=get_user_safe_error_summary(e),
        )
    except Exception as e:
        logger.error(
            "track.error",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve tracking information",
        )

    return TrackResponse.model_validate(payload)
