"""
HTTP routes exposing the study spot view-model.

Failed operations raise HTTPException with the view-model's error message as
detail; the error stays in the state until it is cleared or the next fetch
succeeds.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from backend.dependencies import get_view_model
from backend.schemas import (
    CreateSpotRequest,
    SpotsStateResponse,
    UpdateStatusRequest,
)
from backend.viewmodel import StudySpotViewModel
from shared.results import ErrorKind

logger = logging.getLogger(__name__)

router = APIRouter()

_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.UNAVAILABLE: 503,
    ErrorKind.TIMEOUT: 503,
}


def _raise_for_failure(view_model: StudySpotViewModel) -> None:
    snapshot = view_model.snapshot
    status_code = _STATUS_BY_KIND.get(snapshot.error_kind, 502)
    logger.info("Request failed with %s (%s)", status_code, snapshot.error_kind)
    raise HTTPException(
        status_code=status_code,
        detail=snapshot.error_message or "Study spot request failed",
    )


@router.get("/spots", response_model=SpotsStateResponse)
def get_spots(view_model: StudySpotViewModel = Depends(get_view_model)):
    return SpotsStateResponse.from_state(view_model.snapshot)


@router.post("/spots/refresh", response_model=SpotsStateResponse)
async def refresh_spots(view_model: StudySpotViewModel = Depends(get_view_model)):
    if not await view_model.fetch_spots():
        _raise_for_failure(view_model)
    return SpotsStateResponse.from_state(view_model.snapshot)


@router.post("/spots", response_model=SpotsStateResponse, status_code=201)
async def create_spot(
    payload: CreateSpotRequest,
    view_model: StudySpotViewModel = Depends(get_view_model),
):
    """
    Create a spot and return the reloaded state.
    """
    if not await view_model.create_spot(payload.spot_name):
        _raise_for_failure(view_model)
    return SpotsStateResponse.from_state(view_model.snapshot)


@router.post("/spots/{spot_id}/status", response_model=SpotsStateResponse)
async def update_spot_status(
    spot_id: str,
    payload: UpdateStatusRequest,
    view_model: StudySpotViewModel = Depends(get_view_model),
):
    if not await view_model.update_status(spot_id, payload.status):
        _raise_for_failure(view_model)
    return SpotsStateResponse.from_state(view_model.snapshot)


@router.delete("/spots/error", response_model=SpotsStateResponse)
def clear_error(view_model: StudySpotViewModel = Depends(get_view_model)):
    view_model.clear_error()
    return SpotsStateResponse.from_state(view_model.snapshot)
