"""
Pydantic schemas for the study spot HTTP API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from backend.state import StudySpotsState
from shared.study_spot import SpotStatus, StudySpot


class CreateSpotRequest(BaseModel):
    spot_name: str = Field(..., max_length=128)

    @field_validator("spot_name")
    @classmethod
    def _strip_and_require(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("spot_name must not be blank")
        return value


class UpdateStatusRequest(BaseModel):
    status: SpotStatus


class StudySpotResponse(BaseModel):
    id: str
    spot_name: str
    current_status: str
    last_updated: Optional[datetime] = None
    status_color: Optional[str] = None
    last_updated_text: str

    @classmethod
    def from_spot(cls, spot: StudySpot) -> "StudySpotResponse":
        return cls(
            id=spot.id,
            spot_name=spot.spot_name,
            current_status=spot.current_status,
            last_updated=spot.last_updated,
            status_color=spot.status_color,
            last_updated_text=spot.last_updated_text,
        )


class SpotsStateResponse(BaseModel):
    spots: list[StudySpotResponse]
    is_loading: bool
    error_message: Optional[str] = None
    error_kind: Optional[str] = None

    @classmethod
    def from_state(cls, state: StudySpotsState) -> "SpotsStateResponse":
        return cls(
            spots=[StudySpotResponse.from_spot(spot) for spot in state.spots],
            is_loading=state.is_loading,
            error_message=state.error_message,
            error_kind=str(state.error_kind) if state.error_kind else None,
        )
