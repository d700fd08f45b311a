# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Optional

from shared.firebase_constants import (
    CURRENT_STATUS_FIELD,
    LAST_UPDATED_FIELD,
    SPOT_NAME_FIELD,
)

UNKNOWN_STATUS = "Unknown"
NEVER_UPDATED_TEXT = "Never updated"
LAST_UPDATED_FORMAT = "%b %d, %Y at %I:%M %p"


class SpotStatus(StrEnum):
    EMPTY = "Empty"
    GETTING_FULL = "Getting Full"
    PACKED = "Packed"


STATUS_COLORS = {
    SpotStatus.EMPTY: "#4CAF50",
    SpotStatus.GETTING_FULL: "#FFC107",
    SpotStatus.PACKED: "#F44336",
}


class MalformedSpotDocument(ValueError):
    """Raised when a stored document cannot be read as a study spot."""


@dataclass(frozen=True)
class StudySpot:
    """A named study location and its most recently reported occupancy."""

    id: str
    spot_name: str
    current_status: str
    last_updated: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc_id: str, data: Optional[dict]) -> "StudySpot":
        """
        Builds a StudySpot from a stored document.

        Missing fields fall back to defaults: an empty name, the "Unknown"
        status and no timestamp. A timestamp that can't be parsed is also
        treated as missing.

        Raises:
            MalformedSpotDocument: If the document has no id, is not a
                mapping, or stores a name or status that is not a string.
        """
        if not doc_id:
            raise MalformedSpotDocument("Document has no id")
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise MalformedSpotDocument(f"Document {doc_id} is not a mapping")

        spot_name = _string_field(doc_id, data, SPOT_NAME_FIELD, "")
        current_status = _string_field(
            doc_id, data, CURRENT_STATUS_FIELD, UNKNOWN_STATUS
        )
        return cls(
            id=doc_id,
            spot_name=spot_name,
            current_status=current_status,
            last_updated=parse_timestamp(data.get(LAST_UPDATED_FIELD)),
        )

    @property
    def status_color(self) -> Optional[str]:
        return status_color(self.current_status)

    @property
    def last_updated_text(self) -> str:
        return format_last_updated(self.last_updated)


def _string_field(doc_id: str, data: dict, field_name: str, default: str) -> str:
    value = data.get(field_name)
    if value is None:
        return default
    if not isinstance(value, str):
        raise MalformedSpotDocument(
            f"Document {doc_id} has a non-string {field_name}: {value!r}"
        )
    return value


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Converts a stored timestamp to an aware datetime.

    Accepts datetimes (including Firestore's DatetimeWithNanoseconds) and
    ISO-format strings. Anything else yields None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parse_timestamp(parsed)
    return None


def new_spot_fields(spot_name: str, now: datetime) -> dict:
    """Fields written for a newly created spot."""
    return {
        SPOT_NAME_FIELD: spot_name,
        CURRENT_STATUS_FIELD: str(SpotStatus.EMPTY),
        LAST_UPDATED_FIELD: now,
    }


def status_update_fields(status: str, now: datetime) -> dict:
    """Fields written when a spot's status changes."""
    return {
        CURRENT_STATUS_FIELD: str(status),
        LAST_UPDATED_FIELD: now,
    }


def status_color(status: str) -> Optional[str]:
    """Returns the display color for a known status, or None."""
    try:
        return STATUS_COLORS[SpotStatus(status)]
    except ValueError:
        return None


def format_last_updated(last_updated: Optional[datetime]) -> str:
    if last_updated is None:
        return NEVER_UPDATED_TEXT
    return f"Last updated: {last_updated.strftime(LAST_UPDATED_FORMAT)}"
