from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.constants import DEFAULT_RADIUS_METERS
from ..core.enums import MeetingStatus


@dataclass(frozen=True)
class MeetingFields:
    """Everything a caller supplies when creating or fully replacing a meeting."""

    name: str
    date: date
    start_time: datetime
    end_time: datetime
    location_name: str
    latitude: float
    longitude: float
    radius_m: int = DEFAULT_RADIUS_METERS
    status: MeetingStatus = MeetingStatus.UPCOMING


@dataclass(frozen=True)
class Meeting:
    """Domain entity: Meeting with its geofence (center + radius in meters)."""

    meeting_id: int
    name: str
    date: date
    start_time: datetime
    end_time: datetime
    location_name: str
    latitude: float
    longitude: float
    radius_m: int
    created_by: int
    status: MeetingStatus = MeetingStatus.UPCOMING
    created_at: Optional[datetime] = None

    def is_active_at(self, moment: datetime) -> bool:
        return self.start_time <= moment <= self.end_time

    def to_dict(self) -> dict:
        return {
            "id": self.meeting_id,
            "name": self.name,
            "date": self.date.isoformat(),
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
            "locationName": self.location_name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "radius": self.radius_m,
            "createdBy": self.created_by,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class MeetingParticipant:
    participant_id: int
    meeting_id: int
    user_id: int
    required: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.participant_id,
            "meetingId": self.meeting_id,
            "userId": self.user_id,
            "required": self.required,
        }
