from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, List, Optional, Sequence

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.validators import (
    require_choice,
    require_latitude,
    require_longitude,
    require_non_empty,
    require_positive_int,
)
from ..core.constants import DEFAULT_RADIUS_METERS
from ..core.enums import MeetingStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import Meeting, MeetingFields, MeetingParticipant
from .repository import MeetingRepository

logger = logging.getLogger(__name__)


class MeetingService:
    def __init__(self, meetings: MeetingRepository):
        self._meetings = meetings

    @staticmethod
    def build_fields(
        *,
        name: Any,
        meeting_date: Any,
        start_time: Any,
        end_time: Any,
        location_name: Any,
        latitude: Any,
        longitude: Any,
        radius_m: Any = DEFAULT_RADIUS_METERS,
        status: Any = MeetingStatus.UPCOMING,
    ) -> MeetingFields:
        start = parse_iso_datetime(start_time, "startTime")
        end = parse_iso_datetime(end_time, "endTime")
        if end <= start:
            raise ValidationError("endTime must be after startTime")

        if meeting_date is None:
            day = start.date()
        elif isinstance(meeting_date, str):
            try:
                day = parse_iso_date(meeting_date[:10])
            except ValueError:
                raise ValidationError("date must be YYYY-MM-DD")
        else:
            day = meeting_date

        return MeetingFields(
            name=require_non_empty(name, "name"),
            date=day,
            start_time=start,
            end_time=end,
            location_name=require_non_empty(location_name, "locationName"),
            latitude=require_latitude(latitude),
            longitude=require_longitude(longitude),
            radius_m=require_positive_int(DEFAULT_RADIUS_METERS if radius_m is None else radius_m, "radius"),
            status=require_choice(status or MeetingStatus.UPCOMING, MeetingStatus, "status"),
        )

    @staticmethod
    def _participant_ids(values: Optional[Iterable[Any]]) -> Optional[List[int]]:
        if values is None:
            return None
        if isinstance(values, (str, bytes)):
            raise ValidationError("participants must be a list of user ids")
        ids = [require_positive_int(v, "participants") for v in values]
        return list(dict.fromkeys(ids))

    def create_meeting(
        self,
        *,
        current_role: Role,
        created_by: int,
        fields: MeetingFields,
        participant_ids: Optional[Iterable[Any]] = None,
    ) -> Meeting:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Not authorized")

        meeting = self._meetings.create_meeting(
            fields=fields,
            created_by=int(created_by),
            participant_ids=self._participant_ids(participant_ids) or [],
        )
        logger.info("Meeting %s created by user %s", meeting.meeting_id, created_by)
        return meeting

    def update_meeting(
        self,
        *,
        current_role: Role,
        meeting_id: int,
        fields: MeetingFields,
        participant_ids: Optional[Iterable[Any]] = None,
    ) -> Meeting:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Not authorized")

        updated = self._meetings.replace_meeting(
            meeting_id=int(meeting_id),
            fields=fields,
            participant_ids=self._participant_ids(participant_ids),
        )
        if updated is None:
            raise NotFoundError("Meeting not found")
        return updated

    def delete_meeting(self, *, current_role: Role, meeting_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("Not authorized")

        if not self._meetings.delete_meeting(int(meeting_id)):
            raise NotFoundError("Meeting not found")
        logger.info("Meeting %s deleted with its participants and attendance records", meeting_id)

    def get_meeting_for_user(self, *, user_id: int, role: Role, meeting_id: int) -> Meeting:
        meeting = self._meetings.get_meeting(int(meeting_id))
        if meeting is None:
            raise NotFoundError("Meeting not found")
        if role != Role.ADMIN and not self._meetings.is_participant(int(user_id), meeting.meeting_id):
            raise AuthorizationError("Not authorized to view this meeting")
        return meeting

    def list_meetings(self, *, user_id: int, role: Role, today: Optional[date] = None) -> Sequence[Meeting]:
        """All meetings for admins, own meetings for employees; `today` narrows to one date."""
        if role == Role.ADMIN:
            return self._meetings.list_for_date(today) if today else self._meetings.list_all()
        return self._meetings.list_for_user(int(user_id), day=today)

    def list_participants(self, meeting_id: int) -> Sequence[MeetingParticipant]:
        if self._meetings.get_meeting(int(meeting_id)) is None:
            raise NotFoundError("Meeting not found")
        return self._meetings.list_participants(int(meeting_id))
