from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from .model import Meeting, MeetingFields, MeetingParticipant


class MeetingRepository(Protocol):
    def get_meeting(self, meeting_id: int) -> Optional[Meeting]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Meeting]:
        raise NotImplementedError

    def list_for_date(self, day: date) -> Sequence[Meeting]:
        raise NotImplementedError

    def list_for_user(self, user_id: int, *, day: Optional[date] = None) -> Sequence[Meeting]:
        """Meetings the user participates in, optionally restricted to one date."""

        raise NotImplementedError

    def count_active_at(self, moment: datetime) -> int:
        """Meetings whose [start_time, end_time] window contains the moment."""

        raise NotImplementedError

    def create_meeting(self, *, fields: MeetingFields, created_by: int, participant_ids: Iterable[int]) -> Meeting:
        raise NotImplementedError

    def replace_meeting(
        self,
        *,
        meeting_id: int,
        fields: MeetingFields,
        participant_ids: Optional[Iterable[int]] = None,
    ) -> Optional[Meeting]:
        """Full replace; participants are replaced only when a list is given.

        Returns None when the meeting does not exist.
        """

        raise NotImplementedError

    def delete_meeting(self, meeting_id: int) -> bool:
        """Delete a meeting with its participants and attendance records in one transaction."""

        raise NotImplementedError

    def is_participant(self, user_id: int, meeting_id: int) -> bool:
        raise NotImplementedError

    def list_participants(self, meeting_id: int) -> Sequence[MeetingParticipant]:
        raise NotImplementedError
