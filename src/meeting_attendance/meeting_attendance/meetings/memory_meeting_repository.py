from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..database.memory import InMemoryDatabase
from .model import Meeting, MeetingFields, MeetingParticipant
from .repository import MeetingRepository


class InMemoryMeetingRepository(MeetingRepository):
    def __init__(self, db: InMemoryDatabase):
        self._db = db

    def get_meeting(self, meeting_id: int) -> Optional[Meeting]:
        return self._db.meetings.get(int(meeting_id))

    def list_all(self) -> Sequence[Meeting]:
        with self._db.guard:
            return sorted(self._db.meetings.values(), key=lambda m: m.start_time)

    def list_for_date(self, day: date) -> Sequence[Meeting]:
        return [m for m in self.list_all() if m.date == day]

    def list_for_user(self, user_id: int, *, day: Optional[date] = None) -> Sequence[Meeting]:
        with self._db.guard:
            meeting_ids = {p.meeting_id for p in self._db.participants.values() if p.user_id == int(user_id)}
            meetings = [m for m in self.list_all() if m.meeting_id in meeting_ids]
        if day is not None:
            meetings = [m for m in meetings if m.date == day]
        return meetings

    def count_active_at(self, moment: datetime) -> int:
        return sum(1 for m in self.list_all() if m.is_active_at(moment))

    def create_meeting(self, *, fields: MeetingFields, created_by: int, participant_ids: Iterable[int]) -> Meeting:
        with self._db.guard:
            meeting = Meeting(
                meeting_id=self._db.next_id("meetings"),
                created_by=int(created_by),
                created_at=now_local(),
                **_fields_kwargs(fields),
            )
            self._db.meetings[meeting.meeting_id] = meeting
            self._add_participants(meeting.meeting_id, participant_ids)
            return meeting

    def replace_meeting(
        self,
        *,
        meeting_id: int,
        fields: MeetingFields,
        participant_ids: Optional[Iterable[int]] = None,
    ) -> Optional[Meeting]:
        with self._db.guard:
            existing = self._db.meetings.get(int(meeting_id))
            if existing is None:
                return None
            updated = replace(existing, **_fields_kwargs(fields))
            self._db.meetings[existing.meeting_id] = updated
            if participant_ids is not None:
                self._remove_participants(existing.meeting_id)
                self._add_participants(existing.meeting_id, participant_ids)
            return updated

    def delete_meeting(self, meeting_id: int) -> bool:
        meeting_id = int(meeting_id)
        with self._db.guard:
            if self._db.meetings.pop(meeting_id, None) is None:
                return False
            self._remove_participants(meeting_id)
            for rid in [rid for rid, r in self._db.records.items() if r.meeting_id == meeting_id]:
                del self._db.records[rid]
            return True

    def is_participant(self, user_id: int, meeting_id: int) -> bool:
        with self._db.guard:
            return any(
                p.meeting_id == int(meeting_id) and p.user_id == int(user_id)
                for p in self._db.participants.values()
            )

    def list_participants(self, meeting_id: int) -> Sequence[MeetingParticipant]:
        with self._db.guard:
            return [p for p in self._db.participants.values() if p.meeting_id == int(meeting_id)]

    def _add_participants(self, meeting_id: int, user_ids: Iterable[int]) -> None:
        for user_id in user_ids:
            if self.is_participant(int(user_id), meeting_id):
                continue
            pid = self._db.next_id("participants")
            self._db.participants[pid] = MeetingParticipant(participant_id=pid, meeting_id=meeting_id, user_id=int(user_id))

    def _remove_participants(self, meeting_id: int) -> None:
        for pid in [pid for pid, p in self._db.participants.items() if p.meeting_id == meeting_id]:
            del self._db.participants[pid]


def _fields_kwargs(fields: MeetingFields) -> dict:
    return {
        "name": fields.name,
        "date": fields.date,
        "start_time": fields.start_time,
        "end_time": fields.end_time,
        "location_name": fields.location_name,
        "latitude": fields.latitude,
        "longitude": fields.longitude,
        "radius_m": fields.radius_m,
        "status": fields.status,
    }
