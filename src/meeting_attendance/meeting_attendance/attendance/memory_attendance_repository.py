from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from typing import Iterable, Iterator, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.locks import KeyedLock
from ..core.constants import AUDIT_NOTE_SEPARATOR, DEFAULT_CHECKIN_LOCK_TIMEOUT_SECONDS
from ..core.enums import AttendanceStatus
from ..core.exceptions import AlreadyCheckedInError, NotFoundError
from ..database.memory import InMemoryDatabase
from .model import AttendanceRecord, NewAttendanceRecord
from .repository import AttendanceRepository


class InMemoryAttendanceRepository(AttendanceRepository):
    def __init__(self, db: InMemoryDatabase, *, lock_timeout: float = DEFAULT_CHECKIN_LOCK_TIMEOUT_SECONDS):
        self._db = db
        self._pair_locks = KeyedLock()
        self._lock_timeout = float(lock_timeout)

    @contextmanager
    def pair_lock(self, meeting_id: int, user_id: int) -> Iterator[None]:
        with self._pair_locks.hold((int(meeting_id), int(user_id)), timeout=self._lock_timeout):
            yield

    def get_locked_record(self, meeting_id: int, user_id: int) -> Optional[AttendanceRecord]:
        with self._db.guard:
            return self._find_locked(int(meeting_id), int(user_id))

    def insert_record(self, record: NewAttendanceRecord) -> AttendanceRecord:
        with self._db.guard:
            if record.meeting_id not in self._db.meetings:
                raise NotFoundError("Meeting not found")
            # Same guarantee as the unique locked_key index of the MySQL schema.
            if record.status.is_locked and self._find_locked(record.meeting_id, record.user_id):
                raise AlreadyCheckedInError("You have already checked in to this meeting")

            created = AttendanceRecord(
                attendance_id=self._db.next_id("records"),
                meeting_id=record.meeting_id,
                user_id=record.user_id,
                status=record.status,
                check_in_time=record.check_in_time,
                check_in_latitude=record.check_in_latitude,
                check_in_longitude=record.check_in_longitude,
                verification_method=record.verification_method,
                notes=record.notes,
                created_at=now_local(),
            )
            self._db.records[created.attendance_id] = created
            return created

    def get_record_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._db.records.get(int(attendance_id))

    def update_record_status(
        self,
        attendance_id: int,
        *,
        new_status: AttendanceStatus,
        actor_id: int,
        audit_note: str,
        expected_status: AttendanceStatus = AttendanceStatus.PENDING,
    ) -> Optional[AttendanceRecord]:
        with self._db.guard:
            current = self._db.records.get(int(attendance_id))
            if current is None or current.status != expected_status:
                return None
            if new_status.is_locked and self._find_locked(current.meeting_id, current.user_id):
                raise AlreadyCheckedInError("User is already checked in to this meeting")
            notes = f"{current.notes}{AUDIT_NOTE_SEPARATOR}{audit_note}" if current.notes else audit_note
            updated = replace(current, status=new_status, manual_approval_by=int(actor_id), notes=notes)
            self._db.records[current.attendance_id] = updated
            return updated

    def list_for_user(self, user_id: int, *, limit: Optional[int] = None) -> Sequence[AttendanceRecord]:
        with self._db.guard:
            rows = [r for r in self._db.records.values() if r.user_id == int(user_id)]
        rows.sort(key=lambda r: (r.check_in_time is not None, r.check_in_time, r.attendance_id), reverse=True)
        return rows[:limit] if limit is not None else rows

    def list_for_meeting(self, meeting_id: int) -> Sequence[AttendanceRecord]:
        return self.list_for_meetings([meeting_id])

    def list_for_meetings(self, meeting_ids: Iterable[int]) -> Sequence[AttendanceRecord]:
        wanted = {int(mid) for mid in meeting_ids}
        with self._db.guard:
            return [r for r in self._db.records.values() if r.meeting_id in wanted]

    def list_by_status(self, status: AttendanceStatus, *, meeting_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        with self._db.guard:
            return [
                r
                for r in self._db.records.values()
                if r.status == status and (meeting_id is None or r.meeting_id == int(meeting_id))
            ]

    def _find_locked(self, meeting_id: int, user_id: int) -> Optional[AttendanceRecord]:
        for r in self._db.records.values():
            if r.meeting_id == meeting_id and r.user_id == user_id and r.status.is_locked:
                return r
        return None
