from __future__ import annotations

from typing import ContextManager, Iterable, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, NewAttendanceRecord


class AttendanceRepository(Protocol):
    def pair_lock(self, meeting_id: int, user_id: int) -> ContextManager[None]:
        """Mutual exclusion for one meeting/user pair.

        Held around the read-decide-write of a check-in. Raises
        StorageUnavailableError when the lock cannot be taken in time.
        """

        raise NotImplementedError

    def get_locked_record(self, meeting_id: int, user_id: int) -> Optional[AttendanceRecord]:
        """The present/late record for the pair, if any."""

        raise NotImplementedError

    def insert_record(self, record: NewAttendanceRecord) -> AttendanceRecord:
        """Always creates a new row.

        Raises AlreadyCheckedInError on a second locked record and NotFoundError
        when the meeting no longer exists.
        """

        raise NotImplementedError

    def get_record_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def update_record_status(
        self,
        attendance_id: int,
        *,
        new_status: AttendanceStatus,
        actor_id: int,
        audit_note: str,
        expected_status: AttendanceStatus = AttendanceStatus.PENDING,
    ) -> Optional[AttendanceRecord]:
        """Move a record out of `expected_status`, stamp the actor and append the audit note.

        Returns None (and changes nothing) when the record is missing or not in `expected_status`.
        Raises AlreadyCheckedInError when moving into present/late while the pair
        already holds such a record.
        """

        raise NotImplementedError

    def list_for_user(self, user_id: int, *, limit: Optional[int] = None) -> Sequence[AttendanceRecord]:
        """Newest check-in first."""

        raise NotImplementedError

    def list_for_meeting(self, meeting_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_meetings(self, meeting_ids: Iterable[int]) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_by_status(self, status: AttendanceStatus, *, meeting_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
