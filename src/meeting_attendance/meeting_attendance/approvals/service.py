from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..core.enums import AttendanceStatus
from ..core.exceptions import AuthorizationError, InvalidStateError, NotFoundError
from ..users.model import User
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)


class ApprovalService:
    """Admin decisions on manual check-ins: pending -> present, or pending -> absent."""

    def __init__(self, attendance: AttendanceRepository, users: UserRepository):
        self._attendance = attendance
        self._users = users

    def approve_record(self, *, record_id: int, actor_id: int) -> AttendanceRecord:
        return self._decide(record_id=record_id, actor_id=actor_id, new_status=AttendanceStatus.PRESENT, verb="approved")

    def reject_record(self, *, record_id: int, actor_id: int) -> AttendanceRecord:
        return self._decide(record_id=record_id, actor_id=actor_id, new_status=AttendanceStatus.ABSENT, verb="rejected")

    def list_pending(self, *, meeting_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        return self._attendance.list_by_status(AttendanceStatus.PENDING, meeting_id=meeting_id)

    def _require_admin(self, actor_id: int) -> User:
        actor = self._users.get_by_id(int(actor_id))
        if actor is None or not actor.is_admin:
            raise AuthorizationError("Not authorized")
        return actor

    def _decide(self, *, record_id: int, actor_id: int, new_status: AttendanceStatus, verb: str) -> AttendanceRecord:
        actor = self._require_admin(actor_id)

        record = self._attendance.get_record_by_id(int(record_id))
        if record is None:
            raise NotFoundError("Attendance record not found")

        # Held across re-read and update so the decision serializes with check-ins for the pair.
        with self._attendance.pair_lock(record.meeting_id, record.user_id):
            record = self._attendance.get_record_by_id(record.attendance_id)
            if record is None:
                raise NotFoundError("Attendance record not found")
            if record.status != AttendanceStatus.PENDING:
                raise InvalidStateError("This record is not pending approval")
            if new_status.is_locked and self._attendance.get_locked_record(record.meeting_id, record.user_id):
                raise InvalidStateError("User is already checked in to this meeting; reject this request instead")

            updated = self._attendance.update_record_status(
                record.attendance_id,
                new_status=new_status,
                actor_id=actor.user_id,
                audit_note=f"Manually {verb} by {actor.username}",
            )
        if updated is None:
            # Another admin decided the record between our read and the guarded update.
            raise InvalidStateError("This record is not pending approval")

        logger.info("Record %s manually %s by %s", record.attendance_id, verb, actor.username)
        return updated
