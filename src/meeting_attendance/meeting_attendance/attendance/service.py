from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Optional

from ..common.datetime_utils import now_local
from ..common.validators import (
    optional_text,
    require_choice,
    require_latitude,
    require_longitude,
    require_positive_int,
)
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_LATE_GRACE_MINUTES
from ..core.enums import CheckInOutcome, VerificationMethod
from ..core.exceptions import NotFoundError
from ..meetings.repository import MeetingRepository
from ..users.repository import UserRepository
from .decision import decide
from .factory import VerificationStrategyFactory
from .model import (
    AttendanceHistoryRow,
    CheckInRequest,
    CheckInResult,
    MeetingAttendanceRow,
    NewAttendanceRecord,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        meetings: MeetingRepository,
        users: Optional[UserRepository] = None,
        *,
        strategy_factory: VerificationStrategyFactory | None = None,
        grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    ):
        self._attendance = attendance
        self._meetings = meetings
        self._users = users
        self._factory = strategy_factory or VerificationStrategyFactory()
        self._grace_minutes = int(grace_minutes)

    @staticmethod
    def build_request(
        *,
        user_id: int,
        meeting_id: Any,
        latitude: Any,
        longitude: Any,
        verification_method: Any,
        notes: Any = None,
    ) -> CheckInRequest:
        """Validate a raw check-in payload. Coordinates are required for every method."""
        return CheckInRequest(
            meeting_id=require_positive_int(meeting_id, "meetingId"),
            user_id=int(user_id),
            latitude=require_latitude(latitude),
            longitude=require_longitude(longitude),
            verification_method=require_choice(verification_method, VerificationMethod, "verificationMethod"),
            notes=optional_text(notes, "notes"),
        )

    def submit_check_in(
        self,
        *,
        user_id: int,
        meeting_id: Any,
        latitude: Any,
        longitude: Any,
        verification_method: Any,
        notes: Any = None,
        now: datetime | None = None,
    ) -> CheckInResult:
        request = self.build_request(
            user_id=user_id,
            meeting_id=meeting_id,
            latitude=latitude,
            longitude=longitude,
            verification_method=verification_method,
            notes=notes,
        )
        return self.check_in(request, now=now)

    def check_in(self, request: CheckInRequest, *, now: datetime | None = None) -> CheckInResult:
        """Read, decide and write as one unit under the meeting/user pair lock."""
        with self._attendance.pair_lock(request.meeting_id, request.user_id):
            now = now or now_local()
            meeting = self._meetings.get_meeting(request.meeting_id)
            is_participant = meeting is not None and self._meetings.is_participant(request.user_id, request.meeting_id)
            existing = (
                self._attendance.get_locked_record(request.meeting_id, request.user_id) if is_participant else None
            )

            decision = decide(
                request,
                meeting,
                is_participant,
                existing,
                now,
                grace_minutes=self._grace_minutes,
                factory=self._factory,
            )

            record = self._attendance.insert_record(
                NewAttendanceRecord(
                    meeting_id=request.meeting_id,
                    user_id=request.user_id,
                    status=decision.status,
                    check_in_time=now,
                    check_in_latitude=request.latitude,
                    check_in_longitude=request.longitude,
                    verification_method=request.verification_method,
                    notes=decision.note,
                )
            )

        if decision.outcome == CheckInOutcome.OUT_OF_RANGE:
            logger.warning(
                "Out-of-range check-in meeting=%s user=%s distance=%.1fm radius=%sm",
                request.meeting_id,
                request.user_id,
                decision.distance_m,
                meeting.radius_m,
            )
        else:
            logger.info(
                "Check-in meeting=%s user=%s method=%s -> %s",
                request.meeting_id,
                request.user_id,
                request.verification_method.value,
                record.status.value,
            )

        return CheckInResult(
            outcome=decision.outcome,
            record=record,
            distance_m=decision.distance_m,
            allowed_radius_m=meeting.radius_m,
        )

    def get_history(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> List[AttendanceHistoryRow]:
        rows: List[AttendanceHistoryRow] = []
        for record in self._attendance.list_for_user(int(user_id), limit=limit):
            meeting = self._meetings.get_meeting(record.meeting_id)
            if meeting is None:
                logger.warning("Record %s points at missing meeting %s", record.attendance_id, record.meeting_id)
                continue
            rows.append(AttendanceHistoryRow(record=record, meeting=meeting))
        return rows

    def get_meeting_attendance(self, meeting_id: int) -> List[MeetingAttendanceRow]:
        if self._meetings.get_meeting(int(meeting_id)) is None:
            raise NotFoundError("Meeting not found")
        return [
            MeetingAttendanceRow(record=r, user=self._users.get_by_id(r.user_id) if self._users else None)
            for r in self._attendance.list_for_meeting(int(meeting_id))
        ]
