from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus, CheckInOutcome, VerificationMethod
from ..meetings.model import Meeting
from ..users.model import User


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one check-in attempt for a meeting/user pair."""

    attendance_id: int
    meeting_id: int
    user_id: int
    status: AttendanceStatus
    check_in_time: Optional[datetime]
    check_in_latitude: Optional[float]
    check_in_longitude: Optional[float]
    verification_method: Optional[VerificationMethod]
    manual_approval_by: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_locked(self) -> bool:
        return self.status.is_locked

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "meetingId": self.meeting_id,
            "userId": self.user_id,
            "status": self.status.value,
            "checkInTime": self.check_in_time.isoformat() if self.check_in_time else None,
            "checkInLatitude": self.check_in_latitude,
            "checkInLongitude": self.check_in_longitude,
            "verificationMethod": self.verification_method.value if self.verification_method else None,
            "manualApprovalBy": self.manual_approval_by,
            "notes": self.notes,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class NewAttendanceRecord:
    """Insert payload; the store assigns attendance_id and created_at."""

    meeting_id: int
    user_id: int
    status: AttendanceStatus
    check_in_time: datetime
    check_in_latitude: float
    check_in_longitude: float
    verification_method: VerificationMethod
    notes: Optional[str] = None


@dataclass(frozen=True)
class CheckInRequest:
    """A validated check-in attempt."""

    meeting_id: int
    user_id: int
    latitude: float
    longitude: float
    verification_method: VerificationMethod
    notes: Optional[str] = None


@dataclass(frozen=True)
class CheckInResult:
    outcome: CheckInOutcome
    record: AttendanceRecord
    distance_m: Optional[float] = None
    allowed_radius_m: Optional[int] = None

    @property
    def status(self) -> AttendanceStatus:
        return self.record.status


@dataclass(frozen=True)
class AttendanceHistoryRow:
    """Read-model: a record together with the meeting it belongs to."""

    record: AttendanceRecord
    meeting: Meeting

    def to_dict(self) -> dict:
        return {"record": self.record.to_dict(), "meeting": self.meeting.to_dict()}


@dataclass(frozen=True)
class MeetingAttendanceRow:
    """Read-model: a record together with the user who made it (None if the user is gone)."""

    record: AttendanceRecord
    user: Optional[User]

    def to_dict(self) -> dict:
        return {"record": self.record.to_dict(), "user": self.user.to_dict() if self.user else None}
