from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class MeetingStatus(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AttendanceStatus(str, Enum):
    """Attendance status as persisted in the store."""

    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
    PENDING = "pending"

    @property
    def is_locked(self) -> bool:
        """Locked records block any further check-in for the same meeting/user pair."""
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


class VerificationMethod(str, Enum):
    GPS = "gps"
    BIOMETRIC = "biometric"
    MANUAL = "manual"


class CheckInOutcome(str, Enum):
    """What a check-in attempt resolved to (after it passed the early rejections)."""

    CHECKED_IN = "checked_in"
    OUT_OF_RANGE = "out_of_range"
    PENDING_APPROVAL = "pending_approval"
