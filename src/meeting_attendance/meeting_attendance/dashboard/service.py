from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.enums import AttendanceStatus
from ..meetings.repository import MeetingRepository


@dataclass(frozen=True)
class AdminDashboardStats:
    active_meetings: int
    present_today: int
    late_today: int
    absent_today: int
    pending_today: int

    def to_dict(self) -> dict:
        return {
            "activeMeetings": self.active_meetings,
            "presentToday": self.present_today,
            "lateToday": self.late_today,
            "absentToday": self.absent_today,
            "pendingToday": self.pending_today,
        }


@dataclass(frozen=True)
class UserDashboardStats:
    upcoming_meetings: int
    total_present: int
    total_late: int
    total_absent: int
    total_pending: int

    def to_dict(self) -> dict:
        return {
            "upcomingMeetings": self.upcoming_meetings,
            "totalPresent": self.total_present,
            "totalLate": self.total_late,
            "totalAbsent": self.total_absent,
            "totalPending": self.total_pending,
        }


def count_by_status(records: Iterable[AttendanceRecord]) -> Counter:
    return Counter(r.status for r in records)


class DashboardService:
    """Read-only aggregates, recomputed on every call (no caching, no locking)."""

    def __init__(self, meetings: MeetingRepository, attendance: AttendanceRepository):
        self._meetings = meetings
        self._attendance = attendance

    def admin_stats(self, *, now: datetime | None = None) -> AdminDashboardStats:
        now = now or now_local()
        today_ids = [m.meeting_id for m in self._meetings.list_for_date(now.date())]
        counts = count_by_status(self._attendance.list_for_meetings(today_ids)) if today_ids else Counter()

        return AdminDashboardStats(
            active_meetings=self._meetings.count_active_at(now),
            present_today=counts[AttendanceStatus.PRESENT],
            late_today=counts[AttendanceStatus.LATE],
            absent_today=counts[AttendanceStatus.ABSENT],
            pending_today=counts[AttendanceStatus.PENDING],
        )

    def user_stats(self, user_id: int, *, now: datetime | None = None) -> UserDashboardStats:
        now = now or now_local()
        upcoming = sum(1 for m in self._meetings.list_for_user(int(user_id)) if m.start_time > now)
        counts = count_by_status(self._attendance.list_for_user(int(user_id)))

        return UserDashboardStats(
            upcoming_meetings=upcoming,
            total_present=counts[AttendanceStatus.PRESENT],
            total_late=counts[AttendanceStatus.LATE],
            total_absent=counts[AttendanceStatus.ABSENT],
            total_pending=counts[AttendanceStatus.PENDING],
        )
