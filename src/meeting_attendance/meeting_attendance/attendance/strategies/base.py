from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ...core.enums import AttendanceStatus, CheckInOutcome
from ...meetings.model import Meeting
from ..model import CheckInRequest


@dataclass(frozen=True)
class CheckInDecision:
    outcome: CheckInOutcome
    status: AttendanceStatus
    note: Optional[str] = None
    distance_m: Optional[float] = None


class VerificationStrategy(ABC):
    """Strategy Pattern: one policy per verification method."""

    @abstractmethod
    def decide(self, *, request: CheckInRequest, meeting: Meeting, now: datetime, grace_minutes: int) -> CheckInDecision:
        raise NotImplementedError

    @staticmethod
    def punctuality(*, request: CheckInRequest, meeting: Meeting, now: datetime, grace_minutes: int) -> CheckInDecision:
        """Late once `now` is past the meeting start (plus grace); present otherwise."""
        deadline = meeting.start_time + timedelta(minutes=grace_minutes)
        status = AttendanceStatus.LATE if now > deadline else AttendanceStatus.PRESENT
        return CheckInDecision(outcome=CheckInOutcome.CHECKED_IN, status=status, note=request.notes)
