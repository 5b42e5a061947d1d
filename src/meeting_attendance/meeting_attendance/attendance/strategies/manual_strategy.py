from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus, CheckInOutcome
from ...meetings.model import Meeting
from ..model import CheckInRequest
from .base import CheckInDecision, VerificationStrategy


class ManualStrategy(VerificationStrategy):
    """Queue for admin approval, whatever the coordinates say."""

    def decide(self, *, request: CheckInRequest, meeting: Meeting, now: datetime, grace_minutes: int) -> CheckInDecision:
        return CheckInDecision(
            outcome=CheckInOutcome.PENDING_APPROVAL,
            status=AttendanceStatus.PENDING,
            note=request.notes,
        )
