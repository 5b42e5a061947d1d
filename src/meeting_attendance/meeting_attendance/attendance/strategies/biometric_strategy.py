from __future__ import annotations

from datetime import datetime

from ...meetings.model import Meeting
from ..model import CheckInRequest
from .base import CheckInDecision, VerificationStrategy


class BiometricStrategy(VerificationStrategy):
    """Identity is confirmed on the device, so the geofence is not checked.

    Coordinates are still stored on the record. This is a deliberate policy
    choice, kept visible here for review.
    """

    def decide(self, *, request: CheckInRequest, meeting: Meeting, now: datetime, grace_minutes: int) -> CheckInDecision:
        return self.punctuality(request=request, meeting=meeting, now=now, grace_minutes=grace_minutes)
