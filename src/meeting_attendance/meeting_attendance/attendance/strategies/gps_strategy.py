from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from ...common.geo import distance_meters
from ...core.enums import AttendanceStatus, CheckInOutcome
from ...meetings.model import Meeting
from ..model import CheckInRequest
from .base import CheckInDecision, VerificationStrategy


class GpsStrategy(VerificationStrategy):
    """Accept only inside the geofence; the boundary itself counts as inside."""

    def decide(self, *, request: CheckInRequest, meeting: Meeting, now: datetime, grace_minutes: int) -> CheckInDecision:
        distance = distance_meters(request.latitude, request.longitude, meeting.latitude, meeting.longitude)

        if distance > meeting.radius_m:
            return CheckInDecision(
                outcome=CheckInOutcome.OUT_OF_RANGE,
                status=AttendanceStatus.ABSENT,
                note=(
                    f"Failed check-in attempt: Distance {round(distance)}m "
                    f"exceeds allowed radius {meeting.radius_m}m"
                ),
                distance_m=distance,
            )

        decision = self.punctuality(request=request, meeting=meeting, now=now, grace_minutes=grace_minutes)
        return replace(decision, distance_m=distance)
