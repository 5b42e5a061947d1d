"""Check-in decision engine.

`decide` is pure: it reads nothing and writes nothing. The service feeds it
the meeting, the participant flag and the locked record it read under the
pair lock, then persists whatever it returns.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..core.exceptions import AlreadyCheckedInError, AuthorizationError, NotFoundError
from ..meetings.model import Meeting
from .factory import VerificationStrategyFactory
from .model import AttendanceRecord, CheckInRequest
from .strategies.base import CheckInDecision

_DEFAULT_FACTORY = VerificationStrategyFactory()


def decide(
    request: CheckInRequest,
    meeting: Optional[Meeting],
    is_participant: bool,
    existing_record: Optional[AttendanceRecord],
    now: datetime,
    *,
    grace_minutes: int = 0,
    factory: Optional[VerificationStrategyFactory] = None,
) -> CheckInDecision:
    """Classify a check-in attempt.

    Raises, in this order: NotFoundError (no meeting), AuthorizationError
    (caller not a participant), AlreadyCheckedInError (pair already holds a
    present/late record). Any other attempt yields a decision to persist.
    """
    if meeting is None:
        raise NotFoundError("Meeting not found")
    if not is_participant:
        raise AuthorizationError("You are not a participant in this meeting")
    if existing_record is not None and existing_record.is_locked:
        raise AlreadyCheckedInError("You have already checked in to this meeting")

    strategy = (factory or _DEFAULT_FACTORY).for_method(request.verification_method)
    return strategy.decide(request=request, meeting=meeting, now=now, grace_minutes=grace_minutes)
