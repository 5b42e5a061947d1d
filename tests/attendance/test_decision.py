from datetime import date, datetime

import pytest

from src.meeting_attendance.meeting_attendance.attendance.decision import decide
from src.meeting_attendance.meeting_attendance.attendance.model import AttendanceRecord, CheckInRequest
from src.meeting_attendance.meeting_attendance.attendance.strategies import gps_strategy
from src.meeting_attendance.meeting_attendance.core.enums import AttendanceStatus, CheckInOutcome, VerificationMethod
from src.meeting_attendance.meeting_attendance.core.exceptions import (
    AlreadyCheckedInError,
    AuthorizationError,
    NotFoundError,
)
from src.meeting_attendance.meeting_attendance.meetings.model import Meeting

START = datetime(2025, 3, 3, 9, 0)


def _meeting(radius_m: int = 100) -> Meeting:
    return Meeting(
        meeting_id=7,
        name="Planning",
        date=START.date(),
        start_time=START,
        end_time=datetime(2025, 3, 3, 10, 0),
        location_name="Room A",
        latitude=37.0,
        longitude=-122.0,
        radius_m=radius_m,
        created_by=1,
    )


def _request(method=VerificationMethod.GPS) -> CheckInRequest:
    return CheckInRequest(meeting_id=7, user_id=2, latitude=37.0, longitude=-122.0, verification_method=method)


def _record(status: AttendanceStatus) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=1,
        meeting_id=7,
        user_id=2,
        status=status,
        check_in_time=START,
        check_in_latitude=37.0,
        check_in_longitude=-122.0,
        verification_method=VerificationMethod.GPS,
    )


def test_missing_meeting_wins_over_everything():
    with pytest.raises(NotFoundError):
        decide(_request(), None, False, _record(AttendanceStatus.PRESENT), START)


def test_non_participant_checked_before_duplicate():
    with pytest.raises(AuthorizationError):
        decide(_request(), _meeting(), False, _record(AttendanceStatus.PRESENT), START)


@pytest.mark.parametrize("status", [AttendanceStatus.PRESENT, AttendanceStatus.LATE])
def test_locked_record_blocks_every_method(status):
    for method in VerificationMethod:
        with pytest.raises(AlreadyCheckedInError):
            decide(_request(method), _meeting(), True, _record(status), START)


@pytest.mark.parametrize("status", [AttendanceStatus.ABSENT, AttendanceStatus.PENDING])
def test_absent_or_pending_allows_another_attempt(status):
    decision = decide(_request(), _meeting(), True, _record(status), START)
    assert decision.outcome == CheckInOutcome.CHECKED_IN


def test_boundary_distance_is_inside(monkeypatch):
    monkeypatch.setattr(gps_strategy, "distance_meters", lambda *args: 100.0)
    decision = decide(_request(), _meeting(radius_m=100), True, None, START)
    assert decision.outcome == CheckInOutcome.CHECKED_IN
    assert decision.distance_m == 100.0


def test_just_past_boundary_is_out_of_range(monkeypatch):
    monkeypatch.setattr(gps_strategy, "distance_meters", lambda *args: 100.4)
    decision = decide(_request(), _meeting(radius_m=100), True, None, START)
    assert decision.outcome == CheckInOutcome.OUT_OF_RANGE
    assert decision.status == AttendanceStatus.ABSENT
    assert decision.note == "Failed check-in attempt: Distance 100m exceeds allowed radius 100m"


def test_on_the_start_minute_is_present_one_second_later_is_late():
    assert decide(_request(), _meeting(), True, None, START).status == AttendanceStatus.PRESENT
    late = decide(_request(), _meeting(), True, None, datetime(2025, 3, 3, 9, 0, 1))
    assert late.status == AttendanceStatus.LATE


def test_manual_is_never_late():
    decision = decide(_request(VerificationMethod.MANUAL), _meeting(), True, None, datetime(2025, 3, 3, 11, 0))
    assert decision.status == AttendanceStatus.PENDING
