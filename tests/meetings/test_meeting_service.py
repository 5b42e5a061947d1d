from datetime import date, datetime

import pytest

from src.meeting_attendance.meeting_attendance.container import build_memory_container
from src.meeting_attendance.meeting_attendance.core.enums import MeetingStatus, Role
from src.meeting_attendance.meeting_attendance.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from src.meeting_attendance.meeting_attendance.database.memory import InMemoryDatabase
from src.meeting_attendance.meeting_attendance.meetings.service import MeetingService
from src.meeting_attendance.meeting_attendance.users.model import User


def _fields(**overrides):
    payload = dict(
        name="Kickoff",
        meeting_date="2025-03-03",
        start_time="2025-03-03T09:00:00",
        end_time="2025-03-03T10:00:00",
        location_name="HQ",
        latitude=37.0,
        longitude=-122.0,
    )
    payload.update(overrides)
    return MeetingService.build_fields(**payload)


def _setup():
    db = InMemoryDatabase()
    container = build_memory_container(db=db)
    db.add_user(User(user_id=2, username="jdoe", email="jdoe@example.com", role=Role.EMPLOYEE))
    db.add_user(User(user_id=3, username="asmith", email="asmith@example.com", role=Role.EMPLOYEE))
    return container, db


def test_build_fields_defaults():
    fields = _fields(meeting_date=None)
    assert fields.date == date(2025, 3, 3)
    assert fields.radius_m == 100
    assert fields.status == MeetingStatus.UPCOMING


@pytest.mark.parametrize(
    "overrides",
    [
        {"end_time": "2025-03-03T09:00:00"},
        {"start_time": "tomorrow"},
        {"name": "   "},
        {"radius_m": 0},
        {"latitude": 120},
        {"status": "postponed"},
        {"meeting_date": "03/03/2025"},
    ],
)
def test_build_fields_rejects_bad_input(overrides):
    with pytest.raises(ValidationError):
        _fields(**overrides)


def test_utc_timestamps_are_accepted():
    fields = _fields(start_time="2025-03-03T09:00:00Z", end_time="2025-03-03T10:00:00Z")
    assert fields.start_time.tzinfo is None
    assert fields.end_time > fields.start_time


def test_only_admins_manage_meetings():
    container, _ = _setup()
    service = container.meeting_service

    with pytest.raises(AuthorizationError):
        service.create_meeting(current_role=Role.EMPLOYEE, created_by=2, fields=_fields())

    meeting = service.create_meeting(current_role=Role.ADMIN, created_by=1, fields=_fields(), participant_ids=[2])
    with pytest.raises(AuthorizationError):
        service.update_meeting(current_role=Role.EMPLOYEE, meeting_id=meeting.meeting_id, fields=_fields())
    with pytest.raises(AuthorizationError):
        service.delete_meeting(current_role=Role.EMPLOYEE, meeting_id=meeting.meeting_id)


def test_participants_are_deduplicated():
    container, _ = _setup()
    meeting = container.meeting_service.create_meeting(
        current_role=Role.ADMIN, created_by=1, fields=_fields(), participant_ids=[2, "2", 3]
    )

    ids = sorted(p.user_id for p in container.meeting_service.list_participants(meeting.meeting_id))
    assert ids == [2, 3]


def test_update_replaces_fields_and_participants():
    container, _ = _setup()
    service = container.meeting_service
    meeting = service.create_meeting(current_role=Role.ADMIN, created_by=1, fields=_fields(), participant_ids=[2])

    updated = service.update_meeting(
        current_role=Role.ADMIN,
        meeting_id=meeting.meeting_id,
        fields=_fields(name="Kickoff v2", radius_m=250),
        participant_ids=[3],
    )

    assert updated.name == "Kickoff v2"
    assert updated.radius_m == 250
    assert updated.created_by == 1
    assert [p.user_id for p in service.list_participants(meeting.meeting_id)] == [3]

    with pytest.raises(NotFoundError):
        service.update_meeting(current_role=Role.ADMIN, meeting_id=999, fields=_fields())


def test_delete_cascades_to_participants_and_records():
    container, db = _setup()
    service = container.meeting_service
    meeting = service.create_meeting(current_role=Role.ADMIN, created_by=1, fields=_fields(), participant_ids=[2])
    container.attendance_service.submit_check_in(
        user_id=2,
        meeting_id=meeting.meeting_id,
        latitude=37.0,
        longitude=-122.0,
        verification_method="gps",
        now=datetime(2025, 3, 3, 8, 50),
    )

    service.delete_meeting(current_role=Role.ADMIN, meeting_id=meeting.meeting_id)

    assert db.meetings == {}
    assert db.participants == {}
    assert db.records == {}
    with pytest.raises(NotFoundError):
        service.delete_meeting(current_role=Role.ADMIN, meeting_id=meeting.meeting_id)


def test_employees_see_only_their_meetings():
    container, _ = _setup()
    service = container.meeting_service
    mine = service.create_meeting(current_role=Role.ADMIN, created_by=1, fields=_fields(), participant_ids=[2])
    other = service.create_meeting(current_role=Role.ADMIN, created_by=1, fields=_fields(name="Other"), participant_ids=[3])

    assert [m.meeting_id for m in service.list_meetings(user_id=2, role=Role.EMPLOYEE)] == [mine.meeting_id]
    assert len(service.list_meetings(user_id=1, role=Role.ADMIN)) == 2
    assert service.list_meetings(user_id=2, role=Role.EMPLOYEE, today=date(2025, 3, 4)) == []

    assert service.get_meeting_for_user(user_id=2, role=Role.EMPLOYEE, meeting_id=mine.meeting_id) == mine
    with pytest.raises(AuthorizationError):
        service.get_meeting_for_user(user_id=2, role=Role.EMPLOYEE, meeting_id=other.meeting_id)
    with pytest.raises(NotFoundError):
        service.get_meeting_for_user(user_id=1, role=Role.ADMIN, meeting_id=999)
