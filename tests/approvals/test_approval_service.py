import threading
from contextlib import contextmanager
from datetime import datetime

import pytest

from src.meeting_attendance.meeting_attendance.approvals.service import ApprovalService
from src.meeting_attendance.meeting_attendance.container import build_memory_container
from src.meeting_attendance.meeting_attendance.core.enums import AttendanceStatus, Role
from src.meeting_attendance.meeting_attendance.core.exceptions import (
    AlreadyCheckedInError,
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
)
from src.meeting_attendance.meeting_attendance.database.memory import InMemoryDatabase
from src.meeting_attendance.meeting_attendance.meetings.model import MeetingFields
from src.meeting_attendance.meeting_attendance.users.model import User

START = datetime(2025, 3, 3, 9, 0)
ADMIN_ID = 1


def _setup():
    db = InMemoryDatabase()
    container = build_memory_container(db=db)
    db.add_user(User(user_id=2, username="jdoe", email="jdoe@example.com", role=Role.EMPLOYEE))
    meeting = container.meetings_repo.create_meeting(
        fields=MeetingFields(
            name="Review",
            date=START.date(),
            start_time=START,
            end_time=datetime(2025, 3, 3, 10, 0),
            location_name="Room B",
            latitude=37.0,
            longitude=-122.0,
        ),
        created_by=ADMIN_ID,
        participant_ids=[2],
    )
    return container, meeting


def _manual(container, meeting, notes="Phone GPS broken"):
    return container.attendance_service.submit_check_in(
        user_id=2,
        meeting_id=meeting.meeting_id,
        latitude=37.0,
        longitude=-122.0,
        verification_method="manual",
        notes=notes,
        now=datetime(2025, 3, 3, 9, 15),
    ).record


def test_approve_pending_record_sets_present_with_audit_note():
    container, meeting = _setup()
    pending = _manual(container, meeting)

    approved = container.approval_service.approve_record(record_id=pending.attendance_id, actor_id=ADMIN_ID)

    assert approved.status == AttendanceStatus.PRESENT
    assert approved.manual_approval_by == ADMIN_ID
    assert approved.notes == "Phone GPS broken | Manually approved by admin"

    # A present record now blocks further check-ins.
    with pytest.raises(AlreadyCheckedInError):
        _manual(container, meeting)


def test_reject_without_notes_uses_audit_note_only():
    container, meeting = _setup()
    pending = _manual(container, meeting, notes=None)

    rejected = container.approval_service.reject_record(record_id=pending.attendance_id, actor_id=ADMIN_ID)

    assert rejected.status == AttendanceStatus.ABSENT
    assert rejected.notes == "Manually rejected by admin"


def test_second_decision_is_rejected_and_changes_nothing():
    container, meeting = _setup()
    pending = _manual(container, meeting)
    service = container.approval_service

    service.approve_record(record_id=pending.attendance_id, actor_id=ADMIN_ID)
    with pytest.raises(InvalidStateError):
        service.reject_record(record_id=pending.attendance_id, actor_id=ADMIN_ID)

    stored = container.attendance_repo.get_record_by_id(pending.attendance_id)
    assert stored.status == AttendanceStatus.PRESENT
    assert stored.notes.count("Manually") == 1


def test_non_admin_cannot_decide():
    container, meeting = _setup()
    pending = _manual(container, meeting)

    with pytest.raises(AuthorizationError):
        container.approval_service.approve_record(record_id=pending.attendance_id, actor_id=2)
    with pytest.raises(AuthorizationError):
        container.approval_service.approve_record(record_id=pending.attendance_id, actor_id=99)

    assert container.attendance_repo.get_record_by_id(pending.attendance_id).status == AttendanceStatus.PENDING


def test_unknown_record_is_not_found():
    container, _ = _setup()
    with pytest.raises(NotFoundError):
        container.approval_service.reject_record(record_id=12345, actor_id=ADMIN_ID)


def test_only_one_of_two_racing_admins_wins():
    container, meeting = _setup()
    pending = _manual(container, meeting)
    service = container.approval_service

    barrier = threading.Barrier(2)
    results = []

    def run(action):
        barrier.wait()
        try:
            results.append(action(record_id=pending.attendance_id, actor_id=ADMIN_ID).status)
        except InvalidStateError as e:
            results.append(e)

    threads = [
        threading.Thread(target=run, args=(service.approve_record,)),
        threading.Thread(target=run, args=(service.reject_record,)),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(isinstance(r, InvalidStateError) for r in results) == 1
    final = container.attendance_repo.get_record_by_id(pending.attendance_id)
    assert final.status in (AttendanceStatus.PRESENT, AttendanceStatus.ABSENT)
    assert final.notes.count("Manually") == 1


class _RacingRepo:
    """Reports the record as pending but loses the guarded update."""

    def __init__(self, record):
        self._record = record

    @contextmanager
    def pair_lock(self, meeting_id, user_id):
        yield

    def get_locked_record(self, meeting_id, user_id):
        return None

    def get_record_by_id(self, attendance_id):
        return self._record

    def update_record_status(self, attendance_id, **kwargs):
        return None


class _Users:
    def get_by_id(self, user_id):
        return User(user_id=user_id, username="boss", email="boss@example.com", role=Role.ADMIN)


def test_lost_guarded_update_reports_invalid_state():
    container, meeting = _setup()
    pending = _manual(container, meeting)
    service = ApprovalService(_RacingRepo(pending), _Users())

    with pytest.raises(InvalidStateError):
        service.approve_record(record_id=pending.attendance_id, actor_id=5)


def test_list_pending_filters_by_meeting():
    container, meeting = _setup()
    _manual(container, meeting)

    assert len(container.approval_service.list_pending()) == 1
    assert len(container.approval_service.list_pending(meeting_id=meeting.meeting_id)) == 1
    assert container.approval_service.list_pending(meeting_id=meeting.meeting_id + 1) == []


def test_forgot_phone_rejected_by_admin():
    container, meeting = _setup()
    pending = _manual(container, meeting, notes="forgot phone")
    assert pending.status == AttendanceStatus.PENDING

    rejected = container.approval_service.reject_record(record_id=pending.attendance_id, actor_id=ADMIN_ID)

    assert rejected.status == AttendanceStatus.ABSENT
    assert rejected.manual_approval_by == ADMIN_ID
    assert rejected.notes == "forgot phone | Manually rejected by admin"
    assert rejected.check_in_time == pending.check_in_time


def _gps(container, meeting):
    return container.attendance_service.submit_check_in(
        user_id=2,
        meeting_id=meeting.meeting_id,
        latitude=37.0,
        longitude=-122.0,
        verification_method="gps",
        now=datetime(2025, 3, 3, 9, 20),
    ).record


def test_approve_refused_when_pair_already_checked_in():
    container, meeting = _setup()
    pending = _manual(container, meeting)
    checked_in = _gps(container, meeting)
    assert checked_in.status == AttendanceStatus.LATE

    with pytest.raises(InvalidStateError):
        container.approval_service.approve_record(record_id=pending.attendance_id, actor_id=ADMIN_ID)

    records = container.attendance_repo.list_for_meeting(meeting.meeting_id)
    assert len([r for r in records if r.status.is_locked]) == 1
    assert container.attendance_repo.get_record_by_id(pending.attendance_id).status == AttendanceStatus.PENDING

    # The stale request can still be closed out.
    rejected = container.approval_service.reject_record(record_id=pending.attendance_id, actor_id=ADMIN_ID)
    assert rejected.status == AttendanceStatus.ABSENT


def test_store_refuses_second_locked_record_on_status_update():
    container, meeting = _setup()
    pending = _manual(container, meeting)
    _gps(container, meeting)

    with pytest.raises(AlreadyCheckedInError):
        container.attendance_repo.update_record_status(
            pending.attendance_id,
            new_status=AttendanceStatus.PRESENT,
            actor_id=ADMIN_ID,
            audit_note="Manually approved by admin",
        )
    assert container.attendance_repo.get_record_by_id(pending.attendance_id).status == AttendanceStatus.PENDING
