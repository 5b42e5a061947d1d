from datetime import datetime

import mysql.connector
import pytest
from mysql.connector import errorcode

from src.meeting_attendance.meeting_attendance.attendance.model import NewAttendanceRecord
from src.meeting_attendance.meeting_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from src.meeting_attendance.meeting_attendance.core.enums import AttendanceStatus, VerificationMethod
from src.meeting_attendance.meeting_attendance.core.exceptions import AlreadyCheckedInError, NotFoundError

NOW = datetime(2025, 3, 3, 8, 55)


class FakeCursor:
    def __init__(self, *, error=None, rowcount=1, row=None):
        self.error = error
        self.rowcount = rowcount
        self.row = row
        self.lastrowid = 11
        self.executed = []

    def execute(self, sql, params=None):
        self.executed.append((" ".join(sql.split()), params))
        if self.error is not None:
            raise self.error

    def fetchone(self):
        return self.row

    def close(self):
        pass


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.committed = False
        self.rolled_back = False

    def cursor(self, dictionary=False):
        return self._cursor

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        pass


class FakeConnectionFactory:
    def __init__(self, cursor):
        self.conn = FakeConnection(cursor)

    def connect(self):
        return self.conn


def _row(status="present", notes=None):
    return {
        "attendance_id": 5,
        "meeting_id": 1,
        "user_id": 2,
        "status": status,
        "check_in_time": NOW,
        "check_in_latitude": 37.0,
        "check_in_longitude": -122.0,
        "verification_method": "manual",
        "manual_approval_by": 1,
        "notes": notes,
        "created_at": NOW,
    }


def _repo(cursor):
    factory = FakeConnectionFactory(cursor)
    return MySQLAttendanceRepository(factory), factory.conn


def _new_record():
    return NewAttendanceRecord(
        meeting_id=1,
        user_id=2,
        status=AttendanceStatus.PRESENT,
        check_in_time=NOW,
        check_in_latitude=37.0,
        check_in_longitude=-122.0,
        verification_method=VerificationMethod.GPS,
    )


def _integrity(errno):
    return mysql.connector.IntegrityError(msg="constraint failed", errno=errno)


def test_insert_duplicate_locked_key_is_already_checked_in():
    repo, conn = _repo(FakeCursor(error=_integrity(errorcode.ER_DUP_ENTRY)))

    with pytest.raises(AlreadyCheckedInError):
        repo.insert_record(_new_record())
    assert conn.rolled_back
    assert not conn.committed


@pytest.mark.parametrize("errno", [errorcode.ER_NO_REFERENCED_ROW_2, errorcode.ER_NO_REFERENCED_ROW])
def test_insert_for_deleted_meeting_is_not_found(errno):
    repo, conn = _repo(FakeCursor(error=_integrity(errno)))

    with pytest.raises(NotFoundError):
        repo.insert_record(_new_record())
    assert conn.rolled_back


def test_other_integrity_errors_are_not_disguised():
    repo, _ = _repo(FakeCursor(error=_integrity(errorcode.ER_BAD_NULL_ERROR)))

    with pytest.raises(mysql.connector.IntegrityError):
        repo.insert_record(_new_record())


def test_status_update_into_second_locked_record_is_already_checked_in():
    repo, conn = _repo(FakeCursor(error=_integrity(errorcode.ER_DUP_ENTRY)))

    with pytest.raises(AlreadyCheckedInError):
        repo.update_record_status(5, new_status=AttendanceStatus.PRESENT, actor_id=1, audit_note="Manually approved by admin")
    assert conn.rolled_back


def test_status_update_is_guarded_by_expected_status():
    cursor = FakeCursor(rowcount=0)
    repo, conn = _repo(cursor)

    result = repo.update_record_status(5, new_status=AttendanceStatus.ABSENT, actor_id=1, audit_note="Manually rejected by admin")

    assert result is None
    sql, params = cursor.executed[0]
    assert "WHERE attendance_id=%s AND status=%s" in sql
    assert params[:2] == ("absent", 1)
    assert params[-2:] == (5, "pending")
    assert len(cursor.executed) == 1
    assert conn.committed


def test_status_update_returns_fresh_row():
    cursor = FakeCursor(rowcount=1, row=_row(notes="No signal | Manually approved by admin"))
    repo, _ = _repo(cursor)

    record = repo.update_record_status(5, new_status=AttendanceStatus.PRESENT, actor_id=1, audit_note="Manually approved by admin")

    assert record.status == AttendanceStatus.PRESENT
    assert record.manual_approval_by == 1
    assert record.notes.endswith("Manually approved by admin")
    assert cursor.executed[1][1] == (5,)
