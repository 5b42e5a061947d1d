from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..common.retry import retry_read_once
from ..core.constants import AUDIT_NOTE_SEPARATOR, DEFAULT_CHECKIN_LOCK_TIMEOUT_SECONDS
from ..core.enums import AttendanceStatus, VerificationMethod
from ..core.exceptions import AlreadyCheckedInError, NotFoundError, StorageUnavailableError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import AttendanceRecord, NewAttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

_COLUMNS = """
    attendance_id, meeting_id, user_id, status, check_in_time, check_in_latitude, check_in_longitude,
    verification_method, manual_approval_by, notes, created_at
"""


def _to_record(r: dict) -> AttendanceRecord:
    method = r.get("verification_method")
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        meeting_id=int(r["meeting_id"]),
        user_id=int(r["user_id"]),
        status=AttendanceStatus(r["status"]),
        check_in_time=r.get("check_in_time"),
        check_in_latitude=r.get("check_in_latitude"),
        check_in_longitude=r.get("check_in_longitude"),
        verification_method=VerificationMethod(method) if method else None,
        manual_approval_by=r.get("manual_approval_by"),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
    )


_FK_VIOLATIONS = (errorcode.ER_NO_REFERENCED_ROW, errorcode.ER_NO_REFERENCED_ROW_2)


def _integrity_error(
    exc: mysql.connector.IntegrityError,
    *,
    duplicate_message: str,
    record_id=None,
    meeting_id=None,
    user_id=None,
):
    """Domain error for a constraint violation on attendance_records; None if it is not one we map."""
    if exc.errno == errorcode.ER_DUP_ENTRY:
        # uq_attendance_locked: a present/late row already exists for the pair.
        logger.warning("Locked record conflict record=%s meeting=%s user=%s: %s", record_id, meeting_id, user_id, exc)
        return AlreadyCheckedInError(duplicate_message)
    if exc.errno in _FK_VIOLATIONS:
        logger.warning("Foreign key violation record=%s meeting=%s user=%s: %s", record_id, meeting_id, user_id, exc)
        return NotFoundError("Meeting not found")
    return None


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection, *, lock_timeout: float = DEFAULT_CHECKIN_LOCK_TIMEOUT_SECONDS):
        self._conn_factory = conn_factory
        self._lock_timeout = max(1, math.ceil(lock_timeout))

    @contextmanager
    def pair_lock(self, meeting_id: int, user_id: int) -> Iterator[None]:
        """Named advisory lock, held on its own connection for the duration of the block.

        Closing the connection releases the lock even if RELEASE_LOCK fails.
        """
        name = f"checkin:{int(meeting_id)}:{int(user_id)}"
        conn = self._conn_factory.connect()
        try:
            cur = conn.cursor()
            try:
                cur.execute("SELECT GET_LOCK(%s, %s)", (name, self._lock_timeout))
                row = cur.fetchone()
            except mysql.connector.Error as exc:
                raise StorageUnavailableError("Could not acquire check-in lock") from exc
            if not row or row[0] != 1:
                raise StorageUnavailableError("Timed out waiting for check-in lock")

            try:
                yield
            finally:
                try:
                    cur.execute("SELECT RELEASE_LOCK(%s)", (name,))
                    cur.fetchone()
                except mysql.connector.Error as exc:
                    logger.warning("RELEASE_LOCK(%s) failed: %s", name, exc)
                cur.close()
        finally:
            conn.close()

    @retry_read_once
    def get_locked_record(self, meeting_id: int, user_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE meeting_id=%s AND user_id=%s AND status IN ('present', 'late')
                LIMIT 1
                """,
                (int(meeting_id), int(user_id)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def insert_record(self, record: NewAttendanceRecord) -> AttendanceRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        meeting_id, user_id, status, check_in_time, check_in_latitude,
                        check_in_longitude, verification_method, notes
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.meeting_id,
                        record.user_id,
                        record.status.value,
                        record.check_in_time,
                        record.check_in_latitude,
                        record.check_in_longitude,
                        record.verification_method.value,
                        record.notes,
                    ),
                )
                cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(cur.lastrowid),))
                return _to_record(fetchone(cur))
        except mysql.connector.IntegrityError as exc:
            error = _integrity_error(
                exc,
                duplicate_message="You have already checked in to this meeting",
                meeting_id=record.meeting_id,
                user_id=record.user_id,
            )
            if error is None:
                raise
            raise error from exc

    @retry_read_once
    def get_record_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def update_record_status(
        self,
        attendance_id: int,
        *,
        new_status: AttendanceStatus,
        actor_id: int,
        audit_note: str,
        expected_status: AttendanceStatus = AttendanceStatus.PENDING,
    ) -> Optional[AttendanceRecord]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET status=%s,
                        manual_approval_by=%s,
                        notes=CASE WHEN notes IS NULL OR notes='' THEN %s ELSE CONCAT(notes, %s, %s) END
                    WHERE attendance_id=%s AND status=%s
                    """,
                    (
                        new_status.value,
                        int(actor_id),
                        audit_note,
                        AUDIT_NOTE_SEPARATOR,
                        audit_note,
                        int(attendance_id),
                        expected_status.value,
                    ),
                )
                if cur.rowcount == 0:
                    return None
                cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
                return _to_record(fetchone(cur))
        except mysql.connector.IntegrityError as exc:
            error = _integrity_error(
                exc,
                duplicate_message="User is already checked in to this meeting",
                record_id=attendance_id,
            )
            if error is None:
                raise
            raise error from exc

    @retry_read_once
    def list_for_user(self, user_id: int, *, limit: Optional[int] = None) -> Sequence[AttendanceRecord]:
        sql = f"""
            SELECT {_COLUMNS}
            FROM attendance_records
            WHERE user_id=%s
            ORDER BY check_in_time IS NULL, check_in_time DESC, attendance_id DESC
        """
        params: list[object] = [int(user_id)]
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_meeting(self, meeting_id: int) -> Sequence[AttendanceRecord]:
        return self.list_for_meetings([meeting_id])

    @retry_read_once
    def list_for_meetings(self, meeting_ids: Iterable[int]) -> Sequence[AttendanceRecord]:
        ids = [int(mid) for mid in meeting_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE meeting_id IN ({in_clause(ids)})
                ORDER BY attendance_id
                """,
                tuple(ids),
            )
            return [_to_record(r) for r in fetchall(cur)]

    @retry_read_once
    def list_by_status(self, status: AttendanceStatus, *, meeting_id: Optional[int] = None) -> Sequence[AttendanceRecord]:
        clauses = ["status=%s"]
        params: list[object] = [status.value]
        if meeting_id is not None:
            clauses.append("meeting_id=%s")
            params.append(int(meeting_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {" AND ".join(clauses)}
                ORDER BY created_at
                """,
                tuple(params),
            )
            return [_to_record(r) for r in fetchall(cur)]
