from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..common.retry import retry_read_once
from ..core.enums import MeetingStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Meeting, MeetingFields, MeetingParticipant
from .repository import MeetingRepository

_COLUMNS = """
    m.meeting_id, m.name, m.meeting_date, m.start_time, m.end_time, m.location_name,
    m.latitude, m.longitude, m.radius_m, m.created_by, m.status, m.created_at
"""


def _to_meeting(r: dict) -> Meeting:
    return Meeting(
        meeting_id=int(r["meeting_id"]),
        name=r["name"],
        date=r["meeting_date"],
        start_time=r["start_time"],
        end_time=r["end_time"],
        location_name=r["location_name"],
        latitude=float(r["latitude"]),
        longitude=float(r["longitude"]),
        radius_m=int(r["radius_m"]),
        created_by=int(r["created_by"]),
        status=MeetingStatus(r["status"]),
        created_at=r.get("created_at"),
    )


def _field_params(fields: MeetingFields) -> tuple:
    return (
        fields.name,
        fields.date,
        fields.start_time,
        fields.end_time,
        fields.location_name,
        float(fields.latitude),
        float(fields.longitude),
        int(fields.radius_m),
        fields.status.value,
    )


class MySQLMeetingRepository(MeetingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @retry_read_once
    def get_meeting(self, meeting_id: int) -> Optional[Meeting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM meetings m WHERE m.meeting_id=%s", (int(meeting_id),))
            r = fetchone(cur)
            return _to_meeting(r) if r else None

    @retry_read_once
    def list_all(self) -> Sequence[Meeting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM meetings m ORDER BY m.start_time")
            return [_to_meeting(r) for r in fetchall(cur)]

    @retry_read_once
    def list_for_date(self, day: date) -> Sequence[Meeting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM meetings m WHERE m.meeting_date=%s ORDER BY m.start_time", (day,))
            return [_to_meeting(r) for r in fetchall(cur)]

    @retry_read_once
    def list_for_user(self, user_id: int, *, day: Optional[date] = None) -> Sequence[Meeting]:
        clauses = ["p.user_id=%s"]
        params: list[object] = [int(user_id)]
        if day is not None:
            clauses.append("m.meeting_date=%s")
            params.append(day)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM meetings m
                JOIN meeting_participants p ON p.meeting_id = m.meeting_id
                WHERE {" AND ".join(clauses)}
                ORDER BY m.start_time
                """,
                tuple(params),
            )
            return [_to_meeting(r) for r in fetchall(cur)]

    @retry_read_once
    def count_active_at(self, moment: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM meetings WHERE start_time <= %s AND end_time >= %s",
                (moment, moment),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def create_meeting(self, *, fields: MeetingFields, created_by: int, participant_ids: Iterable[int]) -> Meeting:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO meetings(
                    name, meeting_date, start_time, end_time, location_name,
                    latitude, longitude, radius_m, status, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                _field_params(fields) + (int(created_by),),
            )
            meeting_id = int(cur.lastrowid)
            self._insert_participants(cur, meeting_id, participant_ids)
            cur.execute(f"SELECT {_COLUMNS} FROM meetings m WHERE m.meeting_id=%s", (meeting_id,))
            return _to_meeting(fetchone(cur))

    def replace_meeting(
        self,
        *,
        meeting_id: int,
        fields: MeetingFields,
        participant_ids: Optional[Iterable[int]] = None,
    ) -> Optional[Meeting]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT meeting_id FROM meetings WHERE meeting_id=%s FOR UPDATE", (int(meeting_id),))
            if not fetchone(cur):
                return None
            cur.execute(
                """
                UPDATE meetings
                SET name=%s, meeting_date=%s, start_time=%s, end_time=%s, location_name=%s,
                    latitude=%s, longitude=%s, radius_m=%s, status=%s
                WHERE meeting_id=%s
                """,
                _field_params(fields) + (int(meeting_id),),
            )
            if participant_ids is not None:
                cur.execute("DELETE FROM meeting_participants WHERE meeting_id=%s", (int(meeting_id),))
                self._insert_participants(cur, int(meeting_id), participant_ids)
            cur.execute(f"SELECT {_COLUMNS} FROM meetings m WHERE m.meeting_id=%s", (int(meeting_id),))
            return _to_meeting(fetchone(cur))

    def delete_meeting(self, meeting_id: int) -> bool:
        # Single transaction: db_cursor commits only if all three deletes succeed.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE meeting_id=%s", (int(meeting_id),))
            cur.execute("DELETE FROM meeting_participants WHERE meeting_id=%s", (int(meeting_id),))
            cur.execute("DELETE FROM meetings WHERE meeting_id=%s", (int(meeting_id),))
            return cur.rowcount > 0

    @retry_read_once
    def is_participant(self, user_id: int, meeting_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS ok FROM meeting_participants WHERE meeting_id=%s AND user_id=%s LIMIT 1",
                (int(meeting_id), int(user_id)),
            )
            return fetchone(cur) is not None

    @retry_read_once
    def list_participants(self, meeting_id: int) -> Sequence[MeetingParticipant]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT participant_id, meeting_id, user_id, required
                FROM meeting_participants
                WHERE meeting_id=%s
                ORDER BY participant_id
                """,
                (int(meeting_id),),
            )
            return [
                MeetingParticipant(
                    participant_id=int(r["participant_id"]),
                    meeting_id=int(r["meeting_id"]),
                    user_id=int(r["user_id"]),
                    required=bool(r["required"]),
                )
                for r in fetchall(cur)
            ]

    @staticmethod
    def _insert_participants(cur, meeting_id: int, user_ids: Iterable[int]) -> None:
        rows = [(meeting_id, int(uid)) for uid in dict.fromkeys(int(u) for u in user_ids)]
        if rows:
            cur.executemany(
                "INSERT IGNORE INTO meeting_participants(meeting_id, user_id, required) VALUES(%s,%s,1)",
                rows,
            )
