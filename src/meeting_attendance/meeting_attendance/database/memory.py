from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict

from ..attendance.model import AttendanceRecord
from ..meetings.model import Meeting, MeetingParticipant
from ..users.model import User


@dataclass
class InMemoryDatabase:
    """Process-local store shared by the in-memory repositories.

    `guard` plays the role of a transaction: every multi-table read or write
    takes it, so a cascade delete is never observed half done.
    """

    users: Dict[int, User] = field(default_factory=dict)
    meetings: Dict[int, Meeting] = field(default_factory=dict)
    participants: Dict[int, MeetingParticipant] = field(default_factory=dict)
    records: Dict[int, AttendanceRecord] = field(default_factory=dict)
    guard: threading.RLock = field(default_factory=threading.RLock)
    _ids: Dict[str, int] = field(default_factory=dict)

    def next_id(self, table: str) -> int:
        with self.guard:
            self._ids[table] = self._ids.get(table, 0) + 1
            return self._ids[table]

    def add_user(self, user: User) -> User:
        with self.guard:
            self.users[user.user_id] = user
            self._ids["users"] = max(self._ids.get("users", 0), user.user_id)
        return user
