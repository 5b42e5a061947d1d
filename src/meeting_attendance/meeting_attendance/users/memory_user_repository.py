from __future__ import annotations

from typing import Optional, Sequence

from ..database.memory import InMemoryDatabase
from .model import User
from .repository import UserRepository


class InMemoryUserRepository(UserRepository):
    def __init__(self, db: InMemoryDatabase):
        self._db = db

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._db.users.get(int(user_id))

    def list_all(self) -> Sequence[User]:
        with self._db.guard:
            return sorted(self._db.users.values(), key=lambda u: u.user_id)
