"""Load demo users, one meeting and its participants from database/seed.sql."""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.meeting_attendance.meeting_attendance.database.bootstrap import apply_seed_sql, count_rows


def main() -> None:
    db_config = dict(importlib.import_module(get_settings_module()).DB_CONFIG)
    apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")

    counts = count_rows(db_config, ["users", "meetings", "meeting_participants"])
    summary = ", ".join(f"{table}={n}" for table, n in counts.items())
    print(f"Seeded {db_config.get('database')}: {summary}")


if __name__ == "__main__":
    main()
