"""Create the database (if missing) and apply database/schema.sql.

Usage: python scripts/init_db.py [--seed]
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.meeting_attendance.meeting_attendance.database.bootstrap import apply_schema, apply_seed_sql, list_tables

EXPECTED_TABLES = {"users", "meetings", "meeting_participants", "attendance_records"}


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--seed", action="store_true", help="also load database/seed.sql")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings_module = get_settings_module()
    db_config = dict(importlib.import_module(settings_module).DB_CONFIG)

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    if args.seed:
        apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")

    missing = EXPECTED_TABLES - set(list_tables(db_config))
    if missing:
        print(f"FAILED: tables missing after schema apply: {', '.join(sorted(missing))}")
        return 1

    print(f"OK ({settings_module}): {db_config.get('database')} on {db_config.get('host')} is ready")
    return 0


if __name__ == "__main__":
    sys.exit(main())
