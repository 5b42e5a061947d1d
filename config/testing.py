import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "meeting_attendance_test"),
    "connect_timeout": 2,
}

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory")

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

LATE_GRACE_MINUTES = 0
CHECKIN_LOCK_TIMEOUT_SECONDS = 2.0

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# Directory holding schema.sql / seed.sql for AUTO_INIT_DB / AUTO_SEED_DB.
# Empty means the database/ directory of a source checkout.
DATABASE_DIR = os.getenv("DATABASE_DIR", "")
