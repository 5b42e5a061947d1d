import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "meeting_attendance"),
    "connect_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "5")),
}

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "mysql")

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

LATE_GRACE_MINUTES = int(os.getenv("LATE_GRACE_MINUTES", "0"))
CHECKIN_LOCK_TIMEOUT_SECONDS = float(os.getenv("CHECKIN_LOCK_TIMEOUT_SECONDS", "5"))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# Directory holding schema.sql / seed.sql for AUTO_INIT_DB / AUTO_SEED_DB.
# Empty means the database/ directory of a source checkout.
DATABASE_DIR = os.getenv("DATABASE_DIR", "")
