"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_METERS = 6_371_000
DEFAULT_RADIUS_METERS = 100
DEFAULT_LATE_GRACE_MINUTES = 0
DEFAULT_CHECKIN_LOCK_TIMEOUT_SECONDS = 5
DEFAULT_HISTORY_LIMIT = 200
AUDIT_NOTE_SEPARATOR = " | "
