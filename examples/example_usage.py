"""Example: drive the service layer directly (no Flask), on the in-memory store.

Controllers are a thin layer; the check-in rules live in the services.
"""

from datetime import date, datetime, timedelta

from src.meeting_attendance.meeting_attendance.container import build_memory_container
from src.meeting_attendance.meeting_attendance.core.enums import Role
from src.meeting_attendance.meeting_attendance.database.memory import InMemoryDatabase
from src.meeting_attendance.meeting_attendance.users.model import User


def main():
    db = InMemoryDatabase()
    container = build_memory_container(db=db)
    db.add_user(User(user_id=2, username="jdoe", email="jdoe@example.com", role=Role.EMPLOYEE))

    start = datetime.now() + timedelta(minutes=10)
    fields = container.meeting_service.build_fields(
        name="Weekly sync",
        meeting_date=date.today(),
        start_time=start,
        end_time=start + timedelta(hours=1),
        location_name="HQ",
        latitude=37.0,
        longitude=-122.0,
        radius_m=100,
    )
    meeting = container.meeting_service.create_meeting(
        current_role=Role.ADMIN, created_by=1, fields=fields, participant_ids=[2]
    )

    result = container.attendance_service.submit_check_in(
        user_id=2,
        meeting_id=meeting.meeting_id,
        latitude=37.0005,
        longitude=-122.0,
        verification_method="gps",
    )
    print(result.outcome.value, result.status.value, f"{result.distance_m:.0f}m")
    print(container.dashboard_service.admin_stats().to_dict())


if __name__ == "__main__":
    main()
