from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.http import admin_required, current_user_id, error_response, login_required
from ..container import Container
from ..core.enums import AttendanceStatus, CheckInOutcome
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @login_required
    def check_in():
        data = request.get_json(silent=True) or {}
        try:
            result = container.attendance_service.submit_check_in(
                user_id=current_user_id(),
                meeting_id=data.get("meetingId"),
                latitude=data.get("latitude"),
                longitude=data.get("longitude"),
                verification_method=data.get("verificationMethod"),
                notes=data.get("notes"),
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            logger.exception("Check-in failed")
            return jsonify({"message": "System error during check-in"}), 500

        if result.outcome == CheckInOutcome.OUT_OF_RANGE:
            return jsonify({
                "message": "You are too far from the meeting location",
                "distance": round(result.distance_m),
                "allowedRadius": result.allowed_radius_m,
            }), 400

        if result.outcome == CheckInOutcome.PENDING_APPROVAL:
            return jsonify({
                "message": "Manual check-in recorded. Awaiting approval.",
                "attendanceRecord": result.record.to_dict(),
            }), 202

        late = result.status == AttendanceStatus.LATE
        return jsonify({
            "message": "Checked in (Late)" if late else "Checked in successfully",
            "attendanceRecord": result.record.to_dict(),
        }), 201

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def history():
        try:
            rows = container.attendance_service.get_history(current_user_id())
        except DomainError as e:
            return error_response(e)
        return jsonify([row.to_dict() for row in rows])

    @app.route("/api/attendance/meeting/<int:meeting_id>", methods=["GET"], endpoint="attendance_for_meeting")
    @admin_required
    def meeting_attendance(meeting_id: int):
        try:
            rows = container.attendance_service.get_meeting_attendance(meeting_id)
        except DomainError as e:
            return error_response(e)
        return jsonify([row.to_dict() for row in rows])

    @app.route("/api/attendance/pending", methods=["GET"], endpoint="attendance_pending")
    @admin_required
    def pending():
        meeting_id = request.args.get("meetingId", type=int)
        try:
            records = container.approval_service.list_pending(meeting_id=meeting_id)
        except DomainError as e:
            return error_response(e)
        return jsonify([r.to_dict() for r in records])

    @app.route("/api/attendance/approve/<int:record_id>", methods=["POST"], endpoint="attendance_approve")
    @admin_required
    def approve(record_id: int):
        try:
            record = container.approval_service.approve_record(record_id=record_id, actor_id=current_user_id())
        except DomainError as e:
            return error_response(e)
        return jsonify(record.to_dict())

    @app.route("/api/attendance/reject/<int:record_id>", methods=["POST"], endpoint="attendance_reject")
    @admin_required
    def reject(record_id: int):
        try:
            record = container.approval_service.reject_record(record_id=record_id, actor_id=current_user_id())
        except DomainError as e:
            return error_response(e)
        return jsonify(record.to_dict())
