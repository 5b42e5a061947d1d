from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local
from ..common.http import admin_required, current_role, current_user_id, error_response, login_required
from ..container import Container
from ..core.exceptions import DomainError

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    service = container.meeting_service

    def _fields_from(data: dict):
        return service.build_fields(
            name=data.get("name"),
            meeting_date=data.get("date"),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            location_name=data.get("locationName"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            radius_m=data.get("radius"),
            status=data.get("status"),
        )

    @app.route("/api/meetings", methods=["GET"], endpoint="meetings_list")
    @login_required
    def list_meetings():
        try:
            meetings = service.list_meetings(user_id=current_user_id(), role=current_role())
        except DomainError as e:
            return error_response(e)
        return jsonify([m.to_dict() for m in meetings])

    @app.route("/api/meetings/today", methods=["GET"], endpoint="meetings_today")
    @login_required
    def list_today():
        try:
            meetings = service.list_meetings(user_id=current_user_id(), role=current_role(), today=now_local().date())
        except DomainError as e:
            return error_response(e)
        return jsonify([m.to_dict() for m in meetings])

    @app.route("/api/meetings/<int:meeting_id>", methods=["GET"], endpoint="meetings_get")
    @login_required
    def get_meeting(meeting_id: int):
        try:
            meeting = service.get_meeting_for_user(user_id=current_user_id(), role=current_role(), meeting_id=meeting_id)
        except DomainError as e:
            return error_response(e)
        return jsonify(meeting.to_dict())

    @app.route("/api/meetings/<int:meeting_id>/participants", methods=["GET"], endpoint="meetings_participants")
    @admin_required
    def participants(meeting_id: int):
        try:
            rows = service.list_participants(meeting_id)
        except DomainError as e:
            return error_response(e)
        return jsonify([p.to_dict() for p in rows])

    @app.route("/api/meetings", methods=["POST"], endpoint="meetings_create")
    @admin_required
    def create_meeting():
        data = request.get_json(silent=True) or {}
        try:
            meeting = service.create_meeting(
                current_role=current_role(),
                created_by=current_user_id(),
                fields=_fields_from(data),
                participant_ids=data.get("participants"),
            )
        except DomainError as e:
            return error_response(e)
        return jsonify(meeting.to_dict()), 201

    @app.route("/api/meetings/<int:meeting_id>", methods=["PUT"], endpoint="meetings_update")
    @admin_required
    def update_meeting(meeting_id: int):
        data = request.get_json(silent=True) or {}
        try:
            meeting = service.update_meeting(
                current_role=current_role(),
                meeting_id=meeting_id,
                fields=_fields_from(data),
                participant_ids=data.get("participants"),
            )
        except DomainError as e:
            return error_response(e)
        return jsonify(meeting.to_dict())

    @app.route("/api/meetings/<int:meeting_id>", methods=["DELETE"], endpoint="meetings_delete")
    @admin_required
    def delete_meeting(meeting_id: int):
        try:
            service.delete_meeting(current_role=current_role(), meeting_id=meeting_id)
        except DomainError as e:
            return error_response(e)
        return "", 204
