from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import current_role, current_user_id, error_response, login_required
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import DomainError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/dashboard/stats", methods=["GET"], endpoint="dashboard_stats")
    @login_required
    def stats():
        try:
            if current_role() == Role.ADMIN:
                result = container.dashboard_service.admin_stats()
            else:
                result = container.dashboard_service.user_stats(current_user_id())
        except DomainError as e:
            return error_response(e)
        return jsonify(result.to_dict())
