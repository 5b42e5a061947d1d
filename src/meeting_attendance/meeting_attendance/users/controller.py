from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import admin_required, error_response
from ..container import Container
from ..core.exceptions import DomainError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/users", methods=["GET"], endpoint="users_list")
    @admin_required
    def list_users():
        try:
            users = container.users_repo.list_all()
        except DomainError as e:
            return error_response(e)
        return jsonify([u.to_dict() for u in users])
