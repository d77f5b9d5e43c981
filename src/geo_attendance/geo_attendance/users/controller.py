from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..common.web import json_error
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.exceptions import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)


def register(app: Flask, container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="api_login")
    def api_login():
        data = request.get_json(silent=True) or {}
        try:
            s_user = container.auth_service.authenticate(
                str(data.get("username", "")),
                str(data.get("password", "")),
            )
        except (AuthenticationError, ValidationError) as e:
            return json_error(str(e), 401)

        session.clear()
        session.permanent = bool(data.get("rememberMe"))
        app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)
        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value

        logger.info("User %s logged in", s_user.user_id)
        return jsonify(
            {
                "success": True,
                "user": {"id": s_user.user_id, "name": s_user.full_name, "role": s_user.role.value},
            }
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="api_logout")
    def api_logout():
        session.clear()
        return jsonify({"success": True})
