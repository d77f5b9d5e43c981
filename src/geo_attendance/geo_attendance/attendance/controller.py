from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.web import current_user_id, json_error, login_required
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import ConflictError, ValidationError
from .service import submission_from_payload

logger = logging.getLogger(__name__)


def register(app: Flask, container) -> None:
    def _punch(action: str, success_status: int):
        try:
            submission = submission_from_payload(request.get_json(silent=True))
            service = container.attendance_service
            record = service.check_in if action == "check-in" else service.check_out
            state = record(current_user_id(), submission)
        except ConflictError as e:
            return json_error(str(e), 409)
        except ValidationError as e:
            return json_error(str(e), 400)
        return jsonify(state.to_dict()), success_status

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="api_check_in")
    @login_required
    def api_check_in():
        return _punch("check-in", 201)

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="api_check_out")
    @login_required
    def api_check_out():
        return _punch("check-out", 200)

    @app.route("/api/attendance/status", methods=["GET"], endpoint="api_attendance_status")
    @login_required
    def api_attendance_status():
        state = container.attendance_service.get_today_status(current_user_id())
        return jsonify(state.to_dict())

    @app.route("/api/attendance/my", methods=["GET"], endpoint="api_my_attendance")
    @login_required
    def api_my_attendance():
        limit = request.args.get("limit", DEFAULT_HISTORY_LIMIT, type=int)
        return jsonify(container.attendance_service.get_history(current_user_id(), limit=limit))
