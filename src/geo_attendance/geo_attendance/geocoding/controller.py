from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import require_latitude, require_longitude
from ..common.web import json_error, login_required
from ..core.exceptions import GeocodingFailed, ValidationError


def register(app: Flask, container) -> None:
    @app.route("/api/geocode/reverse", methods=["GET"], endpoint="api_geocode_reverse")
    @login_required
    def api_geocode_reverse():
        try:
            latitude = require_latitude(request.args.get("lat"))
            longitude = require_longitude(request.args.get("lon"))
        except ValidationError as e:
            return json_error(str(e), 400)

        try:
            details = container.geocoding_service.reverse(latitude, longitude)
        except GeocodingFailed as e:
            return json_error(str(e), 502)
        return jsonify(details.to_dict())
