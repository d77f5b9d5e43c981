from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import login_required


def register(app: Flask, container) -> None:
    @app.get("/api/geofence", endpoint="api_geofence")
    @login_required
    def api_geofence():
        cfg = container.geofence_config
        return jsonify(
            {
                "name": cfg.name,
                "latitude": cfg.center_latitude,
                "longitude": cfg.center_longitude,
                "radius": cfg.radius_meters,
                "enabled": cfg.enabled,
                "required": cfg.required,
            }
        )
