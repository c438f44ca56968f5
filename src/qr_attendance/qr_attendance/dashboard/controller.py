from __future__ import annotations

from flask import Flask, jsonify

from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/dashboard", methods=["GET"], endpoint="dashboard")
    def dashboard():
        data = container.dashboard_service.counts()
        return jsonify({"success": True, "counts": data.counts, "degraded": data.degraded})
