from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .container import Container, build_container
from .core.constants import DEFAULT_RECONCILE_DEBOUNCE_SECONDS
from .common.http_errors import register_error_handlers
from .core.logging import setup_logging
from .attendance.controller import register as register_attendance
from .dashboard.controller import register as register_dashboard

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    api_config = getattr(settings, "API_CONFIG")

    setup_logging(getattr(settings, "LOG_LEVEL", "DEBUG" if app.config["DEBUG"] else "INFO"))
    logger.info("settings=%s backend=%s", settings_module, api_config.get("base_url"))

    if container is None:
        container = build_container(
            api_config=api_config,
            reconcile_delay=float(getattr(settings, "RECONCILE_DEBOUNCE_SECONDS", DEFAULT_RECONCILE_DEBOUNCE_SECONDS)),
        )

    register_error_handlers(app)
    register_attendance(app, container)
    register_dashboard(app, container)

    @app.route("/healthz", endpoint="healthz")
    def healthz():
        return jsonify({"status": "ok"})

    return app
