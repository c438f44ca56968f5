from __future__ import annotations

import logging

from flask import Flask, jsonify

from ..core.exceptions import (
    DomainError,
    NetworkError,
    ScanInProgress,
    SectionMismatch,
    ServerError,
    StaleSessionError,
)

logger = logging.getLogger(__name__)


def status_code_for(error: DomainError) -> int:
    if isinstance(error, (ScanInProgress, StaleSessionError)):
        return 409
    if isinstance(error, ServerError):
        return 502
    if isinstance(error, NetworkError):
        return 503
    return 400


def error_body(error: DomainError) -> dict:
    body = {
        "success": False,
        "code": type(error).__name__,
        "message": str(error),
    }
    if isinstance(error, SectionMismatch):
        body["expected"] = error.expected
        body["got"] = error.got
    # Network and server failures can be retried by the user as-is.
    body["retryable"] = isinstance(error, (NetworkError, ServerError, ScanInProgress))
    return body


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        status = status_code_for(error)
        if status >= 500:
            logger.warning("Request failed (%s): %s", type(error).__name__, error)
        return jsonify(error_body(error)), status
