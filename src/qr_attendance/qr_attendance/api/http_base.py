from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Optional

import requests

from ..core.exceptions import NetworkTimeout, NetworkUnreachable, ServerRejected, ValidationError
from .connection import ApiConnection

logger = logging.getLogger(__name__)


@contextmanager
def transport_errors(method: str, url: str):
    """Translate requests' transport exceptions into NetworkError subclasses."""

    try:
        yield
    except requests.Timeout as e:
        logger.warning("Backend %s %s timed out: %s", method, url, e)
        raise NetworkTimeout(f"{method} {url} timed out") from e
    except requests.RequestException as e:
        logger.warning("Backend %s %s unreachable: %s", method, url, e)
        raise NetworkUnreachable(f"{method} {url} unreachable") from e


def _body(response) -> Optional[Any]:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def request_json(
    conn: ApiConnection,
    method: str,
    path: str,
    *,
    timeout: float,
    params: Optional[Dict[str, Any]] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """One HTTP call; no retry here (see api.retry).

    A 4xx/5xx answer, or a body with success=false, is the backend refusing
    the request and raises ServerRejected.
    """

    url = conn.url(path)
    with transport_errors(method, url):
        r = conn.session.request(
            method,
            url,
            headers=conn.headers(),
            params=params,
            json=payload,
            timeout=timeout,
        )

    data = _body(r)
    message = data.get("message") if isinstance(data, dict) else None

    if r.status_code >= 400:
        logger.error("Backend %s %s failed: %s %s", method, url, r.status_code, (message or r.text or "")[:500])
        raise ServerRejected(message or r.reason or f"HTTP {r.status_code}", status_code=r.status_code)

    if not isinstance(data, dict):
        raise ValidationError(f"Backend {method} {path} returned no JSON object")

    if data.get("success") is False:
        logger.error("Backend %s %s refused: %s", method, url, message)
        raise ServerRejected(message or "Request refused by backend", status_code=r.status_code)

    return data
