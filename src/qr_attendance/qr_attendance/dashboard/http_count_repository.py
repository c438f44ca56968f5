from __future__ import annotations

from ..api.connection import ApiConnection
from ..api.http_base import request_json
from .repository import CountRepository


class HttpCountRepository(CountRepository):
    def __init__(self, conn: ApiConnection):
        self._conn = conn

    def get_count(self, resource: str, *, timeout: float) -> int:
        data = request_json(self._conn, "GET", resource, timeout=timeout)
        count = data.get("count")
        if isinstance(count, int) and not isinstance(count, bool):
            return count
        items = data.get("data")
        return len(items) if isinstance(items, list) else 0
