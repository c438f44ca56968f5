from __future__ import annotations

from typing import Protocol


class CountRepository(Protocol):
    def get_count(self, resource: str, *, timeout: float) -> int:
        raise NotImplementedError
