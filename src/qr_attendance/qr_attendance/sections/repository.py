from __future__ import annotations

from typing import Protocol, Sequence

from .model import RosterEntry


class RosterRepository(Protocol):
    def get_roster(self, section_id: str, *, timeout: float) -> Sequence[RosterEntry]:
        raise NotImplementedError
