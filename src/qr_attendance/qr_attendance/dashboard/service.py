from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..api.retry import RetryPolicy, with_retry
from ..core.constants import DASHBOARD_RESOURCES
from ..core.exceptions import NetworkError, NetworkUnreachable, ServerError, ValidationError
from .repository import CountRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardCounts:
    counts: Dict[str, int]
    degraded: List[str] = field(default_factory=list)


class DashboardService:
    """Read-only aggregate counts.

    A failing resource never blocks the view: it shows the last value that
    was fetched successfully, or 0.
    """

    def __init__(
        self,
        counts: CountRepository,
        *,
        policy: Optional[RetryPolicy] = None,
        resources: Sequence[str] = DASHBOARD_RESOURCES,
    ):
        self._counts = counts
        self._policy = policy or RetryPolicy()
        self._resources = tuple(resources)
        self._cache: Dict[str, int] = {}

    def counts(self) -> DashboardCounts:
        result: Dict[str, int] = {}
        degraded: List[str] = []

        for resource in self._resources:
            fetch = functools.partial(self._counts.get_count, resource)
            try:
                result[resource] = with_retry(fetch, self._policy, label=f"{resource} count")
                self._cache[resource] = result[resource]
            except (NetworkError, ServerError, ValidationError) as e:
                logger.warning("Dashboard count for %s unavailable, using fallback: %s", resource, e)
                result[resource] = self._cache.get(resource, 0)
                degraded.append(resource)

        if self._resources and len(degraded) == len(self._resources) and not self._cache:
            raise NetworkUnreachable("Could not connect to the server. Please check your network connection.")

        return DashboardCounts(counts=result, degraded=degraded)
