from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Tuple, TypeVar

from ..core.constants import DEFAULT_FIRST_TIMEOUT_SECONDS, DEFAULT_MAX_ATTEMPTS, DEFAULT_RETRY_TIMEOUT_SECONDS
from ..core.exceptions import NetworkError, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try a call, and the timeout for each try.

    Attempts past the end of ``timeouts`` reuse the last timeout.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    timeouts: Tuple[float, ...] = (DEFAULT_FIRST_TIMEOUT_SECONDS, DEFAULT_RETRY_TIMEOUT_SECONDS)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValidationError("max_attempts must be at least 1")
        if not self.timeouts or any(t <= 0 for t in self.timeouts):
            raise ValidationError("timeouts must be positive")

    def timeout_for(self, attempt: int) -> float:
        return self.timeouts[min(attempt, len(self.timeouts)) - 1]


def with_retry(operation: Callable[..., T], policy: RetryPolicy, *, label: str = "backend call") -> T:
    """Run ``operation(timeout=...)`` under ``policy``.

    Only transport failures (NetworkError) are retried, sequentially. A
    ServerError or any other exception propagates on the first attempt.
    """

    attempt = 1
    while True:
        timeout = policy.timeout_for(attempt)
        try:
            return operation(timeout=timeout)
        except NetworkError as e:
            if attempt >= policy.max_attempts:
                logger.error("%s failed after %d attempts: %s", label, attempt, e)
                raise
            logger.warning(
                "%s failed (attempt %d/%d, timeout %.1fs): %s; retrying",
                label, attempt, policy.max_attempts, timeout, e,
            )
        attempt += 1
