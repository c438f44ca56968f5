from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import requests

from ..core.constants import (
    DEFAULT_BACKEND_URL,
    DEFAULT_FIRST_TIMEOUT_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_TIMEOUT_SECONDS,
)
from .retry import RetryPolicy


@dataclass
class ApiConfig:
    base_url: str = DEFAULT_BACKEND_URL
    token: Optional[str] = None
    first_timeout: float = DEFAULT_FIRST_TIMEOUT_SECONDS
    retry_timeout: float = DEFAULT_RETRY_TIMEOUT_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    @classmethod
    def from_dict(cls, api_config: dict) -> "ApiConfig":
        return cls(
            base_url=str(api_config.get("base_url", DEFAULT_BACKEND_URL)),
            token=api_config.get("token") or None,
            first_timeout=float(api_config.get("first_timeout", DEFAULT_FIRST_TIMEOUT_SECONDS)),
            retry_timeout=float(api_config.get("retry_timeout", DEFAULT_RETRY_TIMEOUT_SECONDS)),
            max_attempts=int(api_config.get("max_attempts", DEFAULT_MAX_ATTEMPTS)),
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.max_attempts, timeouts=(self.first_timeout, self.retry_timeout))


class ApiConnection:
    """Backend endpoint plus one shared requests.Session.

    Note: the token is sent verbatim in the Authorization header, so it must
    carry its own scheme prefix when the backend expects one.
    """

    def __init__(self, config: ApiConfig, session: Optional[requests.Session] = None):
        self._config = config
        self.session = session or requests.Session()

    @property
    def config(self) -> ApiConfig:
        return self._config

    def url(self, path: str) -> str:
        return f"{self._config.base_url.rstrip('/')}/{path.lstrip('/')}"

    def headers(self) -> Dict[str, str]:
        h = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self._config.token:
            h["Authorization"] = self._config.token
        return h
