import os

SECRET_KEY = "test-secret"

API_CONFIG = {
    "base_url": os.getenv("BACKEND_API_URL", "http://backend.test/api"),
    "token": "test-token",
    "first_timeout": 8.0,
    "retry_timeout": 5.0,
    "max_attempts": 2,
}

RECONCILE_DEBOUNCE_SECONDS = 0.0

LOG_LEVEL = "WARNING"

DEBUG = False
TESTING = True
