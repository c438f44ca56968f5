import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

API_CONFIG = {
    "base_url": os.getenv("BACKEND_API_URL", "http://localhost:8000/api"),
    "token": os.getenv("BACKEND_API_TOKEN", ""),
    "first_timeout": float(os.getenv("API_FIRST_TIMEOUT", "8")),
    "retry_timeout": float(os.getenv("API_RETRY_TIMEOUT", "5")),
    "max_attempts": int(os.getenv("API_MAX_ATTEMPTS", "2")),
}

# Delay before a roster change triggers a reconcile check
RECONCILE_DEBOUNCE_SECONDS = float(os.getenv("RECONCILE_DEBOUNCE_SECONDS", "0.3"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

DEBUG = True
