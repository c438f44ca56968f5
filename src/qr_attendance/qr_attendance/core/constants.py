"""Defaults for backend calls and the dashboard."""

DEFAULT_FIRST_TIMEOUT_SECONDS = 8.0
DEFAULT_RETRY_TIMEOUT_SECONDS = 5.0
DEFAULT_MAX_ATTEMPTS = 2
DEFAULT_RECONCILE_DEBOUNCE_SECONDS = 0.3
DEFAULT_BACKEND_URL = "http://localhost:8000/api"

DASHBOARD_RESOURCES = ("students", "instructors", "courses", "assigned-courses", "enrollments")
