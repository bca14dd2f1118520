"""
Centralized configuration for the scheduling and notification services.

Every setting is read from the environment on each call so tests can
patch os.environ without reloading modules.
"""

import os


def is_dev_mode() -> bool:
    """Check if running in development mode (--dev flag or DEV_MODE env)."""
    return os.getenv("DEV_MODE", "").lower() in ("true", "1", "yes")


def get_api_port() -> int:
    """Get API server port from env or default."""
    return int(os.getenv("API_PORT", "8000"))


def get_frontend_url() -> str:
    """Get frontend URL used in CORS and absolute deep links."""
    return os.environ.get("FRONTEND_URL", "http://localhost:5173").rstrip("/")


def get_allowed_origins() -> list[str]:
    """
    Get list of allowed CORS origins.

    Includes localhost variants for dev and the configured frontend URL.
    """
    hosts = ["localhost", "127.0.0.1"]
    ports = [3000, 5173, get_api_port()]
    origins = [f"http://{host}:{port}" for host in hosts for port in ports]

    frontend_url = get_frontend_url()
    if frontend_url not in origins:
        origins.append(frontend_url)

    return origins


# =====================================================
# Fan-out settings
# =====================================================


def get_notification_service_url() -> str | None:
    """
    Base URL of the service that owns notification fan-out.

    When unset, fan-out runs in this process through the local queue.
    """
    url = os.environ.get("NOTIFICATION_SERVICE_URL", "").strip()
    return url.rstrip("/") or None


def get_internal_service_token() -> str | None:
    """Shared secret sent in X-Internal-Token on service-to-service calls."""
    return os.environ.get("INTERNAL_SERVICE_TOKEN") or None


def get_notify_timeout() -> float:
    """Timeout in seconds for a remote fan-out call."""
    return float(os.getenv("NOTIFY_TIMEOUT_SECONDS", "5"))


def is_fanout_retry_enabled() -> bool:
    """Opt-in retry of failed remote fan-out calls (default: at-most-once)."""
    return os.getenv("FANOUT_RETRY_ENABLED", "").lower() in ("true", "1", "yes")


def get_fanout_max_retries() -> int:
    """Number of retry attempts before a remote fan-out is given up."""
    return int(os.getenv("FANOUT_MAX_RETRIES", "5"))


def get_fanout_queue_size() -> int:
    """Capacity of the in-process fan-out queue."""
    return int(os.getenv("FANOUT_QUEUE_SIZE", "1000"))


def get_presence_queue_size() -> int:
    """Per-connection outgoing event buffer for live sessions."""
    return int(os.getenv("PRESENCE_QUEUE_SIZE", "100"))


# =====================================================
# External push (Expo)
# =====================================================


def get_expo_push_url() -> str:
    return os.environ.get("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send")


def get_expo_access_token() -> str | None:
    return os.environ.get("EXPO_ACCESS_TOKEN") or None


# Required environment variables for production
# Format: (name, description, required); required vars only warn in dev mode
REQUIRED_ENV_VARS = [
    ("DATABASE_URL", "PostgreSQL connection string", True),
    ("JWT_SECRET", "Secret key for JWT tokens", True),
    (
        "INTERNAL_SERVICE_TOKEN",
        "Shared secret for service-to-service fan-out calls",
        False,
    ),
    ("SENTRY_DSN", "Sentry DSN for error reporting", False),
]


def check_required_env_vars() -> tuple[bool, list[str]]:
    """
    Check that required environment variables are set.

    Returns:
        (all_ok, warnings): Tuple of success flag and list of warning messages
    """
    warnings = []
    errors = []
    in_dev = is_dev_mode()

    for name, description, required in REQUIRED_ENV_VARS:
        value = os.environ.get(name)

        if not value:
            if required and not in_dev:
                errors.append(f"  ✗ {name}: Not set ({description})")
            else:
                warnings.append(f"  ⚠ {name}: Not set ({description})")

    return not errors, errors + warnings
