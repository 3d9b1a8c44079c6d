import os
from dataclasses import dataclass


def _get_env(name: str, default: str | None = None) -> str:
    value = os.getenv(name, default)
    if value is None:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


def _get_bool(name: str, default: str) -> bool:
    return _get_env(name, default).strip().lower() == "true"


@dataclass(frozen=True)
class Settings:
    # DB
    database_url: str = _get_env("DATABASE_URL")

    # Email transport
    resend_api_key: str = _get_env("RESEND_API_KEY", "")
    alert_from_email: str = _get_env("ALERT_FROM_EMAIL", "alerts@edstop.com")
    admin_dashboard_url: str = _get_env(
        "ADMIN_DASHBOARD_URL",
        "https://edstop3983.builtwithrocket.new/admin-promo-code-management",
    )

    # Alerting
    alert_check_interval_minutes: int = int(
        _get_env("ALERT_CHECK_INTERVAL_MINUTES", "60")
    )
    alert_scheduler_enabled: bool = _get_bool("ALERT_SCHEDULER_ENABLED", "true")
    # Record a log entry even when the email was not delivered.
    alert_log_failed_dispatches: bool = _get_bool(
        "ALERT_LOG_FAILED_DISPATCHES", "false"
    )

    # Scheduler
    scheduler_timezone: str = _get_env("SCHEDULER_TZ", "UTC")

    # HTTP
    http_host: str = _get_env("HTTP_HOST", "127.0.0.1")
    http_port: int = 8000

    def __post_init__(self):
        port_raw = _get_env("HTTP_PORT", "8000")
        try:
            port = int(port_raw)
        except ValueError as exc:
            raise RuntimeError("HTTP_PORT must be an integer") from exc
        object.__setattr__(self, "http_port", port)


settings = Settings()
