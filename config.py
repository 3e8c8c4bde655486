import os
from functools import lru_cache
from pathlib import Path


class ConfigError(RuntimeError):
    pass


class Settings:
    def __init__(
        self,
        auth_url: str,
        service_key: str,
        database_url: str,
        timezone: str,
        rate_limit: int,
        rate_window_secs: float,
        auth_timeout_secs: float,
        log_level: str,
    ) -> None:
        self.auth_url = auth_url
        self.service_key = service_key
        self.database_url = database_url
        self.timezone = timezone
        self.rate_limit = rate_limit
        self.rate_window_secs = rate_window_secs
        self.auth_timeout_secs = auth_timeout_secs
        self.log_level = log_level


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINANCE_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _required(name: str, missing: list[str]) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        missing.append(name)
    return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    missing: list[str] = []
    auth_url = _required("FINANCE_AUTH_URL", missing)
    service_key = _required("FINANCE_SERVICE_KEY", missing)
    if missing:
        raise ConfigError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    database_url = os.getenv("FINANCE_DATABASE_URL", "").strip()
    if not database_url:
        database_url = f"sqlite:///{_ensure_data_dir() / 'finance.db'}"
    timezone = os.getenv("FINANCE_TIMEZONE", "UTC")
    rate_limit = int(os.getenv("FINANCE_RATE_LIMIT", "50"))
    rate_window_secs = float(os.getenv("FINANCE_RATE_WINDOW_SECS", "60"))
    auth_timeout_secs = float(os.getenv("FINANCE_AUTH_TIMEOUT_SECS", "5"))
    log_level = os.getenv("FINANCE_LOG_LEVEL", "INFO").upper()
    return Settings(
        auth_url=auth_url.rstrip("/"),
        service_key=service_key,
        database_url=database_url,
        timezone=timezone,
        rate_limit=rate_limit,
        rate_window_secs=rate_window_secs,
        auth_timeout_secs=auth_timeout_secs,
        log_level=log_level,
    )
