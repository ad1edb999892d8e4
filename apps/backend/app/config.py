"""Environment driven settings for the merge service."""

from __future__ import annotations

from dataclasses import dataclass
import os

GIB = 1024 * 1024 * 1024


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}.") from exc


@dataclass(frozen=True)
class Settings:
    """Runtime configuration read once at start-up."""

    host: str = "0.0.0.0"
    port: int = 3001
    frontend_url: str = "http://localhost:3000"
    environment: str = "development"
    log_level: str = "INFO"
    memory_warning_bytes: int = GIB
    memory_check_interval: int = 30
    rate_limit_window_seconds: int = 900
    rate_limit_max_requests: int = 100

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("HOST", cls.host),
            port=_int_env("PORT", cls.port),
            frontend_url=os.getenv("FRONTEND_URL", cls.frontend_url),
            environment=os.getenv("NODE_ENV", cls.environment),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            memory_warning_bytes=_int_env("MEMORY_WARNING_BYTES", cls.memory_warning_bytes),
            memory_check_interval=_int_env("MEMORY_CHECK_INTERVAL", cls.memory_check_interval),
            rate_limit_window_seconds=_int_env(
                "RATE_LIMIT_WINDOW_SECONDS", cls.rate_limit_window_seconds
            ),
            rate_limit_max_requests=_int_env("RATE_LIMIT_MAX_REQUESTS", cls.rate_limit_max_requests),
        )


__all__ = ["Settings", "GIB"]
