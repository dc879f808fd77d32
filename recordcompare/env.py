import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "RECORDCOMPARE_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_env() -> None:
    """Load .env from the working directory if present.

    Variables already set in the environment win over the file.
    """
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from RECORDCOMPARE_* environment variables."""

    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    fetch_timeout: Optional[float] = None
    http_timeout: float = 15.0
    max_retries: int = 3


def _read(name: str) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _read_float(name: str) -> Optional[float]:
    raw = _read(name)
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{ENV_PREFIX}{name} must be positive, got {raw!r}")
    return value


def _read_int(name: str) -> Optional[int]:
    raw = _read(name)
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{ENV_PREFIX}{name} must not be negative, got {raw!r}")
    return value


def _read_log_level() -> Optional[str]:
    raw = _read("LOG_LEVEL")
    if raw is None:
        return None
    if raw.upper() not in LOG_LEVELS:
        raise ValueError(
            f"{ENV_PREFIX}LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {raw!r}"
        )
    return raw.upper()


def load_settings() -> Settings:
    """
    Build Settings from the environment.

    Returns:
        Settings with defaults for unset variables

    Raises:
        ValueError: If a log level or numeric variable is invalid
    """
    defaults = Settings()
    log_dir = _read("LOG_DIR")
    http_timeout = _read_float("HTTP_TIMEOUT")
    max_retries = _read_int("MAX_RETRIES")
    return Settings(
        log_level=_read_log_level() or defaults.log_level,
        log_dir=Path(log_dir) if log_dir else None,
        fetch_timeout=_read_float("FETCH_TIMEOUT"),
        http_timeout=http_timeout if http_timeout is not None else defaults.http_timeout,
        max_retries=max_retries if max_retries is not None else defaults.max_retries,
    )
