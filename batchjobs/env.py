import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_API_VERSION = "2024-07-01.20.0"
DEFAULT_TIMEOUT = 30.0


def load_env() -> None:
    """Load .env from the working directory if present.
    Variables already set in the process environment win.
    """
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def get_setting(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def get_timeout() -> float:
    raw = get_setting("BATCH_TIMEOUT")
    if raw is None:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"BATCH_TIMEOUT must be a number of seconds, got {raw!r}")
