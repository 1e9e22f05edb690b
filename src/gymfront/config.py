"""Runtime settings for gymfront."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_API_URL = "https://localhost:7087"
DEFAULT_DATA_DIR = Path.home() / ".gymfront"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


@dataclass
class Settings:
    """Connection and storage settings.

    Attributes:
        api_url: Base URL of the REST backend
        data_dir: Directory holding the durable session store
        timeout: Per-request timeout in seconds
        rank_retry_delay: Wait before the single rank lookup retry, in seconds
        verify_tls: Whether to verify the backend certificate
    """

    api_url: str = DEFAULT_API_URL
    data_dir: Path = DEFAULT_DATA_DIR
    timeout: float = 15.0
    rank_retry_delay: float = 1.0
    verify_tls: bool = True

    def __post_init__(self):
        self.api_url = self.api_url.rstrip("/")


def load_settings(env_file: str | None = None) -> Settings:
    """Build settings from the environment (and an optional .env file)."""
    load_dotenv(env_file)

    data_dir = os.getenv("GYMFRONT_DATA_DIR")
    return Settings(
        api_url=os.getenv("GYMFRONT_API_URL", DEFAULT_API_URL),
        data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR,
        timeout=float(os.getenv("GYMFRONT_TIMEOUT", "15")),
        rank_retry_delay=float(os.getenv("GYMFRONT_RANK_RETRY_DELAY", "1.0")),
        verify_tls=_env_bool(os.getenv("GYMFRONT_VERIFY_TLS"), True),
    )
