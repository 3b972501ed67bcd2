"""Environment-based settings for jobcatalog."""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_STORE = "data"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() not in {"0", "false", "no"}


@dataclass
class Settings:
    store: str
    api_url: Optional[str]
    admin_passcode: Optional[str]
    timeout: float
    log_level: str
    log_dir: str
    log_to_file: bool

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            store=os.getenv("JOBCATALOG_STORE", DEFAULT_STORE),
            api_url=os.getenv("JOBCATALOG_API_URL") or None,
            admin_passcode=os.getenv("JOBCATALOG_ADMIN_PASSCODE") or None,
            timeout=float(os.getenv("JOBCATALOG_TIMEOUT", "15")),
            log_level=os.getenv("JOBCATALOG_LOG_LEVEL", "INFO"),
            log_dir=os.getenv("JOBCATALOG_LOG_DIR", "logs"),
            log_to_file=_env_bool("JOBCATALOG_LOG_TO_FILE", "true"),
        )
