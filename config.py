"""
Runtime settings for the scraper, CLI and web app, read from the environment.
"""

from __future__ import annotations

import os
import dataclasses
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

DEFAULT_BASE_URL = "https://archiveofourown.org"
DEFAULT_USER_AGENT = "AO3Wrapped/1.0.0"


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    page_delay_ms: int = 6000
    login_delay: float = 2.0
    retry_delay: float = 0.0
    max_retries: Optional[int] = None
    request_timeout: float = 30.0
    output_dir: str = "."
    port: int = 3000

    @property
    def page_delay(self) -> float:
        return self.page_delay_ms / 1000

    def replace(self, **changes) -> "Settings":
        return dataclasses.replace(self, **changes)


def _number(name, cast, default):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}.") from None
    if value < 0:
        raise RuntimeError(f"{name} must not be negative, got {raw!r}.")
    return value


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """
    Build settings from AO3_* environment variables, falling back to defaults.
    """

    return Settings(
        base_url=os.getenv("AO3_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        user_agent=os.getenv("AO3_USER_AGENT", DEFAULT_USER_AGENT),
        page_delay_ms=_number("AO3_PAGE_DELAY_MS", int, 6000),
        login_delay=_number("AO3_LOGIN_DELAY", float, 2.0),
        retry_delay=_number("AO3_RETRY_DELAY", float, 0.0),
        max_retries=_number("AO3_MAX_RETRIES", int, None),
        request_timeout=_number("AO3_REQUEST_TIMEOUT", float, 30.0),
        output_dir=os.getenv("AO3_OUTPUT_DIR", "."),
        port=_number("PORT", int, 3000),
    )
