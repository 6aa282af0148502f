"""Settings for the desktop bridge.

Priority chain (highest to lowest):
  1. Init kwargs  — values passed by the launcher or tests
  2. Env vars     — ``HUDORI_*`` prefix
  3. Code defaults
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_API_URL = "https://localhost:8080"
DEFAULT_FRONTEND_URL = "http://localhost:5173"
DEFAULT_TIMEOUT = 30.0


class HudoriSettings(BaseSettings):
    """Process-wide configuration, frozen once built.

    Attributes:
        api_url: Backend origin every endpoint path is appended to.
        frontend_url: Page the main window loads.
        timeout: Per-call deadline in seconds. Slots block the GUI thread,
            so the window never waits longer than this on one call.
        verbose: Enable DEBUG-level output for the ``hudori_desktop`` logger.
        log_json: Emit JSON log lines instead of console rendering.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "HUDORI_",
    }

    api_url: str = DEFAULT_API_URL
    frontend_url: str = DEFAULT_FRONTEND_URL
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)

    verbose: bool = False
    log_json: bool = False

    @field_validator("api_url", "frontend_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")
