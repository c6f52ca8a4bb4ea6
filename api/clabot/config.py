"""Process-wide bot settings, read once at startup from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

GITHUB_API = "https://api.github.com"


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, "1" if default else "").strip().lower()
    return raw in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(1.0, float(raw))
    except ValueError:
        return default


def _private_key() -> str:
    # Keys pasted into single-line env vars usually carry literal "\n".
    return os.getenv("GITHUB_PRIVATE_KEY", "").replace("\\n", "\n").strip()


@dataclass(frozen=True)
class BotSettings:
    bot_name: str
    integration_enabled: bool = False
    github_access_token: str | None = None
    github_app_id: str | None = None
    github_private_key: str | None = None
    webhook_secret: str | None = None
    github_api_url: str = GITHUB_API
    timeout_seconds: float = 20.0

    @property
    def bot_login(self) -> str:
        """Login GitHub assigns to the app's bot user."""
        return f"{self.bot_name}[bot]"


def read_bot_settings() -> BotSettings:
    return BotSettings(
        bot_name=os.getenv("BOT_NAME", "cla-bot").strip() or "cla-bot",
        integration_enabled=_env_flag("INTEGRATION_ENABLED"),
        github_access_token=os.getenv("GITHUB_ACCESS_TOKEN", "").strip() or None,
        github_app_id=os.getenv("GITHUB_APP_ID", "").strip() or None,
        github_private_key=_private_key() or None,
        webhook_secret=os.getenv("GITHUB_WEBHOOK_SECRET", "").strip() or None,
        github_api_url=(os.getenv("GITHUB_API_URL", GITHUB_API).strip() or GITHUB_API).rstrip("/"),
        timeout_seconds=_env_float("GITHUB_TIMEOUT_SECONDS", 20.0),
    )
