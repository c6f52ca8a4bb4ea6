"""Installation access tokens for the bot running as a GitHub App."""

from __future__ import annotations

import logging
import time

import httpx
import jwt

from clabot.config import BotSettings

logger = logging.getLogger(__name__)


class InstallationTokenError(RuntimeError):
    pass


def create_app_jwt(app_id: str, private_key: str, now: int | None = None) -> str:
    """Sign the short-lived RS256 JWT GitHub expects from an App."""
    issued = int(now if now is not None else time.time())
    payload = {
        # Backdated to tolerate clock drift between us and GitHub.
        "iat": issued - 60,
        "exp": issued + 9 * 60,
        "iss": str(app_id),
    }
    return jwt.encode(payload, private_key, algorithm="RS256")


async def get_installation_token(installation_id: int | str, settings: BotSettings) -> str:
    if not settings.github_app_id or not settings.github_private_key:
        raise InstallationTokenError("GITHUB_APP_ID and GITHUB_PRIVATE_KEY are required in integration mode")

    app_jwt = create_app_jwt(settings.github_app_id, settings.github_private_key)
    url = f"{settings.github_api_url}/app/installations/{installation_id}/access_tokens"
    async with httpx.AsyncClient(timeout=settings.timeout_seconds) as client:
        r = await client.post(
            url,
            headers={
                "Authorization": f"Bearer {app_jwt}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )
    if r.status_code >= 400:
        raise InstallationTokenError(
            f"could not obtain installation token for {installation_id}: {r.status_code} {r.text[:200]}"
        )
    token = (r.json() or {}).get("token")
    if not token:
        raise InstallationTokenError(f"installation token response for {installation_id} had no token")
    logger.info("installation_token_obtained installation_id=%s", installation_id)
    return token


async def resolve_access_token(payload: dict, settings: BotSettings) -> str | None:
    """Token for this check: per-installation in integration mode, else the pre-shared one."""
    if settings.integration_enabled:
        installation = payload.get("installation") or {}
        installation_id = installation.get("id")
        if installation_id is None:
            raise InstallationTokenError("integration mode requires an installation id in the webhook payload")
        return await get_installation_token(installation_id, settings)
    return settings.github_access_token
