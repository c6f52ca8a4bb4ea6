"""GitHub webhook endpoint for the CLA check."""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Header, Request

from clabot.config import BotSettings, read_bot_settings
from clabot.models.check import WebhookResponse
from clabot.services import cla_check_service
from clabot.services.event_dispatcher import verify_signature

router = APIRouter()
logger = logging.getLogger(__name__)


def get_settings(request: Request) -> BotSettings:
    settings = getattr(request.app.state, "bot_settings", None)
    if settings is None:
        settings = read_bot_settings()
        request.app.state.bot_settings = settings
    return settings


@router.post("/webhook", response_model=WebhookResponse)
async def github_webhook(
    request: Request,
    x_hub_signature_256: Optional[str] = Header(None, alias="X-Hub-Signature-256"),
    x_github_event: Optional[str] = Header(None, alias="X-GitHub-Event"),
) -> WebhookResponse:
    """Run the CLA check for a pull request or pull request comment event.

    Always answers 200; the message describes what happened.
    """
    settings = get_settings(request)
    body = await request.body()
    if not verify_signature(body, x_hub_signature_256, settings.webhook_secret):
        logger.warning("webhook_signature_mismatch event=%s", x_github_event or "unknown")
        return WebhookResponse(message="ignored event with an invalid signature")
    try:
        payload = json.loads(body or b"{}")
    except ValueError:
        return WebhookResponse(message="ignored event with a body that is not valid JSON")
    if not isinstance(payload, dict):
        return WebhookResponse(message="ignored event with a body that is not a JSON object")

    result = await cla_check_service.run_check(payload, settings)
    logger.info(
        "webhook_handled event=%s action=%s outcome=%s",
        x_github_event or "unknown",
        payload.get("action"),
        result.outcome.value,
    )
    return WebhookResponse(message=result.message)
