"""Pydantic models."""

from clabot.models.check import CheckOutcome, CheckResult, WebhookResponse
from clabot.models.clabot_config import (
    DEFAULT_CLABOT_CONFIG,
    ClabotConfig,
    ContributorSource,
    ContributorSourceKind,
)
from clabot.models.committer import Committer

__all__ = [
    "CheckOutcome",
    "CheckResult",
    "ClabotConfig",
    "Committer",
    "ContributorSource",
    "ContributorSourceKind",
    "DEFAULT_CLABOT_CONFIG",
    "WebhookResponse",
]
