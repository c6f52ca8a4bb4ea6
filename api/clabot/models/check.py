"""Outcome of a single pull request check."""

from enum import Enum

from pydantic import BaseModel


class CheckOutcome(str, Enum):
    IGNORED = "ignored"
    UNRESOLVED = "unresolved"
    SIGNED = "signed"
    UNSIGNED = "unsigned"
    FAILED = "failed"


class CheckResult(BaseModel):
    outcome: CheckOutcome
    message: str


class WebhookResponse(BaseModel):
    """POST /api/webhook response. Always returned with HTTP 200."""

    message: str
