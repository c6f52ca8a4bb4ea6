"""Decide whether an inbound GitHub event should trigger a CLA check."""

from __future__ import annotations

import hashlib
import hmac
import re
from dataclasses import dataclass
from typing import Any, Optional

from clabot.config import BotSettings
from clabot.services.github_client import repo_from_api_url

VALID_PR_ACTIONS = {"opened", "synchronize"}


@dataclass(frozen=True)
class PullRequestRef:
    pull_request_url: str
    issue_url: str
    head_sha: Optional[str]
    via_comment: bool

    @property
    def owner(self) -> str:
        return repo_from_api_url(self.pull_request_url)[0]

    @property
    def repo(self) -> str:
        return repo_from_api_url(self.pull_request_url)[1]


def verify_signature(body: bytes, signature_header: str | None, secret: str | None) -> bool:
    """Validate `X-Hub-Signature-256`. Always true when no secret is configured."""
    if not secret:
        return True
    if not signature_header or not signature_header.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(signature_header.removeprefix("sha256="), expected)


def is_valid_action(payload: dict[str, Any]) -> bool:
    action = payload.get("action")
    if action in VALID_PR_ACTIONS:
        return bool(payload.get("pull_request"))
    # Plain issues have no issue.pull_request; comments on pull requests do.
    if action == "created":
        issue = payload.get("issue") or {}
        return bool(issue.get("pull_request")) and bool(payload.get("comment"))
    return False


def pull_request_ref(payload: dict[str, Any]) -> PullRequestRef:
    if payload.get("action") == "created":
        issue = payload["issue"]
        return PullRequestRef(
            pull_request_url=issue["pull_request"]["url"],
            issue_url=issue["url"],
            head_sha=None,
            via_comment=True,
        )
    pull_request = payload["pull_request"]
    return PullRequestRef(
        pull_request_url=pull_request["url"],
        issue_url=pull_request["issue_url"],
        head_sha=(pull_request.get("head") or {}).get("sha"),
        via_comment=False,
    )


def comment_summons_bot(comment: str, bot_name: str) -> bool:
    pattern = rf"@{re.escape(bot_name)}(\[bot\])?\s*check"
    return re.search(pattern, comment or "") is not None


def ignore_reason(payload: dict[str, Any], settings: BotSettings) -> str | None:
    """Message explaining why the event is ignored, or None when a check should run."""
    if not is_valid_action(payload):
        return f"ignored action of type {payload.get('action')}"
    if payload.get("action") == "created":
        comment = payload.get("comment") or {}
        if not comment_summons_bot(str(comment.get("body") or ""), settings.bot_name):
            return "the comment didnt summon the cla-bot"
        if (comment.get("user") or {}).get("login") == settings.bot_login:
            return "the cla-bot summoned itself. Ignored!"
    return None
