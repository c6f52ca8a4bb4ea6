"""Report a CLA check outcome back to the pull request."""

from __future__ import annotations

import logging
from typing import Any

from clabot.models.clabot_config import DEFAULT_CLABOT_CONFIG, ClabotConfig
from clabot.services.event_dispatcher import PullRequestRef
from clabot.services.github_client import GitHubClient

logger = logging.getLogger(__name__)


def render_template(template: str, **values: str) -> str:
    out = template
    for key, value in values.items():
        out = out.replace("{{" + key + "}}", value)
    return out


async def set_status(client: GitHubClient, ref: PullRequestRef, head_sha: str, state: str, config: ClabotConfig | None = None) -> None:
    context = config.status_context if config is not None else "verification/cla-signed"
    await client.set_commit_status(ref.owner, ref.repo, head_sha, state, context=context)


async def report_unresolved(
    client: GitHubClient,
    ref: PullRequestRef,
    config: ClabotConfig,
    head_sha: str,
    unresolved: list[str],
    log: Any = logger,
) -> str:
    names = ", ".join(unresolved)
    log.info("Some commits from the following contributors are not signed with a verified email address: %s", names)
    await client.add_comment(ref.issue_url, render_template(config.message_missing_email, unidentifiedUsers=names))
    await client.delete_label(ref.issue_url, config.label)
    await set_status(client, ref, head_sha, "error", config)
    return f"CLA has not been signed by users {names}, added a comment to {ref.pull_request_url}"


async def report_signed(
    client: GitHubClient,
    ref: PullRequestRef,
    config: ClabotConfig,
    head_sha: str,
    log: Any = logger,
) -> str:
    log.info("All contributors have a signed CLA, adding success status to the pull request and a label")
    labels = await client.list_labels(ref.issue_url)
    if any(label.get("name") == config.label for label in labels):
        log.info("The pull request already has the label %s", config.label)
    else:
        await client.add_label(ref.issue_url, config.label)
    await set_status(client, ref, head_sha, "success", config)
    return f"added label {config.label} to {ref.pull_request_url}"


async def report_unsigned(
    client: GitHubClient,
    ref: PullRequestRef,
    config: ClabotConfig,
    head_sha: str,
    non_contributors: list[str],
    log: Any = logger,
) -> str:
    users = ", ".join(f"@{name}" for name in non_contributors)
    log.info("The contributors %s have not signed the CLA, adding error status to the pull request", users)
    await client.add_comment(ref.issue_url, render_template(config.message, usersWithoutCLA=users))
    await client.delete_label(ref.issue_url, config.label)
    await set_status(client, ref, head_sha, "error", config)
    return f"CLA has not been signed by users {users}, added a comment to {ref.pull_request_url}"


async def post_recheck_comment(client: GitHubClient, ref: PullRequestRef, config: ClabotConfig | None, log: Any = logger) -> None:
    """Acknowledge a summoning comment. Failures are logged, never raised."""
    body = config.recheck_comment if config is not None else DEFAULT_CLABOT_CONFIG["recheckComment"]
    try:
        await client.add_comment(ref.issue_url, body)
    except Exception:
        log.warning("recheck_comment_failed issue=%s", ref.issue_url, exc_info=True)
