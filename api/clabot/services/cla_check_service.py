"""Run one CLA check for a pull request event.

Stages run in order and any failure skips the rest: token, `.clabot`
config, commits, contributor verification, reporting. Failures are logged
and reported as a `failure` commit status; nothing is raised to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional
from uuid import uuid4

from clabot.config import BotSettings
from clabot.models.check import CheckOutcome, CheckResult
from clabot.models.clabot_config import ClabotConfig
from clabot.models.committer import Committer
from clabot.services import result_reporter
from clabot.services.clabot_config_service import load_config
from clabot.services.contribution_verifier import build_verifier
from clabot.services.event_dispatcher import PullRequestRef, ignore_reason, pull_request_ref
from clabot.services.github_client import GitHubClient
from clabot.services.installation_token import resolve_access_token

logger = logging.getLogger(__name__)

TokenResolver = Callable[[dict, BotSettings], Awaitable[Optional[str]]]


class CheckLogAdapter(logging.LoggerAdapter):
    """Prefix every record with the check's correlation key."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        return f"check_id={self.extra['check_id']} {msg}", kwargs


def partition_commits(commits: list[dict[str, Any]]) -> tuple[list[Committer], list[str]]:
    """Split commits into sorted unique committers and sorted unresolved author names."""
    unresolved: set[str] = set()
    by_login: dict[str, Committer] = {}
    for commit in commits:
        if not (commit.get("author") or {}).get("login"):
            name = ((commit.get("commit") or {}).get("author") or {}).get("name")
            unresolved.add(str(name or "unknown"))
            continue
        committer = Committer.from_commit(commit)
        by_login.setdefault(committer.login, committer)
    return [by_login[login] for login in sorted(by_login)], sorted(unresolved)


async def _report_failure(
    client: GitHubClient | None,
    ref: PullRequestRef,
    head_sha: str | None,
    config: ClabotConfig | None,
    log: Any,
) -> None:
    if client is None or not head_sha:
        log.warning("cla_check_failure_status_skipped reason=no_client_or_head_sha")
        return
    try:
        await result_reporter.set_status(client, ref, head_sha, "failure", config)
    except Exception:
        log.warning("cla_check_failure_status_failed sha=%s", head_sha, exc_info=True)


async def run_check(
    payload: dict[str, Any],
    settings: BotSettings,
    *,
    client_factory: Callable[..., GitHubClient] = GitHubClient,
    token_resolver: TokenResolver = resolve_access_token,
) -> CheckResult:
    reason = ignore_reason(payload, settings)
    if reason:
        logger.debug("cla_check_ignored action=%s reason=%s", payload.get("action"), reason)
        return CheckResult(outcome=CheckOutcome.IGNORED, message=reason)

    try:
        ref = pull_request_ref(payload)
        org = ref.owner
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("cla_check_malformed_payload action=%s error=%s", payload.get("action"), exc)
        return CheckResult(outcome=CheckOutcome.FAILED, message=f"malformed pull request event: {exc}")
    log = CheckLogAdapter(logger, {"check_id": f"{org}-{uuid4()}"})
    if ref.via_comment:
        log.info("The cla-bot has been summoned by a comment")
    log.info("cla_check_started pull_request=%s", ref.pull_request_url)

    client: GitHubClient | None = None
    config: ClabotConfig | None = None
    head_sha = ref.head_sha
    try:
        mode = "integration" if settings.integration_enabled else "webhook"
        log.info("Obtaining access token mode=%s", mode)
        token = await token_resolver(payload, settings)
        client = client_factory(token=token, base_url=settings.github_api_url, timeout=settings.timeout_seconds)

        config = await load_config(client, ref.owner, ref.repo, log)

        log.info("Obtaining the list of commits for the pull request")
        commits = await client.list_pull_request_commits(ref.pull_request_url)
        if not commits:
            raise RuntimeError(f"no commits found for {ref.pull_request_url}")
        if not head_sha:
            head_sha = commits[-1]["sha"]
        committers, unresolved = partition_commits(commits)
        log.info("Total Commits: %s, checking CLA status for committers", len(commits))

        if unresolved:
            outcome = CheckOutcome.UNRESOLVED
            message = await result_reporter.report_unresolved(client, ref, config, head_sha, unresolved, log)
        else:
            verifier = build_verifier(config.contributors, timeout=settings.timeout_seconds)
            non_contributors = await verifier(committers, token)
            if non_contributors:
                outcome = CheckOutcome.UNSIGNED
                message = await result_reporter.report_unsigned(client, ref, config, head_sha, non_contributors, log)
            else:
                outcome = CheckOutcome.SIGNED
                message = await result_reporter.report_signed(client, ref, config, head_sha, log)
    except Exception as exc:
        log.exception("cla_check_failed pull_request=%s", ref.pull_request_url)
        await _report_failure(client, ref, head_sha, config, log)
        return CheckResult(outcome=CheckOutcome.FAILED, message=f"{exc.__class__.__name__}: {exc}")

    if ref.via_comment:
        await result_reporter.post_recheck_comment(client, ref, config, log)
    log.info("cla_check_finished outcome=%s", outcome.value)
    return CheckResult(outcome=outcome, message=message)
