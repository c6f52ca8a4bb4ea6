"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from clabot.config import BotSettings  # noqa: E402


@pytest.fixture
def settings() -> BotSettings:
    return BotSettings(bot_name="clabot", github_access_token="test-token")


class FakeGitHub:
    """In-memory stand-in for GitHubClient recording every write."""

    def __init__(
        self,
        *,
        clabot: Any = None,
        org_clabot: Any = None,
        commits: list[dict] | None = None,
        labels: list[dict] | None = None,
        fail_on: str | None = None,
    ) -> None:
        self.clabot = clabot
        self.org_clabot = org_clabot
        self.commits = commits or []
        self.labels = labels if labels is not None else []
        self.fail_on = fail_on
        self.calls: list[tuple] = []
        self.client_kwargs: dict[str, Any] = {}

    def __call__(self, **kwargs: Any) -> "FakeGitHub":
        self.client_kwargs = kwargs
        return self

    def _maybe_fail(self, name: str) -> None:
        if self.fail_on == name:
            raise RuntimeError(f"{name} exploded")

    @property
    def statuses(self) -> list[str]:
        return [call[1] for call in self.calls if call[0] == "status"]

    @property
    def comments(self) -> list[str]:
        return [call[1] for call in self.calls if call[0] == "comment"]

    async def get_org_config(self, org: str) -> dict:
        from clabot.services.github_client import GitHubApiError

        self.calls.append(("org_config", org))
        if self.org_clabot is None:
            raise GitHubApiError(404, f"/repos/{org}/clabot-config/contents/.clabot", "Not Found")
        return {"download_url": f"https://raw.githubusercontent.com/{org}/clabot-config/main/.clabot", "scope": "org"}

    async def get_project_config_url(self, owner: str, repo: str) -> dict:
        self._maybe_fail("project_config")
        self.calls.append(("project_config", owner, repo))
        return {"download_url": f"https://raw.githubusercontent.com/{owner}/{repo}/main/.clabot", "scope": "project"}

    async def get_file(self, metadata: dict) -> str:
        import json

        source = self.org_clabot if metadata.get("scope") == "org" else self.clabot
        return source if isinstance(source, str) else json.dumps(source)

    async def list_pull_request_commits(self, pull_request_url: str) -> list[dict]:
        self._maybe_fail("commits")
        self.calls.append(("commits", pull_request_url))
        return self.commits

    async def list_labels(self, issue_url: str) -> list[dict]:
        self.calls.append(("list_labels", issue_url))
        return list(self.labels)

    async def add_label(self, issue_url: str, label: str) -> list[dict]:
        self.calls.append(("add_label", label))
        self.labels.append({"name": label})
        return self.labels

    async def delete_label(self, issue_url: str, label: str) -> bool:
        self.calls.append(("delete_label", label))
        before = len(self.labels)
        self.labels = [item for item in self.labels if item.get("name") != label]
        return len(self.labels) != before

    async def add_comment(self, issue_url: str, body: str) -> dict:
        self._maybe_fail("comment")
        self.calls.append(("comment", body))
        return {"body": body}

    async def set_commit_status(self, owner: str, repo: str, sha: str, state: str, **kwargs: Any) -> dict:
        self.calls.append(("status", state, sha))
        return {"state": state}


@pytest.fixture
def fake_github_factory():
    return FakeGitHub


def make_commit(sha: str, login: str | None, email: str = "dev@users.noreply.github.com", name: str = "Dev") -> dict:
    return {
        "sha": sha,
        "author": {"login": login} if login is not None else None,
        "commit": {"author": {"name": name, "email": email}},
    }


def pull_request_event(action: str = "opened", head_sha: str = "headsha") -> dict:
    return {
        "action": action,
        "pull_request": {
            "url": "https://api.github.com/repos/acme/widgets/pulls/7",
            "issue_url": "https://api.github.com/repos/acme/widgets/issues/7",
            "head": {"sha": head_sha},
        },
        "installation": {"id": 42},
    }


def comment_event(body: str, login: str = "alice") -> dict:
    return {
        "action": "created",
        "issue": {
            "url": "https://api.github.com/repos/acme/widgets/issues/7",
            "pull_request": {"url": "https://api.github.com/repos/acme/widgets/pulls/7"},
        },
        "comment": {"body": body, "user": {"login": login}},
        "installation": {"id": 42},
    }
