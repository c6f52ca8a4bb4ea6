"""Committer identities derived from pull request commits."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class Committer(BaseModel):
    """Author of at least one commit on the pull request under review."""

    model_config = ConfigDict(frozen=True)

    login: Optional[str] = None
    email: Optional[str] = None

    @property
    def identity(self) -> str:
        return self.login or self.email or ""

    @classmethod
    def from_commit(cls, commit: dict[str, Any]) -> "Committer":
        author = commit.get("author") or {}
        git_author = (commit.get("commit") or {}).get("author") or {}
        login = author.get("login")
        return cls(
            login=login.lower() if login else None,
            email=git_author.get("email") or None,
        )
