"""Contribution verification: which committers are not known contributors.

The contributor list comes from one of four sources, chosen once when the
`.clabot` configuration is normalised:

- an inline list in the `.clabot` file
- a JSON file hosted on GitHub (any URL on api.github.com)
- a webhook queried once per committer (any other URL with a query string)
- a JSON list served from a plain URL

Matching is case-insensitive. List entries may be usernames, exact email
addresses or `@domain` suffixes; remote entries may also be objects with
`login` and/or `email`.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional
from urllib.parse import quote, urlparse

import httpx

from clabot.models.clabot_config import LEGACY_CONTRIBUTOR_KEYS, ContributorSource, ContributorSourceKind
from clabot.models.committer import Committer
from clabot.services.github_client import GitHubClient

logger = logging.getLogger(__name__)

GITHUB_API_HOST = "api.github.com"

Verifier = Callable[[list[Committer], Optional[str]], Awaitable[list[str]]]


class ConfigurationError(ValueError):
    pass


class ContributorListError(RuntimeError):
    pass


def _as_url(value: Any) -> Optional[str]:
    """Return `value` as an absolute URL, or None. A missing scheme means https."""
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if "://" not in candidate:
        candidate = "https://" + candidate
    parsed = urlparse(candidate)
    if parsed.scheme not in {"http", "https"} or any(ch.isspace() for ch in candidate):
        return None
    if "." not in (parsed.hostname or ""):
        return None
    return candidate


def normalize_contributor_source(config: Mapping[str, Any]) -> ContributorSource:
    """Resolve `contributors` (and its legacy aliases) into a tagged source."""
    contributors = config.get("contributors")
    for key in LEGACY_CONTRIBUTOR_KEYS:
        if config.get(key):
            contributors = config[key]
            break

    if isinstance(contributors, list):
        return ContributorSource(kind=ContributorSourceKind.INLINE_LIST, value=contributors)
    url = _as_url(contributors) if contributors else None
    if url:
        if GITHUB_API_HOST in url:
            kind = ContributorSourceKind.HOSTED_FILE
        elif "?" in url:
            kind = ContributorSourceKind.WEBHOOK
        else:
            kind = ContributorSourceKind.PLAIN_URL
        return ContributorSource(kind=kind, value=url)
    raise ConfigurationError("A mechanism for verifying contributors has not been specified")


def _email_domain(email: str) -> str:
    return "@" + email.split("@", 1)[1]


def _flatten_contributors(contributors: Iterable[Any]) -> list[str]:
    out: list[str] = []
    for entry in contributors:
        if isinstance(entry, str):
            out.append(entry.strip().lower())
        elif isinstance(entry, Mapping):
            for key in ("login", "email"):
                value = entry.get(key)
                if isinstance(value, str) and value.strip():
                    out.append(value.strip().lower())
    return [c for c in out if c]


def verify_against_list(contributors: Iterable[Any], committers: Iterable[Committer]) -> list[str]:
    """Return identities of committers matching none of the contributor entries."""
    entries = _flatten_contributors(contributors)
    domains = {c for c in entries if c.startswith("@")}
    emails = {c for c in entries if "@" in c and not c.startswith("@")}
    usernames = {c for c in entries if "@" not in c}

    def is_contributor(committer: Committer) -> bool:
        email = (committer.email or "").strip().lower()
        if "@" in email:
            if email in emails or _email_domain(email) in domains:
                return True
        if committer.login and committer.login.lower() in usernames:
            return True
        return False

    return [c.identity for c in committers if not is_contributor(c)]


def _parse_contributor_list(raw: Any, source: str) -> list[Any]:
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise ContributorListError(f"The contributor list at {source} is not valid JSON") from exc
    if not isinstance(raw, list):
        raise ContributorListError(f"The contributor list at {source} is not a JSON array")
    return raw


def inline_list_verifier(contributors: list[Any]) -> Verifier:
    async def verify(committers: list[Committer], token: Optional[str] = None) -> list[str]:
        return verify_against_list(contributors, committers)

    return verify


def hosted_file_verifier(url: str, *, timeout: float = 20.0) -> Verifier:
    async def verify(committers: list[Committer], token: Optional[str] = None) -> list[str]:
        client = GitHubClient(token=token, timeout=timeout)
        metadata = await client.get_json(url)
        content = await client.get_file(metadata)
        contributors = _parse_contributor_list(content, url)
        return verify_against_list(contributors, committers)

    return verify


def plain_url_verifier(url: str, *, timeout: float = 20.0) -> Verifier:
    async def verify(committers: list[Committer], token: Optional[str] = None) -> list[str]:
        async with httpx.AsyncClient(timeout=timeout) as client:
            r = await client.get(url, headers={"Accept": "application/json"})
        r.raise_for_status()
        contributors = _parse_contributor_list(r.text, url)
        return verify_against_list(contributors, committers)

    return verify


def webhook_verifier(url: str, *, timeout: float = 20.0) -> Verifier:
    """Ask the webhook about each committer; the identity is appended to the URL."""

    async def verify(committers: list[Committer], token: Optional[str] = None) -> list[str]:
        async with httpx.AsyncClient(timeout=timeout) as client:

            async def lookup(committer: Committer) -> tuple[Committer, bool]:
                r = await client.get(url + quote(committer.identity, safe="@"), headers={"Accept": "application/json"})
                r.raise_for_status()
                body = r.json()
                return committer, isinstance(body, dict) and body.get("isContributor") is True

            answers = await asyncio.gather(*(lookup(c) for c in committers), return_exceptions=True)
        for answer in answers:
            if isinstance(answer, BaseException):
                raise answer
        return [committer.identity for committer, is_contributor in answers if not is_contributor]

    return verify


def build_verifier(config: Mapping[str, Any] | ContributorSource, *, timeout: float = 20.0) -> Verifier:
    """Return the verifier for a configuration. Raises ConfigurationError if none is specified."""
    source = config if isinstance(config, ContributorSource) else normalize_contributor_source(config)
    if source.kind == ContributorSourceKind.INLINE_LIST:
        logger.info("contributor_source kind=inline_list entries=%s", len(source.value))
        return inline_list_verifier(list(source.value))
    if source.kind == ContributorSourceKind.HOSTED_FILE:
        logger.info("contributor_source kind=hosted_file url=%s", source.value)
        return hosted_file_verifier(source.value, timeout=timeout)
    if source.kind == ContributorSourceKind.WEBHOOK:
        logger.info("contributor_source kind=webhook url=%s", source.value.split("?", 1)[0])
        return webhook_verifier(source.value, timeout=timeout)
    logger.info("contributor_source kind=plain_url url=%s", source.value)
    return plain_url_verifier(source.value, timeout=timeout)
