"""Locate, fetch and normalise the `.clabot` configuration for a pull request."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from clabot.models.clabot_config import DEFAULT_CLABOT_CONFIG, ClabotConfig
from clabot.services.contribution_verifier import ConfigurationError, normalize_contributor_source
from clabot.services.github_client import GitHubClient

logger = logging.getLogger(__name__)


def merge_config(resolved: Mapping[str, Any], defaults: Mapping[str, Any] = DEFAULT_CLABOT_CONFIG) -> dict[str, Any]:
    """Shallow merge: keys from the resolved file replace the defaults."""
    return {**defaults, **resolved}


def normalize_config(raw: Mapping[str, Any]) -> ClabotConfig:
    merged = merge_config(raw)
    source = normalize_contributor_source(merged)
    return ClabotConfig(**{**merged, "contributors": source})


def parse_config_text(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise ConfigurationError("The .clabot file is not valid JSON") from exc
    if not isinstance(data, dict):
        raise ConfigurationError("The .clabot file must contain a JSON object")
    return data


async def resolve_config_metadata(client: GitHubClient, owner: str, repo: str, log: Any = logger) -> Any:
    """Organisation-level `.clabot` metadata if present, else the repository's own."""
    log.info("Attempting to obtain organisation level .clabot file URL")
    try:
        metadata = await client.get_org_config(owner)
    except Exception as exc:
        log.info("Organisation configuration not found (%s), resolving .clabot URL at project level", exc)
        return await client.get_project_config_url(owner, repo)
    log.info("Organisation configuration found!")
    return metadata


async def load_config(client: GitHubClient, owner: str, repo: str, log: Any = logger) -> ClabotConfig:
    metadata = await resolve_config_metadata(client, owner, repo, log)
    if isinstance(metadata, dict) and metadata.get("download_url"):
        log.info("Obtaining .clabot configuration file from %s", str(metadata["download_url"]).split("?")[0])
    text = await client.get_file(metadata)
    return normalize_config(parse_config_text(text))
