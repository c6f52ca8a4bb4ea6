"""Canonical `.clabot` configuration record."""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field

CONFIG_VERSION = "2"

DEFAULT_CLABOT_CONFIG: Mapping[str, Any] = MappingProxyType(
    {
        "label": "cla-signed",
        "statusContext": "verification/cla-signed",
        "message": (
            "Thank you for your pull request and welcome to our community. We require contributors "
            "to sign our Contributor License Agreement, and we don't seem to have the users "
            "{{usersWithoutCLA}} on file. In order for us to review and merge your code, please "
            "contact the project maintainers to get yourself added."
        ),
        "messageMissingEmail": (
            "Thank you for your pull request and welcome to our community. We require contributors "
            "to sign our Contributor License Agreement, and we could not match the commits from "
            "{{unidentifiedUsers}} to a GitHub account. Please make sure the email address used "
            "for these commits is verified on your GitHub profile."
        ),
        "recheckComment": "The cla-bot has been summoned, and re-checked this pull request!",
    }
)

LEGACY_CONTRIBUTOR_KEYS = ("contributorListGithubUrl", "contributorListUrl", "contributorWebhook")


class ContributorSourceKind(str, Enum):
    INLINE_LIST = "inline_list"
    HOSTED_FILE = "hosted_file"
    WEBHOOK = "webhook"
    PLAIN_URL = "plain_url"


class ContributorSource(BaseModel):
    """How the authoritative contributor list is resolved."""

    model_config = ConfigDict(frozen=True)

    kind: ContributorSourceKind
    value: Union[list[Any], str]


class ClabotConfig(BaseModel):
    """Defaults merged with a repository or organisation `.clabot` file."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    label: str = DEFAULT_CLABOT_CONFIG["label"]
    status_context: str = Field(default=DEFAULT_CLABOT_CONFIG["statusContext"], alias="statusContext")
    message: str = DEFAULT_CLABOT_CONFIG["message"]
    message_missing_email: str = Field(
        default=DEFAULT_CLABOT_CONFIG["messageMissingEmail"], alias="messageMissingEmail"
    )
    recheck_comment: str = Field(default=DEFAULT_CLABOT_CONFIG["recheckComment"], alias="recheckComment")
    contributors: ContributorSource
