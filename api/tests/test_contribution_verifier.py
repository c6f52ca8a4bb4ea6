"""Tests for contributor verification across the four contributor sources.

Remote sources are mocked with respx; no real network calls are made.
"""

import base64
import json

import httpx
import pytest
import respx
from httpx import Response

from clabot.models.clabot_config import ContributorSource, ContributorSourceKind
from clabot.models.committer import Committer
from clabot.services.contribution_verifier import (
    ConfigurationError,
    ContributorListError,
    build_verifier,
    normalize_contributor_source,
    verify_against_list,
)


def _committers(*logins: str) -> list[Committer]:
    return [Committer(login=login, email=f"{login.lower()}@users.noreply.github.com") for login in logins]


# --- source normalisation ---


def test_inline_list_is_recognised() -> None:
    source = normalize_contributor_source({"contributors": ["alice"]})
    assert source == ContributorSource(kind=ContributorSourceKind.INLINE_LIST, value=["alice"])


@pytest.mark.parametrize(
    ("url", "kind"),
    [
        ("https://api.github.com/repos/acme/cla/contents/list.json", ContributorSourceKind.HOSTED_FILE),
        ("https://cla.example.com/check?user=", ContributorSourceKind.WEBHOOK),
        ("https://cla.example.com/contributors.json", ContributorSourceKind.PLAIN_URL),
    ],
)
def test_url_sources_are_classified(url: str, kind: ContributorSourceKind) -> None:
    assert normalize_contributor_source({"contributors": url}).kind == kind


def test_url_without_scheme_defaults_to_https() -> None:
    source = normalize_contributor_source({"contributors": "example.com/cla.json"})
    assert source.kind == ContributorSourceKind.PLAIN_URL
    assert source.value == "https://example.com/cla.json"

    source = normalize_contributor_source({"contributorWebhook": "cla.example.com/check?user="})
    assert source.kind == ContributorSourceKind.WEBHOOK
    assert source.value == "https://cla.example.com/check?user="


def test_legacy_keys_override_contributors_in_priority_order() -> None:
    source = normalize_contributor_source(
        {
            "contributors": ["alice"],
            "contributorWebhook": "https://cla.example.com/check?user=",
            "contributorListUrl": "https://cla.example.com/list.json",
        }
    )
    assert source.kind == ContributorSourceKind.PLAIN_URL
    assert source.value == "https://cla.example.com/list.json"

    source = normalize_contributor_source(
        {
            "contributorListUrl": "https://cla.example.com/list.json",
            "contributorListGithubUrl": "https://api.github.com/repos/acme/cla/contents/list.json",
        }
    )
    assert source.kind == ContributorSourceKind.HOSTED_FILE


@pytest.mark.parametrize("config", [{}, {"contributors": ""}, {"contributors": "not a url"}, {"label": "x"}])
def test_missing_mechanism_fails_at_construction(config: dict) -> None:
    with pytest.raises(ConfigurationError, match="has not been specified"):
        build_verifier(config)


# --- inline list matching ---


@pytest.mark.asyncio
async def test_usernames_match_case_insensitively() -> None:
    verifier = build_verifier({"contributors": ["bob"]})
    assert await verifier(_committers("alice", "BOB"), None) == ["alice"]


@pytest.mark.asyncio
async def test_email_domain_entry_verifies_committer() -> None:
    verifier = build_verifier({"contributors": ["@example.com"]})
    assert await verifier([Committer(login="foo", email="foo@example.com")], None) == []


def test_domain_and_exact_email_are_case_insensitive() -> None:
    committers = [
        Committer(login="one", email="One@Example.COM"),
        Committer(login="two", email="TWO@corp.io"),
        Committer(login="three", email="three@elsewhere.org"),
    ]
    assert verify_against_list(["@EXAMPLE.com", "two@CORP.io"], committers) == ["three"]


def test_exact_email_does_not_imply_domain() -> None:
    committers = [Committer(login="mallory", email="mallory@corp.io")]
    assert verify_against_list(["alice@corp.io"], committers) == ["mallory"]


def test_structured_records_match_login_or_email() -> None:
    committers = [
        Committer(login="alice", email="a@x.org"),
        Committer(login="bob", email="bob@corp.io"),
        Committer(login="carol", email="c@x.org"),
    ]
    contributors = [{"login": "Alice"}, {"email": "BOB@corp.io"}, {"name": "no identity"}]
    assert verify_against_list(contributors, committers) == ["carol"]


def test_committer_without_login_or_email_is_unverified() -> None:
    assert verify_against_list(["@example.com", "alice"], [Committer()]) == [""]
    assert verify_against_list(["alice"], [Committer(email="ghost@example.com")]) == ["ghost@example.com"]


# --- remote files ---


@pytest.mark.asyncio
@respx.mock
async def test_hosted_file_with_inline_content() -> None:
    url = "https://api.github.com/repos/acme/cla/contents/contributors.json"
    content = base64.b64encode(json.dumps(["alice", "@acme.io"]).encode()).decode()
    route = respx.get(url).mock(
        return_value=Response(200, json={"type": "file", "encoding": "base64", "content": content})
    )

    verifier = build_verifier({"contributors": url})
    committers = [Committer(login="alice"), Committer(login="bob", email="bob@acme.io"), Committer(login="eve")]
    assert await verifier(committers, "tok") == ["eve"]
    assert route.calls[0].request.headers["authorization"] == "Bearer tok"


@pytest.mark.asyncio
@respx.mock
async def test_hosted_file_via_download_url() -> None:
    url = "https://api.github.com/repos/acme/cla/contents/contributors.json"
    raw = "https://raw.githubusercontent.com/acme/cla/main/contributors.json"
    respx.get(url).mock(return_value=Response(200, json={"type": "file", "download_url": raw}))
    respx.get(raw).mock(return_value=Response(200, text='["Alice"]'))

    verifier = build_verifier({"contributorListGithubUrl": url})
    assert await verifier(_committers("alice", "bob"), "tok") == ["bob"]


@pytest.mark.asyncio
@respx.mock
async def test_hosted_file_that_is_not_json_fails() -> None:
    url = "https://api.github.com/repos/acme/cla/contents/contributors.json"
    raw = "https://raw.githubusercontent.com/acme/cla/main/contributors.json"
    respx.get(url).mock(return_value=Response(200, json={"type": "file", "download_url": raw}))
    respx.get(raw).mock(return_value=Response(200, text="alice, bob"))

    verifier = build_verifier({"contributors": url})
    with pytest.raises(ContributorListError, match="not valid JSON"):
        await verifier(_committers("alice"), "tok")


@pytest.mark.asyncio
@respx.mock
async def test_plain_url_list() -> None:
    respx.get("https://cla.example.com/contributors.json").mock(
        return_value=Response(200, json=["alice", {"login": "bob"}])
    )
    verifier = build_verifier({"contributors": "https://cla.example.com/contributors.json"})
    assert await verifier(_committers("alice", "bob", "carol"), None) == ["carol"]


@pytest.mark.asyncio
@respx.mock
async def test_plain_url_must_be_an_array() -> None:
    respx.get("https://cla.example.com/contributors.json").mock(
        return_value=Response(200, json={"contributors": ["alice"]})
    )
    verifier = build_verifier({"contributors": "https://cla.example.com/contributors.json"})
    with pytest.raises(ContributorListError, match="not a JSON array"):
        await verifier(_committers("alice"), None)


@pytest.mark.asyncio
@respx.mock
async def test_plain_url_missing_resource_propagates() -> None:
    respx.get("https://cla.example.com/contributors.json").mock(return_value=Response(404))
    verifier = build_verifier({"contributors": "https://cla.example.com/contributors.json"})
    with pytest.raises(httpx.HTTPStatusError):
        await verifier(_committers("alice"), None)


# --- webhook ---


@pytest.mark.asyncio
@respx.mock
async def test_webhook_appends_identity_and_collects_answers() -> None:
    base = "https://cla.example.com/check?user="
    respx.get(base + "alice").mock(return_value=Response(200, json={"isContributor": True}))
    respx.get(base + "bob").mock(return_value=Response(200, json={"isContributor": False}))
    respx.get(base + "carol").mock(return_value=Response(200, json={}))

    verifier = build_verifier({"contributorWebhook": base})
    assert await verifier(_committers("alice", "bob", "carol"), None) == ["bob", "carol"]


@pytest.mark.asyncio
@respx.mock
async def test_webhook_single_failed_lookup_fails_whole_call() -> None:
    base = "https://cla.example.com/check?user="
    respx.get(base + "alice").mock(return_value=Response(200, json={"isContributor": True}))
    respx.get(base + "bob").mock(side_effect=httpx.ConnectError("connection refused"))
    respx.get(base + "carol").mock(return_value=Response(200, json={"isContributor": True}))

    verifier = build_verifier({"contributors": base})
    with pytest.raises(httpx.ConnectError):
        await verifier(_committers("alice", "bob", "carol"), None)


@pytest.mark.asyncio
async def test_empty_inline_list_verifies_nobody() -> None:
    verifier = build_verifier({"contributors": []})
    assert await verifier(_committers("alice", "bob"), None) == ["alice", "bob"]
