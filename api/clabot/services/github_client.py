"""GitHub API client for the CLA check.

REST wrapper with:
- bearer token auth (installation or personal access token)
- pull request commit pagination
- label, comment and commit status writes
"""

from __future__ import annotations

import base64
from typing import Any, Optional
from urllib.parse import quote

import httpx

from clabot.config import GITHUB_API

ORG_CONFIG_REPO = "clabot-config"
CONFIG_FILE_NAME = ".clabot"

_STATUS_DESCRIPTIONS = {
    "pending": "Checking whether the CLA has been signed",
    "success": "All contributors have signed the CLA",
    "error": "One or more contributors need to sign the CLA",
    "failure": "The CLA check failed to complete",
}


class GitHubApiError(RuntimeError):
    def __init__(self, status_code: int, url: str, body: str = "") -> None:
        super().__init__(f"GitHub API error {status_code} for {url}: {body[:200]}")
        self.status_code = status_code
        self.url = url


def repo_from_api_url(url: str) -> tuple[str, str]:
    """Return (owner, repo) for an api.github.com/repos/<owner>/<repo>/... URL."""
    parts = url.split("/")
    try:
        index = parts.index("repos")
        return parts[index + 1], parts[index + 2]
    except (ValueError, IndexError):
        raise ValueError(f"not a repository API URL: {url}") from None


class GitHubClient:
    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = GITHUB_API,
        user_agent: str = "cla-bot/1.0",
        timeout: float = 20.0,
    ) -> None:
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": user_agent,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            self._headers["Authorization"] = f"Bearer {self._token}"

    def _url(self, path: str) -> str:
        return path if path.startswith("http") else f"{self._base_url}{path}"

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        url = self._url(path)
        h = dict(self._headers)
        if headers:
            h.update(headers)
        async with httpx.AsyncClient(timeout=self._timeout, headers=h) as client:
            r = await client.request(method, url, json=json_body, params=params)
        if r.status_code >= 400:
            raise GitHubApiError(r.status_code, url, r.text)
        return r

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET JSON for a path or full URL."""
        r = await self._request("GET", path, params=params)
        return r.json()

    async def get_org_config(self, org: str) -> dict:
        """Metadata of the organisation-wide `.clabot` file."""
        return await self.get_json(f"/repos/{org}/{ORG_CONFIG_REPO}/contents/{CONFIG_FILE_NAME}")

    async def get_project_config_url(self, owner: str, repo: str) -> dict:
        """Metadata of the repository `.clabot` file."""
        return await self.get_json(f"/repos/{owner}/{repo}/contents/{CONFIG_FILE_NAME}")

    async def get_file(self, metadata: Any) -> str:
        """Return the decoded text of a file given its contents-API metadata.

        A directory listing resolves to its first file entry. Inline base64
        content is used when present, otherwise the file is downloaded.
        """
        if isinstance(metadata, list):
            files = [item for item in metadata if isinstance(item, dict) and item.get("type") == "file"]
            if not files:
                raise GitHubApiError(404, "directory listing", "no file entries")
            metadata = files[0]
        if not isinstance(metadata, dict):
            raise GitHubApiError(404, "file metadata", "unexpected metadata payload")

        content = metadata.get("content")
        if content and metadata.get("encoding") == "base64":
            return base64.b64decode(content).decode("utf-8")

        download_url = metadata.get("download_url")
        if not download_url:
            raise GitHubApiError(404, str(metadata.get("url") or "file metadata"), "no download_url")
        r = await self._request("GET", download_url, headers={"Accept": "application/vnd.github.raw"})
        return r.text

    async def list_pull_request_commits(
        self,
        pull_request_url: str,
        per_page: int = 100,
        max_pages: int = 3,
    ) -> list[dict]:
        """List the commits of a pull request, oldest first. GitHub caps this at 250."""
        out: list[dict] = []
        for page in range(1, max_pages + 1):
            data = await self.get_json(
                f"{pull_request_url}/commits", params={"per_page": per_page, "page": page}
            )
            if not isinstance(data, list):
                break
            out.extend(data)
            if len(data) < per_page:
                break
        return out

    async def list_labels(self, issue_url: str) -> list[dict]:
        data = await self.get_json(f"{issue_url}/labels")
        return data if isinstance(data, list) else []

    async def add_label(self, issue_url: str, label: str) -> list[dict]:
        r = await self._request("POST", f"{issue_url}/labels", json_body={"labels": [label]})
        return r.json()

    async def delete_label(self, issue_url: str, label: str) -> bool:
        """Remove a label from the issue. Returns False when it was not applied."""
        try:
            await self._request("DELETE", f"{issue_url}/labels/{quote(label, safe='')}")
        except GitHubApiError as exc:
            if exc.status_code == 404:
                return False
            raise
        return True

    async def add_comment(self, issue_url: str, body: str) -> dict:
        r = await self._request("POST", f"{issue_url}/comments", json_body={"body": body})
        return r.json()

    async def set_commit_status(
        self,
        owner: str,
        repo: str,
        sha: str,
        state: str,
        *,
        context: str = "verification/cla-signed",
        description: str | None = None,
        target_url: str | None = None,
    ) -> dict:
        if state not in _STATUS_DESCRIPTIONS:
            raise ValueError(f"unsupported commit status state: {state}")
        payload: dict[str, Any] = {
            "state": state,
            "context": context,
            "description": description or _STATUS_DESCRIPTIONS[state],
        }
        if target_url:
            payload["target_url"] = target_url
        r = await self._request("POST", f"/repos/{owner}/{repo}/statuses/{sha}", json_body=payload)
        return r.json()
