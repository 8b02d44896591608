"""
Minimal GitHub REST client for the activity API.

One request per call, no retries: a failed call raises GitHubAPIError and the
route layer decides what the caller sees.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import requests

import config

logger = logging.getLogger(__name__)


# -----------------------------
# Errors
# -----------------------------
class GitHubAPIError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def not_found(self) -> bool:
        return self.status_code == 404 or "not found" in str(self).lower()

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429 or "rate limit" in str(self).lower()

    @property
    def forbidden(self) -> bool:
        return self.status_code == 403 and not self.rate_limited


# -----------------------------
# HTTP helpers
# -----------------------------
def _headers() -> Dict[str, str]:
    h = {
        "Accept": "application/vnd.github+json",
        "User-Agent": "repo-activity-api",
        "X-GitHub-Api-Version": config.GITHUB_API_VERSION,
    }
    if config.GITHUB_TOKEN:
        h["Authorization"] = f"Bearer {config.GITHUB_TOKEN}"
    return h


def _request(path: str, *, params: Optional[dict] = None) -> requests.Response:
    url = path if path.startswith("http") else f"{config.GITHUB_API_BASE}{path}"
    try:
        resp = requests.get(url, headers=_headers(), params=params, timeout=config.GITHUB_REQUEST_TIMEOUT)
    except requests.RequestException as e:
        logger.warning("GitHub request to %s failed: %s", url, e)
        raise GitHubAPIError(f"GitHub request failed: {e}") from e

    if resp.status_code >= 400:
        body = (resp.text or "")[:600]
        status = resp.status_code
        if status == 403 and resp.headers.get("X-RateLimit-Remaining") == "0" and "rate limit" not in body.lower():
            body = f"API rate limit exceeded. {body}"
        logger.warning("GitHub REST error %s for %s", status, url)
        raise GitHubAPIError(f"GitHub REST error {status}: {body}", status_code=status)
    return resp


def _get_json(path: str, *, params: Optional[dict] = None) -> Any:
    return _request(path, params=params).json()


def _last_page(resp: requests.Response) -> Optional[int]:
    """
    Page number of the rel="last" Link header, if the listing is paginated.
    """
    last = (resp.links or {}).get("last") or {}
    url = last.get("url")
    if not url:
        return None
    pages = parse_qs(urlparse(url).query).get("page") or []
    if not pages or not pages[0].isdigit():
        return None
    return int(pages[0])


# -----------------------------
# Endpoints
# -----------------------------
def get_repo(owner: str, name: str) -> Dict[str, Any]:
    return _get_json(f"/repos/{owner}/{name}")


def get_user(username: str) -> Dict[str, Any]:
    return _get_json(f"/users/{username}")


def list_commits(owner: str, name: str, per_page: int = 100) -> List[Dict[str, Any]]:
    """
    Most recent commits on the default branch (first page only). Empty repos give [].
    """
    try:
        data = _get_json(f"/repos/{owner}/{name}/commits", params={"per_page": per_page})
    except GitHubAPIError as e:
        # GitHub answers 409 Conflict for a repository without any commits
        if e.status_code == 409:
            return []
        raise
    return data if isinstance(data, list) else []


def count_commits(owner: str, name: str) -> int:
    """
    Total commits on the default branch, read from the pagination of a one-per-page listing.
    """
    try:
        resp = _request(f"/repos/{owner}/{name}/commits", params={"per_page": 1})
    except GitHubAPIError as e:
        if e.status_code == 409:
            return 0
        raise
    last = _last_page(resp)
    if last is not None:
        return last
    data = resp.json()
    return len(data) if isinstance(data, list) else 0


def count_prs(query: str) -> int:
    """
    Number of pull requests matching a search qualifier string such as "repo:o/n author:x".
    """
    data = _get_json("/search/issues", params={"q": f"{query} type:pr", "per_page": 1})
    return int((data or {}).get("total_count") or 0)


def list_user_repos(
    username: str,
    *,
    per_page: int = 100,
    repo_type: str = "owner",
    sort: str = "updated",
) -> List[Dict[str, Any]]:
    data = _get_json(
        f"/users/{username}/repos",
        params={"per_page": per_page, "type": repo_type, "sort": sort},
    )
    return data if isinstance(data, list) else []
