"""
Repository lookups and payload assembly for the dashboard and the widget.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import activity
import config
import github_client
from github_client import GitHubAPIError

logger = logging.getLogger(__name__)

_URL_PREFIX_RE = re.compile(r"^https?://(www\.)?github\.com/", re.IGNORECASE)


class RepoInfoError(Exception):
    """A request that cannot be answered, with the HTTP status to report."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


# -----------------------------
# Utility helpers
# -----------------------------
def _now_utc() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _dateparse(s: Optional[str]) -> Optional[dt.datetime]:
    if not s:
        return None
    try:
        return dt.datetime.fromisoformat(s.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None


def _updated_ts(repo: Dict[str, Any]) -> float:
    updated = _dateparse(repo.get("updated_at"))
    return updated.timestamp() if updated else 0.0


# -----------------------------
# Input handling
# -----------------------------
def parse_repo_input(
    text: Optional[str],
    owner: Optional[str] = None,
    name: Optional[str] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """
    Accepts "owner/repo", a github.com URL (optionally ending in .git) or a bare username.
    Explicit owner/name are used when `text` is empty; a bare username clears `name`.
    """
    text = (text or "").strip()
    if not text:
        return (owner or None), (name or None)

    if "/" not in text:
        return text, None

    cleaned = _URL_PREFIX_RE.sub("", text)
    if cleaned.endswith(".git"):
        cleaned = cleaned[: -len(".git")]
    parts = cleaned.split("/")
    if len(parts) >= 2 and parts[0] and parts[1]:
        return parts[0], parts[1]
    if parts[0]:
        return parts[0], None
    return (owner or None), (name or None)


def pick_best_repo(repos: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Most-starred non-fork repo (ties go to the most recently updated); if every
    repo is a fork, the most recently updated one.
    """
    if not repos:
        return None
    own = [r for r in repos if not r.get("fork")]
    if own:
        return sorted(own, key=lambda r: (int(r.get("stargazers_count") or 0), _updated_ts(r)), reverse=True)[0]
    return sorted(repos, key=_updated_ts, reverse=True)[0]


def resolve_repo_name(username: str) -> str:
    try:
        repos = github_client.list_user_repos(username, per_page=100, repo_type="owner", sort="updated")
    except GitHubAPIError as e:
        logger.info("Repository lookup for %s failed: %s", username, e)
        raise RepoInfoError(f"User {username} not found or has no public repositories", 404) from e

    best = pick_best_repo(repos)
    if not best:
        raise RepoInfoError(f"No public repositories found for user {username}", 404)
    return best["name"]


# -----------------------------
# User repositories
# -----------------------------
def format_user_repos(repos: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Public repos only, non-forks first, then by stars, then by most recent update.
    """
    formatted = [
        {
            "name": r.get("name"),
            "description": r.get("description") or "",
            "stars": int(r.get("stargazers_count") or 0),
            "language": r.get("language") or "Unknown",
            "updated_at": r.get("updated_at"),
            "fork": bool(r.get("fork")),
        }
        for r in repos
        if not r.get("private")
    ]
    return sorted(formatted, key=lambda r: (r["fork"], -r["stars"], -_updated_ts(r)))


def fetch_user_repos(username: str) -> Dict[str, Any]:
    repos = github_client.list_user_repos(username, per_page=config.USER_REPOS_LIMIT, repo_type="all", sort="updated")
    return {"repos": format_user_repos(repos), "owner": username}


# -----------------------------
# Commits
# -----------------------------
def commit_events(commits: List[Dict[str, Any]]) -> List[activity.CommitEvent]:
    """
    Author dates of listed commits; entries without a parseable date are skipped.
    """
    events: List[activity.CommitEvent] = []
    for c in commits:
        ts = _dateparse((((c or {}).get("commit") or {}).get("author") or {}).get("date"))
        if ts:
            events.append(activity.CommitEvent(timestamp=ts))
    return events


def top_contributors(commits: List[Dict[str, Any]], limit: int = 5) -> List[Dict[str, Any]]:
    counts: Dict[str, int] = {}
    for c in commits:
        login = ((c or {}).get("author") or {}).get("login")
        if login:
            counts[login] = counts.get(login, 0) + 1
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    return [{"login": login, "commits": n} for login, n in ranked]


def _with_pr_counts(owner: str, name: str, contributors: List[Dict[str, Any]], lookups: int) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for i, contributor in enumerate(contributors):
        prs = 0
        if i < lookups:
            try:
                prs = github_client.count_prs(f"repo:{owner}/{name} author:{contributor['login']}")
            except GitHubAPIError as e:
                logger.debug("PR count for %s unavailable: %s", contributor["login"], e)
        out.append({**contributor, "prs": prs})
    return out


# -----------------------------
# Payloads
# -----------------------------
def build_repo_info(owner: str, name: str, now: Optional[dt.datetime] = None) -> Dict[str, Any]:
    now = now or _now_utc()

    repo = github_client.get_repo(owner, name)
    total_commits = github_client.count_commits(owner, name)
    total_prs = github_client.count_prs(f"repo:{owner}/{name}")
    owner_data = github_client.get_user(owner)
    recent = github_client.list_commits(owner, name, per_page=config.RECENT_COMMITS_LIMIT)

    created_at = _dateparse(repo.get("created_at")) or now
    buckets = activity.bucket_commits(
        commit_events(recent),
        repo_created_at=created_at,
        now=now,
        lookback=dt.timedelta(days=config.ACTIVITY_LOOKBACK_DAYS),
        num_buckets=config.ACTIVITY_BUCKETS,
    )

    contributors = top_contributors(recent, limit=config.TOP_CONTRIBUTORS)
    logger.info("Built activity for %s/%s from %d recent commits", owner, name, len(recent))

    return {
        "repo": {
            "owner": (repo.get("owner") or {}).get("login") or "",
            "name": repo.get("name"),
            "description": repo.get("description") or "",
            "url": repo.get("html_url"),
            "stars": int(repo.get("stargazers_count") or 0),
            "forks": int(repo.get("forks_count") or 0),
            "issues": int(repo.get("open_issues_count") or 0),
            "website": repo.get("homepage") or "",
            "language": repo.get("language") or "",
            "prs": total_prs,
            "commits": total_commits,
            "homepage": repo.get("homepage") or "",
        },
        "owner": {
            "twitter_username": owner_data.get("twitter_username"),
            "email": owner_data.get("email"),
            "company": owner_data.get("company"),
            "location": owner_data.get("location"),
        },
        "commits": activity.buckets_to_json(buckets),
        "topContributors": _with_pr_counts(owner, name, contributors, config.CONTRIBUTOR_PR_LOOKUPS),
    }


def build_widget_data(owner: str, name: str, now: Optional[dt.datetime] = None) -> Dict[str, Any]:
    """
    Daily commit counts for the last WIDGET_DAYS days plus the normalised momentum curve.
    """
    now = now or _now_utc()

    repo = github_client.get_repo(owner, name)
    total_commits = github_client.count_commits(owner, name)
    recent = github_client.list_commits(owner, name, per_page=config.RECENT_COMMITS_LIMIT)

    end = now.astimezone(dt.timezone.utc).date()
    start = end - dt.timedelta(days=max(1, config.WIDGET_DAYS) - 1)
    days = activity.daily_counts(commit_events(recent), start, end)
    momentum = activity.momentum_curve(days, decay_rate=config.MOMENTUM_DECAY_RATE)

    return {
        "name": f"{owner}/{name}",
        "owner": owner,
        "description": repo.get("description"),
        "language": repo.get("language"),
        "stars": int(repo.get("stargazers_count") or 0),
        "forks": int(repo.get("forks_count") or 0),
        "totalCommits": total_commits,
        "commits": [{"date": d.timestamp.date().isoformat(), "count": d.count} for d in days],
        "momentum": list(activity.normalize_series(momentum)),
        "lastUpdated": activity.isoformat_z(now),
    }
