"""
Repository Activity API (Flask)

What it does:
- Looks up a GitHub repository (owner/repo, a github.com URL, or a username whose
  best repository is picked automatically)
- Buckets its recent commits into a fixed-length histogram for the dashboard chart
- Lists a user's public repositories for the repository picker
- Computes decayed "momentum" curves from per-day commit counts
- Serves a compact payload for the iOS home-screen widget

Run:
  export GITHUB_TOKEN="github_pat_..."   # recommended (higher rate limits)
  python app.py
  open http://localhost:5000

Endpoints:
  GET  /                              -> renders templates/index.html (if present), else fallback page
  POST /api/github/repo-info          -> { "input": "owner/repo" } or { "owner": "...", "name": "..." }
  POST /api/github/user-repos         -> { "username": "..." }
  POST /api/github/activity-curve     -> { "commits": [{"count": 1}, ...], "decayRate": 0.95, "normalize": false }
  GET  /api/widget/<owner>/<repo>     -> widget payload (daily counts + momentum curve)
  GET  /healthz
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, jsonify, render_template, request

import activity
import config
import repo_info
from github_client import GitHubAPIError
from repo_info import RepoInfoError

logger = logging.getLogger(__name__)

# -----------------------------
# Flask app
# -----------------------------
app = Flask(__name__)

# Simple in-memory TTL cache
_CACHE: Dict[str, Tuple[float, Any]] = {}


def _cache_get(key: str) -> Optional[Any]:
    cached = _CACHE.get(key)
    if not cached:
        return None
    ts, data = cached
    if (time.time() - ts) > config.CACHE_TTL_SECONDS:
        _CACHE.pop(key, None)
        return None
    logger.debug("Cache hit for %s", key)
    return data


def _cache_put(key: str, data: Any) -> None:
    _CACHE[key] = (time.time(), data)


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _github_error_response(e: GitHubAPIError, fallback: str):
    if e.not_found:
        return _error(
            "Repository not found or is private. Please check the repository name and ensure it's publicly accessible.",
            404,
        )
    if e.rate_limited:
        return _error("GitHub API rate limit exceeded. Please try again later.", 429)
    if e.forbidden:
        return _error("Access denied. The repository may be private or require special permissions.", 403)
    return _error(fallback, 502)


def _get_payload() -> Dict[str, Any]:
    if request.is_json:
        payload = request.get_json(silent=True)
        return payload if isinstance(payload, dict) else {}
    return request.form.to_dict()


def _str_field(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    return value.strip() if isinstance(value, str) else ""


# -----------------------------
# Flask routes
# -----------------------------
@app.route("/", methods=["GET"])
def home():
    try:
        return render_template("index.html")
    except Exception:
        return (
            """
            <!doctype html>
            <html>
            <head><meta charset="utf-8"><title>Repository Activity</title></head>
            <body style="font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif; padding: 24px;">
              <h2>Repository Activity API is running</h2>
              <p>Try: <code>POST /api/github/repo-info {"input": "octocat/Hello-World"}</code></p>
              <p>Add a template at <code>templates/index.html</code> to build the UI.</p>
            </body>
            </html>
            """,
            200,
            {"Content-Type": "text/html; charset=utf-8"},
        )


@app.route("/api/github/repo-info", methods=["POST"])
def api_repo_info():
    payload = _get_payload()
    owner, name = repo_info.parse_repo_input(
        _str_field(payload, "input"),
        owner=_str_field(payload, "owner"),
        name=_str_field(payload, "name"),
    )

    try:
        if owner and not name:
            name = repo_info.resolve_repo_name(owner)

        if not owner or not name:
            return _error("GitHub username or owner/repository are required", 400)

        key = f"repo-info:{owner.lower()}/{name.lower()}"
        cached = _cache_get(key)
        if cached is not None:
            return jsonify({"cached": True, **cached})

        data = repo_info.build_repo_info(owner, name)
        _cache_put(key, data)
        return jsonify({"cached": False, **data})
    except RepoInfoError as e:
        return _error(str(e), e.status_code)
    except GitHubAPIError as e:
        return _github_error_response(e, "Failed to fetch repository data")
    except Exception:
        logger.exception("Error fetching repository data for %s/%s", owner, name)
        return _error("Failed to fetch repository data", 500)


@app.route("/api/github/user-repos", methods=["POST"])
def api_user_repos():
    username = _str_field(_get_payload(), "username")
    if not username:
        return _error("Username is required", 400)

    key = f"user-repos:{username.lower()}"
    cached = _cache_get(key)
    if cached is not None:
        return jsonify(cached)

    try:
        data = repo_info.fetch_user_repos(username)
    except GitHubAPIError as e:
        if e.not_found:
            return _error(f"User {username} not found", 404)
        if e.rate_limited:
            return _error("GitHub API rate limit exceeded. Please try again later.", 429)
        return _error(str(e), 502)
    except Exception:
        logger.exception("Error fetching user repositories for %s", username)
        return _error("Failed to fetch repositories", 500)

    _cache_put(key, data)
    return jsonify(data)


def _parse_days(raw: Any) -> List[Any]:
    """
    Accepts [{"count": n}, ...] or [n, ...]; raises ValueError on anything else.
    """
    if not isinstance(raw, list):
        raise ValueError("'commits' must be a list.")
    days: List[Any] = []
    for item in raw:
        days.append(item.get("count", 0) if isinstance(item, dict) else item)
    return days


@app.route("/api/github/activity-curve", methods=["POST"])
def api_activity_curve():
    payload = _get_payload()
    decay_rate = payload.get("decayRate", config.MOMENTUM_DECAY_RATE)
    try:
        days = _parse_days(payload.get("commits"))
        momentum = activity.momentum_curve(days, decay_rate=decay_rate)
    except ValueError as e:
        return _error(str(e), 400)

    if payload.get("normalize") is True:
        momentum = activity.normalize_series(momentum)
    return jsonify({"momentum": list(momentum), "decayRate": decay_rate})


@app.route("/api/widget/<owner>/<repo>", methods=["GET"])
def api_widget(owner: str, repo: str):
    key = f"widget:{owner.lower()}/{repo.lower()}"
    cached = _cache_get(key)
    if cached is not None:
        return jsonify(cached)

    try:
        data = repo_info.build_widget_data(owner, repo)
    except GitHubAPIError as e:
        return _github_error_response(e, "Failed to fetch repository data")
    except Exception:
        logger.exception("Error building widget data for %s/%s", owner, repo)
        return _error("Failed to fetch repository data", 500)

    _cache_put(key, data)
    return jsonify(data)


@app.route("/healthz", methods=["GET"])
def healthz():
    return jsonify(
        {"ok": True, "token_configured": bool(config.GITHUB_TOKEN), "cache_ttl_seconds": config.CACHE_TTL_SECONDS}
    )


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.run(host="0.0.0.0", port=config.PORT, debug=True)
