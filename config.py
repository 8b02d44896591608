"""
Runtime configuration, read once from the environment.

Every value has a literal default so the API runs without any setup; set
GITHUB_TOKEN for higher rate limits.
"""

from __future__ import annotations

import os

# -----------------------------
# GitHub API
# -----------------------------
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN", "").strip()
GITHUB_API_BASE = os.getenv("GITHUB_API_BASE", "https://api.github.com").rstrip("/")
GITHUB_API_VERSION = os.getenv("GITHUB_API_VERSION", "2022-11-28")
GITHUB_REQUEST_TIMEOUT = int(os.getenv("GITHUB_REQUEST_TIMEOUT", "20"))

# -----------------------------
# Response cache
# -----------------------------
CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", "600"))

# -----------------------------
# Activity chart tuning
# -----------------------------
ACTIVITY_BUCKETS = int(os.getenv("ACTIVITY_BUCKETS", "96"))
ACTIVITY_LOOKBACK_DAYS = int(os.getenv("ACTIVITY_LOOKBACK_DAYS", "180"))  # ~6 months
MOMENTUM_DECAY_RATE = float(os.getenv("MOMENTUM_DECAY_RATE", "0.95"))

RECENT_COMMITS_LIMIT = int(os.getenv("RECENT_COMMITS_LIMIT", "100"))  # GitHub caps per_page at 100
TOP_CONTRIBUTORS = int(os.getenv("TOP_CONTRIBUTORS", "5"))
CONTRIBUTOR_PR_LOOKUPS = int(os.getenv("CONTRIBUTOR_PR_LOOKUPS", "3"))
USER_REPOS_LIMIT = int(os.getenv("USER_REPOS_LIMIT", "20"))
WIDGET_DAYS = int(os.getenv("WIDGET_DAYS", "30"))

# -----------------------------
# Server
# -----------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "5000"))
