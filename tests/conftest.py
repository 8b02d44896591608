"""Shared fixtures for the API tests."""

from __future__ import annotations

import datetime as dt
from unittest.mock import MagicMock

import pytest

import app as app_module

UTC = dt.timezone.utc


@pytest.fixture(autouse=True)
def clear_cache():
    app_module._CACHE.clear()
    yield
    app_module._CACHE.clear()


@pytest.fixture()
def client():
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as c:
        yield c


def make_response(status: int = 200, json_data=None, text: str = "", headers=None, links=None):
    """A stand-in for requests.Response with the attributes the client reads."""
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = json_data
    resp.text = text
    resp.headers = headers or {}
    resp.links = links or {}
    return resp


def make_commit(date: str, login: str | None = "alice") -> dict:
    return {
        "commit": {"author": {"date": date}},
        "author": {"login": login} if login else None,
    }


@pytest.fixture()
def now():
    return dt.datetime(2024, 7, 1, tzinfo=UTC)
