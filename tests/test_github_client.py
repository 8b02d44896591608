"""Tests for the GitHub REST wrapper."""

from __future__ import annotations

from unittest.mock import patch

import pytest
import requests

import github_client
from github_client import GitHubAPIError
from conftest import make_response


class TestRequest:
    def test_sends_auth_and_version_headers(self):
        with patch.object(github_client.config, "GITHUB_TOKEN", "tok-abc"), patch.object(
            github_client.requests, "get", return_value=make_response(json_data={"name": "x"})
        ) as mock_get:
            assert github_client.get_repo("octo", "x") == {"name": "x"}

        args, kwargs = mock_get.call_args
        assert args[0].endswith("/repos/octo/x")
        assert kwargs["headers"]["Authorization"] == "Bearer tok-abc"
        assert "X-GitHub-Api-Version" in kwargs["headers"]

    def test_no_auth_header_without_token(self):
        with patch.object(github_client.config, "GITHUB_TOKEN", ""), patch.object(
            github_client.requests, "get", return_value=make_response(json_data={})
        ) as mock_get:
            github_client.get_user("octo")
        assert "Authorization" not in mock_get.call_args.kwargs["headers"]

    def test_http_error_carries_status(self):
        resp = make_response(404, text='{"message": "Not Found"}')
        with patch.object(github_client.requests, "get", return_value=resp):
            with pytest.raises(GitHubAPIError) as exc:
                github_client.get_repo("octo", "missing")
        assert exc.value.status_code == 404
        assert exc.value.not_found
        assert not exc.value.rate_limited

    def test_rate_limit_from_headers(self):
        resp = make_response(403, text="Forbidden", headers={"X-RateLimit-Remaining": "0"})
        with patch.object(github_client.requests, "get", return_value=resp):
            with pytest.raises(GitHubAPIError) as exc:
                github_client.get_repo("octo", "x")
        assert exc.value.rate_limited
        assert not exc.value.forbidden

    def test_plain_forbidden(self):
        resp = make_response(403, text="Resource not accessible")
        with patch.object(github_client.requests, "get", return_value=resp):
            with pytest.raises(GitHubAPIError) as exc:
                github_client.get_repo("octo", "x")
        assert exc.value.forbidden

    def test_transport_errors_are_wrapped_without_retry(self):
        with patch.object(
            github_client.requests, "get", side_effect=requests.ConnectionError("boom")
        ) as mock_get:
            with pytest.raises(GitHubAPIError) as exc:
                github_client.get_user("octo")
        assert exc.value.status_code is None
        assert mock_get.call_count == 1


class TestCounts:
    def test_count_commits_from_last_page_link(self):
        resp = make_response(
            json_data=[{}],
            links={"last": {"url": "https://api.github.com/repositories/1/commits?per_page=1&page=1234"}},
        )
        with patch.object(github_client.requests, "get", return_value=resp):
            assert github_client.count_commits("octo", "x") == 1234

    def test_count_commits_single_page(self):
        with patch.object(github_client.requests, "get", return_value=make_response(json_data=[{}])):
            assert github_client.count_commits("octo", "x") == 1

    def test_empty_repository(self):
        resp = make_response(409, text="Git Repository is empty.")
        with patch.object(github_client.requests, "get", return_value=resp):
            assert github_client.count_commits("octo", "x") == 0
            assert github_client.list_commits("octo", "x") == []

    def test_count_prs_uses_search(self):
        with patch.object(
            github_client.requests, "get", return_value=make_response(json_data={"total_count": 42})
        ) as mock_get:
            assert github_client.count_prs("repo:octo/x") == 42
        assert mock_get.call_args.kwargs["params"]["q"] == "repo:octo/x type:pr"
