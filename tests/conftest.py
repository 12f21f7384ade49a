"""
Pytest configuration and shared fixtures for all tests.
"""
import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock, patch

import pytest

# Set test environment variables
os.environ["GITHUB_API_PER_PAGE"] = "100"
os.environ["PAGINATION_BATCH_SIZE"] = "3"
os.environ["CACHE_DEFAULT_TTL"] = "300"
os.environ["DEFAULT_USER_AGENT"] = "test-agent"

from repo_pulse.cache import ResponseCache  # noqa: E402
from repo_pulse.client import GitHubClient  # noqa: E402

FIXED_NOW = datetime(2024, 3, 15, 12, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
    """Frozen 'now' for date-range dependent code."""
    return FIXED_NOW


@pytest.fixture
def clock():
    """Mutable clock for cache TTL tests."""

    class _Clock:
        def __init__(self):
            self.now = 1_000.0

        def __call__(self):
            return self.now

    return _Clock()


@pytest.fixture
def github_client():
    """GitHubClient with the PyGithub transport mocked out and a private cache."""
    with patch("repo_pulse.client.Github") as mock_github:
        client = GitHubClient("test_token", cache=ResponseCache(ttl=300))
        client.transport = mock_github.return_value.requester.requestJsonAndCheck
        yield client


@pytest.fixture
def mock_client():
    """Client double exposing the seams the aggregators use."""
    client = Mock(spec=GitHubClient)
    client.repo_path.side_effect = GitHubClient.repo_path
    client.fetch_paginated_batch = AsyncMock(return_value=[])
    client.fetch_with_cache = AsyncMock(return_value=[])
    client.get_repository = AsyncMock()
    client.get_contents = AsyncMock(return_value=[])
    client.get_contributors = AsyncMock(return_value=[])
    client.get_issues = AsyncMock()
    client.get_pull_requests = AsyncMock()
    client.get_releases = AsyncMock()
    return client


def user_payload(login="octocat"):
    return {"login": login, "avatar_url": f"https://avatars.example.com/{login}.png"}


@pytest.fixture
def make_commit():
    def _make(sha="abc123", date="2024-03-14T10:00:00Z", login="octocat", message="Fix bug", linked=True):
        return {
            "sha": sha,
            "html_url": f"https://github.com/test/repo/commit/{sha}",
            "commit": {
                "message": message,
                "author": {"name": login or "Ghost", "email": "dev@example.com", "date": date},
            },
            "author": user_payload(login) if linked else None,
        }

    return _make


@pytest.fixture
def make_issue():
    def _make(number=1, created_at="2024-03-14T10:00:00Z", closed_at=None, state="open", pull_request=False, labels=()):
        payload = {
            "id": 1000 + number,
            "number": number,
            "title": f"Issue {number}",
            "state": state,
            "created_at": created_at,
            "updated_at": created_at,
            "closed_at": closed_at,
            "html_url": f"https://github.com/test/repo/issues/{number}",
            "labels": [{"name": name, "color": "ededed"} for name in labels],
            "user": user_payload(),
        }
        if pull_request:
            payload["pull_request"] = {"url": f"https://api.github.com/repos/test/repo/pulls/{number}"}
        return payload

    return _make


@pytest.fixture
def make_pull():
    def _make(number=1, created_at="2024-03-14T10:00:00Z", closed_at=None, merged_at=None, state="open", labels=()):
        return {
            "id": 2000 + number,
            "number": number,
            "title": f"PR {number}",
            "state": state,
            "created_at": created_at,
            "updated_at": created_at,
            "closed_at": closed_at,
            "merged_at": merged_at,
            "html_url": f"https://github.com/test/repo/pull/{number}",
            "labels": [{"name": name} for name in labels],
            "user": user_payload(),
        }

    return _make


@pytest.fixture
def repository_payload():
    """Repository metadata as returned by GET /repos/{owner}/{repo}."""
    return {
        "id": 42,
        "name": "repo",
        "full_name": "test/repo",
        "owner": user_payload("test"),
        "private": False,
        "description": "Test repository",
        "html_url": "https://github.com/test/repo",
        "homepage": None,
        "stargazers_count": 100,
        "watchers_count": 100,
        "forks_count": 50,
        "open_issues_count": 10,
        "language": "Python",
        "topics": ["analytics", "github"],
        "default_branch": "main",
        "archived": False,
        "has_wiki": True,
        "has_issues": True,
        "has_projects": False,
        "license": {"key": "mit", "name": "MIT License"},
        "created_at": "2023-01-01T00:00:00Z",
        "updated_at": "2024-03-01T00:00:00Z",
        "pushed_at": "2024-03-10T00:00:00Z",
    }


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "component: mark test as a component test"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on file location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "component" in str(item.fspath):
            item.add_marker(pytest.mark.component)
