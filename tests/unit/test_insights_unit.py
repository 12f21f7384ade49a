"""
Unit tests for contributor ranking, language shares and summaries.
"""
import pytest

from repo_pulse.errors import SchemaError
from repo_pulse.insights import (
    InsightsAggregator,
    activity_score,
    collect_labels,
    language_shares,
    rank_contributors,
    summarize_activity,
)
from repo_pulse.models import Commit, Contributor, DailyCount, DailyOpenClose, Issue


class TestRankContributors:
    """Unit tests for rank_contributors."""

    def test_orders_by_commit_count(self, make_commit):
        commits = [
            Commit.from_api(make_commit("1", login="alice")),
            Commit.from_api(make_commit("2", login="bob")),
            Commit.from_api(make_commit("3", login="bob")),
        ]
        ranked = rank_contributors(commits)
        assert [(c.login, c.contributions) for c in ranked] == [("bob", 2), ("alice", 1)]
        assert ranked[0].avatar_url == "https://avatars.example.com/bob.png"

    def test_unlinked_commits_not_ranked(self, make_commit):
        commits = [
            Commit.from_api(make_commit("1", login="alice")),
            Commit.from_api(make_commit("2", login="ghost", linked=False)),
        ]
        assert [c.login for c in rank_contributors(commits)] == ["alice"]

    def test_empty(self):
        assert rank_contributors([]) == []


class TestLanguageShares:
    """Unit tests for language_shares."""

    def test_percentages(self):
        shares = language_shares({"JavaScript": 100, "TypeScript": 300})
        assert [(s.name, s.percentage) for s in shares] == [("TypeScript", 75.0), ("JavaScript", 25.0)]
        assert sum(s.percentage for s in shares) == pytest.approx(100)

    def test_rounded_to_two_places(self):
        shares = language_shares({"Python": 1, "Go": 2})
        assert [s.percentage for s in shares] == [66.67, 33.33]

    def test_no_bytes(self):
        assert language_shares({}) == []
        assert language_shares({"Python": 0}) == []


def test_collect_labels(make_issue):
    issues = [
        Issue.from_api(make_issue(1, labels=("bug", "ui"))),
        Issue.from_api(make_issue(2, labels=("bug", "docs"))),
    ]
    assert collect_labels(issues) == ["bug", "ui", "docs"]


@pytest.fixture
def series():
    commits = [DailyCount("2024-03-14", 4, 7), DailyCount("2024-03-15", 3, 7)]
    issues = [DailyOpenClose("2024-03-14", 4, 1, 6), DailyOpenClose("2024-03-15", 0, 1, 6)]
    pulls = [DailyOpenClose("2024-03-14", 2, 2, 4), DailyOpenClose("2024-03-15", 0, 0, 4)]
    return commits, issues, pulls


class TestSummaries:
    """Unit tests for summarize_activity and activity_score."""

    def test_summarize_activity(self, series):
        commits, issues, pulls = series
        contributors = [Contributor("alice", 5, "a.png"), Contributor("bob", 2, "b.png")]

        summary = summarize_activity(commits, issues, pulls, contributors, 7)

        assert summary == {
            "commits": 7,
            "issuesOpened": 4,
            "issuesClosed": 2,
            "prsOpened": 2,
            "prsClosed": 2,
            "totalContributors": 2,
            "dailyCommits": 1.0,
            "issueResolutionRate": 50.0,
            "prMergeRate": 100.0,
            "commitsPerContributor": 3.5,
        }

    def test_summarize_empty(self):
        summary = summarize_activity([], [], [], [], 7)
        assert summary["issueResolutionRate"] == 0.0
        assert summary["commitsPerContributor"] == 0.0

    def test_activity_score(self, series):
        commits, issues, pulls = series
        # 1/day * 10 * 0.4 + 100 * 0.3 + 50 * 0.3
        assert activity_score(commits, issues, pulls, 7) == 49

    def test_activity_score_no_activity(self):
        assert activity_score([], [], [], 7) == 0


class TestInsightsAggregator:
    """Unit tests for InsightsAggregator fetching."""

    @pytest.mark.asyncio
    async def test_contributors_in_range(self, mock_client, fixed_now, make_commit):
        mock_client.fetch_paginated_batch.return_value = [
            make_commit("1", login="alice"),
            make_commit("2", login="alice"),
            make_commit("3", login="bob"),
        ]
        contributors = await InsightsAggregator(mock_client, now=lambda: fixed_now).get_contributors_in_range(
            "test", "repo", "7"
        )

        assert [(c.login, c.contributions) for c in contributors] == [("alice", 2), ("bob", 1)]
        endpoint, time_range, params = mock_client.fetch_paginated_batch.call_args.args
        assert endpoint == "/repos/test/repo/commits"
        assert params == {"since": "2024-03-08T00:00:00.000Z", "until": "2024-03-15T23:59:59.999Z"}

    @pytest.mark.asyncio
    async def test_languages(self, mock_client):
        mock_client.fetch_with_cache.return_value = {"TypeScript": 300, "JavaScript": 100}
        shares = await InsightsAggregator(mock_client).get_languages("test", "repo")
        assert shares[0].name == "TypeScript"
        mock_client.fetch_with_cache.assert_awaited_once_with("/repos/test/repo/languages")

    @pytest.mark.asyncio
    async def test_languages_bad_shape(self, mock_client):
        mock_client.fetch_with_cache.return_value = ["Python"]
        with pytest.raises(SchemaError):
            await InsightsAggregator(mock_client).get_languages("test", "repo")
