from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from application_sdk.observability.logger_adaptor import get_logger

from repo_pulse.client import GitHubClient
from repo_pulse.date_range import resolve_date_range
from repo_pulse.errors import SchemaError
from repo_pulse.models import Commit, Contributor, DailyCount, DailyOpenClose, LanguageShare, decode_list
from repo_pulse.utils import percentage, round_half_up, to_utc_iso

logger = get_logger(__name__)


def rank_contributors(commits: Iterable[Commit]) -> List[Contributor]:
    """
    Commit counts per linked GitHub account, highest first.
    Commits without a linked account (bots, deleted users) are not ranked.
    """
    counts: Counter = Counter()
    avatars: Dict[str, str] = {}
    for commit in commits:
        if commit.author is None:
            continue
        counts[commit.author.login] += 1
        avatars.setdefault(commit.author.login, commit.author.avatar_url)
    # Counter.most_common keeps first-seen order among ties
    return [
        Contributor(login=login, contributions=count, avatar_url=avatars[login])
        for login, count in counts.most_common()
    ]


def language_shares(byte_counts: Mapping[str, int]) -> List[LanguageShare]:
    total = sum(byte_counts.values())
    if not total:
        return []
    shares = [LanguageShare(name=name, percentage=round(count / total * 100, 2)) for name, count in byte_counts.items()]
    return sorted(shares, key=lambda share: share.percentage, reverse=True)


def collect_labels(items: Iterable[Any]) -> List[str]:
    """Distinct label names across issues or pull requests, in first-seen order."""
    seen: Dict[str, None] = {}
    for item in items:
        for label in item.labels:
            seen.setdefault(label.name, None)
    return list(seen)


def summarize_activity(
    commits: Sequence[DailyCount],
    issues: Sequence[DailyOpenClose],
    pulls: Sequence[DailyOpenClose],
    contributors: Sequence[Contributor],
    days: int,
) -> Dict[str, Any]:
    commit_count = sum(day.count for day in commits)
    issues_opened = sum(day.opened for day in issues)
    issues_closed = sum(day.closed for day in issues)
    prs_opened = sum(day.opened for day in pulls)
    prs_closed = sum(day.closed for day in pulls)
    return {
        "commits": commit_count,
        "issuesOpened": issues_opened,
        "issuesClosed": issues_closed,
        "prsOpened": prs_opened,
        "prsClosed": prs_closed,
        "totalContributors": len(contributors),
        "dailyCommits": round(commit_count / days, 1) if days else 0.0,
        "issueResolutionRate": percentage(issues_closed, issues_opened),
        "prMergeRate": percentage(prs_closed, prs_opened),
        "commitsPerContributor": round(commit_count / len(contributors), 1) if contributors else 0.0,
    }


def activity_score(
    commits: Sequence[DailyCount],
    issues: Sequence[DailyOpenClose],
    pulls: Sequence[DailyOpenClose],
    days: int,
) -> int:
    """Weighted blend of commit rate (x10), PR success rate and issue resolution rate."""
    commits_per_day = sum(day.count for day in commits) / days if days else 0.0
    pr_success_rate = sum(day.closed for day in pulls) / max(sum(day.opened for day in pulls), 1) * 100
    issue_resolution_rate = sum(day.closed for day in issues) / max(sum(day.opened for day in issues), 1) * 100
    return round_half_up(commits_per_day * 10 * 0.4 + pr_success_rate * 0.3 + issue_resolution_rate * 0.3)


class InsightsAggregator:
    """Contributor rankings and language breakdowns."""

    def __init__(self, client: GitHubClient, now: Optional[Callable[[], datetime]] = None):
        self.client = client
        self._now = now or (lambda: datetime.now(timezone.utc))

    async def get_contributors_in_range(self, owner: str, repo: str, time_range: str) -> List[Contributor]:
        date_range = resolve_date_range(time_range, self._now())
        raw = await self.client.fetch_paginated_batch(
            self.client.repo_path(owner, repo, "/commits"),
            time_range,
            {"since": to_utc_iso(date_range.start_date), "until": to_utc_iso(date_range.end_date)},
        )
        contributors = rank_contributors(decode_list(Commit, raw, "commits"))
        logger.info(
            "Ranked contributors",
            extra={"repository": f"{owner}/{repo}", "time_range": time_range, "contributors": len(contributors)},
        )
        return contributors

    async def get_languages(self, owner: str, repo: str) -> List[LanguageShare]:
        payload = await self.client.fetch_with_cache(self.client.repo_path(owner, repo, "/languages"))
        if not isinstance(payload, dict):
            raise SchemaError("Expected a JSON object of language byte counts")
        return language_shares(payload)
