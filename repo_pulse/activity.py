import asyncio
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Type

from application_sdk.observability.logger_adaptor import get_logger

from repo_pulse.client import GitHubClient
from repo_pulse.date_range import clamp_start, day_key, iter_days, range_days, resolve_date_range
from repo_pulse.models import Commit, DailyCount, DailyOpenClose, DateRange, Issue, PullRequest, decode_list
from repo_pulse.utils import to_utc_iso

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def tally_by_day(items: Sequence, timestamp_of: Callable, days: List[str], kind: str) -> Dict[str, int]:
    """
    Zero-filled day -> count map over ``days``.
    Items without a timestamp are skipped; items outside ``days`` are ignored.
    """
    counts = dict.fromkeys(days, 0)
    skipped = 0
    for item in items:
        ts = timestamp_of(item)
        if ts is None:
            skipped += 1
            continue
        key = day_key(ts)
        if key in counts:
            counts[key] += 1
    if skipped:
        logger.warning(f"Skipped {skipped} {kind} without a timestamp", extra={"kind": kind, "skipped": skipped})
    return counts


class ActivityAggregator:
    """Per-day commit, issue and pull request series for a repository."""

    def __init__(self, client: GitHubClient, now: Optional[Callable[[], datetime]] = None):
        self.client = client
        self._now = now or _utc_now

    def _window(self, time_range: str) -> Tuple[DateRange, datetime]:
        date_range = resolve_date_range(time_range, self._now())
        return date_range, clamp_start(date_range, range_days(time_range))

    async def get_commit_activity(self, owner: str, repo: str, time_range: str) -> List[DailyCount]:
        date_range, since = self._window(time_range)
        logger.info("Aggregating commit activity", extra={"repository": f"{owner}/{repo}", "time_range": time_range})

        raw = await self.client.fetch_paginated_batch(
            self.client.repo_path(owner, repo, "/commits"),
            time_range,
            {"since": to_utc_iso(since), "until": to_utc_iso(date_range.end_date)},
        )
        commits = decode_list(Commit, raw, "commits")

        counts = tally_by_day(commits, lambda c: c.authored_at, iter_days(date_range), "commits")
        total = len(commits)
        return [DailyCount(date=day, count=count, total=total) for day, count in counts.items()]

    async def get_issue_activity(self, owner: str, repo: str, time_range: str) -> List[DailyOpenClose]:
        return await self._open_close_activity(owner, repo, time_range, "/issues", Issue, "issues")

    async def get_pull_request_activity(self, owner: str, repo: str, time_range: str) -> List[DailyOpenClose]:
        return await self._open_close_activity(owner, repo, time_range, "/pulls", PullRequest, "pull requests")

    async def _open_close_activity(
        self,
        owner: str,
        repo: str,
        time_range: str,
        suffix: str,
        record: Type,
        kind: str,
    ) -> List[DailyOpenClose]:
        date_range, since = self._window(time_range)
        endpoint = self.client.repo_path(owner, repo, suffix)
        logger.info(f"Aggregating {kind} activity", extra={"repository": f"{owner}/{repo}", "time_range": time_range})

        # the listing filters by state, not by event date, so closures need their own query
        opened_raw, closed_raw = await asyncio.gather(
            self.client.fetch_paginated_batch(endpoint, time_range, {"state": "all", "since": to_utc_iso(since)}),
            self.client.fetch_paginated_batch(endpoint, time_range, {"state": "closed", "since": to_utc_iso(since)}),
        )
        opened = decode_list(record, opened_raw, kind)
        closed = decode_list(record, closed_raw, kind)
        if record is Issue:
            # the issues endpoint also lists pull requests
            opened = [i for i in opened if not i.is_pull_request]
            closed = [i for i in closed if not i.is_pull_request]

        days = iter_days(date_range)
        opened_by_day = tally_by_day(opened, lambda i: i.created_at, days, f"opened {kind}")
        closed_by_day = tally_by_day(closed, lambda i: i.closed_at, days, f"closed {kind}")
        total = len(opened) + len(closed)
        return [
            DailyOpenClose(date=day, opened=opened_by_day[day], closed=closed_by_day[day], total=total)
            for day in days
        ]
