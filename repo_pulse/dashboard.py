import asyncio
import itertools
import threading
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from application_sdk.observability.logger_adaptor import get_logger

from repo_pulse.activity import ActivityAggregator
from repo_pulse.branches import BranchLister
from repo_pulse.client import GitHubClient
from repo_pulse.config import TOP_CONTRIBUTORS_LIMIT
from repo_pulse.date_range import range_days
from repo_pulse.health import HealthScorer, with_activity
from repo_pulse.insights import InsightsAggregator
from repo_pulse.models import ActivityMetrics, Branch, RepositoryAnalytics, RepositoryOverview
from repo_pulse.utils import generate_request_id, split_full_name

logger = get_logger(__name__)


class SelectionTracker:
    """
    Generation counter for the currently selected repository/time range.

    Each ``select`` call returns a new token; a result computed under a token
    that is no longer current belongs to a stale selection and must not be
    applied.
    """

    def __init__(self):
        self._counter = itertools.count(1)
        self._lock = threading.Lock()
        self._token = 0
        self._selection: Optional[Tuple[str, Optional[str]]] = None

    def select(self, full_name: str, time_range: Optional[str] = None) -> int:
        with self._lock:
            self._token = next(self._counter)
            self._selection = (full_name, time_range)
            return self._token

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._token

    @property
    def current(self) -> Optional[Tuple[str, Optional[str]]]:
        return self._selection


class RepositoryDashboard:
    """Fan-out loaders behind the dashboard views for one signed-in user."""

    def __init__(self, client: GitHubClient, now: Optional[Callable[[], datetime]] = None):
        self.client = client
        self.activity = ActivityAggregator(client, now)
        self.insights = InsightsAggregator(client, now)
        self.health = HealthScorer(client)
        self.branches = BranchLister(client)
        self.selection = SelectionTracker()

    async def load_analytics(self, full_name: str, time_range: str) -> RepositoryAnalytics:
        owner, repo = split_full_name(full_name)
        days = range_days(time_range)
        request_id = generate_request_id()
        logger.info(
            "Loading repository analytics",
            extra={"repository": full_name, "time_range": time_range, "request_id": request_id},
        )

        try:
            commits, issues, pulls, contributors, all_time, languages, health = await asyncio.gather(
                self.activity.get_commit_activity(owner, repo, time_range),
                self.activity.get_issue_activity(owner, repo, time_range),
                self.activity.get_pull_request_activity(owner, repo, time_range),
                self.insights.get_contributors_in_range(owner, repo, time_range),
                self.client.get_contributors(owner, repo),
                self.insights.get_languages(owner, repo),
                self.health.score(owner, repo),
            )
        except Exception as e:
            logger.error(
                "Failed to load repository analytics",
                exc_info=e,
                extra={"repository": full_name, "request_id": request_id},
            )
            raise

        # health scoring cannot see activity; patch it in from the series
        metrics = ActivityMetrics.from_series(commits, issues, pulls, days)
        analytics = RepositoryAnalytics(
            commits=tuple(commits),
            issues=tuple(issues),
            pull_requests=tuple(pulls),
            contributors=tuple(contributors),
            top_contributors=tuple(contributors[:TOP_CONTRIBUTORS_LIMIT]),
            total_contributors=len(contributors),
            all_time_contributors=tuple(all_time),
            languages=tuple(languages),
            health=with_activity(health, metrics),
        )
        logger.info(
            "Loaded repository analytics",
            extra={"repository": full_name, "request_id": request_id, "days": len(commits)},
        )
        return analytics

    async def load_overview(self, full_name: str) -> RepositoryOverview:
        owner, repo = split_full_name(full_name)
        issues, pulls, releases = await asyncio.gather(
            self.client.get_issues(owner, repo, 1),
            self.client.get_pull_requests(owner, repo, 1),
            self.client.get_releases(owner, repo, 1),
        )
        return RepositoryOverview(issues=issues, pull_requests=pulls, releases=releases)

    async def get_branches(self, full_name: str) -> List[Branch]:
        owner, repo = split_full_name(full_name)
        return await self.branches.get_branches(owner, repo)

    async def refresh(self, full_name: str, time_range: str) -> Optional[RepositoryAnalytics]:
        """
        Select ``full_name``/``time_range`` and load its analytics.
        Returns None when another selection was made while loading, whether
        the load succeeded or failed.
        """
        token = self.selection.select(full_name, time_range)
        try:
            analytics = await self.load_analytics(full_name, time_range)
        except Exception as e:
            if self.selection.is_current(token):
                raise
            logger.info(
                "Discarding failed stale analytics",
                extra={
                    "repository": full_name,
                    "time_range": time_range,
                    "current": self.selection.current,
                    "error": str(e),
                },
            )
            return None
        if not self.selection.is_current(token):
            logger.info(
                "Discarding stale analytics",
                extra={"repository": full_name, "time_range": time_range, "current": self.selection.current},
            )
            return None
        return analytics
