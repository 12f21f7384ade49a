import asyncio
import dataclasses
from typing import List, Optional

from application_sdk.observability.logger_adaptor import get_logger

from repo_pulse.client import GitHubClient
from repo_pulse.models import Branch, BranchActivity, Commit, decode_list

logger = get_logger(__name__)


class BranchLister:
    """
    Branch listing with best-effort last-activity lookups.

    Availability wins over completeness: a failed per-branch lookup leaves
    that branch without activity, and a failed branch listing yields an
    empty list instead of an error.
    """

    def __init__(self, client: GitHubClient):
        self.client = client

    async def get_branch_activity(self, owner: str, repo: str, branch: str) -> Optional[BranchActivity]:
        try:
            payload = await self.client.fetch_with_cache(
                self.client.repo_path(owner, repo, "/commits"), {"sha": branch, "per_page": 1}
            )
            commits = decode_list(Commit, payload, "commits")
        except Exception as e:
            logger.warning(
                "Error fetching branch activity",
                extra={"repository": f"{owner}/{repo}", "branch": branch, "error": str(e)},
            )
            return None

        if not commits or commits[0].authored_at is None:
            logger.warning("No dated commits found for branch", extra={"repository": f"{owner}/{repo}", "branch": branch})
            return None
        return BranchActivity(date=commits[0].authored_at, count=1)

    async def get_branches(self, owner: str, repo: str) -> List[Branch]:
        try:
            payload = await self.client.fetch_with_cache(self.client.repo_path(owner, repo, "/branches"), {"per_page": 100})
            branches = decode_list(Branch, payload, "branches")
        except Exception as e:
            logger.warning("Error fetching branches", extra={"repository": f"{owner}/{repo}", "error": str(e)})
            return []

        activities = await asyncio.gather(*(self.get_branch_activity(owner, repo, b.name) for b in branches))
        return [dataclasses.replace(branch, last_commit=activity) for branch, activity in zip(branches, activities)]
