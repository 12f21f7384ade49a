import asyncio
from http import HTTPStatus
from typing import Any, Dict, List, Mapping, Optional, Type

from application_sdk.observability.logger_adaptor import get_logger
from github import Auth, Github, GithubException

from repo_pulse.cache import ResponseCache, cache_namespace, response_cache
from repo_pulse.config import (
    DEFAULT_USER_AGENT,
    GITHUB_ACCEPT_HEADER,
    GITHUB_API_BASE_URL,
    GITHUB_API_PER_PAGE,
    GITHUB_API_VERSION,
    LISTING_DEFAULT_PER_PAGE,
    PAGINATION_BATCH_SIZE,
)
from repo_pulse.errors import SchemaError, UpstreamError
from repo_pulse.models import (
    Commit,
    ContentEntry,
    ContributorTotal,
    Issue,
    Page,
    PullRequest,
    Release,
    Repository,
    decode_list,
)
from repo_pulse.pagination import BatchPaginator

logger = get_logger(__name__)


class BearerToken(Auth.Token):
    """Token auth that sends ``Authorization: Bearer <token>``."""

    @property
    def token_type(self) -> str:
        return "Bearer"


def _status_text(exc: GithubException) -> str:
    try:
        return HTTPStatus(exc.status).phrase
    except (TypeError, ValueError):
        pass
    data = exc.data
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return "Unknown Error"


class GitHubClient:
    """
    Bearer-authenticated access to the GitHub REST API.

    Every read goes through the response cache: a miss fetches, stores and
    returns; a hit returns the stored payload without touching the network.
    Non-2xx answers surface as ``UpstreamError``; nothing is retried.
    """

    def __init__(
        self,
        access_token: str,
        cache: Optional[ResponseCache] = None,
        base_url: str = GITHUB_API_BASE_URL,
        per_page: int = GITHUB_API_PER_PAGE,
        batch_size: int = PAGINATION_BATCH_SIZE,
    ):
        # no retries and no client-side pacing: failures go straight back, batches go out together
        self.github = Github(
            auth=BearerToken(access_token),
            base_url=base_url,
            user_agent=DEFAULT_USER_AGENT,
            retry=None,
            seconds_between_requests=None,
        )
        # the cache may be shared; entries are scoped to this host and token
        self.cache = cache if cache is not None else response_cache
        self.cache_namespace = cache_namespace(base_url, access_token)
        self.paginator = BatchPaginator(self.fetch_with_cache, per_page=per_page, batch_size=batch_size)

    # transport
    def _headers(self) -> Dict[str, str]:
        return {
            "Accept": GITHUB_ACCEPT_HEADER,
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }

    def _get(self, endpoint: str, params: Optional[Mapping[str, Any]]) -> Any:
        _, data = self.github.requester.requestJsonAndCheck(
            "GET",
            endpoint,
            parameters=dict(params) if params else None,
            headers=self._headers(),
        )
        return data

    async def request(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        try:
            return await asyncio.to_thread(self._get, endpoint, params)
        except GithubException as e:
            status_text = _status_text(e)
            logger.warning(
                "GitHub API request failed",
                extra={"endpoint": endpoint, "status": e.status, "status_text": status_text},
            )
            raise UpstreamError(e.status, status_text, endpoint) from e

    async def fetch_with_cache(self, endpoint: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        cached = self.cache.get(endpoint, params, self.cache_namespace)
        if cached is not None:
            return cached
        data = await self.request(endpoint, params)
        self.cache.put(endpoint, params, data, self.cache_namespace)
        return data

    async def fetch_paginated_batch(
        self, endpoint: str, time_range: str, params: Optional[Mapping[str, Any]] = None
    ) -> List[Any]:
        return await self.paginator.fetch(endpoint, time_range, params)

    # helpers
    @staticmethod
    def repo_path(owner: str, repo: str, suffix: str = "") -> str:
        return f"/repos/{owner}/{repo}{suffix}"

    async def _page(
        self,
        record: Type[Any],
        kind: str,
        endpoint: str,
        params: Dict[str, Any],
        page: int,
        per_page: int,
    ) -> Page:
        payload = await self.fetch_with_cache(endpoint, {**params, "page": page, "per_page": per_page})
        data = decode_list(record, payload, kind)
        return Page(data=tuple(data), page=page, per_page=per_page, has_next_page=len(data) == per_page)

    # listings
    async def search_repositories(self, query: str) -> List[Repository]:
        payload = await self.fetch_with_cache(
            "/search/repositories", {"q": query, "sort": "stars", "order": "desc"}
        )
        if not isinstance(payload, dict):
            raise SchemaError("Expected a JSON object from repository search")
        return decode_list(Repository, payload.get("items", []), "repositories")

    async def get_repository(self, owner: str, repo: str) -> Repository:
        return Repository.from_api(await self.fetch_with_cache(self.repo_path(owner, repo)))

    async def get_issues(
        self,
        owner: str,
        repo: str,
        page: int = 1,
        per_page: int = LISTING_DEFAULT_PER_PAGE,
        state: str = "open",
    ) -> Page:
        return await self._page(
            Issue, "issues", self.repo_path(owner, repo, "/issues"), {"state": state}, page, per_page
        )

    async def get_pull_requests(
        self, owner: str, repo: str, page: int = 1, per_page: int = LISTING_DEFAULT_PER_PAGE
    ) -> Page:
        return await self._page(
            PullRequest, "pull requests", self.repo_path(owner, repo, "/pulls"), {"state": "all"}, page, per_page
        )

    async def get_releases(
        self, owner: str, repo: str, page: int = 1, per_page: int = LISTING_DEFAULT_PER_PAGE
    ) -> Page:
        return await self._page(Release, "releases", self.repo_path(owner, repo, "/releases"), {}, page, per_page)

    async def get_commits(
        self, owner: str, repo: str, page: int = 1, per_page: int = LISTING_DEFAULT_PER_PAGE
    ) -> Page:
        return await self._page(Commit, "commits", self.repo_path(owner, repo, "/commits"), {}, page, per_page)

    async def get_contributors(self, owner: str, repo: str) -> List[ContributorTotal]:
        payload = await self.fetch_with_cache(self.repo_path(owner, repo, "/contributors"))
        # GitHub answers 204 with no body for empty repositories
        return decode_list(ContributorTotal, payload or [], "contributors")

    async def get_contents(self, owner: str, repo: str, path: str = "") -> List[ContentEntry]:
        suffix = f"/contents/{path}" if path else "/contents"
        return decode_list(ContentEntry, await self.fetch_with_cache(self.repo_path(owner, repo, suffix)), "contents")
