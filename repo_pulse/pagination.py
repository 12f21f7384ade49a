import asyncio
import math
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from application_sdk.observability.logger_adaptor import get_logger

from repo_pulse.config import GITHUB_API_PER_PAGE, PAGINATION_BATCH_SIZE
from repo_pulse.errors import ConfigError, SchemaError
from repo_pulse.models import TimeRangeLimit

logger = get_logger(__name__)

# named time ranges, keyed by day count; wider windows get a larger budget
TIME_RANGE_LIMITS: Dict[str, TimeRangeLimit] = {
    "1": TimeRangeLimit(max_items=300, max_requests=3),  # today
    "2": TimeRangeLimit(max_items=300, max_requests=3),  # yesterday
    "7": TimeRangeLimit(max_items=500, max_requests=5),  # this week
    "14": TimeRangeLimit(max_items=700, max_requests=7),  # last 2 weeks
    "21": TimeRangeLimit(max_items=1000, max_requests=10),  # last 3 weeks
    "30": TimeRangeLimit(max_items=1500, max_requests=15),  # this month
    "60": TimeRangeLimit(max_items=2000, max_requests=20),  # last 2 months
    "90": TimeRangeLimit(max_items=2500, max_requests=25),  # last quarter
}

PageFetcher = Callable[[str, Dict[str, str]], Awaitable[Any]]


def get_time_range_limit(time_range: str) -> TimeRangeLimit:
    limits = TIME_RANGE_LIMITS.get(str(time_range))
    if limits is None:
        raise ConfigError(f"Invalid time range: {time_range}")
    return limits


def max_pages_for(limits: TimeRangeLimit, per_page: int = GITHUB_API_PER_PAGE) -> int:
    return min(math.ceil(limits.max_items / per_page), limits.max_requests)


class BatchPaginator:
    """
    Fetches numbered pages of a list endpoint in fixed-size concurrent batches.

    Pages are 1-indexed and requested ``batch_size`` at a time. Collection
    stops after the batch that contains the first empty page, or once
    ``max_items`` items have been gathered; the result is truncated to
    ``max_items``. No more than ``max_requests`` pages are ever requested.
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        per_page: int = GITHUB_API_PER_PAGE,
        batch_size: int = PAGINATION_BATCH_SIZE,
    ):
        self._fetch_page = fetch_page
        self.per_page = per_page
        self.batch_size = batch_size

    async def fetch(
        self, endpoint: str, time_range: str, params: Optional[Mapping[str, Any]] = None
    ) -> List[Any]:
        limits = get_time_range_limit(time_range)
        max_pages = max_pages_for(limits, self.per_page)
        base_params = {str(k): str(v) for k, v in (params or {}).items()}

        items: List[Any] = []
        for batch_start in range(1, max_pages + 1, self.batch_size):
            pages = list(range(batch_start, min(batch_start + self.batch_size - 1, max_pages) + 1))
            logger.debug(
                "Fetching page batch",
                extra={"endpoint": endpoint, "time_range": time_range, "pages": pages},
            )
            results = await asyncio.gather(
                *(self._fetch_page(endpoint, self._page_params(base_params, page)) for page in pages)
            )

            exhausted = False
            for page, page_items in zip(pages, results):
                if not isinstance(page_items, list):
                    raise SchemaError(f"Expected a JSON array from {endpoint} page {page}")
                if not page_items:
                    exhausted = True
                    break
                items.extend(page_items)

            if exhausted or len(items) >= limits.max_items:
                break

        logger.debug(
            "Fetched paginated batch",
            extra={"endpoint": endpoint, "time_range": time_range, "items": min(len(items), limits.max_items)},
        )
        return items[: limits.max_items]

    def _page_params(self, base_params: Dict[str, str], page: int) -> Dict[str, str]:
        return {**base_params, "per_page": str(self.per_page), "page": str(page)}
