import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import aiofiles
from application_sdk.observability.logger_adaptor import get_logger

from repo_pulse.config import APP_NAME, EXPORT_DIR
from repo_pulse.date_range import range_days
from repo_pulse.insights import activity_score
from repo_pulse.models import RepositoryAnalytics
from repo_pulse.utils import split_full_name

logger = get_logger(__name__)


def build_export(
    full_name: str,
    time_range: str,
    analytics: RepositoryAnalytics,
    exported_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """repository name + computed summary + detailed series, ready for json.dumps"""
    days = range_days(time_range)
    detailed = analytics.to_dict()
    return {
        "repository": full_name,
        "timeRange": f"{days} days",
        "exportDate": (exported_at or datetime.now(timezone.utc)).isoformat(),
        "generatedBy": APP_NAME,
        "summary": {
            "commits": sum(day.count for day in analytics.commits),
            "issues": {
                "opened": sum(day.opened for day in analytics.issues),
                "closed": sum(day.closed for day in analytics.issues),
            },
            "pullRequests": {
                "opened": sum(day.opened for day in analytics.pull_requests),
                "closed": sum(day.closed for day in analytics.pull_requests),
            },
            "languages": detailed["languages"],
            "topContributors": detailed["topContributors"],
            "activityScore": activity_score(analytics.commits, analytics.issues, analytics.pull_requests, days),
        },
        "detailed": detailed,
    }


def export_filename(full_name: str) -> str:
    _, repo = split_full_name(full_name)
    return f"{repo}-analytics.json"


async def save_export(export: Dict[str, Any], directory: str = EXPORT_DIR) -> str:
    """
    write an export produced by build_export to <directory>/<repo>-analytics.json
    returns the full filepath of the saved json file.
    """
    os.makedirs(directory, exist_ok=True)
    filepath = os.path.join(directory, export_filename(export["repository"]))
    try:
        async with aiofiles.open(filepath, "w") as f:
            await f.write(json.dumps(export, indent=2, default=str))
    except OSError as e:
        logger.error("Error saving analytics export", exc_info=e, extra={"file_path": filepath})
        raise
    logger.info("Saved analytics export", extra={"repository": export["repository"], "file_path": filepath})
    return filepath
