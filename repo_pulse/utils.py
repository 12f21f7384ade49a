import math
import re
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple
from urllib.parse import urlparse

FULL_NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


def split_full_name(full_name: str) -> Tuple[str, str]:
    """
    Split a repository reference into (owner, repo).
    Accepts: owner/repo, https://github.com/owner/repo
    """
    if not full_name:
        raise ValueError("Repository name is required")
    if full_name.startswith("http"):
        parsed = urlparse(full_name.rstrip("/"))
        host = parsed.netloc.lower()
        if host not in ("github.com", "www.github.com"):
            raise ValueError("Unsupported host; only github.com is allowed")
        parts = parsed.path.strip("/").split("/")
        if len(parts) < 2:
            raise ValueError("Malformed GitHub URL")
        return parts[-2], parts[-1].replace(".git", "")
    if not FULL_NAME_RE.match(full_name):
        raise ValueError(f"Expected owner/repo, got {full_name!r}")
    owner, repo = full_name.split("/", 1)
    return owner, repo


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a GitHub ISO-8601 timestamp ("2024-01-01T00:00:00Z") into an aware UTC datetime."""
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def safe_isoformat(dt):
    if not dt:
        return None
    if isinstance(dt, str):
        return dt
    if hasattr(dt, "isoformat"):
        return dt.astimezone(timezone.utc).isoformat()
    return str(dt)


def to_utc_iso(dt: datetime) -> str:
    """Millisecond-precision UTC timestamp with a Z suffix, the form GitHub query params expect."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def percentage(part: float, whole: float, digits: int = 1) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, digits)


def generate_request_id():
    return uuid.uuid4().hex[:12]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
