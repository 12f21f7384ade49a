"""
Typed records for GitHub payloads and dashboard output.

Upstream JSON is decoded once, at the fetch boundary, through the
``from_api`` class methods below. Aggregators only ever see these records.
Output records serialize with ``to_dict()``; keys follow the shape the
dashboard consumes (camelCase for health/summary records, GitHub's own
snake_case for everything mirrored from the API).
"""
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

from repo_pulse.config import DEFAULT_AVATAR_URL
from repo_pulse.errors import SchemaError
from repo_pulse.utils import parse_timestamp, safe_isoformat

R = TypeVar("R")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _to_json(value: Any) -> Any:
    if is_dataclass(value) and hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, datetime):
        return safe_isoformat(value)
    if isinstance(value, (list, tuple)):
        return [_to_json(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_json(v) for k, v in value.items()}
    return value


class _Record:
    _camel_keys = False

    def to_dict(self) -> Dict[str, Any]:
        out = {}
        for f in fields(self):
            key = _camel(f.name) if self._camel_keys else f.name
            out[key] = _to_json(getattr(self, f.name))
        return out


# decode helpers
def _expect_mapping(payload: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise SchemaError(f"Expected a JSON object for {kind}, got {type(payload).__name__}")
    return payload


def _require(payload: Mapping[str, Any], key: str, kind: str) -> Any:
    if payload.get(key) is None:
        raise SchemaError(f"{kind} payload is missing required field {key!r}")
    return payload[key]


def decode_list(record: Type[R], payload: Any, kind: str) -> List[R]:
    """Decode a JSON array into a list of ``record`` instances."""
    if not isinstance(payload, list):
        raise SchemaError(f"Expected a JSON array of {kind}, got {type(payload).__name__}")
    return [record.from_api(item) for item in payload]


# upstream records
@dataclass(frozen=True)
class Identity(_Record):
    login: str
    avatar_url: str

    @classmethod
    def from_api(cls, payload: Any) -> Optional["Identity"]:
        if not payload:
            return None
        payload = _expect_mapping(payload, "user")
        return cls(
            login=_require(payload, "login", "user"),
            avatar_url=payload.get("avatar_url") or DEFAULT_AVATAR_URL,
        )


@dataclass(frozen=True)
class Label(_Record):
    name: str
    color: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Any) -> "Label":
        if isinstance(payload, str):
            return cls(name=payload)
        payload = _expect_mapping(payload, "label")
        return cls(name=_require(payload, "name", "label"), color=payload.get("color"))


@dataclass(frozen=True)
class License(_Record):
    name: str
    key: str

    @classmethod
    def from_api(cls, payload: Any) -> Optional["License"]:
        if not payload:
            return None
        payload = _expect_mapping(payload, "license")
        return cls(name=payload.get("name") or "", key=payload.get("key") or "")


@dataclass(frozen=True)
class Repository(_Record):
    id: int
    name: str
    full_name: str
    owner: Optional[Identity]
    private: bool = False
    description: Optional[str] = None
    html_url: Optional[str] = None
    homepage: Optional[str] = None
    stargazers_count: int = 0
    watchers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    language: Optional[str] = None
    topics: Tuple[str, ...] = ()
    default_branch: str = "main"
    archived: bool = False
    has_wiki: bool = False
    has_issues: bool = False
    has_projects: bool = False
    license: Optional[License] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    pushed_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, payload: Any) -> "Repository":
        payload = _expect_mapping(payload, "repository")
        return cls(
            id=_require(payload, "id", "repository"),
            name=_require(payload, "name", "repository"),
            full_name=_require(payload, "full_name", "repository"),
            owner=Identity.from_api(payload.get("owner")),
            private=bool(payload.get("private", False)),
            description=payload.get("description"),
            html_url=payload.get("html_url"),
            homepage=payload.get("homepage"),
            stargazers_count=payload.get("stargazers_count") or 0,
            watchers_count=payload.get("watchers_count") or 0,
            forks_count=payload.get("forks_count") or 0,
            open_issues_count=payload.get("open_issues_count") or 0,
            language=payload.get("language"),
            topics=tuple(payload.get("topics") or ()),
            default_branch=payload.get("default_branch") or "main",
            archived=bool(payload.get("archived", False)),
            has_wiki=bool(payload.get("has_wiki", False)),
            has_issues=bool(payload.get("has_issues", False)),
            has_projects=bool(payload.get("has_projects", False)),
            license=License.from_api(payload.get("license")),
            created_at=parse_timestamp(payload.get("created_at")),
            updated_at=parse_timestamp(payload.get("updated_at")),
            pushed_at=parse_timestamp(payload.get("pushed_at")),
        )


@dataclass(frozen=True)
class Issue(_Record):
    id: int
    number: int
    title: str
    state: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    html_url: Optional[str] = None
    labels: Tuple[Label, ...] = ()
    user: Optional[Identity] = None
    is_pull_request: bool = False

    @classmethod
    def from_api(cls, payload: Any) -> "Issue":
        payload = _expect_mapping(payload, "issue")
        return cls(
            id=_require(payload, "id", "issue"),
            number=_require(payload, "number", "issue"),
            title=payload.get("title") or "",
            state=_require(payload, "state", "issue"),
            created_at=parse_timestamp(payload.get("created_at")),
            updated_at=parse_timestamp(payload.get("updated_at")),
            closed_at=parse_timestamp(payload.get("closed_at")),
            html_url=payload.get("html_url"),
            labels=tuple(Label.from_api(label) for label in payload.get("labels") or ()),
            user=Identity.from_api(payload.get("user")),
            is_pull_request="pull_request" in payload,
        )


@dataclass(frozen=True)
class PullRequest(_Record):
    id: int
    number: int
    title: str
    state: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None
    html_url: Optional[str] = None
    labels: Tuple[Label, ...] = ()
    user: Optional[Identity] = None

    @classmethod
    def from_api(cls, payload: Any) -> "PullRequest":
        payload = _expect_mapping(payload, "pull request")
        return cls(
            id=_require(payload, "id", "pull request"),
            number=_require(payload, "number", "pull request"),
            title=payload.get("title") or "",
            state=_require(payload, "state", "pull request"),
            created_at=parse_timestamp(payload.get("created_at")),
            updated_at=parse_timestamp(payload.get("updated_at")),
            closed_at=parse_timestamp(payload.get("closed_at")),
            merged_at=parse_timestamp(payload.get("merged_at")),
            html_url=payload.get("html_url"),
            labels=tuple(Label.from_api(label) for label in payload.get("labels") or ()),
            user=Identity.from_api(payload.get("user")),
        )


@dataclass(frozen=True)
class Release(_Record):
    id: int
    tag_name: str
    name: Optional[str]
    created_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    html_url: Optional[str] = None
    author: Optional[Identity] = None

    @classmethod
    def from_api(cls, payload: Any) -> "Release":
        payload = _expect_mapping(payload, "release")
        return cls(
            id=_require(payload, "id", "release"),
            tag_name=_require(payload, "tag_name", "release"),
            name=payload.get("name"),
            created_at=parse_timestamp(payload.get("created_at")),
            published_at=parse_timestamp(payload.get("published_at")),
            html_url=payload.get("html_url"),
            author=Identity.from_api(payload.get("author")),
        )


@dataclass(frozen=True)
class CommitIdentity(_Record):
    """The git-level author recorded in the commit object itself."""

    name: Optional[str]
    email: Optional[str]
    date: Optional[datetime]

    @classmethod
    def from_api(cls, payload: Any) -> Optional["CommitIdentity"]:
        if not payload:
            return None
        payload = _expect_mapping(payload, "commit author")
        return cls(
            name=payload.get("name"),
            email=payload.get("email"),
            date=parse_timestamp(payload.get("date")),
        )


@dataclass(frozen=True)
class Commit(_Record):
    sha: str
    message: str
    html_url: Optional[str]
    commit_author: Optional[CommitIdentity]
    # linked GitHub account; None for bots and deleted accounts
    author: Optional[Identity]

    @classmethod
    def from_api(cls, payload: Any) -> "Commit":
        payload = _expect_mapping(payload, "commit")
        inner = _expect_mapping(_require(payload, "commit", "commit"), "commit")
        return cls(
            sha=_require(payload, "sha", "commit"),
            message=inner.get("message") or "",
            html_url=payload.get("html_url"),
            commit_author=CommitIdentity.from_api(inner.get("author")),
            author=Identity.from_api(payload.get("author")),
        )

    @property
    def authored_at(self) -> Optional[datetime]:
        return self.commit_author.date if self.commit_author else None

    @property
    def title(self) -> str:
        return self.message.split("\n", 1)[0].strip()

    @property
    def display_identity(self) -> Identity:
        if self.author:
            return self.author
        name = self.commit_author.name if self.commit_author and self.commit_author.name else "Unknown"
        return Identity(login=name, avatar_url=DEFAULT_AVATAR_URL)


@dataclass(frozen=True)
class ContentEntry(_Record):
    name: str
    path: str
    type: str

    @classmethod
    def from_api(cls, payload: Any) -> "ContentEntry":
        payload = _expect_mapping(payload, "content entry")
        name = _require(payload, "name", "content entry")
        return cls(name=name, path=payload.get("path") or name, type=payload.get("type") or "file")


@dataclass(frozen=True)
class BranchActivity(_Record):
    date: datetime
    count: int


@dataclass(frozen=True)
class Branch(_Record):
    name: str
    sha: Optional[str]
    protected: bool = False
    last_commit: Optional[BranchActivity] = None

    @classmethod
    def from_api(cls, payload: Any) -> "Branch":
        payload = _expect_mapping(payload, "branch")
        commit = payload.get("commit") or {}
        return cls(
            name=_require(payload, "name", "branch"),
            sha=commit.get("sha"),
            protected=bool(payload.get("protected", False)),
        )


@dataclass(frozen=True)
class ContributorTotal(_Record):
    login: str
    avatar_url: str
    contributions: int

    @classmethod
    def from_api(cls, payload: Any) -> "ContributorTotal":
        payload = _expect_mapping(payload, "contributor")
        return cls(
            login=payload.get("login") or payload.get("name") or "anonymous",
            avatar_url=payload.get("avatar_url") or DEFAULT_AVATAR_URL,
            contributions=payload.get("contributions") or 0,
        )


# output records
@dataclass(frozen=True)
class TimeRangeLimit(_Record):
    _camel_keys = True

    max_items: int
    max_requests: int


@dataclass(frozen=True)
class DateRange(_Record):
    _camel_keys = True

    start_date: datetime
    end_date: datetime


@dataclass(frozen=True)
class DailyCount(_Record):
    date: str
    count: int
    total: int


@dataclass(frozen=True)
class DailyOpenClose(_Record):
    date: str
    opened: int
    closed: int
    total: int


@dataclass(frozen=True)
class Contributor(_Record):
    login: str
    contributions: int
    avatar_url: str


@dataclass(frozen=True)
class LanguageShare(_Record):
    name: str
    percentage: float


@dataclass(frozen=True)
class DocumentationStatus(_Record):
    name: str
    status: bool
    path: str


@dataclass(frozen=True)
class CodeQuality(_Record):
    _camel_keys = True

    has_workflows: bool = False
    has_tests: bool = False
    has_dependency_management: bool = False
    has_linting: bool = False


@dataclass(frozen=True)
class SecurityStatus(_Record):
    _camel_keys = True

    has_security: bool = False
    has_vulnerability_policy: bool = False
    has_code_scanning: bool = False


@dataclass(frozen=True)
class ActivityMetrics(_Record):
    _camel_keys = True

    commit_frequency: float = 0.0
    issue_resolution_rate: float = 0.0
    pr_merge_rate: float = 0.0

    @classmethod
    def from_series(
        cls,
        commits: Sequence[DailyCount],
        issues: Sequence[DailyOpenClose],
        pulls: Sequence[DailyOpenClose],
        days: int,
    ) -> "ActivityMetrics":
        """
        Derive the activity block of a health record from aggregator output.
        Rates are percentages of opened items closed in the same window.
        """
        commit_count = sum(day.count for day in commits)
        issues_opened = sum(day.opened for day in issues)
        issues_closed = sum(day.closed for day in issues)
        prs_opened = sum(day.opened for day in pulls)
        prs_closed = sum(day.closed for day in pulls)
        return cls(
            commit_frequency=round(commit_count / days, 2) if days else 0.0,
            issue_resolution_rate=round(issues_closed / issues_opened * 100, 1) if issues_opened else 0.0,
            pr_merge_rate=round(prs_closed / prs_opened * 100, 1) if prs_opened else 0.0,
        )


@dataclass(frozen=True)
class RepositoryHealth(_Record):
    _camel_keys = True

    documentation_status: Tuple[DocumentationStatus, ...]
    has_wiki: bool
    has_issues: bool
    has_projects: bool
    default_branch: str
    license: Optional[License]
    code_quality: CodeQuality
    security_status: SecurityStatus
    documentation_score: int
    code_quality_score: int
    security_score: int
    overall_health_score: int
    activity_metrics: ActivityMetrics = field(default_factory=ActivityMetrics)


@dataclass(frozen=True)
class Page(_Record):
    _camel_keys = True

    data: Tuple[Any, ...]
    page: int
    per_page: int
    has_next_page: bool


@dataclass(frozen=True)
class RepositoryAnalytics(_Record):
    """Everything the analytics view renders for one repository and time range."""

    _camel_keys = True

    commits: Tuple[DailyCount, ...]
    issues: Tuple[DailyOpenClose, ...]
    pull_requests: Tuple[DailyOpenClose, ...]
    contributors: Tuple[Contributor, ...]
    top_contributors: Tuple[Contributor, ...]
    total_contributors: int
    all_time_contributors: Tuple[ContributorTotal, ...]
    languages: Tuple[LanguageShare, ...]
    health: RepositoryHealth


@dataclass(frozen=True)
class RepositoryOverview(_Record):
    _camel_keys = True

    issues: Page
    pull_requests: Page
    releases: Page
