import asyncio
import dataclasses
from typing import List, Optional, Set

from application_sdk.observability.logger_adaptor import get_logger

from repo_pulse.client import GitHubClient
from repo_pulse.errors import UpstreamError
from repo_pulse.models import (
    ActivityMetrics,
    CodeQuality,
    ContentEntry,
    DocumentationStatus,
    Repository,
    RepositoryHealth,
    SecurityStatus,
)
from repo_pulse.utils import round_half_up

logger = get_logger(__name__)

# (display name, lowercase root file name, weight)
DOCUMENTATION_FILES = (
    ("README.md", "readme.md", 0.40),
    ("CONTRIBUTING.md", "contributing.md", 0.15),
    ("LICENSE", "license", 0.15),
    ("CODE_OF_CONDUCT.md", "code_of_conduct.md", 0.10),
    ("SECURITY.md", "security.md", 0.10),
    ("CHANGELOG.md", "changelog.md", 0.10),
)

TEST_DIRECTORIES = {"test", "tests", "__tests__", "spec", "specs"}
TEST_RUNNER_CONFIGS = {"jest.config.js", "jest.config.ts", "karma.conf.js", "vitest.config.ts", "pytest.ini", "phpunit.xml"}
DEPENDENCY_MANIFESTS = {
    "package.json",
    "requirements.txt",
    "pyproject.toml",
    "gemfile",
    "build.gradle",
    "pom.xml",
    "composer.json",
    "cargo.toml",
    "go.mod",
}
LINTING_CONFIGS = {
    ".eslintrc",
    ".eslintrc.js",
    ".eslintrc.json",
    "eslint.config.js",
    ".pylintrc",
    ".flake8",
    "ruff.toml",
    ".rubocop.yml",
    "tslint.json",
    ".stylelintrc",
}
SECURITY_POLICY_FILES = {"security.md", "security.txt", ".github/security.md"}
VULNERABILITY_CONFIGS = {".github/dependabot.yml", ".github/dependabot.yaml"}
CODE_SCANNING_MARKERS = ("codeql", "scan")

# sub-score weights, each group sums to 100
CODE_QUALITY_POINTS = {"workflows": 25, "tests": 30, "dependencies": 25, "linting": 20}
SECURITY_POINTS = {"policy": 40, "vulnerability": 30, "scanning": 30}
OVERALL_WEIGHTS = {"documentation": 0.30, "code_quality": 0.40, "security": 0.30}


def documentation_score(names: Set[str]) -> float:
    return 100 * sum(weight for _, path, weight in DOCUMENTATION_FILES if path in names)


def code_quality_score(quality: CodeQuality) -> int:
    return (
        (CODE_QUALITY_POINTS["workflows"] if quality.has_workflows else 0)
        + (CODE_QUALITY_POINTS["tests"] if quality.has_tests else 0)
        + (CODE_QUALITY_POINTS["dependencies"] if quality.has_dependency_management else 0)
        + (CODE_QUALITY_POINTS["linting"] if quality.has_linting else 0)
    )


def security_score(security: SecurityStatus) -> int:
    return (
        (SECURITY_POINTS["policy"] if security.has_security else 0)
        + (SECURITY_POINTS["vulnerability"] if security.has_vulnerability_policy else 0)
        + (SECURITY_POINTS["scanning"] if security.has_code_scanning else 0)
    )


def overall_health_score(documentation: float, code_quality: float, security: float) -> int:
    return round_half_up(
        documentation * OVERALL_WEIGHTS["documentation"]
        + code_quality * OVERALL_WEIGHTS["code_quality"]
        + security * OVERALL_WEIGHTS["security"]
    )


def with_activity(health: RepositoryHealth, activity: ActivityMetrics) -> RepositoryHealth:
    """Second phase of health scoring: attach metrics derived from the activity series."""
    return dataclasses.replace(health, activity_metrics=activity)


def assess(
    repository: Repository,
    root: List[ContentEntry],
    workflows: List[ContentEntry],
    github_dir: List[ContentEntry],
    activity: Optional[ActivityMetrics] = None,
) -> RepositoryHealth:
    """Pure scoring step over already-fetched metadata and directory listings."""
    names = {entry.name.lower() for entry in root}
    paths = {entry.path.lower() for entry in root + github_dir if entry.type == "file"}

    documentation_status = tuple(
        DocumentationStatus(name=name, status=path in names, path=path) for name, path, _ in DOCUMENTATION_FILES
    )
    doc_score = documentation_score(names)

    has_test_dir = any(entry.type == "dir" and entry.name.lower() in TEST_DIRECTORIES for entry in root)
    quality = CodeQuality(
        has_workflows=len(workflows) > 0,
        has_tests=has_test_dir or bool(names & TEST_RUNNER_CONFIGS),
        has_dependency_management=bool(names & DEPENDENCY_MANIFESTS),
        has_linting=bool((names | paths) & LINTING_CONFIGS),
    )
    security = SecurityStatus(
        has_security=bool((names | paths) & SECURITY_POLICY_FILES),
        has_vulnerability_policy=bool(paths & VULNERABILITY_CONFIGS),
        has_code_scanning=any(
            marker in entry.name.lower() for entry in workflows for marker in CODE_SCANNING_MARKERS
        ),
    )
    quality_score = code_quality_score(quality)
    sec_score = security_score(security)

    return RepositoryHealth(
        documentation_status=documentation_status,
        has_wiki=repository.has_wiki,
        has_issues=repository.has_issues,
        has_projects=repository.has_projects,
        default_branch=repository.default_branch,
        license=repository.license,
        code_quality=quality,
        security_status=security,
        documentation_score=round_half_up(doc_score),
        code_quality_score=quality_score,
        security_score=sec_score,
        overall_health_score=overall_health_score(doc_score, quality_score, sec_score),
        activity_metrics=activity or ActivityMetrics(),
    )


class HealthScorer:
    """
    Scores a repository's documentation, code quality and security posture.

    Activity metrics are not derivable from the listings fetched here. Pass
    them in as ``activity`` or attach them afterwards with ``with_activity``;
    without either they stay zeroed.
    """

    def __init__(self, client: GitHubClient):
        self.client = client

    async def _optional_contents(self, owner: str, repo: str, path: str) -> List[ContentEntry]:
        try:
            return await self.client.get_contents(owner, repo, path)
        except UpstreamError as e:
            if e.status != 404:
                raise
            logger.warning(f"No {path} directory", extra={"repository": f"{owner}/{repo}", "path": path})
            return []

    async def score(
        self, owner: str, repo: str, activity: Optional[ActivityMetrics] = None
    ) -> RepositoryHealth:
        logger.info("Scoring repository health", extra={"repository": f"{owner}/{repo}"})
        try:
            repository, root, workflows, github_dir = await asyncio.gather(
                self.client.get_repository(owner, repo),
                self.client.get_contents(owner, repo),
                self._optional_contents(owner, repo, ".github/workflows"),
                self._optional_contents(owner, repo, ".github"),
            )
        except Exception as e:
            logger.error("Error scoring repository health", exc_info=e, extra={"repository": f"{owner}/{repo}"})
            raise

        health = assess(repository, root, workflows, github_dir, activity)
        logger.info(
            "Scored repository health",
            extra={"repository": f"{owner}/{repo}", "overall_health_score": health.overall_health_score},
        )
        return health
