from typing import Optional


class RepoPulseError(Exception):
    """Base class for every error raised by repo_pulse."""


class UpstreamError(RepoPulseError):
    """Raised when the GitHub REST API answers with a non-2xx status."""

    def __init__(self, status: int, status_text: str, endpoint: Optional[str] = None):
        self.status = status
        self.status_text = status_text
        self.endpoint = endpoint
        where = f" for {endpoint}" if endpoint else ""
        super().__init__(f"GitHub API error{where}: {status} {status_text}")


class ConfigError(RepoPulseError, ValueError):
    """Raised for an unrecognized time-range name."""


class SchemaError(RepoPulseError, ValueError):
    """Raised when an upstream payload does not have the expected shape."""
