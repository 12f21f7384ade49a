from repo_pulse.client import GitHubClient
from repo_pulse.dashboard import RepositoryDashboard, SelectionTracker
from repo_pulse.errors import ConfigError, RepoPulseError, SchemaError, UpstreamError

__all__ = [
    "ConfigError",
    "GitHubClient",
    "RepoPulseError",
    "RepositoryDashboard",
    "SchemaError",
    "SelectionTracker",
    "UpstreamError",
]
