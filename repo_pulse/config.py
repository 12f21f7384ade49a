import os

APP_NAME = os.getenv("APP_NAME", "repo-pulse")

# GitHub / API controls
GITHUB_API_BASE_URL = os.getenv("GITHUB_API_BASE_URL", "https://api.github.com")
GITHUB_API_VERSION = os.getenv("GITHUB_API_VERSION", "2022-11-28")
GITHUB_ACCEPT_HEADER = os.getenv("GITHUB_ACCEPT_HEADER", "application/vnd.github+json")
DEFAULT_USER_AGENT = os.getenv("DEFAULT_USER_AGENT", "repo-pulse/1.0")
GITHUB_API_PER_PAGE = int(os.getenv("GITHUB_API_PER_PAGE", 100))
LISTING_DEFAULT_PER_PAGE = int(os.getenv("LISTING_DEFAULT_PER_PAGE", 10))

# pagination
PAGINATION_BATCH_SIZE = int(os.getenv("PAGINATION_BATCH_SIZE", 3))

# response cache
CACHE_DEFAULT_TTL = int(os.getenv("CACHE_DEFAULT_TTL", "300"))  # 5 minutes default TTL
CACHE_MAX_ENTRIES = int(os.getenv("CACHE_MAX_ENTRIES", "0"))  # 0 = unbounded

# export artifacts
EXPORT_DIR = os.getenv("EXPORT_DIR", "exports")

# presentation defaults
DEFAULT_AVATAR_URL = os.getenv("DEFAULT_AVATAR_URL", "https://github.com/identicons/default.png")
TOP_CONTRIBUTORS_LIMIT = int(os.getenv("TOP_CONTRIBUTORS_LIMIT", 10))
