import hashlib
import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Mapping, Optional, Tuple
from urllib.parse import urlencode

from application_sdk.observability.logger_adaptor import get_logger

from repo_pulse.config import CACHE_DEFAULT_TTL, CACHE_MAX_ENTRIES

logger = get_logger(__name__)


def cache_namespace(base_url: str, access_token: str) -> str:
    """API host plus a token fingerprint, so clients never read each other's entries"""
    fingerprint = hashlib.sha256(access_token.encode()).hexdigest()[:16]
    return f"{base_url.rstrip('/')}#{fingerprint}"


def make_cache_key(endpoint: str, params: Optional[Mapping[str, Any]] = None, namespace: str = "") -> str:
    """namespace, endpoint and query parameters in canonical (sorted) order"""
    key = f"{namespace}|{endpoint}" if namespace else endpoint
    if not params:
        return key
    query = urlencode(sorted((str(k), str(v)) for k, v in params.items()))
    return f"{key}?{query}"


class ResponseCache:
    """
    In-memory TTL cache for upstream responses keyed by (namespace, endpoint, params).

    An entry whose age has reached ``ttl`` seconds is treated as absent and
    dropped on read. With ``max_entries`` > 0 the least recently used entry
    is evicted on ``put`` once the bound is reached.
    """

    def __init__(
        self,
        ttl: float = CACHE_DEFAULT_TTL,
        max_entries: int = CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[Any, float]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(
        self, endpoint: str, params: Optional[Mapping[str, Any]] = None, namespace: str = ""
    ) -> Optional[Any]:
        key = make_cache_key(endpoint, params, namespace)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                payload, stored_at = entry
                if self._clock() - stored_at < self.ttl:
                    self._entries.move_to_end(key)
                    logger.debug(f"Cache hit for {key}")
                    return payload
                del self._entries[key]
        logger.debug(f"Cache miss for {key}")
        return None

    def put(
        self, endpoint: str, params: Optional[Mapping[str, Any]], payload: Any, namespace: str = ""
    ) -> None:
        key = make_cache_key(endpoint, params, namespace)
        with self._lock:
            self._entries[key] = (payload, self._clock())
            self._entries.move_to_end(key)
            if self.max_entries and len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted {evicted} from cache")
        logger.debug(f"Cached {key} (TTL: {self.ttl}s)")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# Global instance
response_cache = ResponseCache()
