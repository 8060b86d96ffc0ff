import threading
import time
from typing import Callable, Optional

from .models import StatsResponse
from .settings import settings as global_settings
from .utils import utc_now


class StatsCache:
    """Holds one StatsResponse for ``ttl`` seconds."""

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._value: Optional[StatsResponse] = None
        self._stored_at = 0.0

    def get(self) -> Optional[StatsResponse]:
        with self._lock:
            if self._value is None:
                return None
            if self._clock() - self._stored_at >= self.ttl:
                self._value = None
                return None
            return self._value

    def set(self, value: StatsResponse) -> None:
        with self._lock:
            self._value = value
            self._stored_at = self._clock()

    def clear(self) -> None:
        with self._lock:
            self._value = None


class StatsService:
    def __init__(self, store, cache: Optional[StatsCache] = None, settings=None):
        self.store = store
        self.settings = settings or global_settings
        self.cache = cache or StatsCache(self.settings.STATS_CACHE_TTL_SEC)

    def get_statistics(self) -> StatsResponse:
        cached = self.cache.get()
        if cached is not None:
            return cached
        with self.store.session():
            stats = StatsResponse(
                total_rows=self.store.count_rows(),
                total_files=self.store.count_files(),
                last_update=self.store.latest_import_time() or utc_now(),
            )
        self.cache.set(stats)
        return stats
