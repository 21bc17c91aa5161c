"""
API Response Caching Layer.

File-based caching for Kickbase API responses with configurable TTL.
Falls back to stale data when the provider cannot be reached.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable

from .client import KickbaseAPIError
from .endpoints import DEFAULT_COMPETITION_ID

logger = logging.getLogger(__name__)


class CacheEntry:
    """Represents a cached item with metadata."""

    def __init__(self, data: Any, timestamp: float, ttl: int, key: str):
        self.data = data
        self.timestamp = timestamp
        self.ttl = ttl
        self.key = key

    @property
    def age(self) -> float:
        """Get age of cache entry in seconds."""
        return time.time() - self.timestamp

    @property
    def is_expired(self) -> bool:
        """Check if cache entry has expired."""
        return self.age > self.ttl

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "data": self.data,
            "timestamp": self.timestamp,
            "ttl": self.ttl,
            "key": self.key,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "CacheEntry":
        """Create from dictionary."""
        return cls(data=d["data"], timestamp=d["timestamp"], ttl=d["ttl"], key=d["key"])


class APICache:
    """
    File-based cache for API responses.

    One JSON file per key, TTL looked up per cache type.
    """

    # Default TTLs in seconds
    DEFAULT_TTLS = {
        "matches": 900,   # 15 minutes
        "ranking": 300,   # 5 minutes
        "table": 3600,    # 1 hour
        "default": 1800,  # 30 minutes
    }

    def __init__(
        self,
        cache_dir: str | Path = ".cache",
        ttls: dict[str, int] | None = None,
    ):
        """
        Initialize the cache.

        Args:
            cache_dir: Directory to store cache files
            ttls: Custom TTLs for cache types (overrides defaults)
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        self.ttls = {**self.DEFAULT_TTLS}
        if ttls:
            self.ttls.update(ttls)

    def _get_cache_path(self, key: str) -> Path:
        """Get file path for cache key."""
        safe_key = key.replace("/", "_").replace(":", "_").replace("?", "_")
        return self.cache_dir / f"{safe_key}.json"

    def _get_ttl(self, cache_type: str) -> int:
        """Get TTL for cache type."""
        return self.ttls.get(cache_type, self.ttls["default"])

    def get(self, key: str, allow_stale: bool = False) -> CacheEntry | None:
        """
        Get item from cache.

        Args:
            key: Cache key
            allow_stale: Return expired entries if True

        Returns:
            CacheEntry if found and valid, None otherwise
        """
        cache_path = self._get_cache_path(key)

        if not cache_path.exists():
            logger.debug(f"Cache miss: {key}")
            return None

        try:
            with open(cache_path, encoding="utf-8") as f:
                entry = CacheEntry.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, OSError) as e:
            logger.warning(f"Cache read error for {key}: {e}")
            return None

        if entry.is_expired and not allow_stale:
            logger.debug(f"Cache expired: {key} (age: {entry.age:.0f}s)")
            return None

        logger.debug(f"Cache hit: {key} (age: {entry.age:.0f}s)")
        return entry

    def set(
        self,
        key: str,
        data: Any,
        cache_type: str = "default",
        ttl: int | None = None,
    ) -> None:
        """
        Store item in cache.

        Args:
            key: Cache key
            data: JSON-serializable data
            cache_type: Type of cache (for default TTL)
            ttl: Custom TTL (overrides cache_type default)
        """
        cache_path = self._get_cache_path(key)
        effective_ttl = ttl if ttl is not None else self._get_ttl(cache_type)
        entry = CacheEntry(data=data, timestamp=time.time(), ttl=effective_ttl, key=key)

        try:
            with open(cache_path, "w", encoding="utf-8") as f:
                json.dump(entry.to_dict(), f)
            logger.debug(f"Cached: {key} (ttl: {effective_ttl}s)")
        except OSError as e:
            logger.warning(f"Cache write error for {key}: {e}")

    def invalidate(self, key: str) -> bool:
        """
        Invalidate (delete) a cache entry.

        Returns:
            True if entry was deleted, False if not found
        """
        cache_path = self._get_cache_path(key)

        if cache_path.exists():
            try:
                cache_path.unlink()
                logger.debug(f"Cache invalidated: {key}")
                return True
            except OSError as e:
                logger.warning(f"Cache invalidation error for {key}: {e}")

        return False

    def clear(self) -> int:
        """
        Clear all cache entries.

        Returns:
            Number of entries cleared
        """
        count = 0
        for cache_file in self.cache_dir.glob("*.json"):
            try:
                cache_file.unlink()
                count += 1
            except OSError as e:
                logger.warning(f"Could not remove {cache_file}: {e}")

        logger.info(f"Cleared {count} cache entries")
        return count


class CachedKickbaseClient:
    """
    Kickbase client wrapper with automatic caching.

    Keys never contain the token; schedules, rankings and tables are the same
    for every member of a league.
    """

    def __init__(self, client: Any, cache: APICache | None = None):
        """
        Initialize cached client.

        Args:
            client: SyncKickbaseClient instance
            cache: APICache instance (creates default if None)
        """
        self.client = client
        self.cache = cache or APICache()

    def _cached(
        self,
        key: str,
        cache_type: str,
        fetch: Callable[[], Any],
        force_refresh: bool = False,
    ) -> Any:
        """Serve from cache, fetch on miss, fall back to a stale entry on error."""
        if not force_refresh:
            entry = self.cache.get(key)
            if entry:
                return entry.data

        try:
            data = fetch()
        except KickbaseAPIError as e:
            stale = self.cache.get(key, allow_stale=True)
            if stale is None:
                raise
            logger.warning(f"Serving stale data for {key}: {e}")
            return stale.data

        self.cache.set(key, data, cache_type)
        return data

    def get_league_matches(
        self,
        league_id: str,
        token: str,
        force_refresh: bool = False,
    ) -> Any:
        """Get a league's match schedule with caching."""
        return self._cached(
            f"matches_{league_id}",
            "matches",
            lambda: self.client.get_league_matches(league_id, token),
            force_refresh,
        )

    def get_league_ranking(
        self,
        league_id: str,
        token: str,
        force_refresh: bool = False,
    ) -> Any:
        """Get a league's manager ranking with caching."""
        return self._cached(
            f"ranking_{league_id}",
            "ranking",
            lambda: self.client.get_league_ranking(league_id, token),
            force_refresh,
        )

    def get_competition_table(
        self,
        token: str,
        competition_id: str = DEFAULT_COMPETITION_ID,
        force_refresh: bool = False,
    ) -> list[dict[str, Any]]:
        """Get a competition table with caching."""
        return self._cached(
            f"table_{competition_id}",
            "table",
            lambda: self.client.get_competition_table(token, competition_id),
            force_refresh,
        )

    def get_leagues(self, token: str) -> list[dict[str, Any]]:
        """Get the user's leagues. Not cached, they depend on the token."""
        return self.client.get_leagues(token)

    def get_market(self, league_id: str, token: str) -> dict[str, Any]:
        """Get a league's transfer market. Not cached, offers change constantly."""
        return self.client.get_market(league_id, token)

    def close(self) -> None:
        """Close the client."""
        if hasattr(self.client, "close"):
            self.client.close()
