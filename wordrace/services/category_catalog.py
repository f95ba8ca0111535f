"""Category catalog service.

Owns the category lists served to the selector and the cached difficulty
scores. Entries are refreshed on read once their TTL lapses; the built-in
pools are used whenever no remote catalog is configured or it is unreachable.
"""
import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Tuple

import aiohttp
from aiohttp import ClientError, ClientTimeout

from wordrace.config import get_settings
from wordrace.services.category_pool import BASE_CATEGORY_POOL, MINI_CATEGORY_POOL, CategoryItem
from wordrace.utils.cache import SimpleCache

logger = logging.getLogger(__name__)

BASE_KEY = "categories:base"
MINI_KEY = "categories:mini"
DIFFICULTY_PREFIX = "difficulty:"


def _parse_items(raw) -> Tuple[CategoryItem, ...]:
    items = []
    for entry in raw or []:
        if not isinstance(entry, dict):
            continue
        category_id = str(entry.get("id") or "").strip()
        name = str(entry.get("name") or "").strip()
        if category_id and name:
            items.append(CategoryItem(category_id, name))
    return tuple(items)


class CategoryCatalog:
    """TTL-cached access to base and mini category pools."""

    def __init__(self, catalog_url: str = "", ttl_seconds: float = 300.0):
        self.catalog_url = catalog_url.rstrip("/")
        self.ttl_seconds = ttl_seconds
        self._cache = SimpleCache(default_ttl=ttl_seconds)

    async def get_base_categories(self) -> Tuple[CategoryItem, ...]:
        cached = self._cache.get(BASE_KEY)
        if cached is None:
            await self.refresh()
            cached = self._cache.get(BASE_KEY) or BASE_CATEGORY_POOL
        return cached

    async def get_mini_categories(self) -> Tuple[CategoryItem, ...]:
        cached = self._cache.get(MINI_KEY)
        if cached is None:
            await self.refresh()
            cached = self._cache.get(MINI_KEY) or MINI_CATEGORY_POOL
        return cached

    async def refresh(self) -> None:
        """Reload both pools, falling back to the built-in lists."""
        base, mini = BASE_CATEGORY_POOL, MINI_CATEGORY_POOL

        if self.catalog_url:
            remote = await self._fetch_remote()
            if remote is not None:
                remote_base, remote_mini = remote
                base = remote_base or base
                mini = remote_mini or mini

        self._cache.set(BASE_KEY, base)
        self._cache.set(MINI_KEY, mini)
        logger.debug(f"Category catalog refreshed: {len(base)} base, {len(mini)} mini")

    async def _fetch_remote(self) -> Optional[Tuple[Tuple[CategoryItem, ...], Tuple[CategoryItem, ...]]]:
        try:
            async with aiohttp.ClientSession(timeout=ClientTimeout(total=5)) as session:
                async with session.get(self.catalog_url) as response:
                    if response.status != 200:
                        logger.warning(f"Category catalog returned {response.status}, using built-in pools")
                        return None
                    data = await response.json()
        except asyncio.TimeoutError:
            logger.warning("Category catalog request timed out, using built-in pools")
            return None
        except ClientError as e:
            logger.warning(f"Category catalog unavailable, using built-in pools: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Unexpected category catalog payload: {type(data)}")
            return None

        return _parse_items(data.get("base")), _parse_items(data.get("mini"))

    def get_cached_difficulties(self, names: Iterable[str]) -> Tuple[Dict[str, int], List[str]]:
        """Split ``names`` into cached difficulty scores and names still to load."""
        found, missing = self._cache.get_many(f"{DIFFICULTY_PREFIX}{name}" for name in names)
        prefix_length = len(DIFFICULTY_PREFIX)
        return (
            {key[prefix_length:]: value for key, value in found.items()},
            [key[prefix_length:] for key in missing],
        )

    def store_difficulties(self, scores: Dict[str, int]) -> None:
        self._cache.set_many({f"{DIFFICULTY_PREFIX}{name}": score for name, score in scores.items()})

    def last_refreshed_at(self) -> Optional[float]:
        """Epoch seconds of the last pool refresh, None before the first read."""
        return self._cache.refreshed_at(BASE_KEY)

    def invalidate_difficulties(self) -> None:
        self._cache.invalidate_prefix(DIFFICULTY_PREFIX)

    def clear(self) -> None:
        self._cache.clear()


_category_catalog: Optional[CategoryCatalog] = None


def get_category_catalog() -> CategoryCatalog:
    """Get the application's category catalog instance."""
    global _category_catalog
    if _category_catalog is None:
        settings = get_settings()
        _category_catalog = CategoryCatalog(
            catalog_url=settings.category_catalog_url,
            ttl_seconds=settings.category_cache_ttl_seconds,
        )
    return _category_catalog
