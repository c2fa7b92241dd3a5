"""
Lazily built, memoized site content index
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

from .models import SiteContentIndex
from .site_map import SiteMapBuilder

logger = logging.getLogger(__name__)


class CacheState(str, Enum):
    UNINITIALIZED = "uninitialized"
    BUILDING = "building"
    READY = "ready"


class IndexCache:
    """Holds at most one index; concurrent callers share a single in-flight build"""

    def __init__(self, builder: SiteMapBuilder):
        self.builder = builder
        self._future: Optional[asyncio.Future] = None
        self._index: Optional[SiteContentIndex] = None
        self._generation = 0

    @property
    def state(self) -> CacheState:
        if self._index is not None:
            return CacheState.READY
        if self._future is not None:
            return CacheState.BUILDING
        return CacheState.UNINITIALIZED

    async def get_or_build(self) -> SiteContentIndex:
        """Return the cached index, starting the build on first use"""
        if self._index is not None:
            return self._index

        if self._future is None:
            logger.info("Building site content index")
            self._future = asyncio.ensure_future(self._build())

        # shield: one cancelled caller must not cancel the build for the others
        return await asyncio.shield(self._future)

    async def _build(self) -> SiteContentIndex:
        generation = self._generation
        try:
            # The scan reads files, keep it off the event loop
            index = await asyncio.to_thread(self.builder.scan)
        except Exception:
            logger.exception("Site content index build failed")
            if generation == self._generation:
                self._future = None
            raise
        # An invalidate() during the build discards this result
        if generation == self._generation:
            self._index = index
        return index

    def peek(self) -> Optional[SiteContentIndex]:
        """The ready index, or None when not built yet"""
        return self._index

    def invalidate(self):
        """Drop the cached index; the next get_or_build performs a full rebuild"""
        self._generation += 1
        self._index = None
        self._future = None
