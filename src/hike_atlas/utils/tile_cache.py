"""
In-memory tile cache shared by the tracks of one batch run.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

TileKey = Tuple[int, int, int]  # (zoom, x, y)


class TileCache:
    """
    Concurrent key-value cache for tile bytes keyed by (zoom, x, y).

    At most one fetch per key is in flight: callers arriving while a fetch is
    running await the same future. A fetch that yields None (tile absent) is
    remembered as absent for the lifetime of the cache. A fetch that raises is
    forgotten so a later caller can retry.
    """

    def __init__(self) -> None:
        self._entries: Dict[TileKey, "asyncio.Future[Optional[bytes]]"] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    async def get_or_fetch(
        self, key: TileKey, factory: Callable[[], Awaitable[Optional[bytes]]]
    ) -> Optional[bytes]:
        future = self._entries.get(key)
        if future is not None:
            self.hits += 1
            if future.done():
                return future.result()
            return await asyncio.shield(future)

        self.misses += 1
        future = asyncio.get_running_loop().create_future()
        self._entries[key] = future
        try:
            result = await factory()
        except asyncio.CancelledError:
            del self._entries[key]
            future.cancel()
            raise
        except Exception as e:
            del self._entries[key]
            future.set_exception(e)
            # Mark retrieved; the exception is re-raised to this caller below.
            future.exception()
            raise
        future.set_result(result)
        return result

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0
