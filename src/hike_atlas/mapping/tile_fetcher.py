import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from hike_atlas.errors import TileBudgetExceeded
from hike_atlas.mapping.projection import Viewport
from hike_atlas.protocols import TileSource
from hike_atlas.utils.async_utils import gather_bounded, to_thread
from hike_atlas.utils.tile_cache import TileCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileImage:
    """A map tile; `data` is None when the tile could not be fetched."""

    x: int
    y: int
    zoom: int
    data: Optional[bytes] = None
    content_type: str = "image/png"

    @property
    def present(self) -> bool:
        return self.data is not None


class TileFetcher:
    """
    Best-effort retrieval of the tiles covering a viewport.

    A single attempt is made per tile; failures leave the tile absent.
    Viewports needing more than `max_tiles` tiles get no imagery at all.
    """

    def __init__(
        self,
        source: TileSource,
        max_tiles: int = 50,
        concurrency: int = 8,
        cache: Optional[TileCache] = None,
    ):
        self.source = source
        self.max_tiles = max_tiles
        self.concurrency = concurrency
        self.cache = cache

    def plan(self, viewport: Viewport) -> List[Tuple[int, int]]:
        """
        Tile coordinates covering the viewport.

        Raises:
            TileBudgetExceeded: if more than `max_tiles` tiles are needed.
        """
        required = viewport.tile_count()
        if required > self.max_tiles:
            raise TileBudgetExceeded(required, self.max_tiles)
        x_range, y_range = viewport.tile_range()
        return [(x, y) for x in x_range for y in y_range]

    async def fetch(self, viewport: Viewport) -> List[TileImage]:
        try:
            coords = self.plan(viewport)
        except TileBudgetExceeded as e:
            logger.warning(f"Too many tiles requested, skipping map background: {e}")
            return []

        zoom = viewport.zoom
        tiles = await gather_bounded(
            [lambda x=x, y=y: self._fetch_one(zoom, x, y) for x, y in coords],
            self.concurrency,
        )
        fetched = sum(1 for t in tiles if t.present)
        logger.info(f"Fetched {fetched}/{len(tiles)} tiles at zoom {zoom}")
        return tiles

    async def _fetch_one(self, zoom: int, x: int, y: int) -> TileImage:
        if self.cache is None:
            data = await self._download(zoom, x, y)
        else:
            data = await self.cache.get_or_fetch((zoom, x, y), lambda: self._download(zoom, x, y))
        return TileImage(x=x, y=y, zoom=zoom, data=data, content_type=self.source.content_type)

    async def _download(self, zoom: int, x: int, y: int) -> Optional[bytes]:
        """Any failure leaves the tile absent; only cancellation propagates."""
        try:
            return await to_thread(self.source.fetch_tile, zoom, x, y)
        except Exception as e:
            logger.warning(f"Failed to fetch tile {zoom}/{x}/{y}: {e}")
            return None
