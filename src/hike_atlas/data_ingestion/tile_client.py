import logging
import mimetypes
from typing import Optional

import requests
import requests_cache

from hike_atlas.config.settings import Settings, settings
from hike_atlas.errors import TileFetchFailure

logger = logging.getLogger(__name__)


class TileClient:
    """
    Client for a slippy-map raster tile server (OpenStreetMap by default).
    Uses persistent caching so repeated builds do not refetch tiles.
    """

    def __init__(self, config: Optional[Settings] = None):
        config = config or settings
        self.url_template = config.TILE_URL_TEMPLATE
        self.timeout = config.TILE_TIMEOUT
        self.content_type = mimetypes.guess_type(self.url_template)[0] or "image/png"
        self.session = requests_cache.CachedSession(
            config.TILE_CACHE_NAME,
            backend=config.TILE_CACHE_BACKEND,
            expire_after=config.TILE_CACHE_EXPIRE,
        )
        self.session.headers.update({"User-Agent": config.TILE_USER_AGENT})

    def tile_url(self, zoom: int, x: int, y: int) -> str:
        return self.url_template.format(z=zoom, x=x, y=y)

    def fetch_tile(self, zoom: int, x: int, y: int) -> bytes:
        """
        Fetches a single tile.

        Raises:
            TileFetchFailure: on network errors or a non-success response.
        """
        url = self.tile_url(zoom, x, y)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise TileFetchFailure(zoom, x, y, str(e)) from e

        if not response.ok:
            raise TileFetchFailure(zoom, x, y, f"HTTP {response.status_code} {response.reason}")

        logger.debug(f"Fetched tile {url} ({len(response.content)} bytes)")
        return response.content
