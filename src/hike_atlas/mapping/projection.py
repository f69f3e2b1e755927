"""
Web-Mercator projection onto the slippy-map tile grid.

World coordinates lie in [0, 1) on both axes with the origin at the top-left
(180°W, ~85°N). At zoom z a world coordinate maps to global pixels by
multiplying with TILE_SIZE * 2**z.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from hike_atlas.errors import EmptyTrackError
from hike_atlas.feature_engineering.geodesic import LatLon

TILE_SIZE = 256
MIN_ZOOM = 1
MAX_ZOOM = 18
PAD_FACTOR = 1.2
FILL_RATIO = 0.8  # share of the canvas the track should occupy


@dataclass(frozen=True)
class BoundingBox:
    """Track bounds in world coordinates (y grows southwards)."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def dx(self) -> float:
        return self.max_x - self.min_x

    @property
    def dy(self) -> float:
        return self.max_y - self.min_y


@dataclass(frozen=True)
class Viewport:
    """
    Visible region in global pixel space at `zoom`.

    `scale` is the number of global pixels per canvas pixel.
    """

    zoom: int
    min_x: float
    min_y: float
    max_x: float
    max_y: float
    scale: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def tile_range(self) -> Tuple[range, range]:
        """Tile columns and rows whose 256px cells intersect the viewport."""
        x_range = range(math.floor(self.min_x / TILE_SIZE), math.floor(self.max_x / TILE_SIZE) + 1)
        y_range = range(math.floor(self.min_y / TILE_SIZE), math.floor(self.max_y / TILE_SIZE) + 1)
        return x_range, y_range

    def tile_count(self) -> int:
        x_range, y_range = self.tile_range()
        return len(x_range) * len(y_range)


def world_x(lon: float) -> float:
    return (lon + 180.0) / 360.0


def world_y(lat: float) -> float:
    lat_rad = math.radians(lat)
    return (1.0 - math.log(math.tan(lat_rad) + 1.0 / math.cos(lat_rad)) / math.pi) / 2.0


def to_pixel(point: LatLon, zoom: int) -> Tuple[float, float]:
    world_size = TILE_SIZE * 2**zoom
    return world_x(point.lon) * world_size, world_y(point.lat) * world_size


def bounding_box(points: Sequence[LatLon]) -> BoundingBox:
    if not points:
        raise EmptyTrackError("Cannot compute the bounds of a track without points")

    lats = [p.lat for p in points]
    lons = [p.lon for p in points]
    # Northernmost latitude has the smallest world y.
    return BoundingBox(
        min_x=world_x(min(lons)),
        min_y=world_y(max(lats)),
        max_x=world_x(max(lons)),
        max_y=world_y(min(lats)),
    )


def choose_zoom(bbox: BoundingBox, width: int = 600, height: int = 400, pad: float = PAD_FACTOR) -> int:
    """
    Largest zoom at which the padded bounding box still fits the canvas,
    clamped to [MIN_ZOOM, MAX_ZOOM]. A zero extent does not constrain its axis.
    """
    candidates = []
    if bbox.dx > 0:
        candidates.append(math.log2(width * pad / (bbox.dx * TILE_SIZE)))
    if bbox.dy > 0:
        candidates.append(math.log2(height * pad / (bbox.dy * TILE_SIZE)))

    if not candidates:
        return MAX_ZOOM
    zoom = math.floor(min(candidates))
    return min(max(zoom, MIN_ZOOM), MAX_ZOOM)


def compute_viewport(points: Sequence[LatLon], width: int = 600, height: int = 400) -> Viewport:
    """
    Viewport centered on the track, with the canvas aspect ratio, sized so the
    track fills FILL_RATIO of the canvas along its tighter axis.
    """
    bbox = bounding_box(points)
    zoom = choose_zoom(bbox, width, height)
    world_size = TILE_SIZE * 2**zoom

    p_min_x, p_max_x = bbox.min_x * world_size, bbox.max_x * world_size
    p_min_y, p_max_y = bbox.min_y * world_size, bbox.max_y * world_size

    scale = max(
        (p_max_x - p_min_x) / (width * FILL_RATIO),
        (p_max_y - p_min_y) / (height * FILL_RATIO),
    )
    if scale <= 0:
        scale = 1.0

    view_width = width * scale
    view_height = height * scale
    center_x = (p_min_x + p_max_x) / 2
    center_y = (p_min_y + p_max_y) / 2

    return Viewport(
        zoom=zoom,
        min_x=center_x - view_width / 2,
        min_y=center_y - view_height / 2,
        max_x=center_x + view_width / 2,
        max_y=center_y + view_height / 2,
        scale=scale,
    )


def project(points: Sequence[LatLon], zoom: int) -> List[Tuple[float, float]]:
    """Global pixel positions of the raw track points."""
    return [to_pixel(p, zoom) for p in points]
