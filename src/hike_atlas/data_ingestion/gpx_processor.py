import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import gpxpy
import gpxpy.gpx
import numpy as np
import polars as pl

from hike_atlas.errors import MalformedTrackError
from hike_atlas.feature_engineering.geodesic import segment_distances_km

logger = logging.getLogger(__name__)

_TRKPT_RE = re.compile(r"<(?:\w+:)?trkpt\b([^>]*?)(?:/>|>.*?</(?:\w+:)?trkpt\s*>)", re.DOTALL)
_COORD_ATTR_RE = re.compile(r"\b(lat|lon)\s*=\s*([\"'])(.*?)\2", re.DOTALL)


@dataclass(frozen=True)
class TrackPoint:
    """A single track-log sample."""

    lat: float
    lon: float
    ele: float = 0.0
    time: Optional[datetime] = None


class GPXProcessor:
    """
    Ingests GPX track-logs for the Hike Atlas.
    Flattens every track point in document order and drops unusable samples.
    """

    def __init__(self, file_path: Optional[str] = None):
        """
        Args:
            file_path: Path to the GPX file. Optional if loading from string later.
        """
        self.file_path = file_path
        self._raw_gpx: Optional[Any] = None
        self._points: Optional[List[TrackPoint]] = None

    def load_from_file(self) -> None:
        """Loads and parses the GPX file from the file_path."""
        if not self.file_path:
            raise ValueError("file_path must be set to load from file")

        logger.info(f"Loading GPX file from {self.file_path}")
        with open(self.file_path, "r", encoding="utf-8") as f:
            self.load_from_string(f.read())

    def load_from_string(self, gpx_content: str) -> None:
        """
        Loads and parses GPX data from a string.

        Track points whose lat/lon attributes are missing or not numbers are
        dropped before parsing; the rest of the track is kept.

        Raises:
            MalformedTrackError: if the document itself cannot be parsed.
        """
        source = self.file_path or "<string>"
        gpx_content, dropped = _drop_unreadable_points(gpx_content)
        if dropped:
            logger.warning(f"Dropped {dropped} track points with non-numeric coordinates from {source}.")
        try:
            self._raw_gpx = gpxpy.parse(gpx_content)
        except (gpxpy.gpx.GPXException, ValueError) as e:
            raise MalformedTrackError(f"Could not parse GPX from {source}: {e}") from e
        self._points = None

    def to_points(self) -> List[TrackPoint]:
        """
        Returns the track points in document order.

        Missing elevations default to 0 and missing timestamps to None.
        Points whose coordinates are not finite numbers are skipped.
        An empty track yields an empty list.
        """
        if self._raw_gpx is None:
            raise ValueError("GPX data not loaded. Call load_* first.")
        if self._points is not None:
            return self._points

        points: List[TrackPoint] = []
        skipped = 0
        for track in self._raw_gpx.tracks:
            for segment in track.segments:
                for point in segment.points:
                    if not _is_finite(point.latitude) or not _is_finite(point.longitude):
                        skipped += 1
                        continue
                    elevation = point.elevation if _is_finite(point.elevation) else 0.0
                    points.append(
                        TrackPoint(
                            lat=float(point.latitude),
                            lon=float(point.longitude),
                            ele=float(elevation),
                            time=point.time,
                        )
                    )

        if skipped:
            logger.warning(f"Skipped {skipped} track points with malformed coordinates.")
        if not points:
            logger.warning("No points found in GPX.")

        self._points = points
        return points

    def to_dataframe(self) -> pl.DataFrame:
        """
        Converts the track points to a Polars DataFrame with
        per-segment and cumulative distance in meters.
        """
        points = self.to_points()
        if not points:
            return pl.DataFrame()

        data: List[Dict] = [
            {"time": p.time, "latitude": p.lat, "longitude": p.lon, "elevation": p.ele}
            for p in points
        ]
        df = pl.DataFrame(data)

        # dist[i] is the distance from point i-1 to point i; point 0 has none.
        dist = np.concatenate(([0.0], segment_distances_km(points) * 1000.0))
        df = df.with_columns(pl.Series("segment_dist", dist))
        df = df.with_columns(pl.col("segment_dist").cum_sum().alias("distance"))
        return df


def _is_finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


def _coordinate_is_readable(attributes: str) -> bool:
    values = {name: value for name, _, value in _COORD_ATTR_RE.findall(attributes)}
    if set(values) != {"lat", "lon"}:
        return False
    try:
        float(values["lat"])
        float(values["lon"])
    except ValueError:
        return False
    return True


def _drop_unreadable_points(gpx_content: str) -> Tuple[str, int]:
    """Removes <trkpt> elements gpxpy would reject for their coordinates."""
    dropped = 0

    def replace(match: "re.Match[str]") -> str:
        nonlocal dropped
        if _coordinate_is_readable(match.group(1)):
            return match.group(0)
        dropped += 1
        return ""

    return _TRKPT_RE.sub(replace, gpx_content), dropped
