import logging
import math
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from hike_atlas.config.settings import Settings, settings
from hike_atlas.data_ingestion.gpx_processor import TrackPoint
from hike_atlas.errors import EmptyTrackError
from hike_atlas.feature_engineering.elevation import DeadBandAccumulator, smooth_elevations
from hike_atlas.feature_engineering.geodesic import haversine_km, segment_distances_km

logger = logging.getLogger(__name__)


class TripShape(str, Enum):
    LOOP = "Loop"
    OUT_AND_BACK = "A/R"


def format_duration(duration: timedelta) -> str:
    """Formats a duration as '<H>h <M>m', or 'N/A' when it is not positive."""
    total_seconds = duration.total_seconds()
    if total_seconds <= 0:
        return "N/A"
    hours = int(total_seconds // 3600)
    minutes = int((total_seconds % 3600) // 60)
    return f"{hours}h {minutes}m"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class TrackStatistics(BaseModel):
    """
    Aggregate statistics of a single track.
    """

    model_config = ConfigDict(frozen=True)

    distance_km: str
    gain_m: int
    loss_m: int
    max_ele_m: int
    min_ele_m: int
    moving_time: timedelta
    total_time: timedelta
    shape: TripShape

    def to_front_matter(self) -> Dict[str, Any]:
        """Renders the statistics under the document metadata keys."""
        return {
            "distance": self.distance_km,
            "gain": self.gain_m,
            "loss": self.loss_m,
            "maxEle": self.max_ele_m,
            "minEle": self.min_ele_m,
            "type": self.shape.value,
            "movingTime": format_duration(self.moving_time),
            "totalTime": format_duration(self.total_time),
        }


class TripStatsCalculator:
    """
    Computes distance, elevation and timing statistics for a track.

    Gain and loss run on smoothed elevations through a dead-band accumulator;
    min/max elevation use the raw samples. Moving time only counts segments
    whose speed is plausible for someone on foot.
    """

    def __init__(
        self,
        smoothing_window: int = 5,
        elevation_threshold: float = 2.0,
        min_moving_speed: float = 0.5,  # m/s, ~1.8 km/h
        max_moving_speed: float = 15.0,  # m/s, faster is GPS error
        loop_distance_km: float = 0.5,
        loop_ratio: float = 0.05,
    ):
        self.smoothing_window = smoothing_window
        self.elevation_threshold = elevation_threshold
        self.min_moving_speed = min_moving_speed
        self.max_moving_speed = max_moving_speed
        self.loop_distance_km = loop_distance_km
        self.loop_ratio = loop_ratio

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "TripStatsCalculator":
        config = config or settings
        return cls(
            smoothing_window=config.SMOOTHING_WINDOW,
            elevation_threshold=config.ELEVATION_THRESHOLD,
        )

    def calculate(self, points: Sequence[TrackPoint]) -> TrackStatistics:
        if not points:
            raise EmptyTrackError("Cannot compute statistics for a track without points")

        segment_km = segment_distances_km(points)
        smoothed = smooth_elevations([p.ele for p in points], self.smoothing_window)
        accumulator = DeadBandAccumulator(self.elevation_threshold)

        distance = 0.0
        moving_seconds = 0.0
        min_ele = max_ele = points[0].ele

        for i in range(1, len(points)):
            previous, current = points[i - 1], points[i]
            segment = float(segment_km[i - 1])
            distance += segment

            accumulator.push(float(smoothed[i] - smoothed[i - 1]))

            min_ele = min(min_ele, current.ele)
            max_ele = max(max_ele, current.ele)

            if previous.time is None or current.time is None:
                continue
            elapsed = (current.time - previous.time).total_seconds()
            if elapsed > 0:
                speed = segment * 1000 / elapsed
                if self.min_moving_speed < speed < self.max_moving_speed:
                    moving_seconds += elapsed

        start, end = points[0], points[-1]
        total_time = timedelta(0)
        if start.time is not None and end.time is not None:
            total_time = end.time - start.time

        stats = TrackStatistics(
            distance_km=f"{distance:.2f}",
            gain_m=_round_half_up(accumulator.gain),
            loss_m=_round_half_up(accumulator.loss),
            max_ele_m=_round_half_up(max_ele),
            min_ele_m=_round_half_up(min_ele),
            moving_time=timedelta(seconds=moving_seconds),
            total_time=total_time,
            shape=self.classify_shape(start, end, distance),
        )
        logger.debug(f"Computed statistics for {len(points)} points: {stats}")
        return stats

    def classify_shape(self, start: TrackPoint, end: TrackPoint, distance_km: float) -> TripShape:
        """A track is a loop when it ends close to its start, in absolute or relative terms."""
        gap = haversine_km(start, end)
        if gap < self.loop_distance_km or gap < distance_km * self.loop_ratio:
            return TripShape.LOOP
        return TripShape.OUT_AND_BACK


def calculate_stats(points: Sequence[TrackPoint]) -> TrackStatistics:
    """Computes statistics with the configured smoothing window and threshold."""
    return TripStatsCalculator.from_settings().calculate(points)
