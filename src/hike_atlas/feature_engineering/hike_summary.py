import json
import logging
import math
import re
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

import polars as pl
from pydantic import BaseModel

from hike_atlas.protocols import DocumentStore

logger = logging.getLogger(__name__)

_HOURS_RE = re.compile(r"(\d+)h")
_MINUTES_RE = re.compile(r"(\d+)m")


class LatestHike(BaseModel):
    title: Optional[str] = None
    published_on: Optional[date] = None
    slug: str


class HikeSummary(BaseModel):
    """
    Totals across all processed hikes, formatted for display.
    """

    total: int
    distance: str
    elevation: str
    time: str
    slept_nights: int = 0
    latest_hike: Optional[LatestHike] = None

    def to_global_state(self) -> Dict[str, Any]:
        """Layout of the site's global_state.json."""
        latest = None
        if self.latest_hike is not None:
            latest = self.latest_hike.model_dump(mode="json")
            latest["date"] = latest.pop("published_on")
        return {
            "latestHike": latest,
            "sleptNights": self.slept_nights,
            "hikes": self.model_dump(include={"total", "distance", "elevation", "time"}),
        }


def parse_duration_minutes(text: Optional[str]) -> int:
    """Parses '<H>h <M>m' back into minutes. Anything unparsable counts as 0."""
    if not text:
        return 0
    hours = _HOURS_RE.search(text)
    minutes = _MINUTES_RE.search(text)
    return (int(hours.group(1)) if hours else 0) * 60 + (int(minutes.group(1)) if minutes else 0)


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value).date()
        except ValueError:
            logger.warning(f"Unparsable publishedOn value: {value!r}")
    return None


def summarize_hikes(
    front_matters: Mapping[str, Mapping[str, Any]], extra_slept_nights: int = 0
) -> HikeSummary:
    """
    Aggregates injected trip statistics across documents.

    Args:
        front_matters: document slug -> parsed front matter.
        extra_slept_nights: nights out added on top of hikes marked `slept: true`.
    """
    rows: List[Dict[str, Any]] = [
        {
            "slug": slug,
            "title": data.get("title"),
            "published_on": _to_date(data.get("publishedOn")),
            "distance": _to_float(data.get("distance")),
            "gain": _to_float(data.get("gain")),
            "moving_minutes": parse_duration_minutes(data.get("movingTime")),
            "slept": data.get("slept") is True,
        }
        for slug, data in front_matters.items()
    ]

    if not rows:
        return HikeSummary(
            total=0, distance="0 km", elevation="0 m", time="0h 0m", slept_nights=extra_slept_nights
        )

    df = pl.DataFrame(
        rows,
        schema={
            "slug": pl.Utf8,
            "title": pl.Utf8,
            "published_on": pl.Date,
            "distance": pl.Float64,
            "gain": pl.Float64,
            "moving_minutes": pl.Int64,
            "slept": pl.Boolean,
        },
    )

    totals = df.select(
        pl.col("distance").sum(),
        pl.col("gain").sum(),
        pl.col("moving_minutes").sum(),
        pl.col("slept").sum(),
    ).row(0, named=True)

    latest = None
    dated = df.filter(pl.col("published_on").is_not_null()).sort("published_on", descending=True)
    if dated.height:
        row = dated.row(0, named=True)
        latest = LatestHike(title=row["title"], published_on=row["published_on"], slug=row["slug"])

    minutes = int(totals["moving_minutes"])
    return HikeSummary(
        total=df.height,
        distance=f"{math.floor(totals['distance'] + 0.5):.0f} km",
        elevation=f"{int(totals['gain']):,} m",
        time=f"{minutes // 60}h {minutes % 60}m",
        slept_nights=int(totals["slept"]) + extra_slept_nights,
        latest_hike=latest,
    )


def save_summary(store: DocumentStore, summary: HikeSummary, path: str) -> None:
    """Writes the summary as JSON for the site to read at build time."""
    store.write_text(path, json.dumps(summary.to_global_state(), indent=2) + "\n")
    logger.info(f"Saved hike summary to {path}")
