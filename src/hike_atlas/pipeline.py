import asyncio
import logging
import posixpath
import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from hike_atlas.config.settings import Settings, settings
from hike_atlas.data_ingestion.gpx_processor import GPXProcessor, TrackPoint
from hike_atlas.errors import EmptyTrackWarning, MalformedTrackError, MissingTrackError
from hike_atlas.feature_engineering.trip_stats import TrackStatistics, TripStatsCalculator
from hike_atlas.mapping.compositor import render_svg
from hike_atlas.mapping.projection import compute_viewport, project
from hike_atlas.mapping.tile_fetcher import TileFetcher
from hike_atlas.protocols import DocumentStore, TileSource
from hike_atlas.utils.async_utils import gather_bounded, to_thread
from hike_atlas.utils.front_matter import update_front_matter
from hike_atlas.utils.tile_cache import TileCache

logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    processed: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)


def _stem(path: str) -> str:
    return posixpath.splitext(posixpath.basename(path))[0]


class HikeDataPipeline:
    """
    Orchestrates track analysis and map rendering for hike documents.

    Storage and the tile source are injected. One pipeline instance is one
    batch run: its tile cache is shared by every track it processes.
    """

    def __init__(
        self,
        store: DocumentStore,
        tile_source: TileSource,
        config: Optional[Settings] = None,
        tile_cache: Optional[TileCache] = None,
    ):
        self.store = store
        self.config = config or settings
        self.tile_cache = tile_cache if tile_cache is not None else TileCache()
        self.calculator = TripStatsCalculator.from_settings(self.config)
        self.fetcher = TileFetcher(
            tile_source,
            max_tiles=self.config.MAX_TILES,
            concurrency=self.config.TILE_CONCURRENCY,
            cache=self.tile_cache,
        )

    def track_path_for(self, document_path: str) -> str:
        return posixpath.join(self.config.GPX_DIR, f"{_stem(document_path)}.gpx")

    def map_path_for(self, track_path: str) -> str:
        return posixpath.join(self.config.MAPS_DIR, f"{_stem(track_path)}.svg")

    async def process(self, track_path: str, document: Union[str, bytes]) -> bytes:
        """
        Injects trip statistics and a map reference into `document`.

        A track-log that cannot be parsed or holds no usable points leaves the
        document unchanged.

        Raises:
            MissingTrackError: if the track-log does not exist.
        """
        text = document.decode("utf-8") if isinstance(document, bytes) else document

        if not await to_thread(self.store.exists, track_path):
            raise MissingTrackError(f"GPX file not found at {track_path}")

        logger.info(f"Starting pipeline for {track_path}")
        gpx_content = await to_thread(self.store.read_text, track_path)
        try:
            points = await to_thread(self.load_points, track_path, gpx_content)
        except MalformedTrackError as e:
            logger.warning(f"Leaving document unchanged: {e}")
            return text.encode("utf-8")

        if not points:
            message = f"No track points found in {track_path}"
            logger.warning(message)
            warnings.warn(message, EmptyTrackWarning, stacklevel=2)
            return text.encode("utf-8")

        stats, svg = await asyncio.gather(
            to_thread(self.calculator.calculate, points),
            self.render_map(points),
        )

        map_path = self.map_path_for(track_path)
        await to_thread(self.store.write_text, map_path, svg)

        updates = self.front_matter_updates(stats, map_path)
        logger.info(f"Pipeline complete for {track_path}: {stats.distance_km} km, +{stats.gain_m} m")
        return update_front_matter(text, updates).encode("utf-8")

    @staticmethod
    def load_points(track_path: str, gpx_content: str) -> List[TrackPoint]:
        processor = GPXProcessor(file_path=track_path)
        processor.load_from_string(gpx_content)
        return processor.to_points()

    async def render_map(self, points: Sequence[TrackPoint]) -> str:
        width, height = self.config.CANVAS_WIDTH, self.config.CANVAS_HEIGHT
        viewport = compute_viewport(points, width, height)
        tiles = await self.fetcher.fetch(viewport)
        return render_svg(
            viewport,
            tiles,
            project(points, viewport.zoom),
            width=width,
            height=height,
            route_color=self.config.ROUTE_COLOR,
        )

    @staticmethod
    def front_matter_updates(stats: TrackStatistics, map_path: str) -> Dict[str, object]:
        updates: Dict[str, object] = dict(stats.to_front_matter())
        updates["map"] = f"./{map_path}"
        return updates

    async def process_document(self, document_path: str) -> bytes:
        """Processes a stored document against its track-log and writes it back."""
        document = await to_thread(self.store.read_text, document_path)
        updated = await self.process(self.track_path_for(document_path), document)
        if updated.decode("utf-8") != document:
            await to_thread(self.store.write_text, document_path, updated.decode("utf-8"))
        return updated

    async def process_batch(self, document_paths: Sequence[str], concurrency: int = 4) -> BatchReport:
        """
        Processes many documents with bounded concurrency.
        A failing document is recorded in the report and never stops the batch.
        """
        report = BatchReport()

        async def run_one(path: str) -> None:
            try:
                await self.process_document(path)
            except Exception as e:
                logger.error(f"Failed to process {path}: {e}")
                report.failed[path] = str(e)
            else:
                report.processed.append(path)

        await gather_bounded([lambda p=p: run_one(p) for p in document_paths], concurrency)
        logger.info(
            f"Batch complete: {len(report.processed)} processed, {len(report.failed)} failed, "
            f"{len(self.tile_cache)} tiles cached"
        )
        return report

    def run(self, track_path: str, document: Union[str, bytes]) -> bytes:
        """Synchronous entry point for a single document."""
        return asyncio.run(self.process(track_path, document))
