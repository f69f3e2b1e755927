import asyncio
import glob
import os
import sys

# Ensure src is in path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "src")))

from hike_atlas.config.logging import setup_logging
from hike_atlas.config.settings import settings
from hike_atlas.data_ingestion.tile_client import TileClient
from hike_atlas.feature_engineering.hike_summary import save_summary, summarize_hikes
from hike_atlas.pipeline import HikeDataPipeline
from hike_atlas.storage import FileSystemStore
from hike_atlas.utils.front_matter import parse_front_matter

HIKES_PATTERN = "src/content/hikes/*.mdx"


def main():
    setup_logging()
    store = FileSystemStore()
    documents = sorted(glob.glob(HIKES_PATTERN))
    if not documents:
        print(f"No documents match {HIKES_PATTERN}")
        return

    pipeline = HikeDataPipeline(store, TileClient())
    report = asyncio.run(pipeline.process_batch(documents))

    front_matters = {}
    for path in documents:
        data, _ = parse_front_matter(store.read_text(path))
        front_matters[os.path.splitext(os.path.basename(path))[0]] = data
    summary = summarize_hikes(front_matters, extra_slept_nights=settings.EXTRA_SLEPT_NIGHTS)
    save_summary(store, summary, settings.SUMMARY_PATH)

    print(f"Processed {len(report.processed)} hikes, {len(report.failed)} failed")
    for path, error in report.failed.items():
        print(f"  {path}: {error}")
    print(
        f"Totals: {summary.total} hikes, {summary.distance}, {summary.elevation}, {summary.time}, "
        f"{summary.slept_nights} nights out"
    )


if __name__ == "__main__":
    main()
