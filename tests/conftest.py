import os

# Keep the tile cache in memory BEFORE any application imports happen
# so test runs never create a .tile_cache.sqlite in the working directory.
os.environ.setdefault("HIKE_ATLAS_TILE_CACHE_BACKEND", "memory")
