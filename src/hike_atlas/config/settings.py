from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings managed by Pydantic Settings.
    Reads from HIKE_ATLAS_* environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="HIKE_ATLAS_", extra="ignore"
    )

    # Tile source
    TILE_URL_TEMPLATE: str = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"
    TILE_USER_AGENT: str = "Hike-Atlas-Map-Generator/1.0"
    TILE_TIMEOUT: float = 10.0
    TILE_CACHE_NAME: str = ".tile_cache"
    TILE_CACHE_BACKEND: str = "sqlite"
    TILE_CACHE_EXPIRE: int = 2592000  # 30 days
    MAX_TILES: int = 50
    TILE_CONCURRENCY: int = 8

    # Map canvas
    CANVAS_WIDTH: int = 600
    CANVAS_HEIGHT: int = 400
    ROUTE_COLOR: str = "oklch(0.45 0.12 145)"

    # Statistics
    SMOOTHING_WINDOW: int = 5
    ELEVATION_THRESHOLD: float = 2.0  # meters

    # Content layout
    GPX_DIR: str = "src/content/assets/gpxs"
    MAPS_DIR: str = "src/content/assets/maps"
    SUMMARY_PATH: str = "src/content/assets/global_state.json"

    # Nights out not tied to a published hike
    EXTRA_SLEPT_NIGHTS: int = 0


settings = Settings()
