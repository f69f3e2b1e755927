"""
Protocol interfaces for the pipeline's external collaborators.

The pipeline only talks to storage and the tile source through these
contracts, so statistics, projection and compositing can be exercised
without a filesystem or network.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TileSource(Protocol):
    """Protocol for raster map tile providers."""

    content_type: str

    def fetch_tile(self, zoom: int, x: int, y: int) -> bytes:
        """
        Fetch one slippy-map tile.

        Parameters
        ----------
        zoom : int
            Zoom level.
        x : int
            Tile column.
        y : int
            Tile row.

        Returns
        -------
        bytes
            Raw image bytes.

        Raises
        ------
        TileFetchFailure
            When the tile cannot be retrieved.
        """
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Protocol for reading and writing content files."""

    def exists(self, path: str) -> bool:
        """Whether a file exists at `path`."""
        ...

    def read_text(self, path: str) -> str:
        """Read a UTF-8 text file."""
        ...

    def write_text(self, path: str, content: str) -> None:
        """Write a UTF-8 text file, creating parent directories as needed."""
        ...
