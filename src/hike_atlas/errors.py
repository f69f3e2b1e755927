"""
Error taxonomy for the track analysis and map rendering pipeline.
"""


class HikeAtlasError(Exception):
    """Base class for all Hike Atlas errors."""


class MissingTrackError(HikeAtlasError, FileNotFoundError):
    """A document references a track-log that does not exist."""


class MalformedTrackError(HikeAtlasError, ValueError):
    """The track-log could not be parsed as GPX."""


class EmptyTrackError(HikeAtlasError, ValueError):
    """Statistics or a map were requested for a track without points."""


class EmptyTrackWarning(UserWarning):
    """The track-log parsed to zero points; the document is left untouched."""


class TileFetchFailure(HikeAtlasError):
    """A single map tile could not be retrieved."""

    def __init__(self, zoom: int, x: int, y: int, reason: str):
        super().__init__(f"Tile {zoom}/{x}/{y} unavailable: {reason}")
        self.zoom = zoom
        self.x = x
        self.y = y
        self.reason = reason


class TileBudgetExceeded(HikeAtlasError):
    """The viewport needs more tiles than the per-map budget allows."""

    def __init__(self, required: int, budget: int):
        super().__init__(f"Viewport requires {required} tiles (budget {budget})")
        self.required = required
        self.budget = budget
