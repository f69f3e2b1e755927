"""
Composites map tiles and the route into a standalone SVG document.

The SVG's viewBox is the viewport in global pixel space, so tiles are placed
at their absolute pixel positions and the route uses raw projected points.
Tile imagery is embedded as base64 data URIs; the output has no external
references.
"""

import base64
from typing import Iterable, List, Sequence, Tuple
from xml.sax.saxutils import quoteattr

from hike_atlas.mapping.projection import TILE_SIZE, Viewport
from hike_atlas.mapping.tile_fetcher import TileImage

DEFAULT_ROUTE_COLOR = "oklch(0.45 0.12 145)"
ROUTE_WIDTH = 4  # canvas pixels

_DEFS = """  <defs>
    <filter id="shadow" x="-50%" y="-50%" width="200%" height="200%">
      <feDropShadow dx="2" dy="2" stdDeviation="2" flood-color="#000" flood-opacity="0.5"/>
    </filter>
    <filter id="grayscale">
      <feColorMatrix type="saturate" values="0"/>
    </filter>
  </defs>"""


def build_path_data(pixels: Sequence[Tuple[float, float]]) -> str:
    """SVG path commands for a polyline through `pixels`."""
    if not pixels:
        return ""
    first_x, first_y = pixels[0]
    commands = [f"M {first_x:.2f} {first_y:.2f}"]
    commands.extend(f"L {x:.2f} {y:.2f}" for x, y in pixels[1:])
    return " ".join(commands)


def _tile_element(tile: TileImage) -> str:
    encoded = base64.b64encode(tile.data or b"").decode("ascii")
    href = f"data:{tile.content_type};base64,{encoded}"
    return (
        f'<image x="{tile.x * TILE_SIZE}" y="{tile.y * TILE_SIZE}" '
        f'width="{TILE_SIZE}" height="{TILE_SIZE}" href={quoteattr(href)} />'
    )


def render_svg(
    viewport: Viewport,
    tiles: Iterable[TileImage],
    pixels: Sequence[Tuple[float, float]],
    width: int = 600,
    height: int = 400,
    route_color: str = DEFAULT_ROUTE_COLOR,
) -> str:
    """
    Renders the map artifact.

    Absent tiles are left out, leaving a transparent gap. The imagery layer is
    desaturated and translucent; the route is drawn on top with a drop shadow
    and a stroke scaled so it looks the same at every zoom.
    """
    view_box = (
        f"{viewport.min_x:.2f} {viewport.min_y:.2f} "
        f"{viewport.width:.2f} {viewport.height:.2f}"
    )
    images: List[str] = [_tile_element(t) for t in tiles if t.present]
    stroke_width = ROUTE_WIDTH * viewport.scale

    lines = [
        f'<svg width="{width}" height="{height}" viewBox="{view_box}" '
        'xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink">',
        _DEFS,
        '  <g id="map-layer" filter="url(#grayscale)" opacity="0.8">',
        *(f"    {image}" for image in images),
        "  </g>",
        f'  <path d="{build_path_data(pixels)}" stroke={quoteattr(route_color)} '
        f'stroke-width="{stroke_width:.4f}" fill="none" stroke-linecap="round" '
        'stroke-linejoin="round" filter="url(#shadow)"/>',
        "</svg>",
    ]
    return "\n".join(lines) + "\n"
