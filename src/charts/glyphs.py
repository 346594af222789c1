"""Glyph sets for chart rendering.

Every glyph is exactly one character wide, so swapping styles changes
characters only and never the grid geometry.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.constants import CHART_STYLES, DEFAULT_CHART_STYLE
from core.errors import TabstoreChartError


@dataclass(frozen=True)
class GlyphSet:
    """Characters used by the renderer for one style."""

    name: str
    bar: str
    point: str
    collision: str
    cap: str
    whisker: str
    box_edge: str
    box_side: str
    median: str
    blank: str = " "


ASCII_GLYPHS = GlyphSet(
    name="ascii",
    bar="#",
    point="*",
    collision="@",
    cap="-",
    whisker="|",
    box_edge="=",
    box_side="|",
    median="#",
)

UNICODE_GLYPHS = GlyphSet(
    name="unicode",
    bar="█",
    point="•",
    collision="◉",
    cap="─",
    whisker="│",
    box_edge="═",
    box_side="║",
    median="█",
)

_GLYPH_SETS = {glyphs.name: glyphs for glyphs in (ASCII_GLYPHS, UNICODE_GLYPHS)}


def glyphs_for(style: str) -> GlyphSet:
    """Return the glyph set for a concrete style name.

    Raises:
        TabstoreChartError: If the style is unknown or unresolved.
    """
    try:
        return _GLYPH_SETS[style]
    except KeyError as error:
        raise TabstoreChartError(
            f"Unknown chart style '{style}'. Use one of: {', '.join(CHART_STYLES)}."
        ) from error


def resolve_style(style: str, encoding: str | None) -> str:
    """Resolve ``auto`` against an output encoding; pass others through."""
    if style != DEFAULT_CHART_STYLE:
        return style
    normalized = (encoding or "").replace("-", "").replace("_", "").lower()
    return "unicode" if normalized in ("utf8", "utf16", "utf32") else "ascii"
