"""Row layout for the hierarchical SBOM graph.

Each expanded level of the graph is laid out as one horizontal row of
fixed-size boxes, centred under its anchor and kept inside the viewport.
When a row cannot fit, spacing shrinks down to ``MIN_SPACING``; boxes keep
their width, so very wide rows may still overlap.
"""

from dataclasses import dataclass

BOX_WIDTH = 200
BOX_HEIGHT = 80
SPACING = 50
MIN_SPACING = 10
LEVEL_HEIGHT = 120
GUTTER = 20


@dataclass(frozen=True)
class Position:
    """Top-left corner of a box."""

    x: float
    y: float


def row_width(count: int, spacing: float = SPACING) -> float:
    """Width of a row of ``count`` boxes."""
    if count <= 0:
        return 0.0
    return count * (BOX_WIDTH + spacing) - spacing


def row_spacing(count: int, viewport_width: float) -> float:
    """Spacing between boxes, shrunk when the nominal row overflows."""
    available = viewport_width - 2 * GUTTER
    if count <= 1 or row_width(count) <= available:
        return SPACING
    return max(MIN_SPACING, (available - count * BOX_WIDTH) / (count - 1))


def row_y(anchor_y: float, viewport_height: float) -> float:
    """Y of a row hanging below ``anchor_y``, never below the viewport."""
    return min(anchor_y + LEVEL_HEIGHT, viewport_height - BOX_HEIGHT - GUTTER)


def layout_row(
    count: int,
    level: int,
    anchor_x: float,
    anchor_y: float,
    viewport_width: float,
    viewport_height: float,
) -> list[Position]:
    """Compute box positions for one row.

    Args:
        count: Number of boxes in the row.
        level: Depth of the row (1 for the row under the root).
        anchor_x: X the row is centred under (parent's bottom centre).
        anchor_y: Y the row hangs from.
        viewport_width: Visible width.
        viewport_height: Visible height.

    Returns:
        One Position per box, left to right.
    """
    if count <= 0:
        return []

    total = row_width(count)
    # max() wins when the row is wider than the viewport
    start_x = max(GUTTER, min(anchor_x - total / 2, viewport_width - total - GUTTER))
    spacing = row_spacing(count, viewport_width)
    y = row_y(anchor_y, viewport_height)

    return [Position(start_x + i * (BOX_WIDTH + spacing), y) for i in range(count)]
