"""
Layout helpers for positioning scene elements.

- Row-major grid placement for ``layout_grid``
- Label size estimation and container autosizing for labelled shapes
- Fitting frames around their children
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from scene_mcp.models import SHAPE_TYPES, Bounds, Element, Label, Point


@dataclass
class LabelMetrics:
    """Heuristic text metrics used when no font renderer is available."""
    default_font_size: float = 18
    min_font_size: float = 10
    char_width: float = 0.6     # times font size
    line_height: float = 1.4    # times font size
    padding: float = 12
    min_width: float = 120
    min_height: float = 48


DEFAULT_METRICS = LabelMetrics()

# Space left around children when a frame is fitted to them.
FRAME_PADDING = 20


def grid_positions(
    ids: list[str],
    origin: Point,
    cols: int,
    gap_x: float = 200,
    gap_y: float = 120,
) -> dict[str, Point]:
    """Return the top-left position of each id in a row-major grid.

    The i-th id lands in column ``i % cols`` and row ``i // cols``.
    """
    positions: dict[str, Point] = {}
    for i, eid in enumerate(ids):
        col = i % cols
        row = i // cols
        positions[eid] = Point(origin.x + col * gap_x, origin.y + row * gap_y)
    return positions


def estimate_label_size(
    label: Label,
    metrics: LabelMetrics = DEFAULT_METRICS,
) -> tuple[float, float]:
    """Approximate the rendered (width, height) of a label's text."""
    font_size = max(metrics.min_font_size, label.font_size or metrics.default_font_size)
    lines = label.text.split("\n")
    longest = max(1, max(len(line) for line in lines))
    width = longest * font_size * metrics.char_width
    height = len(lines) * font_size * metrics.line_height
    return width, height


def autosize_container(
    element: Element,
    metrics: LabelMetrics = DEFAULT_METRICS,
) -> Element:
    """Grow a labelled rectangle/ellipse/diamond so its label fits.

    Never shrinks an element.  Missing label alignment defaults to
    center/middle.  Other kinds are left untouched.
    """
    if element.type not in SHAPE_TYPES or element.label is None:
        return element
    text_w, text_h = estimate_label_size(element.label, metrics)
    element.width = max(
        element.width or 0,
        math.ceil(text_w) + metrics.padding * 2,
        metrics.min_width,
    )
    element.height = max(
        element.height or 0,
        math.ceil(text_h) + metrics.padding * 2,
        metrics.min_height,
    )
    if element.label.text_align is None:
        element.label.text_align = "center"
    if element.label.vertical_align is None:
        element.label.vertical_align = "middle"
    return element


def union_bounds(boxes: list[Bounds]) -> Optional[Bounds]:
    """Smallest box enclosing all *boxes*, or None for an empty list."""
    if not boxes:
        return None
    boxes = [b.normalized() for b in boxes]
    x0 = min(b.x for b in boxes)
    y0 = min(b.y for b in boxes)
    x1 = max(b.right for b in boxes)
    y1 = max(b.bottom for b in boxes)
    return Bounds(x0, y0, x1 - x0, y1 - y0)


def fit_frame_to_children(
    frame: Element,
    children: list[Element],
    padding: float = FRAME_PADDING,
) -> bool:
    """Size a frame that has no explicit bounds around its children.

    Returns True when the frame was resized.  Frames with both width and
    height set, or with no resolvable children, are left as they are.
    """
    if not frame.is_frame:
        return False
    if frame.width is not None and frame.height is not None:
        return False
    box = union_bounds([c.bounds() for c in children])
    if box is None:
        return False
    frame.x = box.x - padding
    frame.y = box.y - padding
    frame.width = box.width + padding * 2
    frame.height = box.height + padding * 2
    return True
