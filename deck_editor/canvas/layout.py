"""
Layout Model
============

Pure geometry helpers for elements positioned in canvas percentages.

Nothing here raises for out-of-range geometry: elements may sit partly off
the canvas or have degenerate sizes, and deciding what to do about that is
left to the caller.
"""

import logging
from typing import Dict, List, Optional, Tuple

from ..models.canvas_models import (
    ElementKind, Geometry, LayoutProposal, Slide, geometry_of, with_geometry
)
from ..models.interaction_models import CanvasSize, ResizeDirection

logger = logging.getLogger(__name__)

# Default (w, h) per element kind, in canvas percent
DEFAULT_SIZES: Dict[ElementKind, Tuple[float, float]] = {
    ElementKind.TEXT: (30.0, 10.0),
    ElementKind.IMAGE: (25.0, 30.0),
    ElementKind.ICON: (8.0, 8.0),
    ElementKind.CHART: (40.0, 40.0),
}

# Inserted boxes are shifted up-left of the click by this much (percent)
INSERT_OFFSET: Tuple[float, float] = (10.0, 5.0)

BASE_Z_INDEX = 10
SELECTED_Z_INDEX = 20


def insert_at(click_x: float, click_y: float, kind: ElementKind) -> Geometry:
    """
    Default-sized box for a new element clicked in at (click_x, click_y).

    The top-left is moved up and to the left of the click so the pointer
    lands inside the new box instead of on its corner. The top-left is
    floored at 0; no collision avoidance is done.

    Args:
        click_x: Click position as percent of canvas width
        click_y: Click position as percent of canvas height
        kind: Kind of element being inserted

    Returns:
        Geometry for the new element
    """
    w, h = DEFAULT_SIZES[ElementKind(kind)]
    offset_x, offset_y = INSERT_OFFSET
    return Geometry(
        x=max(0.0, click_x - offset_x),
        y=max(0.0, click_y - offset_y),
        w=w,
        h=h,
    )


def within_bounds(geometry: Geometry) -> bool:
    """True when the box lies entirely on the canvas."""
    return (
        geometry.x >= 0
        and geometry.y >= 0
        and geometry.x + geometry.w <= 100
        and geometry.y + geometry.h <= 100
    )


def to_percent_delta(dx_px: float, dy_px: float, canvas: CanvasSize) -> Tuple[float, float]:
    """Convert a pixel delta to canvas percentages."""
    return (dx_px / canvas.width) * 100, (dy_px / canvas.height) * 100


def apply_delta(
    snapshot: Geometry,
    direction: Optional[ResizeDirection],
    dx: float,
    dy: float
) -> Geometry:
    """
    New geometry from a start snapshot and a total percentage delta.

    ``direction=None`` is a move. For resizes every edge included in the
    handle applies its own rule:

        right  -> w + dx
        left   -> x + dx, w - dx
        bottom -> h + dy
        top    -> y + dy, h - dy

    Sizes are not clamped and may go negative.
    """
    x, y, w, h = snapshot.x, snapshot.y, snapshot.w, snapshot.h

    if direction is None:
        return Geometry(x=x + dx, y=y + dy, w=w, h=h)

    edges = ResizeDirection(direction).edges
    if "right" in edges:
        w = snapshot.w + dx
    if "left" in edges:
        x = snapshot.x + dx
        w = snapshot.w - dx
    if "bottom" in edges:
        h = snapshot.h + dy
    if "top" in edges:
        y = snapshot.y + dy
        h = snapshot.h - dy

    return Geometry(x=x, y=y, w=w, h=h)


def clamp_size(
    geometry: Geometry,
    min_size: float,
    direction: Optional[ResizeDirection] = None
) -> Geometry:
    """
    Enforce a minimum width/height.

    When the left or top edge is being dragged the opposite edge stays
    anchored, so x/y are pulled back along with the size.
    """
    x, y, w, h = geometry.x, geometry.y, geometry.w, geometry.h
    edges = ResizeDirection(direction).edges if direction else frozenset()

    if w < min_size:
        if "left" in edges:
            x -= min_size - w
        w = min_size
    if h < min_size:
        if "top" in edges:
            y -= min_size - h
        h = min_size

    return Geometry(x=x, y=y, w=w, h=h)


def stacking_order(slide: Slide, selected_id: Optional[str] = None) -> List[Tuple[str, int]]:
    """
    (element id, z-index) pairs in paint order.

    Elements keep the slide's per-kind stacking order; the selected element
    is raised above the rest.
    """
    order = []
    for element in slide.all_elements():
        z_index = SELECTED_Z_INDEX if element.id == selected_id else BASE_Z_INDEX
        order.append((element.id, z_index))
    # sort is stable, so equal z keeps document order
    return sorted(order, key=lambda pair: pair[1])


def merge_layout(slide: Slide, proposals: List[LayoutProposal]) -> Slide:
    """
    Merge a regenerated layout onto a copy of ``slide`` by element id.

    Only geometry, and styling tokens for text elements, are taken from the
    proposals. Content always comes from ``slide``; elements without a
    proposal keep their geometry and unknown ids are ignored.
    """
    incoming = {p.id: p for p in proposals}
    merged = slide.model_copy(deep=True)

    for element in merged.all_elements():
        proposal = incoming.get(element.id)
        if proposal is None:
            continue
        updated = with_geometry(element, geometry_of(proposal))
        if element.kind == ElementKind.TEXT and proposal.style_tokens is not None:
            updated = updated.model_copy(update={"style_tokens": proposal.style_tokens})
        merged.replace_element(updated)

    ignored = set(incoming) - set(merged.element_ids())
    if ignored:
        logger.warning(f"[LAYOUT] Ignoring regenerated geometry for unknown ids: {sorted(ignored)}")

    return merged
