"""
Interaction Models for Deck Editor
===================================

Models for pointer gestures on the canvas and for the click-to-insert flow.
"""

from enum import Enum
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict

from .canvas_models import Geometry


class ResizeDirection(str, Enum):
    """One of the eight resize handles (4 corners + 4 edge midpoints)."""
    TOP_LEFT = "top-left"
    TOP = "top"
    TOP_RIGHT = "top-right"
    LEFT = "left"
    RIGHT = "right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM = "bottom"
    BOTTOM_RIGHT = "bottom-right"

    @property
    def edges(self) -> FrozenSet[str]:
        """Edges moved by this handle, e.g. bottom-right -> {bottom, right}."""
        return frozenset(self.value.split("-"))


class GestureMode(str, Enum):
    MOVE = "move"
    RESIZE = "resize"


class EngineState(str, Enum):
    """State of the interaction engine."""
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"


class CanvasSize(BaseModel):
    """Live pixel size of the canvas bounding box."""
    width: float
    height: float

    @property
    def is_measurable(self) -> bool:
        return self.width > 0 and self.height > 0


class PointerPosition(BaseModel):
    """Pointer coordinates in pixels."""
    x: float
    y: float


class GestureSnapshot(BaseModel):
    """Start-of-gesture state. Immutable for the lifetime of the gesture."""
    model_config = ConfigDict(frozen=True)

    element_id: str
    mode: GestureMode
    direction: Optional[ResizeDirection] = None
    geometry: Geometry
    pointer_x: float
    pointer_y: float


class InsertionState(str, Enum):
    """State of the click-to-insert affordance."""
    BROWSING = "browsing"
    AWAITING_TYPE_CHOICE = "awaiting_type_choice"
    AWAITING_PROMPT = "awaiting_prompt"
    GENERATING = "generating"


class InsertableKind(str, Enum):
    """Element kinds that can be added by clicking the empty canvas."""
    TEXT = "text"
    IMAGE = "image"
    ICON = "icon"


class RefinementType(str, Enum):
    """Rewrites offered for a selected text element."""
    SHORTEN = "shorten"
    REPHRASE = "rephrase"
    EXPAND = "expand"
