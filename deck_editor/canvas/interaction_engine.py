"""
Interaction Engine
==================

Turns pointer events on the canvas into geometry updates, one gesture at a
time.

States: IDLE -> DRAGGING | RESIZING(direction) -> IDLE on pointer-up.

Every pointer-move recomputes geometry from the snapshot taken at
pointer-down plus the total pixel delta since then, never from the previous
move's output. Dropped or coalesced move events therefore cannot change the
final result.
"""

import logging
from typing import Callable, Optional

from ..models.canvas_models import ElementBase, Geometry, geometry_of
from ..models.interaction_models import (
    CanvasSize, EngineState, GestureMode, GestureSnapshot, PointerPosition,
    ResizeDirection
)
from .layout import apply_delta, clamp_size, to_percent_delta

logger = logging.getLogger(__name__)

GeometryCallback = Callable[[str, Geometry], None]


class InteractionEngine:
    """
    Pointer gesture state machine for one canvas.

    Usage:
        engine = InteractionEngine(on_update=apply_to_slide)
        engine.pointer_down_body(element, is_selected=True, pointer=p0, canvas=size)
        engine.pointer_move(p1, size)   # -> on_update(element_id, geometry)
        engine.pointer_up()
    """

    def __init__(self, on_update: GeometryCallback, min_size: Optional[float] = None):
        """
        Args:
            on_update: Called once per pointer-move with (element_id, geometry)
            min_size: Optional minimum width/height applied to resizes.
                      None leaves sizes unclamped.
        """
        self._on_update = on_update
        self.min_size = min_size
        # At most one in-flight gesture
        self._gesture: Optional[GestureSnapshot] = None

    @property
    def state(self) -> EngineState:
        if self._gesture is None:
            return EngineState.IDLE
        if self._gesture.mode == GestureMode.MOVE:
            return EngineState.DRAGGING
        return EngineState.RESIZING

    @property
    def active_gesture(self) -> Optional[GestureSnapshot]:
        return self._gesture

    def _start(
        self,
        element: ElementBase,
        mode: GestureMode,
        direction: Optional[ResizeDirection],
        pointer: PointerPosition,
        canvas: Optional[CanvasSize]
    ) -> bool:
        if self._gesture is not None:
            logger.debug(f"[ENGINE] Ignoring pointer-down, gesture on {self._gesture.element_id} in progress")
            return False
        if canvas is None or not canvas.is_measurable:
            logger.debug(f"[ENGINE] Canvas not measurable, gesture on {element.id} not started")
            return False

        self._gesture = GestureSnapshot(
            element_id=element.id,
            mode=mode,
            direction=direction,
            geometry=geometry_of(element),
            pointer_x=pointer.x,
            pointer_y=pointer.y,
        )
        logger.debug(f"[ENGINE] {self.state.value} started on {element.id}")
        return True

    def pointer_down_body(
        self,
        element: ElementBase,
        is_selected: bool,
        pointer: PointerPosition,
        canvas: Optional[CanvasSize]
    ) -> bool:
        """
        Start dragging an element.

        Only a selected element can be dragged; a pointer-down on an
        unselected element is a selection click and starts nothing.

        Returns:
            True if a drag gesture started
        """
        if not is_selected:
            return False
        return self._start(element, GestureMode.MOVE, None, pointer, canvas)

    def pointer_down_handle(
        self,
        element: ElementBase,
        direction: ResizeDirection,
        pointer: PointerPosition,
        canvas: Optional[CanvasSize]
    ) -> bool:
        """Start resizing an element from one of its eight handles."""
        return self._start(element, GestureMode.RESIZE, ResizeDirection(direction), pointer, canvas)

    def compute(self, pointer: PointerPosition, canvas: CanvasSize) -> Geometry:
        """Geometry for the active gesture at ``pointer``."""
        gesture = self._gesture
        dx, dy = to_percent_delta(
            pointer.x - gesture.pointer_x,
            pointer.y - gesture.pointer_y,
            canvas,
        )
        geometry = apply_delta(gesture.geometry, gesture.direction, dx, dy)
        if gesture.mode == GestureMode.RESIZE and self.min_size is not None:
            geometry = clamp_size(geometry, self.min_size, gesture.direction)
        return geometry

    def pointer_move(self, pointer: PointerPosition, canvas: Optional[CanvasSize]) -> Optional[Geometry]:
        """
        Recompute the target's geometry and publish it.

        Returns:
            The new geometry, or None when idle or the canvas can't be measured
        """
        if self._gesture is None:
            return None
        if canvas is None or not canvas.is_measurable:
            return None

        geometry = self.compute(pointer, canvas)
        self._on_update(self._gesture.element_id, geometry)
        return geometry

    def pointer_up(self) -> Optional[GestureSnapshot]:
        """End the gesture. Returns the discarded snapshot, if any."""
        gesture, self._gesture = self._gesture, None
        if gesture is not None:
            logger.debug(f"[ENGINE] Gesture on {gesture.element_id} ended")
        return gesture

    def cancel(self) -> Optional[Geometry]:
        """
        Abort the gesture and put the element back where it started.

        Returns:
            The restored geometry, or None if no gesture was active
        """
        gesture = self.pointer_up()
        if gesture is None:
            return None
        restored = gesture.geometry.model_copy()
        self._on_update(gesture.element_id, restored)
        logger.info(f"[ENGINE] Gesture on {gesture.element_id} cancelled")
        return restored

    def element_removed(self, element_id: str) -> None:
        """Drop an in-flight gesture whose target no longer exists."""
        if self._gesture is not None and self._gesture.element_id == element_id:
            logger.info(f"[ENGINE] Target {element_id} removed mid-gesture")
            self._gesture = None
