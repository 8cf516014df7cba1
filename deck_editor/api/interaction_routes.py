"""
Interaction Routes
==================

Pointer gestures, selection, click-to-insert and AI assists for the active
slide of a deck. The front end forwards pointer events together with the
canvas's live pixel size.
"""

import logging
from typing import Optional, Dict, Any, List
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..errors import (
    DuplicateElementError, GenerationError, InsertionStateError, NoSelectionError
)
from ..models.interaction_models import (
    CanvasSize, InsertableKind, PointerPosition, RefinementType, ResizeDirection
)
from ..canvas.editor_session import EditorSession
from ..canvas.state_manager import StateManager

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/interaction", tags=["interaction"])

# Injected by server
state_manager: Optional[StateManager] = None


class SelectRequest(BaseModel):
    element_id: Optional[str] = None


class PointerDownRequest(BaseModel):
    """Pointer-down on an element body, or on a handle when direction is set."""
    element_id: str
    pointer: PointerPosition
    canvas: Optional[CanvasSize] = None
    direction: Optional[ResizeDirection] = None


class PointerMoveRequest(BaseModel):
    pointer: PointerPosition
    canvas: Optional[CanvasSize] = None


class CanvasClickRequest(BaseModel):
    """Click position in canvas percent."""
    x: float
    y: float


class ChooseKindRequest(BaseModel):
    kind: InsertableKind


class InsertRequest(BaseModel):
    prompt: str = Field(min_length=1)


class RefineRequest(BaseModel):
    refinement: RefinementType


class InteractionResponse(BaseModel):
    """Editor state after an interaction."""
    success: bool
    engine_state: str
    insertion_state: str
    selected_id: Optional[str] = None
    geometry: Optional[Dict[str, float]] = None
    element: Optional[Dict[str, Any]] = None
    suggestion: Optional[Dict[str, Any]] = None
    stacking: List[Dict[str, Any]] = Field(default_factory=list)
    message: Optional[str] = None


def get_editor(session_id: str) -> EditorSession:
    if state_manager is None:
        raise HTTPException(500, "State manager not initialized")
    editor = state_manager.get_editor(session_id)
    if editor is None:
        raise HTTPException(404, "Session not found")
    return editor


def _respond(editor: EditorSession, success: bool = True, **extra) -> InteractionResponse:
    suggestion = editor.suggestion.model_dump(mode="json") if editor.suggestion else None
    return InteractionResponse(
        success=success,
        engine_state=editor.engine.state.value,
        insertion_state=editor.insertion.state.value,
        selected_id=editor.selected_id,
        suggestion=suggestion,
        stacking=[{"id": element_id, "z_index": z} for element_id, z in editor.stacking()],
        **extra
    )


@router.get("/{session_id}")
async def get_interaction_state(session_id: str) -> InteractionResponse:
    return _respond(get_editor(session_id))


@router.post("/{session_id}/select")
async def select_element(session_id: str, request: SelectRequest) -> InteractionResponse:
    editor = get_editor(session_id)
    if not editor.select(request.element_id):
        raise HTTPException(404, "Element not found")
    return _respond(editor)


@router.post("/{session_id}/pointer-down")
async def pointer_down(session_id: str, request: PointerDownRequest) -> InteractionResponse:
    """Start a drag (selected body) or resize (handle). Selects unselected elements."""
    editor = get_editor(session_id)
    if editor.element(request.element_id) is None:
        raise HTTPException(404, "Element not found")

    if request.direction is None:
        started = editor.pointer_down(request.element_id, request.pointer, request.canvas)
    else:
        started = editor.pointer_down_handle(
            request.element_id, request.direction, request.pointer, request.canvas
        )
    return _respond(editor, success=started)


@router.post("/{session_id}/pointer-move")
async def pointer_move(session_id: str, request: PointerMoveRequest) -> InteractionResponse:
    editor = get_editor(session_id)
    geometry = editor.pointer_move(request.pointer, request.canvas)
    return _respond(
        editor,
        success=geometry is not None,
        geometry=geometry.model_dump() if geometry else None
    )


@router.post("/{session_id}/pointer-up")
async def pointer_up(session_id: str) -> InteractionResponse:
    editor = get_editor(session_id)
    ended = editor.pointer_up()
    if ended:
        state_manager.save_session(session_id)
    return _respond(editor, success=ended)


@router.post("/{session_id}/cancel-gesture")
async def cancel_gesture(session_id: str) -> InteractionResponse:
    editor = get_editor(session_id)
    geometry = editor.cancel_gesture()
    return _respond(
        editor,
        success=geometry is not None,
        geometry=geometry.model_dump() if geometry else None
    )


@router.post("/{session_id}/canvas-click")
async def canvas_click(session_id: str, request: CanvasClickRequest) -> InteractionResponse:
    """Click on empty canvas: clear selection and offer the kind choice."""
    editor = get_editor(session_id)
    try:
        editor.canvas_click(request.x, request.y)
    except InsertionStateError as e:
        raise HTTPException(409, str(e))
    return _respond(editor)


@router.post("/{session_id}/choose-kind")
async def choose_kind(session_id: str, request: ChooseKindRequest) -> InteractionResponse:
    editor = get_editor(session_id)
    try:
        editor.choose_kind(request.kind)
    except InsertionStateError as e:
        raise HTTPException(409, str(e))
    return _respond(editor)


@router.post("/{session_id}/insert")
async def submit_insertion(session_id: str, request: InsertRequest) -> InteractionResponse:
    """Generate the chosen element and place it at the clicked point."""
    editor = get_editor(session_id)
    try:
        element = await editor.submit_insertion(request.prompt)
    except InsertionStateError as e:
        raise HTTPException(409, str(e))
    except GenerationError as e:
        # last_error is only set when the failed attempt is still the current one
        raise HTTPException(502, editor.insertion.last_error or str(e))

    if element is None:
        return _respond(editor, success=False, message="Insertion cancelled")

    state_manager.save_session(session_id)
    return _respond(editor, element=element.model_dump(mode="json"))


@router.post("/{session_id}/cancel-insertion")
async def cancel_insertion(session_id: str) -> InteractionResponse:
    editor = get_editor(session_id)
    editor.cancel_insertion()
    return _respond(editor)


@router.post("/{session_id}/refine")
async def refine_text(session_id: str, request: RefineRequest) -> InteractionResponse:
    """Ask for a rewrite of the selected text element."""
    editor = get_editor(session_id)
    if editor.llm is None:
        raise HTTPException(500, "LLM service not initialized")
    try:
        await editor.request_refinement(request.refinement)
    except NoSelectionError as e:
        raise HTTPException(409, str(e))
    except GenerationError as e:
        logger.error(f"[INTERACTION] Content suggestion failed: {e}")
        raise HTTPException(502, "Could not get AI suggestion.")
    return _respond(editor)


@router.post("/{session_id}/suggestion/apply")
async def apply_suggestion(session_id: str) -> InteractionResponse:
    editor = get_editor(session_id)
    applied = editor.apply_suggestion()
    if applied:
        state_manager.save_session(session_id)
    return _respond(editor, success=applied)


@router.post("/{session_id}/suggestion/discard")
async def discard_suggestion(session_id: str) -> InteractionResponse:
    editor = get_editor(session_id)
    editor.discard_suggestion()
    return _respond(editor)


@router.post("/{session_id}/convert-to-chart")
async def convert_to_chart(session_id: str) -> InteractionResponse:
    """Turn the selected text element into a chart of the data it mentions."""
    editor = get_editor(session_id)
    if editor.generator is None:
        raise HTTPException(500, "Content generator not initialized")
    try:
        chart = await editor.convert_to_chart()
    except (NoSelectionError, DuplicateElementError) as e:
        raise HTTPException(409, str(e))
    except GenerationError as e:
        logger.error(f"[INTERACTION] Chart generation failed: {e}")
        raise HTTPException(502, str(e))

    state_manager.save_session(session_id)
    return _respond(editor, element=chart.model_dump(mode="json"))


@router.post("/{session_id}/regenerate-layout")
async def regenerate_layout(session_id: str) -> InteractionResponse:
    """Re-arrange the active slide through the layout service."""
    editor = get_editor(session_id)
    if editor.layout_client is None:
        raise HTTPException(500, "Layout Service client not initialized")
    try:
        await editor.regenerate_layout()
    except GenerationError as e:
        logger.error(f"[INTERACTION] {e}")
        raise HTTPException(502, str(e))

    state_manager.save_session(session_id)
    return _respond(editor, message="Layout regenerated")
