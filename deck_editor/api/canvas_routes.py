"""
Canvas Routes
==============

API routes for deck and slide management.
"""

from fastapi import APIRouter, HTTPException
from typing import Optional, Dict, Any, List
from pydantic import BaseModel

from ..errors import GenerationError, LastSlideError
from ..models.canvas_models import Slide, ThemeOption, new_slide_id
from ..canvas.state_manager import StateManager

router = APIRouter(prefix="/api/canvas", tags=["canvas"])

# Injected by server
state_manager: Optional[StateManager] = None


def get_state_manager() -> StateManager:
    if state_manager is None:
        raise HTTPException(status_code=500, detail="State manager not initialized")
    return state_manager


class SessionRequest(BaseModel):
    """Request to create a deck session."""
    topic: str = ""
    theme: ThemeOption = ThemeOption.DARK


class CanvasStateResponse(BaseModel):
    """Response for deck state."""
    session_id: str
    topic: str
    theme: str
    active_slide_index: int
    selected_id: Optional[str] = None
    slides: List[Dict[str, Any]]
    background_image: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class AddSlideRequest(BaseModel):
    """Append an empty slide, or one written by the LLM when ``generate`` is set."""
    generate: bool = False


class BackgroundRequest(BaseModel):
    background_image: Optional[str] = None


class GenerateBackgroundRequest(BaseModel):
    prompt: Optional[str] = None


class MoveSlideRequest(BaseModel):
    from_index: int
    to_index: int


class NotesRequest(BaseModel):
    speaker_notes: str


def _editor(session_id: str):
    editor = get_state_manager().get_editor(session_id)
    if editor is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return editor


def _check_index(editor, index: int) -> None:
    if not 0 <= index < len(editor.deck.slides):
        raise HTTPException(status_code=404, detail="Slide not found")


@router.post("/session")
async def create_session(request: Optional[SessionRequest] = None):
    """Create a new deck session."""
    request = request or SessionRequest()
    session_id = get_state_manager().create_session(topic=request.topic, theme=request.theme)
    return {"session_id": session_id, "message": "Session created"}


@router.get("/state/{session_id}")
async def get_state(session_id: str) -> CanvasStateResponse:
    """Get deck state for session."""
    editor = _editor(session_id)
    deck = editor.deck

    return CanvasStateResponse(
        session_id=session_id,
        topic=deck.topic,
        theme=deck.theme.value,
        active_slide_index=editor.active_slide_index,
        selected_id=editor.selected_id,
        slides=[slide.model_dump(mode="json") for slide in deck.slides],
        background_image=deck.background_image,
        created_at=deck.created_at.isoformat(),
        updated_at=deck.updated_at.isoformat() if deck.updated_at else None
    )


@router.delete("/session/{session_id}")
async def start_over(session_id: str):
    """Discard a deck entirely, including its saved file."""
    if not get_state_manager().delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")

    return {"message": "Session deleted", "session_id": session_id}


@router.delete("/state/{session_id}")
async def clear_canvas(session_id: str):
    """Reset a deck to one empty slide."""
    if not get_state_manager().clear_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")

    return {"message": "Canvas cleared", "session_id": session_id}


@router.post("/{session_id}/slides")
async def add_slide(session_id: str, request: Optional[AddSlideRequest] = None):
    """Append a content slide and make it active."""
    editor = _editor(session_id)
    request = request or AddSlideRequest()

    if request.generate:
        if editor.generator is None:
            raise HTTPException(status_code=500, detail="Content generator not initialized")
        try:
            slide = await editor.add_generated_slide()
        except GenerationError as e:
            raise HTTPException(status_code=502, detail=f"Failed to add slide: {e}")
    else:
        slide = Slide(id=new_slide_id())
        editor.deck.add_slide(slide)
        editor.select_slide(len(editor.deck.slides) - 1)

    get_state_manager().save_session(session_id)
    return {"message": "Slide added", "slide_id": slide.id, "index": editor.active_slide_index}


@router.delete("/{session_id}/slides/{index}")
async def delete_slide(session_id: str, index: int):
    """Delete a slide. The last slide can't be deleted."""
    editor = _editor(session_id)
    _check_index(editor, index)
    try:
        removed = editor.delete_slide(index)
    except LastSlideError as e:
        raise HTTPException(status_code=409, detail=str(e))
    get_state_manager().save_session(session_id)
    return {"message": "Slide deleted", "slide_id": removed.id}


@router.post("/{session_id}/slides/move")
async def move_slide(session_id: str, request: MoveSlideRequest):
    """Reorder slides."""
    editor = _editor(session_id)
    _check_index(editor, request.from_index)
    _check_index(editor, request.to_index)
    editor.move_slide(request.from_index, request.to_index)
    get_state_manager().save_session(session_id)
    return {"message": "Slide moved", "active_slide_index": editor.active_slide_index}


@router.post("/{session_id}/slides/{index}/activate")
async def activate_slide(session_id: str, index: int):
    """Switch the slide being edited."""
    editor = _editor(session_id)
    _check_index(editor, index)
    editor.select_slide(index)
    return {"message": "Slide activated", "active_slide_index": index}


@router.put("/{session_id}/slides/{index}/notes")
async def update_notes(session_id: str, index: int, request: NotesRequest):
    """Update speaker notes."""
    editor = _editor(session_id)
    _check_index(editor, index)
    editor.deck.slides[index].speaker_notes = request.speaker_notes
    editor.deck.touch()
    get_state_manager().save_session(session_id)
    return {"message": "Notes updated"}


@router.put("/{session_id}/background")
async def set_background(session_id: str, request: BackgroundRequest):
    """Set or clear the image drawn behind every slide."""
    editor = _editor(session_id)
    editor.set_background(request.background_image)
    get_state_manager().save_session(session_id)
    return {"message": "Background updated"}


@router.post("/{session_id}/background/generate")
async def generate_background(session_id: str, request: Optional[GenerateBackgroundRequest] = None):
    """Generate a deck background through the image service."""
    editor = _editor(session_id)
    if editor.generator is None:
        raise HTTPException(status_code=500, detail="Content generator not initialized")

    request = request or GenerateBackgroundRequest()
    try:
        background_image = await editor.generate_background(request.prompt)
    except GenerationError as e:
        raise HTTPException(status_code=502, detail=f"Failed to generate background: {e}")

    get_state_manager().save_session(session_id)
    return {"message": "Background generated", "background_image": background_image}
