"""
Element Routes
===============

API routes for element management on the active slide.
"""

from fastapi import APIRouter, HTTPException
from typing import Optional, Dict, Any
from pydantic import BaseModel, TypeAdapter, ValidationError

from ..errors import DuplicateElementError
from ..models.canvas_models import ElementKind, SlideElement, new_element_id
from ..canvas.state_manager import StateManager

router = APIRouter(prefix="/api/element", tags=["elements"])

# Injected by server
state_manager: Optional[StateManager] = None

element_adapter = TypeAdapter(SlideElement)
ELEMENT_KINDS = {kind.value for kind in ElementKind}


class ElementRequest(BaseModel):
    """Request to add/replace an element. ``element`` must carry ``kind``."""
    element: Dict[str, Any]


class ElementResponse(BaseModel):
    """Response for element operations."""
    element_id: str
    kind: str
    message: str


class TextRequest(BaseModel):
    text: str


class ColorRequest(BaseModel):
    color: str


def _editor(session_id: str):
    if not state_manager:
        raise HTTPException(status_code=500, detail="State manager not initialized")

    editor = state_manager.get_editor(session_id)
    if editor is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return editor


def _parse_element(data: Dict[str, Any]):
    try:
        return element_adapter.validate_python(data)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/{session_id}")
async def add_element(session_id: str, request: ElementRequest) -> ElementResponse:
    """Add element to the active slide."""
    editor = _editor(session_id)

    data = dict(request.element)
    if "id" not in data and data.get("kind") in ELEMENT_KINDS:
        data["id"] = new_element_id(data["kind"])
    element = _parse_element(data)

    try:
        editor.add_element(element)
    except DuplicateElementError as e:
        raise HTTPException(status_code=409, detail=str(e))

    state_manager.save_session(session_id)

    return ElementResponse(
        element_id=element.id,
        kind=element.kind,
        message="Element added"
    )


@router.delete("/{session_id}/{element_id}")
async def remove_element(session_id: str, element_id: str):
    """Remove element from the active slide."""
    editor = _editor(session_id)

    if not editor.remove_element(element_id):
        raise HTTPException(status_code=404, detail="Element not found")

    state_manager.save_session(session_id)
    return {"message": "Element removed", "element_id": element_id}


@router.put("/{session_id}/{element_id}")
async def update_element(session_id: str, element_id: str, request: ElementRequest):
    """Replace an element wholesale."""
    editor = _editor(session_id)

    element = _parse_element({**request.element, "id": element_id})
    if not editor.replace_element(element):
        raise HTTPException(status_code=404, detail="Element not found")

    state_manager.save_session(session_id)
    return {"message": "Element updated", "element_id": element_id}


@router.put("/{session_id}/{element_id}/text")
async def edit_text(session_id: str, element_id: str, request: TextRequest):
    """Edit the text of a text element in place."""
    editor = _editor(session_id)

    if not editor.edit_text(element_id, request.text):
        raise HTTPException(status_code=404, detail="Text element not found")

    state_manager.save_session(session_id)
    return {"message": "Text updated", "element_id": element_id}


@router.put("/{session_id}/{element_id}/color")
async def set_icon_color(session_id: str, element_id: str, request: ColorRequest):
    """Recolour an icon."""
    editor = _editor(session_id)

    if not editor.set_icon_color(element_id, request.color):
        raise HTTPException(status_code=404, detail="Icon element not found")

    state_manager.save_session(session_id)
    return {"message": "Icon color updated", "element_id": element_id}
