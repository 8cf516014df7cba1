"""
tests/conftest.py
Shared fixtures for the deck editor tests.

Canvas used throughout: 1000x562 px (16:9 at this size).
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from deck_editor.models.canvas_models import (
    Deck, IconElement, ImageElement, Slide, TextElement
)
from deck_editor.models.interaction_models import CanvasSize, PointerPosition
from deck_editor.canvas.editor_session import EditorSession
from deck_editor.services.content_generator import ContentGenerator


def make_text(element_id="text_1", x=10.0, y=10.0, w=20.0, h=20.0, text="Quarterly revenue", **kw):
    return TextElement(id=element_id, x=x, y=y, w=w, h=h, text=text, **kw)


def make_image(element_id="image_1", x=50.0, y=20.0, w=25.0, h=30.0):
    return ImageElement(id=element_id, x=x, y=y, w=w, h=h, base64="aGVsbG8=")


def make_icon(element_id="icon_1", x=80.0, y=5.0, w=8.0, h=8.0):
    return IconElement(id=element_id, x=x, y=y, w=w, h=h, svg="<svg></svg>")


def make_slide(slide_id="slide_1"):
    return Slide(
        id=slide_id,
        text_elements=[make_text()],
        image_elements=[make_image()],
        icon_elements=[make_icon()],
    )


def pointer(x, y):
    return PointerPosition(x=x, y=y)


@pytest.fixture
def canvas() -> CanvasSize:
    return CanvasSize(width=1000, height=562)


@pytest.fixture
def slide() -> Slide:
    return make_slide()


@pytest.fixture
def deck() -> Deck:
    return Deck(
        session_id="session-1",
        topic="Renewable energy",
        slides=[make_slide("slide_1"), Slide(id="slide_2")],
    )


@pytest.fixture
def generator() -> ContentGenerator:
    """Real element building, with the remote calls replaced."""
    gen = ContentGenerator(llm=MagicMock(), images=MagicMock())
    gen.generate = AsyncMock()
    gen.chart_from_text = AsyncMock()
    gen.generate_slide = AsyncMock()
    gen.generate_background = AsyncMock()
    return gen


@pytest.fixture
def llm() -> MagicMock:
    mock = MagicMock()
    mock.refine_text = AsyncMock()
    return mock


@pytest.fixture
def layout_client() -> MagicMock:
    mock = MagicMock()
    mock.regenerate_layout = AsyncMock()
    return mock


@pytest.fixture
def editor(deck, generator, llm, layout_client) -> EditorSession:
    return EditorSession(deck, generator=generator, llm=llm, layout_client=layout_client)
