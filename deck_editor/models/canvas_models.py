"""
Canvas Models for Deck Editor
==============================

Models for slides, decks and the positioned elements placed on a slide.

All element geometry is stored as percentages of the 16:9 canvas, so it is
independent of the pixel size the canvas is rendered at.
"""

import uuid
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union
from datetime import datetime

from pydantic import BaseModel, Field

from ..errors import DuplicateElementError, LastSlideError


class ElementKind(str, Enum):
    """Discriminant for the element variants."""
    TEXT = "text"
    IMAGE = "image"
    ICON = "icon"
    CHART = "chart"


class ThemeOption(str, Enum):
    """Deck colour theme."""
    DARK = "dark"
    LIGHT = "light"
    VIBRANT = "vibrant"


class Geometry(BaseModel):
    """Bounding box in canvas percentages. Not clamped."""
    x: float
    y: float
    w: float
    h: float


class ElementBase(Geometry):
    """Fields shared by every element variant."""
    id: str


class TextElement(ElementBase):
    """Styled text box."""
    kind: Literal["text"] = "text"
    text: str
    style_tokens: str = ""


class ImageElement(ElementBase):
    """Raster image, stored as encoded bytes."""
    kind: Literal["image"] = "image"
    base64: str
    mime_type: str = "image/jpeg"


class IconElement(ElementBase):
    """Vector icon tinted through currentColor."""
    kind: Literal["icon"] = "icon"
    svg: str
    color: str = "#FFFFFF"


class ChartPoint(BaseModel):
    """One labelled value of a chart series."""
    label: str
    value: float


class ChartOptions(BaseModel):
    """Presentation options for a chart."""
    title: Optional[str] = None
    colors: List[str] = Field(default_factory=lambda: ["#22d3ee"])


class ChartElement(ElementBase):
    """Simple single-series chart."""
    kind: Literal["chart"] = "chart"
    chart_type: Literal["bar", "line", "pie"] = "bar"
    data: List[ChartPoint] = Field(default_factory=list)
    options: ChartOptions = Field(default_factory=ChartOptions)


SlideElement = Annotated[
    Union[TextElement, ImageElement, IconElement, ChartElement],
    Field(discriminator="kind"),
]


class LayoutProposal(Geometry):
    """Geometry proposed for an existing element by layout regeneration."""
    id: str
    style_tokens: Optional[str] = None


def new_element_id(kind: ElementKind) -> str:
    """Element ids are prefixed with their kind, e.g. text_3f2a9c1b."""
    return f"{ElementKind(kind).value}_{uuid.uuid4().hex[:8]}"


def new_slide_id() -> str:
    return f"slide_{uuid.uuid4().hex[:9]}"


def geometry_of(element: ElementBase) -> Geometry:
    """Extract the bounding box of an element."""
    return Geometry(x=element.x, y=element.y, w=element.w, h=element.h)


def with_geometry(element: ElementBase, geometry: Geometry):
    """Copy of ``element`` carrying ``geometry``; the payload is untouched."""
    return element.model_copy(update=geometry.model_dump())


class Slide(BaseModel):
    """One slide: an ordered collection of elements per variant."""
    id: str
    slide_type: Literal["title", "content"] = "content"
    text_elements: List[TextElement] = Field(default_factory=list)
    image_elements: List[ImageElement] = Field(default_factory=list)
    chart_elements: List[ChartElement] = Field(default_factory=list)
    icon_elements: List[IconElement] = Field(default_factory=list)
    speaker_notes: str = ""

    def _collection_for(self, kind: ElementKind) -> list:
        match kind:
            case ElementKind.TEXT:
                return self.text_elements
            case ElementKind.IMAGE:
                return self.image_elements
            case ElementKind.CHART:
                return self.chart_elements
            case ElementKind.ICON:
                return self.icon_elements
        raise ValueError(f"Unknown element kind: {kind}")

    def all_elements(self) -> list:
        """Elements in stacking order: text, image, chart, icon."""
        return [
            *self.text_elements,
            *self.image_elements,
            *self.chart_elements,
            *self.icon_elements,
        ]

    def element_ids(self) -> List[str]:
        return [e.id for e in self.all_elements()]

    def find_element(self, element_id: str):
        for element in self.all_elements():
            if element.id == element_id:
                return element
        return None

    def append_element(self, element) -> None:
        """Add an element to the collection for its kind."""
        if self.find_element(element.id) is not None:
            raise DuplicateElementError(element.id)
        self._collection_for(element.kind).append(element)

    def replace_element(self, element) -> bool:
        """Replace the stored element with the same id and kind."""
        collection = self._collection_for(element.kind)
        for index, existing in enumerate(collection):
            if existing.id == element.id:
                collection[index] = element
                return True
        return False

    def remove_element(self, element_id: str) -> bool:
        """Remove an element from whichever collection holds it."""
        for kind in ElementKind:
            collection = self._collection_for(kind)
            for index, existing in enumerate(collection):
                if existing.id == element_id:
                    del collection[index]
                    return True
        return False


class Deck(BaseModel):
    """State of a whole presentation being edited."""
    session_id: str
    topic: str = ""
    theme: ThemeOption = ThemeOption.DARK
    slides: List[Slide] = Field(default_factory=list)
    # Base64 image drawn behind every slide
    background_image: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None

    def touch(self) -> None:
        self.updated_at = datetime.now()

    def get_slide(self, slide_id: str) -> Optional[Slide]:
        for slide in self.slides:
            if slide.id == slide_id:
                return slide
        return None

    def add_slide(self, slide: Slide) -> None:
        """Append a slide to the deck."""
        self.slides.append(slide)
        self.touch()

    def delete_slide(self, index: int) -> Slide:
        """Delete a slide by index. The last slide cannot be deleted."""
        if len(self.slides) <= 1:
            raise LastSlideError("You can't delete the last slide.")
        removed = self.slides.pop(index)
        self.touch()
        return removed

    def move_slide(self, from_index: int, to_index: int) -> None:
        """Reorder slides, as done by dragging thumbnails."""
        slide = self.slides.pop(from_index)
        self.slides.insert(to_index, slide)
        self.touch()
