"""
Editor Session
==============

Per-deck UI state: active slide, the single selected element, a pending
text-refinement suggestion, the gesture engine and the insertion flow.

Selection is process-local and never persisted with the deck.
"""

import logging
from typing import Optional

from pydantic import BaseModel

from ..errors import DuplicateElementError, GenerationError, NoSelectionError
from ..models.canvas_models import (
    ChartElement, Deck, ElementKind, Geometry, IconElement, Slide, TextElement,
    geometry_of, with_geometry
)
from ..models.interaction_models import (
    CanvasSize, InsertableKind, PointerPosition, RefinementType, ResizeDirection
)
from ..services.content_generator import ContentGenerator, GenerationContext
from ..services.layout_service_client import LayoutServiceClient
from ..services.llm_service import LLMService
from .insertion_flow import InsertionFlow
from .interaction_engine import InteractionEngine
from .layout import merge_layout, stacking_order

logger = logging.getLogger(__name__)


class PendingSuggestion(BaseModel):
    """AI rewrite offered for a text element, waiting to be applied."""
    element_id: str
    refinement: RefinementType
    text: str


class EditorSession:
    """
    Editing state for one deck.

    Usage:
        session = EditorSession(deck, generator, llm, layout_client)
        session.canvas_click(50, 50)
        session.choose_kind(InsertableKind.TEXT)
        element = await session.submit_insertion("a catchy tagline")
    """

    def __init__(
        self,
        deck: Deck,
        generator: Optional[ContentGenerator] = None,
        llm: Optional[LLMService] = None,
        layout_client: Optional[LayoutServiceClient] = None,
        min_size: Optional[float] = None
    ):
        self.deck = deck
        self.generator = generator
        self.llm = llm
        self.layout_client = layout_client
        self.active_slide_index = 0
        self.selected_id: Optional[str] = None
        self.suggestion: Optional[PendingSuggestion] = None
        self.engine = InteractionEngine(on_update=self._apply_geometry, min_size=min_size)
        self.insertion = InsertionFlow(generator)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def active_slide(self) -> Optional[Slide]:
        if 0 <= self.active_slide_index < len(self.deck.slides):
            return self.deck.slides[self.active_slide_index]
        return None

    def element(self, element_id: str):
        """Element on the active slide, or None."""
        slide = self.active_slide
        return slide.find_element(element_id) if slide else None

    @property
    def selected_element(self):
        return self.element(self.selected_id) if self.selected_id else None

    def _context(self) -> GenerationContext:
        return GenerationContext(topic=self.deck.topic, theme=self.deck.theme.value)

    def stacking(self):
        """Paint order of the active slide with the selection raised."""
        slide = self.active_slide
        return stacking_order(slide, self.selected_id) if slide else []

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self, element_id: Optional[str]) -> bool:
        """
        Select an element on the active slide, or clear with None.

        Selecting clears any pending suggestion and aborts the insertion
        affordance.
        """
        if element_id is not None and self.element(element_id) is None:
            return False
        self.selected_id = element_id
        self.suggestion = None
        if element_id is not None:
            self.insertion.cancel()
        return True

    def canvas_click(self, x: float, y: float) -> None:
        """Click on empty canvas: clear the selection and offer insertion."""
        self.selected_id = None
        self.suggestion = None
        self.insertion.canvas_click(x, y)

    def select_slide(self, index: int) -> bool:
        if not 0 <= index < len(self.deck.slides):
            return False
        self.engine.pointer_up()
        self.insertion.cancel()
        self.active_slide_index = index
        self.selected_id = None
        self.suggestion = None
        return True

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------

    def _apply_geometry(self, element_id: str, geometry: Geometry) -> None:
        slide = self.active_slide
        element = slide.find_element(element_id) if slide else None
        if element is None:
            logger.warning(f"[EDITOR] Geometry update for missing element {element_id}")
            return
        slide.replace_element(with_geometry(element, geometry))
        self.deck.touch()

    def pointer_down(self, element_id: str, pointer: PointerPosition, canvas: Optional[CanvasSize]) -> bool:
        """
        Pointer-down on an element body.

        An unselected element is only selected; the drag needs a second
        pointer-down once it is selected.

        Returns:
            True if a drag started
        """
        element = self.element(element_id)
        if element is None:
            return False
        if self.selected_id != element_id:
            self.select(element_id)
            return False
        return self.engine.pointer_down_body(element, True, pointer, canvas)

    def pointer_down_handle(
        self,
        element_id: str,
        direction: ResizeDirection,
        pointer: PointerPosition,
        canvas: Optional[CanvasSize]
    ) -> bool:
        """Pointer-down on a resize handle. Handles exist only on the selection."""
        element = self.element(element_id)
        if element is None or self.selected_id != element_id:
            return False
        return self.engine.pointer_down_handle(element, direction, pointer, canvas)

    def pointer_move(self, pointer: PointerPosition, canvas: Optional[CanvasSize]) -> Optional[Geometry]:
        return self.engine.pointer_move(pointer, canvas)

    def pointer_up(self) -> bool:
        return self.engine.pointer_up() is not None

    def cancel_gesture(self) -> Optional[Geometry]:
        return self.engine.cancel()

    # ------------------------------------------------------------------
    # Element edits
    # ------------------------------------------------------------------

    def add_element(self, element) -> None:
        """Append an element to the active slide."""
        self.active_slide.append_element(element)
        self.deck.touch()

    def replace_element(self, element) -> bool:
        slide = self.active_slide
        if slide is None or not slide.replace_element(element):
            return False
        self.deck.touch()
        return True

    def remove_element(self, element_id: str) -> bool:
        slide = self.active_slide
        if slide is None or not slide.remove_element(element_id):
            return False
        self.engine.element_removed(element_id)
        if self.selected_id == element_id:
            self.selected_id = None
            self.suggestion = None
        self.deck.touch()
        return True

    def edit_text(self, element_id: str, text: str) -> bool:
        """Replace the text of a text element, keeping everything else."""
        element = self.element(element_id)
        if not isinstance(element, TextElement):
            return False
        self.active_slide.replace_element(element.model_copy(update={"text": text}))
        # Manual edits invalidate an outstanding rewrite
        if element_id == self.selected_id:
            self.suggestion = None
        self.deck.touch()
        return True

    def set_icon_color(self, element_id: str, color: str) -> bool:
        element = self.element(element_id)
        if not isinstance(element, IconElement):
            return False
        self.active_slide.replace_element(element.model_copy(update={"color": color}))
        self.deck.touch()
        return True

    # ------------------------------------------------------------------
    # Insertion affordance
    # ------------------------------------------------------------------

    def choose_kind(self, kind: InsertableKind) -> None:
        self.insertion.choose_kind(kind)

    def cancel_insertion(self) -> None:
        self.insertion.cancel()

    async def submit_insertion(self, prompt: str):
        """
        Generate the chosen element and append it at the clicked point.

        The element goes onto the slide that was active when the prompt was
        submitted. Returns None if the insertion was cancelled meanwhile.

        Raises:
            InsertionStateError: no prompt is awaited
            GenerationError: generation failed; the slide is unchanged
        """
        slide_id = self.active_slide.id
        element = await self.insertion.submit_prompt(prompt, self._context())
        if element is None:
            return None
        # The slide object may have been replaced while generating
        target = self.deck.get_slide(slide_id)
        if target is None:
            logger.warning(f"[EDITOR] Slide {slide_id} deleted during generation, dropping {element.id}")
            return None
        target.append_element(element)
        self.deck.touch()
        return element

    # ------------------------------------------------------------------
    # AI assists on the selection
    # ------------------------------------------------------------------

    def _selected_text(self) -> TextElement:
        element = self.selected_element
        if not isinstance(element, TextElement):
            raise NoSelectionError("Select a text element first")
        return element

    async def request_refinement(self, refinement: RefinementType) -> PendingSuggestion:
        """
        Ask for a rewrite of the selected text element.

        Raises:
            NoSelectionError: no text element is selected
            GenerationError: the LLM call failed
        """
        element = self._selected_text()
        refinement = RefinementType(refinement)
        self.suggestion = None

        response = await self.llm.refine_text(element.text, refinement.value, self.deck.topic)
        if not response.success or not response.content:
            raise GenerationError(response.error or "Could not get AI suggestion.", kind="text")

        suggestion = PendingSuggestion(
            element_id=element.id,
            refinement=refinement,
            text=response.content,
        )
        # Selection may have moved on while waiting
        if self.selected_id == element.id:
            self.suggestion = suggestion
        return suggestion

    def apply_suggestion(self) -> bool:
        suggestion = self.suggestion
        if suggestion is None or suggestion.element_id != self.selected_id:
            return False
        applied = self.edit_text(suggestion.element_id, suggestion.text)
        self.suggestion = None
        return applied

    def discard_suggestion(self) -> None:
        self.suggestion = None

    async def convert_to_chart(self) -> ChartElement:
        """
        Replace the selected text element with a chart built from its data.

        The chart takes over the text element's geometry.

        Raises:
            NoSelectionError: no text element is selected
            GenerationError: the text holds no chartable data or the call failed
        """
        element = self._selected_text()
        slide_id = self.active_slide.id

        payload = await self.generator.chart_from_text(element.text, self._context())
        slide = self.deck.get_slide(slide_id)
        if slide is None:
            raise GenerationError("The slide was deleted during chart generation.", kind="chart")
        # Take the geometry the text has now, not when the request started
        current = slide.find_element(element.id)
        chart = self.generator.build_element(
            ElementKind.CHART, f"chart_{element.id}", geometry_of(current or element), payload
        )

        if slide.find_element(chart.id) is not None:
            raise DuplicateElementError(chart.id)
        if not slide.remove_element(element.id):
            logger.warning(f"[EDITOR] {element.id} disappeared during chart generation")
            raise GenerationError("The selected text element no longer exists.", kind="chart")
        self.engine.element_removed(element.id)
        slide.append_element(chart)
        if self.selected_id == element.id:
            self.selected_id = None
            self.suggestion = None
        self.deck.touch()
        logger.info(f"[EDITOR] Converted {element.id} into {chart.id}")
        return chart

    async def regenerate_layout(self) -> Slide:
        """
        Re-arrange the active slide through the layout service.

        Raises:
            GenerationError: the service failed; the slide is unchanged
        """
        slide = self.active_slide
        response = await self.layout_client.regenerate_layout(
            slide, self.deck.topic, self.deck.theme.value
        )
        if not response.success:
            raise GenerationError(
                f"Failed to regenerate layout: {response.error}", kind="layout"
            )

        for index, existing in enumerate(self.deck.slides):
            if existing.id == slide.id:
                # Merge onto the current slide so edits made while waiting survive
                merged = merge_layout(existing, response.proposals)
                self.deck.slides[index] = merged
                break
        else:
            raise GenerationError("Slide was deleted during layout regeneration", kind="layout")
        self.deck.touch()
        return merged

    # ------------------------------------------------------------------
    # Slides
    # ------------------------------------------------------------------

    def delete_slide(self, index: int) -> Slide:
        """
        Delete a slide, keeping the active index on a neighbour.

        Raises:
            LastSlideError: it is the only slide
        """
        removed = self.deck.delete_slide(index)
        if removed.find_element(self.selected_id or "") is not None:
            self.selected_id = None
            self.suggestion = None
        if index == self.active_slide_index:
            self.engine.pointer_up()
            self.insertion.cancel()
        if self.active_slide_index >= index:
            self.active_slide_index = max(0, self.active_slide_index - 1)
        return removed

    def move_slide(self, from_index: int, to_index: int) -> None:
        active_id = self.active_slide.id if self.active_slide else None
        self.deck.move_slide(from_index, to_index)
        for index, slide in enumerate(self.deck.slides):
            if slide.id == active_id:
                self.active_slide_index = index
                break

    async def add_generated_slide(self) -> Slide:
        """
        Append an AI-written content slide continuing the deck and make it
        active.

        Raises:
            GenerationError: generation failed; the deck is unchanged
        """
        slide_count = len(self.deck.slides)
        slide = await self.generator.generate_slide(self._context(), slide_count)
        self.deck.add_slide(slide)
        self.select_slide(len(self.deck.slides) - 1)
        logger.info(f"[EDITOR] Added generated slide {slide.id} with {len(slide.text_elements)} text elements")
        return slide

    def set_background(self, background_image: Optional[str]) -> None:
        """Set or clear the deck background (base64 image bytes)."""
        self.deck.background_image = background_image
        self.deck.touch()

    async def generate_background(self, prompt: Optional[str] = None) -> str:
        """
        Generate a 16:9 background image for the whole deck.

        Raises:
            GenerationError: the image service failed; the background is unchanged
        """
        payload = await self.generator.generate_background(self._context(), prompt)
        self.set_background(payload.base64)
        return payload.base64
