"""
Insertion Flow
==============

Click-to-insert affordance:

    BROWSING -> AWAITING_TYPE_CHOICE -> AWAITING_PROMPT -> GENERATING -> BROWSING

Cancel (or selecting an existing element) returns to BROWSING from any
state without inserting anything.
"""

import logging
from typing import Optional, Tuple

from ..errors import GenerationError, InsertionStateError
from ..models.canvas_models import ElementKind, new_element_id
from ..models.interaction_models import InsertableKind, InsertionState
from ..services.content_generator import ContentGenerator, GenerationContext
from .layout import insert_at

logger = logging.getLogger(__name__)


class InsertionFlow:
    """State machine for adding a generated element at a clicked point."""

    def __init__(self, generator: ContentGenerator):
        self.generator = generator
        self.state = InsertionState.BROWSING
        self.click: Optional[Tuple[float, float]] = None
        self.kind: Optional[InsertableKind] = None
        self.last_error: Optional[str] = None
        self._attempt = 0

    def _require(self, *states: InsertionState) -> None:
        if self.state not in states:
            raise InsertionStateError(
                f"Insertion step not allowed in state '{self.state.value}'"
            )

    def _reset(self) -> None:
        self.state = InsertionState.BROWSING
        self.click = None
        self.kind = None

    def canvas_click(self, x: float, y: float) -> None:
        """
        Record a click on the empty canvas and offer the kind choice.

        A click while the choice or prompt is already open restarts the
        flow at the new point.
        """
        self._require(
            InsertionState.BROWSING,
            InsertionState.AWAITING_TYPE_CHOICE,
            InsertionState.AWAITING_PROMPT,
        )
        self.click = (x, y)
        self.kind = None
        self.last_error = None
        self.state = InsertionState.AWAITING_TYPE_CHOICE

    def choose_kind(self, kind: InsertableKind) -> None:
        self._require(InsertionState.AWAITING_TYPE_CHOICE)
        self.kind = InsertableKind(kind)
        self.state = InsertionState.AWAITING_PROMPT

    async def submit_prompt(self, prompt: str, context: GenerationContext):
        """
        Generate the payload and build the element at the clicked point.

        The caller appends the returned element to the slide. None is
        returned when the flow was cancelled while generating. On failure
        ``last_error`` carries a retryable message and the flow is back in
        BROWSING.

        Raises:
            InsertionStateError: not awaiting a prompt
            GenerationError: the generation service failed
        """
        self._require(InsertionState.AWAITING_PROMPT)
        kind = ElementKind(self.kind.value)
        click_x, click_y = self.click
        self.state = InsertionState.GENERATING
        self._attempt += 1
        attempt = self._attempt
        logger.info(f"[INSERT] Generating {kind.value} at ({click_x:.1f}, {click_y:.1f})")

        try:
            payload = await self.generator.generate(kind, prompt, context)
        except GenerationError as e:
            if attempt == self._attempt:
                self.last_error = f"Could not generate the {kind.value}. Please try again."
                self._reset()
            logger.error(f"[INSERT] Generation failed: {e}")
            raise

        if attempt != self._attempt or self.state != InsertionState.GENERATING:
            logger.info(f"[INSERT] Discarding {kind.value}, insertion was cancelled")
            return None
        self._reset()

        geometry = insert_at(click_x, click_y, kind)
        element = self.generator.build_element(
            kind, new_element_id(kind), geometry, payload
        )
        logger.info(f"[INSERT] Built {element.id}")
        return element

    def cancel(self) -> None:
        """Abort the affordance. A pending generation result is discarded."""
        if self.state != InsertionState.BROWSING:
            logger.debug(f"[INSERT] Cancelled from {self.state.value}")
        if self.state == InsertionState.GENERATING:
            self._attempt += 1
        self._reset()
