"""
Content Generator
=================

Kind-keyed front for the remote generation services. Produces the payload of
a new element (styled text, image bytes or icon markup) and turns failed
service responses into ``GenerationError``.
"""

import logging
import re
from typing import List, Optional, Union

from pydantic import BaseModel, ValidationError

from ..errors import GenerationError
from ..models.canvas_models import (
    ChartElement, ChartOptions, ChartPoint, ElementKind, Geometry, IconElement,
    ImageElement, Slide, TextElement, new_element_id, new_slide_id
)
from .image_client import ImageClient
from .llm_service import LLMService

logger = logging.getLogger(__name__)

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_HANDLER_RE = re.compile(r"""\son\w+\s*=\s*(?:"[^"]*"|'[^']*')""", re.IGNORECASE)
_SVG_RE = re.compile(r"<svg\b.*</svg>", re.IGNORECASE | re.DOTALL)

CHART_TYPES = ("bar", "line", "pie")


def sanitize_svg(svg: str) -> str:
    """Strip script blocks and inline event handlers from SVG markup."""
    svg = _SCRIPT_RE.sub("", svg)
    return _HANDLER_RE.sub("", svg)


def extract_svg(text: str) -> Optional[str]:
    """Pull the <svg>...</svg> element out of a model response."""
    match = _SVG_RE.search(text)
    return match.group(0) if match else None


class GenerationContext(BaseModel):
    """Ambient deck context passed along with every generation prompt."""
    topic: str = ""
    theme: str = "dark"


class TextPayload(BaseModel):
    text: str
    style_tokens: str = ""


class ImagePayload(BaseModel):
    base64: str
    mime_type: str = "image/jpeg"


class IconPayload(BaseModel):
    svg: str


class ChartPayload(BaseModel):
    chart_type: str = "bar"
    title: Optional[str] = None
    data: List[ChartPoint] = []


Payload = Union[TextPayload, ImagePayload, IconPayload, ChartPayload]


class ContentGenerator:
    """
    Generates element payloads through the LLM and image services.

    Usage:
        generator = ContentGenerator(llm_service, image_client)
        payload = await generator.generate(ElementKind.TEXT, "a catchy tagline", context)
        element = generator.build_element(ElementKind.TEXT, "text_1", geometry, payload)
    """

    def __init__(self, llm: LLMService, images: ImageClient):
        self.llm = llm
        self.images = images

    async def generate(self, kind: ElementKind, prompt: str, context: GenerationContext) -> Payload:
        """
        Generate a payload for a new element of ``kind``.

        Raises:
            GenerationError: the service failed or returned an unusable payload
        """
        match ElementKind(kind):
            case ElementKind.TEXT:
                return await self._generate_text(prompt, context)
            case ElementKind.IMAGE:
                return await self._generate_image(prompt)
            case ElementKind.ICON:
                return await self._generate_icon(prompt)
            case ElementKind.CHART:
                return await self.chart_from_text(prompt, context)

    async def _generate_text(self, prompt: str, context: GenerationContext) -> TextPayload:
        response = await self.llm.generate_text_element(prompt, context.topic, context.theme)
        if not response.success or not response.data:
            raise GenerationError(response.error or "Empty text response", kind="text")
        text = str(response.data.get("text", "")).strip()
        if not text:
            raise GenerationError("Model returned no text", kind="text")
        return TextPayload(text=text, style_tokens=str(response.data.get("style_tokens", "")))

    async def _generate_image(self, prompt: str) -> ImagePayload:
        response = await self.images.generate(prompt=prompt)
        if not response.success or not response.base64:
            raise GenerationError(response.error or "Empty image response", kind="image")
        return ImagePayload(base64=response.base64, mime_type=response.mime_type)

    async def _generate_icon(self, prompt: str) -> IconPayload:
        response = await self.llm.generate_icon_svg(prompt)
        if not response.success:
            raise GenerationError(response.error or "Icon generation failed", kind="icon")
        svg = extract_svg(response.content)
        if svg is None:
            raise GenerationError("Model response contained no <svg> element", kind="icon")
        return IconPayload(svg=sanitize_svg(svg))

    async def chart_from_text(self, text: str, context: GenerationContext) -> ChartPayload:
        """
        Extract chart data from slide text.

        Raises:
            GenerationError: the service failed or the text holds no data
        """
        response = await self.llm.generate_chart_from_text(text, context.topic)
        if not response.success or not response.data:
            raise GenerationError(response.error or "Empty chart response", kind="chart")
        data = response.data
        if not data.get("has_data") or not data.get("data"):
            raise GenerationError(
                "The selected text doesn't contain data that could be turned into a chart.",
                kind="chart"
            )
        chart_type = data.get("chart_type")
        if chart_type not in CHART_TYPES:
            chart_type = "bar"
        try:
            return ChartPayload(
                chart_type=chart_type,
                title=data.get("title"),
                data=data["data"],
            )
        except ValidationError as e:
            logger.error(f"[GENERATOR] Malformed chart data: {e}")
            raise GenerationError("Model returned malformed chart data", kind="chart") from e

    async def generate_slide(self, context: GenerationContext, slide_count: int) -> Slide:
        """
        Generate a new content slide that continues the deck.

        Raises:
            GenerationError: the service failed or returned an unusable layout
        """
        response = await self.llm.generate_slide(context.topic, slide_count, context.theme)
        if not response.success or not response.data:
            raise GenerationError(response.error or "Empty slide response", kind="slide")

        try:
            text_elements = [
                TextElement(**{**item, "id": new_element_id(ElementKind.TEXT)})
                for item in response.data.get("text_elements", [])
            ]
        except (TypeError, ValidationError) as e:
            logger.error(f"[GENERATOR] Malformed slide layout: {e}")
            raise GenerationError("Model returned a malformed slide layout", kind="slide") from e
        if not text_elements:
            raise GenerationError("Model returned an empty slide", kind="slide")

        return Slide(
            id=new_slide_id(),
            slide_type="content",
            text_elements=text_elements,
            speaker_notes=str(response.data.get("speaker_notes") or ""),
        )

    async def generate_background(self, context: GenerationContext, prompt: Optional[str] = None) -> ImagePayload:
        """Full-slide background image for the deck, 16:9."""
        prompt = prompt or (
            f"Abstract, uncluttered presentation background for a talk on {context.topic}. "
            f"{context.theme} colour scheme, no text, soft shapes and gradients"
        )
        response = await self.images.generate(prompt=prompt, style="abstract", aspect_ratio="16:9")
        if not response.success or not response.base64:
            raise GenerationError(response.error or "Empty image response", kind="background")
        return ImagePayload(base64=response.base64, mime_type=response.mime_type)

    def build_element(self, kind: ElementKind, element_id: str, geometry: Geometry, payload: Payload):
        """Combine an id, geometry and generated payload into an element."""
        box = geometry.model_dump()
        match payload:
            case TextPayload(text=text, style_tokens=tokens):
                return TextElement(id=element_id, text=text, style_tokens=tokens, **box)
            case ImagePayload(base64=encoded, mime_type=mime_type):
                return ImageElement(id=element_id, base64=encoded, mime_type=mime_type, **box)
            case IconPayload(svg=svg):
                return IconElement(id=element_id, svg=svg, **box)
            case ChartPayload():
                return ChartElement(
                    id=element_id,
                    chart_type=payload.chart_type,
                    data=payload.data,
                    options=ChartOptions(title=payload.title),
                    **box
                )
        raise ValueError(f"Unsupported payload for {kind}: {type(payload).__name__}")
