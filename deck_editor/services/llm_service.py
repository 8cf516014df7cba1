"""
LLM Service for Deck Editor
============================

Gemini integration for per-element content generation and text refinement.
"""

import os
import json
import logging
from typing import Optional, Dict, Any
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# Try to import Vertex AI
try:
    import vertexai
    from vertexai.generative_models import GenerativeModel, GenerationConfig
    VERTEXAI_AVAILABLE = True
except ImportError:
    VERTEXAI_AVAILABLE = False
    logger.warning("vertexai not available, LLM features will be limited")


THEME_TEXT_HINTS = {
    "dark": "The slide background is dark. Use light text colours such as 'text-slate-100'.",
    "light": "The slide background is light. Use dark text colours such as 'text-slate-800'.",
    "vibrant": "The slide background is colourful. Use 'text-white' or 'text-slate-900' for contrast.",
}

REFINEMENT_INSTRUCTIONS = {
    "shorten": "shorten this text to be more concise and impactful for a slide",
    "rephrase": "rephrase this text to sound more professional and engaging",
    "expand": "expand on this point with one or two brief, informative sentences",
}

TEXT_ELEMENT_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "text": {"type": "STRING"},
        "style_tokens": {"type": "STRING"},
    },
    "required": ["text", "style_tokens"],
}

SLIDE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "text_elements": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "text": {"type": "STRING"},
                    "style_tokens": {"type": "STRING"},
                    "x": {"type": "NUMBER"},
                    "y": {"type": "NUMBER"},
                    "w": {"type": "NUMBER"},
                    "h": {"type": "NUMBER"},
                },
                "required": ["text", "style_tokens", "x", "y", "w", "h"],
            },
        },
        "speaker_notes": {"type": "STRING"},
    },
    "required": ["text_elements"],
}

CHART_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "has_data": {"type": "BOOLEAN"},
        "chart_type": {"type": "STRING", "enum": ["bar", "line", "pie"]},
        "title": {"type": "STRING"},
        "data": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "label": {"type": "STRING"},
                    "value": {"type": "NUMBER"},
                },
                "required": ["label", "value"],
            },
        },
    },
    "required": ["has_data"],
}


class LLMConfig(BaseModel):
    """Configuration for LLM service."""
    project_id: str = os.getenv("GOOGLE_CLOUD_PROJECT", "deck-editor")
    location: str = os.getenv("GOOGLE_CLOUD_LOCATION", "us-central1")
    text_model: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    temperature: float = 0.7
    max_output_tokens: int = 2048


class LLMResponse(BaseModel):
    """Response from LLM."""
    success: bool
    content: str = ""
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class LLMService:
    """
    Service for Gemini text operations.

    Used for:
    - Text and icon generation for newly inserted elements
    - Rewriting selected text (shorten / rephrase / expand)
    - Turning data-bearing text into a chart
    - Laying out an extra content slide
    """

    def __init__(self, config: Optional[LLMConfig] = None):
        self.config = config or LLMConfig()
        self._initialized = False
        self._text_model: Optional["GenerativeModel"] = None

    def _initialize(self) -> bool:
        """Initialize Vertex AI and the text model."""
        if self._initialized:
            return True

        if not VERTEXAI_AVAILABLE:
            logger.error("[LLM-SERVICE] vertexai not installed")
            return False

        try:
            vertexai.init(
                project=self.config.project_id,
                location=self.config.location
            )
            self._text_model = GenerativeModel(self.config.text_model)

            self._initialized = True
            logger.info(f"[LLM-SERVICE] Initialized with project={self.config.project_id}")
            return True

        except Exception as e:
            logger.error(f"[LLM-SERVICE] Initialization failed: {e}")
            return False

    async def generate_text(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None
    ) -> LLMResponse:
        """
        Generate a plain text response from Gemini.

        Args:
            prompt: User prompt
            system_instruction: Optional system context
            temperature: Override default temperature

        Returns:
            LLMResponse with generated content
        """
        if not self._initialize():
            return LLMResponse(
                success=False,
                error="LLM service not initialized"
            )

        try:
            gen_config = GenerationConfig(
                temperature=temperature or self.config.temperature,
                max_output_tokens=self.config.max_output_tokens,
            )

            full_prompt = prompt
            if system_instruction:
                full_prompt = f"{system_instruction}\n\n{prompt}"

            response = await self._text_model.generate_content_async(
                full_prompt,
                generation_config=gen_config
            )

            content = response.text.strip() if response.text else ""

            logger.info(f"[LLM-SERVICE] Generated text, length={len(content)}")

            return LLMResponse(
                success=True,
                content=content
            )

        except Exception as e:
            logger.error(f"[LLM-SERVICE] Text generation failed: {e}")
            return LLMResponse(
                success=False,
                error=str(e)
            )

    async def generate_json(
        self,
        prompt: str,
        response_schema: Dict[str, Any],
        temperature: Optional[float] = None
    ) -> LLMResponse:
        """
        Generate a JSON object constrained by ``response_schema``.

        Returns:
            LLMResponse with the parsed object in ``data``
        """
        if not self._initialize():
            return LLMResponse(
                success=False,
                error="LLM service not initialized"
            )

        try:
            gen_config = GenerationConfig(
                temperature=temperature or self.config.temperature,
                max_output_tokens=self.config.max_output_tokens,
                response_mime_type="application/json",
                response_schema=response_schema,
            )

            response = await self._text_model.generate_content_async(
                prompt,
                generation_config=gen_config
            )

            content = response.text.strip() if response.text else ""
            data = json.loads(content)

            logger.info(f"[LLM-SERVICE] Generated JSON with keys={sorted(data)}")

            return LLMResponse(
                success=True,
                content=content,
                data=data
            )

        except json.JSONDecodeError as e:
            logger.error(f"[LLM-SERVICE] Model returned invalid JSON: {e}")
            return LLMResponse(
                success=False,
                error=f"Invalid JSON from model: {e}"
            )
        except Exception as e:
            logger.error(f"[LLM-SERVICE] JSON generation failed: {e}")
            return LLMResponse(
                success=False,
                error=str(e)
            )

    async def generate_text_element(self, prompt: str, topic: str, theme: str) -> LLMResponse:
        """
        Generate text and styling tokens for a new text box.

        Returns:
            LLMResponse whose ``data`` has ``text`` and ``style_tokens``
        """
        theme_hint = THEME_TEXT_HINTS.get(theme, THEME_TEXT_HINTS["dark"])
        full_prompt = f"""Write the text for one element of a presentation slide on "{topic}".
The element should be: {prompt}

Return the text and Tailwind CSS classes for font size, weight, colour and
alignment (for example "text-2xl font-bold text-slate-100 text-center").
{theme_hint}"""

        return await self.generate_json(full_prompt, TEXT_ELEMENT_SCHEMA)

    async def generate_icon_svg(self, prompt: str) -> LLMResponse:
        """
        Generate a single-colour SVG icon.

        Returns:
            LLMResponse with the SVG markup in ``content``
        """
        system_instruction = """You draw simple, flat icons for presentation slides.
Respond with a single <svg> element only, no markdown.
Use viewBox="0 0 24 24", and use "currentColor" for every stroke and fill."""

        return await self.generate_text(
            prompt=f"Icon: {prompt}",
            system_instruction=system_instruction,
            temperature=0.4
        )

    async def refine_text(self, text: str, refinement: str, topic: str) -> LLMResponse:
        """
        Rewrite slide text.

        Args:
            text: Current text of the element
            refinement: One of shorten, rephrase, expand
            topic: Presentation topic for context
        """
        instruction = REFINEMENT_INSTRUCTIONS.get(refinement)
        if instruction is None:
            return LLMResponse(success=False, error=f"Unknown refinement: {refinement}")

        return await self.generate_text(
            prompt=f'For a presentation on "{topic}", {instruction}: "{text}"'
        )

    async def generate_chart_from_text(self, text: str, topic: str) -> LLMResponse:
        """
        Extract chartable data from slide text.

        Returns:
            LLMResponse whose ``data`` has ``has_data`` and, when true,
            ``chart_type``, ``title`` and ``data``
        """
        prompt = f"""For a presentation on "{topic}", decide whether this slide text contains
numeric data that could be shown as a chart. If it does, extract the labelled
values and pick a chart type (bar, line or pie). If not, set has_data to false.

Text: "{text}\""""

        return await self.generate_json(prompt, CHART_SCHEMA, temperature=0.2)

    async def generate_slide(self, topic: str, slide_count: int, theme: str) -> LLMResponse:
        """
        Lay out one new content slide continuing an existing deck.

        Args:
            topic: Presentation topic
            slide_count: Number of slides already in the deck
            theme: Deck theme (dark, light, vibrant)

        Returns:
            LLMResponse whose ``data`` has ``text_elements`` with text,
            style tokens and percentage geometry
        """
        theme_hint = THEME_TEXT_HINTS.get(theme, THEME_TEXT_HINTS["dark"])
        prompt = f"""You are an expert presentation designer. Generate a single new content slide
for a presentation on "{topic}". This is slide number {slide_count + 1}; its content
should follow on logically from the slides before it.

Give each text element a position and size (x, y, w, h) as percentages of the
slide, and Tailwind CSS classes for typography and colour only.
Elements must not overlap and must stay inside the slide with a 5% margin.
{theme_hint}"""

        return await self.generate_json(prompt, SLIDE_SCHEMA)
