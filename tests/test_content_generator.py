"""
tests/test_content_generator.py
Payload generation per element kind, SVG clean-up and element assembly.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from deck_editor.errors import GenerationError
from deck_editor.models.canvas_models import (
    ChartElement, ElementKind, Geometry, IconElement, ImageElement, TextElement
)
from deck_editor.services.content_generator import (
    ChartPayload, ContentGenerator, GenerationContext, IconPayload, ImagePayload,
    TextPayload, extract_svg, sanitize_svg
)
from deck_editor.services.image_client import ImageResponse
from deck_editor.services.llm_service import LLMResponse


CONTEXT = GenerationContext(topic="Renewable energy", theme="light")
BOX = Geometry(x=40, y=45, w=30, h=10)


@pytest.fixture
def llm():
    mock = MagicMock()
    mock.generate_text_element = AsyncMock()
    mock.generate_icon_svg = AsyncMock()
    mock.generate_chart_from_text = AsyncMock()
    mock.generate_slide = AsyncMock()
    return mock


@pytest.fixture
def images():
    mock = MagicMock()
    mock.generate = AsyncMock()
    return mock


@pytest.fixture
def gen(llm, images):
    return ContentGenerator(llm=llm, images=images)


class TestSvgHelpers:
    def test_extract_from_fenced_response(self):
        text = 'Here you go:\n```svg\n<svg viewBox="0 0 24 24"><path d="M0 0"/></svg>\n```'
        assert extract_svg(text) == '<svg viewBox="0 0 24 24"><path d="M0 0"/></svg>'

    def test_extract_missing(self):
        assert extract_svg("I cannot draw that") is None

    def test_sanitize_strips_scripts_and_handlers(self):
        dirty = '<svg onload="alert(1)"><script>alert(2)</script><circle r="4" onclick=\'x()\'/></svg>'
        clean = sanitize_svg(dirty)
        assert "script" not in clean
        assert "onload" not in clean
        assert "onclick" not in clean
        assert '<circle r="4"/>' in clean

    def test_sanitize_leaves_plain_markup(self):
        svg = '<svg fill="currentColor"><rect width="4" height="4"/></svg>'
        assert sanitize_svg(svg) == svg


class TestGenerate:
    @pytest.mark.asyncio
    async def test_text(self, gen, llm):
        llm.generate_text_element.return_value = LLMResponse(
            success=True, data={"text": "  Solar is rising  ", "style_tokens": "text-3xl"}
        )
        payload = await gen.generate(ElementKind.TEXT, "a headline", CONTEXT)
        assert payload == TextPayload(text="Solar is rising", style_tokens="text-3xl")
        llm.generate_text_element.assert_awaited_once_with("a headline", "Renewable energy", "light")

    @pytest.mark.asyncio
    async def test_empty_text_is_an_error(self, gen, llm):
        llm.generate_text_element.return_value = LLMResponse(success=True, data={"text": "  "})
        with pytest.raises(GenerationError):
            await gen.generate(ElementKind.TEXT, "a headline", CONTEXT)

    @pytest.mark.asyncio
    async def test_image(self, gen, images):
        images.generate.return_value = ImageResponse(success=True, base64="aGk=", mime_type="image/png")
        payload = await gen.generate("image", "wind farm at dusk", CONTEXT)
        assert payload == ImagePayload(base64="aGk=", mime_type="image/png")

    @pytest.mark.asyncio
    async def test_image_failure(self, gen, images):
        images.generate.return_value = ImageResponse(success=False, error="Image service timeout")
        with pytest.raises(GenerationError) as exc:
            await gen.generate(ElementKind.IMAGE, "wind farm", CONTEXT)
        assert exc.value.kind == "image"

    @pytest.mark.asyncio
    async def test_icon_is_extracted_and_cleaned(self, gen, llm):
        llm.generate_icon_svg.return_value = LLMResponse(
            success=True, content='```\n<svg onload="x()"><path d="M1 1"/></svg>\n```'
        )
        payload = await gen.generate(ElementKind.ICON, "a leaf", CONTEXT)
        assert payload == IconPayload(svg='<svg><path d="M1 1"/></svg>')

    @pytest.mark.asyncio
    async def test_icon_without_svg(self, gen, llm):
        llm.generate_icon_svg.return_value = LLMResponse(success=True, content="no markup here")
        with pytest.raises(GenerationError):
            await gen.generate(ElementKind.ICON, "a leaf", CONTEXT)


class TestChartFromText:
    @pytest.mark.asyncio
    async def test_extracts_data(self, gen, llm):
        llm.generate_chart_from_text.return_value = LLMResponse(success=True, data={
            "has_data": True,
            "chart_type": "line",
            "title": "Capacity",
            "data": [{"label": "2022", "value": 3}, {"label": "2023", "value": 5}],
        })
        payload = await gen.chart_from_text("3 GW in 2022, 5 GW in 2023", CONTEXT)
        assert payload.chart_type == "line"
        assert payload.title == "Capacity"
        assert len(payload.data) == 2

    @pytest.mark.asyncio
    async def test_unknown_chart_type_falls_back_to_bar(self, gen, llm):
        llm.generate_chart_from_text.return_value = LLMResponse(success=True, data={
            "has_data": True,
            "chart_type": "radar",
            "data": [{"label": "a", "value": 1}],
        })
        payload = await gen.chart_from_text("a is 1", CONTEXT)
        assert payload.chart_type == "bar"

    @pytest.mark.asyncio
    async def test_malformed_points_are_a_generation_error(self, gen, llm):
        llm.generate_chart_from_text.return_value = LLMResponse(success=True, data={
            "has_data": True,
            "chart_type": "bar",
            "data": [{"name": "Q1", "value": 3}],
        })
        with pytest.raises(GenerationError) as exc:
            await gen.chart_from_text("Q1 was 3", CONTEXT)
        assert exc.value.kind == "chart"

    @pytest.mark.asyncio
    async def test_text_without_data(self, gen, llm):
        llm.generate_chart_from_text.return_value = LLMResponse(
            success=True, data={"has_data": False, "data": []}
        )
        with pytest.raises(GenerationError) as exc:
            await gen.chart_from_text("We care about the planet", CONTEXT)
        assert "doesn't contain data" in str(exc.value)


class TestGenerateSlide:
    @pytest.mark.asyncio
    async def test_builds_content_slide(self, gen, llm):
        llm.generate_slide.return_value = LLMResponse(success=True, data={
            "text_elements": [
                {"text": "Costs keep falling", "style_tokens": "text-4xl", "x": 5, "y": 5, "w": 90, "h": 15},
                {"text": "Solar fell 90% in a decade", "style_tokens": "text-xl", "x": 5, "y": 30, "w": 90, "h": 40},
            ],
            "speaker_notes": "Mention the learning curve",
        })

        slide = await gen.generate_slide(CONTEXT, slide_count=3)

        assert slide.slide_type == "content"
        assert slide.id.startswith("slide_")
        assert [e.text for e in slide.text_elements] == ["Costs keep falling", "Solar fell 90% in a decade"]
        assert all(e.id.startswith("text_") for e in slide.text_elements)
        assert slide.speaker_notes == "Mention the learning curve"
        llm.generate_slide.assert_awaited_once_with("Renewable energy", 3, "light")

    @pytest.mark.asyncio
    async def test_malformed_layout(self, gen, llm):
        llm.generate_slide.return_value = LLMResponse(success=True, data={
            "text_elements": [{"text": "No geometry"}],
        })
        with pytest.raises(GenerationError) as exc:
            await gen.generate_slide(CONTEXT, slide_count=1)
        assert exc.value.kind == "slide"

    @pytest.mark.asyncio
    async def test_empty_slide(self, gen, llm):
        llm.generate_slide.return_value = LLMResponse(success=True, data={"text_elements": []})
        with pytest.raises(GenerationError):
            await gen.generate_slide(CONTEXT, slide_count=1)


class TestGenerateBackground:
    @pytest.mark.asyncio
    async def test_widescreen_image(self, gen, images):
        images.generate.return_value = ImageResponse(success=True, base64="YmFjaw==")
        payload = await gen.generate_background(CONTEXT)
        assert payload.base64 == "YmFjaw=="
        kwargs = images.generate.await_args.kwargs
        assert kwargs["aspect_ratio"] == "16:9"
        assert "Renewable energy" in kwargs["prompt"]

    @pytest.mark.asyncio
    async def test_failure(self, gen, images):
        images.generate.return_value = ImageResponse(success=False, error="quota")
        with pytest.raises(GenerationError):
            await gen.generate_background(CONTEXT, "calm waves")


class TestBuildElement:
    def test_text(self, gen):
        element = gen.build_element(ElementKind.TEXT, "text_a", BOX, TextPayload(text="Hi"))
        assert isinstance(element, TextElement)
        assert (element.id, element.x, element.y, element.w, element.h) == ("text_a", 40, 45, 30, 10)

    def test_image(self, gen):
        element = gen.build_element(ElementKind.IMAGE, "image_a", BOX, ImagePayload(base64="aGk="))
        assert isinstance(element, ImageElement)
        assert element.mime_type == "image/jpeg"

    def test_icon_defaults_to_white(self, gen):
        element = gen.build_element(ElementKind.ICON, "icon_a", BOX, IconPayload(svg="<svg/>"))
        assert isinstance(element, IconElement)
        assert element.color == "#FFFFFF"

    def test_chart(self, gen):
        payload = ChartPayload(chart_type="pie", title="Mix", data=[{"label": "Solar", "value": 40}])
        element = gen.build_element(ElementKind.CHART, "chart_a", BOX, payload)
        assert isinstance(element, ChartElement)
        assert element.options.title == "Mix"
        assert element.data[0].label == "Solar"
        assert element.data[0].value == 40
