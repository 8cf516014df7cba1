"""
Layout Service Client
=====================

Client for the layout-regeneration service.

The service receives a slide's elements (ids, kinds, current geometry and
text) and proposes new geometry and text styling for each id. Proposals are
merged back onto the slide by id; content in the response is never used.
"""

import os
import asyncio
import logging
import ssl
import certifi
import aiohttp
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field, ValidationError

from ..models.canvas_models import LayoutProposal, Slide

logger = logging.getLogger(__name__)

LAYOUT_SERVICE_URL = os.getenv(
    "LAYOUT_API_URL",
    "http://localhost:8091"
)


class LayoutServiceResponse(BaseModel):
    """Response from Layout Service operations."""
    success: bool
    proposals: List[LayoutProposal] = Field(default_factory=list)
    message: Optional[str] = None
    error: Optional[str] = None


def describe_slide(slide: Slide) -> List[Dict[str, Any]]:
    """Summary of each element sent to the layout service."""
    described = []
    for element in slide.all_elements():
        item = {
            "id": element.id,
            "kind": element.kind,
            "x": element.x,
            "y": element.y,
            "w": element.w,
            "h": element.h,
        }
        match element.kind:
            case "text":
                item["text"] = element.text
                item["style_tokens"] = element.style_tokens
            case "chart":
                item["chart_type"] = element.chart_type
            case "image" | "icon":
                pass
        described.append(item)
    return described


class LayoutServiceClient:
    """Client for Layout Service API."""

    def __init__(self, base_url: Optional[str] = None, timeout: float = 30.0):
        self.timeout = timeout
        self._session = None
        self.base_url = base_url or LAYOUT_SERVICE_URL
        logger.info(f"[LAYOUT-CLIENT] Initialized with timeout={timeout}, url={self.base_url}")

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            # Create SSL context using certifi for proper certificate verification
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                connector=connector
            )
        return self._session

    async def close(self):
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def regenerate_layout(
        self,
        slide: Slide,
        topic: str,
        theme: str
    ) -> LayoutServiceResponse:
        """
        Ask the layout service for a fresh arrangement of ``slide``.

        Args:
            slide: Slide whose elements should be re-arranged
            topic: Presentation topic
            theme: dark | light | vibrant

        Returns:
            LayoutServiceResponse with one proposal per returned element id
        """
        payload = {
            "topic": topic,
            "theme": theme,
            "slide_id": slide.id,
            "slide_type": slide.slide_type,
            "elements": describe_slide(slide),
        }

        try:
            session = await self._get_session()
            async with session.post(
                f"{self.base_url}/api/layouts/regenerate",
                json=payload
            ) as resp:
                if resp.status == 200:
                    data = await resp.json()
                    proposals = [LayoutProposal(**e) for e in data.get("elements", [])]
                    logger.info(f"[LAYOUT-CLIENT] Received {len(proposals)} proposals for slide {slide.id}")
                    return LayoutServiceResponse(
                        success=True,
                        proposals=proposals,
                        message="Layout regenerated"
                    )
                else:
                    error_text = await resp.text()
                    logger.error(f"[LAYOUT-CLIENT] Error regenerating layout: {resp.status} - {error_text}")
                    return LayoutServiceResponse(
                        success=False,
                        error=f"Layout Service error: {resp.status} - {error_text}"
                    )
        except asyncio.TimeoutError:
            logger.error("[LAYOUT-CLIENT] Timeout calling Layout Service")
            return LayoutServiceResponse(
                success=False,
                error="Layout service timeout - please try again"
            )
        except aiohttp.ClientError as e:
            logger.error(f"[LAYOUT-CLIENT] Connection error: {e}")
            return LayoutServiceResponse(
                success=False,
                error=f"Connection error: {str(e)}"
            )
        except (ValidationError, TypeError) as e:
            logger.error(f"[LAYOUT-CLIENT] Malformed layout response: {e}")
            return LayoutServiceResponse(
                success=False,
                error=f"Malformed layout response: {str(e)}"
            )
