"""
Image Client for Deck Editor
=============================

HTTP client for calling the image generation service.

Images are stored on slides as base64 encoded bytes, so when the service
answers with a URL the image is downloaded and encoded here.
"""

import os
import base64
import httpx
from typing import Optional
from pydantic import BaseModel
import logging

logger = logging.getLogger(__name__)

IMAGE_SERVICE_URL = os.getenv(
    "IMAGE_API_URL",
    "http://localhost:8090"
)

VALID_STYLES = ["realistic", "illustration", "corporate", "abstract", "minimalist"]
VALID_ASPECT_RATIOS = ["1:1", "4:3", "3:4", "16:9", "9:16"]


class ImageResponse(BaseModel):
    """Response from image generation."""
    success: bool
    base64: Optional[str] = None
    mime_type: str = "image/jpeg"
    style: str = "realistic"
    generation_time_ms: Optional[int] = None
    error: Optional[str] = None


class ImageClient:
    """
    HTTP client for the image generation service.

    Usage:
        client = ImageClient()
        response = await client.generate(
            prompt="Modern office with team collaboration",
            style="realistic"
        )
        if response.success:
            data = response.base64
    """

    def __init__(self, base_url: str = None, timeout: float = 60.0):
        """
        Initialize image client.

        Args:
            base_url: Image service URL (defaults to IMAGE_SERVICE_URL env var)
            timeout: Request timeout in seconds (default 60s for image generation)
        """
        self.base_url = base_url or IMAGE_SERVICE_URL
        self.timeout = timeout
        logger.info(f"[ImageClient] Initialized with base URL: {self.base_url}")

    async def generate(
        self,
        prompt: str,
        style: str = "realistic",
        aspect_ratio: str = "1:1"
    ) -> ImageResponse:
        """
        Generate an image.

        Args:
            prompt: Text description to generate image from
            style: One of realistic, illustration, corporate, abstract, minimalist
            aspect_ratio: One of 1:1, 4:3, 3:4, 16:9, 9:16

        Returns:
            ImageResponse with success status and base64 image bytes
        """
        if style not in VALID_STYLES:
            logger.warning(f"[ImageClient] Invalid style '{style}', defaulting to 'realistic'")
            style = "realistic"

        if aspect_ratio not in VALID_ASPECT_RATIOS:
            logger.warning(f"[ImageClient] Invalid aspect ratio '{aspect_ratio}', defaulting to '1:1'")
            aspect_ratio = "1:1"

        url = f"{self.base_url}/api/v1/images/generate"
        payload = {
            "prompt": prompt,
            "aspect_ratio": aspect_ratio,
            "output_mime_type": "image/jpeg",
            "config": {
                "style": style
            }
        }

        logger.info(f"[ImageClient] Generating image: {prompt[:50]}... (style={style})")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=payload)

                if response.status_code != 200:
                    error_msg = f"Image service error: HTTP {response.status_code}"
                    try:
                        error_data = response.json()
                        if isinstance(error_data.get("detail"), str):
                            error_msg = error_data["detail"]
                    except ValueError:
                        pass

                    logger.error(f"[ImageClient] {error_msg}")
                    return ImageResponse(success=False, style=style, error=error_msg)

                data = response.json()

                if not data.get("success", True):
                    error_msg = data.get("error", "Image generation failed")
                    logger.error(f"[ImageClient] {error_msg}")
                    return ImageResponse(success=False, style=style, error=error_msg)

                mime_type = data.get("mime_type", "image/jpeg")
                encoded = data.get("image_base64")
                if not encoded and data.get("image_url"):
                    download = await client.get(data["image_url"])
                    download.raise_for_status()
                    encoded = base64.b64encode(download.content).decode("ascii")
                    mime_type = download.headers.get("content-type", mime_type)

                if not encoded:
                    logger.error("[ImageClient] Response carried no image")
                    return ImageResponse(success=False, style=style, error="Image service returned no image")

                logger.info(f"[ImageClient] Successfully generated image ({len(encoded)} base64 chars)")

                return ImageResponse(
                    success=True,
                    base64=encoded,
                    mime_type=mime_type,
                    style=style,
                    generation_time_ms=data.get("generation_time_ms")
                )

        except httpx.TimeoutException:
            logger.error("[ImageClient] Timeout calling Image Service")
            return ImageResponse(
                success=False,
                style=style,
                error="Image service timeout - please try again"
            )
        except httpx.HTTPStatusError as e:
            logger.error(f"[ImageClient] Image download failed: {e}")
            return ImageResponse(
                success=False,
                style=style,
                error=f"Image download failed: HTTP {e.response.status_code}"
            )
        except httpx.RequestError as e:
            logger.error(f"[ImageClient] Network error: {e}")
            return ImageResponse(
                success=False,
                style=style,
                error=f"Network error: {str(e)}"
            )

    async def health_check(self) -> bool:
        """
        Check if the image service is available.

        Returns:
            True if service is healthy, False otherwise
        """
        url = f"{self.base_url}/api/v1/images/health"

        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(url)
                return response.status_code == 200
        except httpx.HTTPError:
            return False
