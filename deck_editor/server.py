"""
Deck Editor Server
==================

FastAPI server for the AI-assisted slide canvas editor.

Features:
- Deck and slide state with JSON persistence
- Pointer-driven drag/resize of elements in canvas percentages
- Click-to-insert of generated text, image and icon elements
- Gemini text refinement and chart extraction
- Layout regeneration through the Layout Service
"""

import os
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Import services
from .services.content_generator import ContentGenerator
from .services.image_client import ImageClient, IMAGE_SERVICE_URL
from .services.llm_service import LLMService
from .services.layout_service_client import LayoutServiceClient, LAYOUT_SERVICE_URL

# Import canvas state
from .canvas.editor_session import EditorSession
from .canvas.state_manager import StateManager

# Import API routers
from .api import canvas_routes, element_routes, interaction_routes


SESSIONS_DIR = Path(os.getenv("DECK_SESSIONS_DIR", Path(__file__).parent.parent / "sessions"))
MIN_ELEMENT_SIZE = os.getenv("MIN_ELEMENT_SIZE")

# Shared service instances
state_manager: StateManager = None
image_client: ImageClient = None
llm_service: LLMService = None
layout_service_client: LayoutServiceClient = None
content_generator: ContentGenerator = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global state_manager, image_client, llm_service, layout_service_client, content_generator

    logger.info("[DECK-EDITOR] Starting up...")

    image_client = ImageClient(
        timeout=60.0  # 60 second timeout for image generation
    )
    llm_service = LLMService()
    layout_service_client = LayoutServiceClient(
        timeout=30.0  # 30 second timeout for Layout Service
    )
    content_generator = ContentGenerator(llm_service, image_client)

    min_size = float(MIN_ELEMENT_SIZE) if MIN_ELEMENT_SIZE else None

    def editor_factory(deck):
        return EditorSession(
            deck,
            generator=content_generator,
            llm=llm_service,
            layout_client=layout_service_client,
            min_size=min_size
        )

    state_manager = StateManager(sessions_dir=SESSIONS_DIR, editor_factory=editor_factory)

    # Inject into route modules
    canvas_routes.state_manager = state_manager
    element_routes.state_manager = state_manager
    interaction_routes.state_manager = state_manager

    logger.info("[DECK-EDITOR] Services initialized")

    yield

    # Cleanup
    logger.info("[DECK-EDITOR] Shutting down...")
    if layout_service_client:
        await layout_service_client.close()


# Create FastAPI app
app = FastAPI(
    title="Deck Editor",
    description="AI-assisted slide canvas editor",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(canvas_routes.router)
app.include_router(element_routes.router)
app.include_router(interaction_routes.router)


@app.get("/")
async def root():
    """Return API info."""
    return {
        "service": "Deck Editor",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "canvas": "/api/canvas/state/{session_id}",
            "elements": "/api/element/{session_id}/{element_id}",
            "interaction": "/api/interaction/{session_id}"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint, including reachability of the image service."""
    image_ok = image_client is not None and await image_client.health_check()
    return {
        "status": "healthy",
        "service": "deck-editor",
        "image_api": IMAGE_SERVICE_URL,
        "image_service": "up" if image_ok else "unavailable",
        "layout_api": LAYOUT_SERVICE_URL
    }


@app.get("/api/info")
async def api_info():
    """Canvas conventions shared with the front end."""
    from .canvas.layout import DEFAULT_SIZES, INSERT_OFFSET
    from .models.interaction_models import ResizeDirection

    return {
        "service": "Deck Editor",
        "version": "1.0.0",
        "canvas": {
            "aspect_ratio": "16:9",
            "units": "percent"
        },
        "element_kinds": [
            {"kind": kind.value, "default_size": {"w": w, "h": h}}
            for kind, (w, h) in DEFAULT_SIZES.items()
        ],
        "insert_offset": {"x": INSERT_OFFSET[0], "y": INSERT_OFFSET[1]},
        "resize_handles": [direction.value for direction in ResizeDirection]
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "deck_editor.server:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8080")),
        reload=True
    )
