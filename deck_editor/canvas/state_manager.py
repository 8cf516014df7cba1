"""
Deck State Manager
==================

Manages deck state with JSON persistence, and the live editor session that
goes with each open deck.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Callable, Dict, Optional

from ..models.canvas_models import Deck, Slide, ThemeOption, new_slide_id
from .editor_session import EditorSession

logger = logging.getLogger(__name__)

EditorFactory = Callable[[Deck], EditorSession]


class StateManager:
    """Manages decks and editor sessions."""

    def __init__(
        self,
        sessions_dir: Optional[Path] = None,
        editor_factory: Optional[EditorFactory] = None
    ):
        self.sessions_dir = sessions_dir or Path("sessions")
        self.sessions_dir.mkdir(parents=True, exist_ok=True)
        self.editor_factory = editor_factory or EditorSession
        self._cache: Dict[str, Deck] = {}
        self._editors: Dict[str, EditorSession] = {}
        logger.info(f"[STATE-MANAGER] Initialized with sessions_dir={self.sessions_dir}")

    def _session_path(self, session_id: str) -> Path:
        return self.sessions_dir / f"{session_id}.json"

    def create_session(
        self,
        session_id: Optional[str] = None,
        topic: str = "",
        theme: ThemeOption = ThemeOption.DARK
    ) -> str:
        """Create a new deck with a single empty title slide."""
        if session_id is None:
            session_id = str(uuid.uuid4())

        if self.get_deck(session_id) is None:
            deck = Deck(
                session_id=session_id,
                topic=topic,
                theme=theme,
                slides=[Slide(id=new_slide_id(), slide_type="title")]
            )
            self._cache[session_id] = deck
            self._save_session(session_id)
            logger.info(f"[STATE-MANAGER] Created session {session_id}")
        return session_id

    def get_deck(self, session_id: str) -> Optional[Deck]:
        """Get deck state, loading it from disk on first access."""
        if session_id in self._cache:
            return self._cache[session_id]

        session_path = self._session_path(session_id)
        if session_path.exists():
            with open(session_path) as f:
                self._cache[session_id] = Deck.model_validate(json.load(f))
                return self._cache[session_id]
        return None

    def get_editor(self, session_id: str) -> Optional[EditorSession]:
        """Live editor session for a deck, created on first use."""
        if session_id in self._editors:
            return self._editors[session_id]

        deck = self.get_deck(session_id)
        if deck is None:
            return None
        editor = self.editor_factory(deck)
        self._editors[session_id] = editor
        return editor

    def clear_session(self, session_id: str) -> bool:
        """Replace all slides of a deck with one empty title slide."""
        deck = self.get_deck(session_id)
        if deck is None:
            return False

        deck.slides = [Slide(id=new_slide_id(), slide_type="title")]
        deck.touch()
        # Drop UI state that referred to the old slides
        self._editors.pop(session_id, None)
        self._save_session(session_id)
        return True

    def delete_session(self, session_id: str) -> bool:
        """Forget a deck and remove its file."""
        existed = self.get_deck(session_id) is not None
        self._cache.pop(session_id, None)
        self._editors.pop(session_id, None)
        session_path = self._session_path(session_id)
        if session_path.exists():
            session_path.unlink()
        return existed

    def _save_session(self, session_id: str):
        """Save deck to disk."""
        if session_id in self._cache:
            with open(self._session_path(session_id), "w") as f:
                json.dump(self._cache[session_id].model_dump(mode="json"), f, indent=2)

    def save_session(self, session_id: str) -> bool:
        """Explicitly save deck to disk."""
        if session_id in self._cache:
            self._save_session(session_id)
            return True
        return False
