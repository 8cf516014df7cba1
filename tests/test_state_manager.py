"""
tests/test_state_manager.py
Deck persistence and editor session bookkeeping.
"""
from deck_editor.canvas.state_manager import StateManager
from deck_editor.models.canvas_models import ThemeOption

from conftest import make_text


class TestStateManager:
    def test_create_writes_file(self, tmp_path):
        manager = StateManager(sessions_dir=tmp_path)
        session_id = manager.create_session(topic="Oceans", theme=ThemeOption.VIBRANT)
        assert (tmp_path / f"{session_id}.json").exists()

        deck = manager.get_deck(session_id)
        assert deck.theme == ThemeOption.VIBRANT
        assert [s.slide_type for s in deck.slides] == ["title"]

    def test_reload_from_disk(self, tmp_path):
        manager = StateManager(sessions_dir=tmp_path)
        session_id = manager.create_session(session_id="deck-a", topic="Oceans")
        editor = manager.get_editor(session_id)
        editor.add_element(make_text())
        assert manager.save_session(session_id)

        reloaded = StateManager(sessions_dir=tmp_path).get_deck("deck-a")
        element = reloaded.slides[0].find_element("text_1")
        assert element.kind == "text"
        assert element.text == "Quarterly revenue"

    def test_editor_is_reused(self, tmp_path):
        manager = StateManager(sessions_dir=tmp_path)
        session_id = manager.create_session()
        assert manager.get_editor(session_id) is manager.get_editor(session_id)

    def test_missing_session(self, tmp_path):
        manager = StateManager(sessions_dir=tmp_path)
        assert manager.get_deck("nope") is None
        assert manager.get_editor("nope") is None
        assert not manager.save_session("nope")

    def test_clear_resets_slides_and_editor(self, tmp_path):
        manager = StateManager(sessions_dir=tmp_path)
        session_id = manager.create_session()
        editor = manager.get_editor(session_id)
        editor.add_element(make_text())

        assert manager.clear_session(session_id)
        fresh = manager.get_editor(session_id)
        assert fresh is not editor
        assert fresh.active_slide.all_elements() == []

    def test_delete_removes_file(self, tmp_path):
        manager = StateManager(sessions_dir=tmp_path)
        session_id = manager.create_session()
        assert manager.delete_session(session_id)
        assert not (tmp_path / f"{session_id}.json").exists()
        assert manager.get_deck(session_id) is None

    def test_background_survives_reload(self, tmp_path):
        manager = StateManager(sessions_dir=tmp_path)
        session_id = manager.create_session()
        manager.get_editor(session_id).set_background("YmFjaw==")
        manager.save_session(session_id)

        reloaded = StateManager(sessions_dir=tmp_path).get_deck(session_id)
        assert reloaded.background_image == "YmFjaw=="
