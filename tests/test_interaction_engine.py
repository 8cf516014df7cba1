"""
tests/test_interaction_engine.py
Gesture state machine: drag/resize from an immutable snapshot, the
select-before-drag guard, and measurement failures.
"""
from unittest.mock import MagicMock

import pytest

from deck_editor.canvas.interaction_engine import InteractionEngine
from deck_editor.models.canvas_models import Geometry
from deck_editor.models.interaction_models import (
    CanvasSize, EngineState, GestureMode, ResizeDirection
)

from conftest import make_text, pointer


@pytest.fixture
def on_update():
    return MagicMock()


@pytest.fixture
def engine(on_update):
    return InteractionEngine(on_update=on_update)


@pytest.fixture
def element():
    return make_text(x=10, y=10, w=20, h=20)


def _as_tuple(geometry: Geometry):
    return (geometry.x, geometry.y, geometry.w, geometry.h)


class TestInitialState:
    def test_starts_idle(self, engine):
        assert engine.state == EngineState.IDLE
        assert engine.active_gesture is None

    def test_move_while_idle_is_noop(self, engine, on_update, canvas):
        assert engine.pointer_move(pointer(10, 10), canvas) is None
        on_update.assert_not_called()

    def test_pointer_up_while_idle(self, engine):
        assert engine.pointer_up() is None
        assert engine.state == EngineState.IDLE


class TestDragging:
    def test_drag_example(self, engine, on_update, element, canvas):
        assert engine.pointer_down_body(element, True, pointer(100, 100), canvas)
        assert engine.state == EngineState.DRAGGING

        result = engine.pointer_move(pointer(200, 150), canvas)

        assert result.x == pytest.approx(20)
        assert result.y == pytest.approx(18.897, abs=1e-3)
        assert (result.w, result.h) == (20, 20)
        on_update.assert_called_once_with("text_1", result)

    def test_unselected_element_does_not_drag(self, engine, on_update, element, canvas):
        assert not engine.pointer_down_body(element, False, pointer(100, 100), canvas)
        assert engine.state == EngineState.IDLE
        engine.pointer_move(pointer(300, 300), canvas)
        on_update.assert_not_called()

    def test_click_without_drag_keeps_geometry(self, engine, element, canvas):
        engine.pointer_down_body(element, True, pointer(420, 300), canvas)
        result = engine.pointer_move(pointer(420, 300), canvas)
        engine.pointer_up()
        assert _as_tuple(result) == _as_tuple(element)
        assert engine.state == EngineState.IDLE

    def test_one_update_per_move(self, engine, on_update, element, canvas):
        engine.pointer_down_body(element, True, pointer(0, 0), canvas)
        for step in range(1, 6):
            engine.pointer_move(pointer(step * 10, step * 5), canvas)
        assert on_update.call_count == 5

    def test_many_small_moves_equal_one_big_move(self, element, canvas):
        many = InteractionEngine(on_update=MagicMock())
        many.pointer_down_body(element, True, pointer(100, 100), canvas)
        for x, y in [(103, 101), (117, 109), (150, 122), (176, 140), (200, 150)]:
            last = many.pointer_move(pointer(x, y), canvas)

        single = InteractionEngine(on_update=MagicMock())
        single.pointer_down_body(element, True, pointer(100, 100), canvas)
        one = single.pointer_move(pointer(200, 150), canvas)

        assert _as_tuple(last) == _as_tuple(one)

    def test_moves_follow_live_canvas_size(self, engine, element, canvas):
        engine.pointer_down_body(element, True, pointer(0, 0), canvas)
        result = engine.pointer_move(pointer(100, 0), CanvasSize(width=500, height=281))
        assert result.x == pytest.approx(30)


class TestResizing:
    def test_bottom_right_example(self, engine, element, canvas):
        assert engine.pointer_down_handle(element, ResizeDirection.BOTTOM_RIGHT, pointer(300, 300), canvas)
        assert engine.state == EngineState.RESIZING

        result = engine.pointer_move(pointer(350, 300), canvas)
        assert _as_tuple(result) == pytest.approx((10, 10, 25, 20))

    def test_direction_recorded_in_snapshot(self, engine, element, canvas):
        engine.pointer_down_handle(element, "top-left", pointer(0, 0), canvas)
        gesture = engine.active_gesture
        assert gesture.mode == GestureMode.RESIZE
        assert gesture.direction == ResizeDirection.TOP_LEFT

    def test_pure_right_resize_keeps_vertical_axis(self, engine, element, canvas):
        engine.pointer_down_handle(element, ResizeDirection.RIGHT, pointer(0, 0), canvas)
        result = engine.pointer_move(pointer(40, 90), canvas)
        assert (result.y, result.h) == (10, 20)

    def test_unclamped_by_default(self, engine, element, canvas):
        engine.pointer_down_handle(element, ResizeDirection.RIGHT, pointer(0, 0), canvas)
        result = engine.pointer_move(pointer(-500, 0), canvas)
        assert result.w == pytest.approx(-30)

    def test_min_size_policy(self, element, canvas):
        engine = InteractionEngine(on_update=MagicMock(), min_size=2)
        engine.pointer_down_handle(element, ResizeDirection.RIGHT, pointer(0, 0), canvas)
        result = engine.pointer_move(pointer(-500, 0), canvas)
        assert result.w == 2

    def test_min_size_does_not_apply_to_moves(self, element, canvas):
        engine = InteractionEngine(on_update=MagicMock(), min_size=50)
        engine.pointer_down_body(element, True, pointer(0, 0), canvas)
        result = engine.pointer_move(pointer(10, 0), canvas)
        assert (result.w, result.h) == (20, 20)


class TestMeasurementFailure:
    @pytest.mark.parametrize("bad_canvas", [None, CanvasSize(width=0, height=562), CanvasSize(width=1000, height=0)])
    def test_gesture_does_not_start(self, engine, on_update, element, bad_canvas):
        assert not engine.pointer_down_body(element, True, pointer(0, 0), bad_canvas)
        assert not engine.pointer_down_handle(element, ResizeDirection.TOP, pointer(0, 0), bad_canvas)
        assert engine.state == EngineState.IDLE
        on_update.assert_not_called()

    def test_unmeasurable_move_skipped(self, engine, on_update, element, canvas):
        engine.pointer_down_body(element, True, pointer(0, 0), canvas)
        assert engine.pointer_move(pointer(50, 50), None) is None
        on_update.assert_not_called()
        assert engine.state == EngineState.DRAGGING


class TestSnapshotImmutability:
    def test_external_change_does_not_affect_gesture(self, engine, canvas):
        element = make_text(x=10, y=10, w=20, h=20)
        engine.pointer_down_body(element, True, pointer(100, 100), canvas)

        # e.g. a layout regeneration lands mid-gesture
        element.x, element.y, element.w, element.h = 70, 70, 5, 5

        result = engine.pointer_move(pointer(200, 100), canvas)
        assert _as_tuple(result) == pytest.approx((20, 10, 20, 20))

    def test_snapshot_is_frozen(self, engine, element, canvas):
        engine.pointer_down_body(element, True, pointer(0, 0), canvas)
        with pytest.raises(Exception):
            engine.active_gesture.pointer_x = 5


class TestSingleGesture:
    def test_second_pointer_down_ignored(self, engine, element, canvas):
        other = make_text(element_id="text_2")
        engine.pointer_down_body(element, True, pointer(0, 0), canvas)
        assert not engine.pointer_down_handle(other, ResizeDirection.LEFT, pointer(5, 5), canvas)
        assert engine.active_gesture.element_id == "text_1"

    def test_pointer_up_discards_gesture(self, engine, on_update, element, canvas):
        engine.pointer_down_body(element, True, pointer(0, 0), canvas)
        snapshot = engine.pointer_up()
        assert snapshot.element_id == "text_1"
        assert engine.state == EngineState.IDLE
        engine.pointer_move(pointer(50, 50), canvas)
        on_update.assert_not_called()

    def test_cycles_back_to_new_gesture(self, engine, element, canvas):
        engine.pointer_down_body(element, True, pointer(0, 0), canvas)
        engine.pointer_up()
        assert engine.pointer_down_handle(element, ResizeDirection.BOTTOM, pointer(0, 0), canvas)


class TestCancellation:
    def test_cancel_restores_snapshot(self, engine, on_update, element, canvas):
        engine.pointer_down_body(element, True, pointer(0, 0), canvas)
        engine.pointer_move(pointer(300, 300), canvas)

        restored = engine.cancel()

        assert _as_tuple(restored) == (10, 10, 20, 20)
        assert on_update.call_args.args == ("text_1", restored)
        assert engine.state == EngineState.IDLE

    def test_cancel_when_idle(self, engine, on_update):
        assert engine.cancel() is None
        on_update.assert_not_called()

    def test_removed_target_tears_down_gesture(self, engine, on_update, element, canvas):
        engine.pointer_down_body(element, True, pointer(0, 0), canvas)
        engine.element_removed("text_1")
        assert engine.state == EngineState.IDLE
        engine.pointer_move(pointer(10, 10), canvas)
        on_update.assert_not_called()

    def test_removing_other_element_keeps_gesture(self, engine, element, canvas):
        engine.pointer_down_body(element, True, pointer(0, 0), canvas)
        engine.element_removed("image_1")
        assert engine.state == EngineState.DRAGGING
