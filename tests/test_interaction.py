import pytest

from mapbuilder.core.model import EntityKind, Rect, Room
from mapbuilder.engine.interaction import (
    CreatingRoom,
    Idle,
    InteractionStateMachine,
    MovingFurniture,
    MovingRoom,
    Panning,
    PendingDrag,
    ResizingRoom,
    Tool,
)
from mapbuilder.engine.session import LayoutSession
from mapbuilder.engine.validators import CommitError


def screen(wx, wy):
    """Screen position of a world point with the default camera and 1200x800 viewport."""
    return wx + 600, wy + 400


def test_click_selects_without_changing_geometry(machine, session, store):
    original = session.rooms["a"]

    machine.pointer_down(*screen(64, 64))
    assert isinstance(machine.state, PendingDrag)
    machine.pointer_up(*screen(64, 64))

    assert isinstance(machine.state, Idle)
    assert (session.selection.kind, session.selection.id) == (EntityKind.ROOM, "a")
    assert session.rooms["a"] == original
    assert store.rooms["a"] == original


def test_click_on_empty_space_clears_selection(machine, session):
    machine.pointer_down(*screen(64, 64))
    machine.pointer_up(*screen(64, 64))
    machine.pointer_down(*screen(-300, -300))
    machine.pointer_up(*screen(-300, -300))
    assert session.selection is None


def test_small_motion_stays_pending(machine, session):
    original = session.rooms["a"]
    sx, sy = screen(64, 64)

    machine.pointer_down(sx, sy)
    machine.pointer_move(sx + 2, sy)

    assert isinstance(machine.state, PendingDrag)
    assert session.rooms["a"] == original


def test_drag_room_stages_then_commits(machine, session, store):
    sx, sy = screen(64, 64)
    machine.pointer_down(sx, sy)
    machine.pointer_move(sx + 8, sy)

    assert isinstance(machine.state, MovingRoom)
    assert session.rooms["a"].end_x == 140, "Drag frames show the snapped geometry"
    assert store.rooms["a"].end_x == 128, "Nothing is persisted before release"
    assert session.snapshot().active_drag_highlight.id == "a"

    machine.pointer_up(sx + 8, sy)

    assert isinstance(machine.state, Idle)
    assert store.rooms["a"].end_x == 140
    assert len(store.connectors) == 1
    assert session.snapshot().active_drag_highlight is None


def test_deltas_are_measured_from_drag_start(machine, session):
    sx, sy = screen(64, 64)
    machine.pointer_down(sx, sy)
    for step in range(1, 40):
        machine.pointer_move(sx + step * 7.3, sy + step * 0.9)
    machine.pointer_move(sx - 40, sy)
    machine.pointer_up(sx - 40, sy)

    # A single -40 drag snaps to one grid cell
    assert session.rooms["a"].start_x == -32
    assert session.rooms["a"].start_y == 0


def test_escape_rolls_back_drag(machine, session, store):
    original = session.rooms["a"]
    sx, sy = screen(64, 64)
    machine.pointer_down(sx, sy)
    machine.pointer_move(sx + 64, sy + 64)
    assert session.rooms["a"] != original

    assert machine.key_down("Escape") is True

    assert isinstance(machine.state, Idle)
    assert session.rooms["a"] == original
    assert store.rooms["a"] == original
    assert store.connectors == {}


def test_lost_capture_cancels_pending_drag(machine, session):
    machine.pointer_down(*screen(64, 64))
    machine.lost_capture()
    assert isinstance(machine.state, Idle)
    assert session.selection is None


def test_pan_on_empty_space(machine, session):
    machine.pointer_down(*screen(-300, -300))
    machine.pointer_move(*screen(-250, -300))
    assert isinstance(machine.state, Panning)
    machine.pointer_up(*screen(-250, -300))

    assert session.camera.x == pytest.approx(-50)
    assert session.camera.y == pytest.approx(0)


def test_cancel_pan_restores_camera(machine, session):
    machine.pointer_down(*screen(-300, -300))
    machine.pointer_move(*screen(-200, -250))
    assert session.camera.x != 0

    machine.cancel()

    assert (session.camera.x, session.camera.y) == (0, 0)


def test_forced_pan_over_a_room(machine, session):
    original = session.rooms["a"]
    sx, sy = screen(64, 64)
    machine.pointer_down(sx, sy, pan=True)
    machine.pointer_move(sx + 20, sy)
    assert isinstance(machine.state, Panning)
    machine.pointer_up(sx + 20, sy)
    assert session.rooms["a"] == original


def test_locked_room_drag_pans(store):
    store.rooms["a"] = Room("a", 0, 0, 128, 0, 128, locked=True)
    session = LayoutSession(store)
    session.load()
    machine = InteractionStateMachine(session)

    sx, sy = screen(64, 64)
    machine.pointer_down(sx, sy)
    machine.pointer_move(sx + 40, sy)

    assert isinstance(machine.state, Panning)
    machine.pointer_up(sx + 40, sy)
    assert session.rooms["a"].start_x == 0


def test_resize_by_east_handle(machine, session, store):
    sx, sy = screen(128, 64)
    machine.pointer_down(sx, sy)
    machine.pointer_move(sx + 32, sy)

    assert isinstance(machine.state, ResizingRoom)
    assert machine.state.handle.value == "e"

    machine.pointer_up(sx + 32, sy)

    assert store.rooms["a"].end_x == 140, "Resize stops flush against room b"
    assert store.rooms["a"].start_x == 0
    assert len(store.connectors) == 1


def test_drag_furniture(machine, session, store):
    item = session.create_furniture("a", 0, 0)
    sx, sy = screen(64, 64)

    machine.pointer_down(sx, sy)
    machine.pointer_move(sx + 20, sy)
    assert isinstance(machine.state, MovingFurniture)
    machine.pointer_up(sx + 20, sy)

    assert store.furniture[item.id].x == 24
    assert store.furniture[item.id].y == 0


def test_commit_failure_reverts_drag(flaky_session):
    session = flaky_session("update_room")
    machine = InteractionStateMachine(session)
    original = session.rooms["a"]
    sx, sy = screen(64, 64)

    machine.pointer_down(sx, sy)
    machine.pointer_move(sx - 64, sy)
    with pytest.raises(CommitError):
        machine.pointer_up(sx - 64, sy)

    assert isinstance(machine.state, Idle)
    assert session.rooms["a"] == original


def test_pointer_down_is_ignored_during_gesture(machine):
    sx, sy = screen(64, 64)
    machine.pointer_down(sx, sy)
    machine.pointer_move(sx + 10, sy)
    state = machine.state

    assert machine.pointer_down(*screen(200, 64)) is state


def test_create_room_tool(machine, session):
    machine.set_tool(Tool.CREATE_ROOM)

    machine.pointer_down(*screen(400, 300))
    machine.pointer_move(*screen(500, 380))
    assert isinstance(machine.state, CreatingRoom)
    assert session.snapshot().active_drag_highlight == Rect(400, 500, 300, 380)
    machine.pointer_up(*screen(500, 380))

    assert len(session.rooms) == 3
    room = session.selected_entity()
    assert room.id not in ("a", "b")
    assert room.start_x % 32 == 0 and room.start_y % 32 == 0
    assert (room.width, room.height) == (96, 96)


def test_tool_cannot_change_mid_gesture(machine):
    machine.pointer_down(*screen(64, 64))
    with pytest.raises(RuntimeError):
        machine.set_tool(Tool.CREATE_ROOM)


def test_wheel_zooms_at_cursor(machine, session):
    before = session.transformer.screen_to_world(100, 100)
    zoom = machine.wheel(100, 100, 1)
    assert zoom == pytest.approx(1.25)
    assert session.transformer.screen_to_world(100, 100) == pytest.approx(before)


def test_delete_key_removes_selection(machine, session, store):
    machine.pointer_down(*screen(200, 64))
    machine.pointer_up(*screen(200, 64))
    assert session.selection.id == "b"

    assert machine.key_down("Delete") is True

    assert "b" not in session.rooms
    assert "b" not in store.rooms
    assert machine.key_down("Delete") is False
