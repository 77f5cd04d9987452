import pytest

from sketchpad.editor.tools import Point, PointerEvent, Tool, ToolState, canvas_position


def test_mouse_position_is_relative_to_canvas_offset():
    event = PointerEvent(client_x=120, client_y=80)

    assert canvas_position(event, Point(100, 50)) == Point(20, 30)


def test_touch_uses_first_active_contact():
    event = PointerEvent(client_x=999, client_y=999, touches=[Point(15, 25), Point(70, 70)])

    assert canvas_position(event, Point(10, 20)) == Point(5, 5)


def test_touch_end_falls_back_to_changed_contact():
    event = PointerEvent(changed_touches=[Point(40, 40)])

    assert canvas_position(event, Point(0, 10)) == Point(40, 30)


def test_tool_state_accepts_tool_names():
    state = ToolState(tool="eraser", color="#3B82F6", width=10, opacity=0.5)

    assert state.tool is Tool.ERASER
    assert state.tool.erases
    assert state.rgb == (59, 130, 246)
    assert not Tool.HIGHLIGHTER.erases


@pytest.mark.parametrize(
    "kwargs",
    [
        {"width": 0},
        {"width": 51},
        {"opacity": 0.0},
        {"opacity": 1.5},
        {"color": "not-a-colour"},
        {"tool": "spraycan"},
    ],
)
def test_tool_state_rejects_out_of_range_values(kwargs):
    with pytest.raises(ValueError):
        ToolState(**kwargs)
