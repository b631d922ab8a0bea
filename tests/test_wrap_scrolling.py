"""Test wrapping, scrolling and frame rendering."""

from tilo.ansi import ANSI_ESCAPE_RE, RESET, strip_ansi
from tilo.model import SelectionMode, Viewer
from tilo.rules import default_rules
from tilo.view import TerminalView


def make_view(lines, columns=10, rows=5, line_numbers=False, wrap=False, **kwargs):
    viewer = Viewer(lines, line_numbers=line_numbers, wrap=wrap)
    view = TerminalView(viewer, **kwargs)
    view.resize(columns, rows)
    return view


def test_toggle_wrap_resets_offsets_and_keeps_cursor():
    viewer = Viewer(["x" * 50] * 5)
    viewer.cursor = 3
    viewer.cursor_col = 20
    viewer.h_offset = 5
    viewer.top_segment = 2

    viewer.toggle_wrap()
    assert viewer.wrap is True
    assert viewer.h_offset == 0
    assert viewer.top_segment == 0
    assert (viewer.cursor, viewer.cursor_col) == (3, 20)


def test_geometry_with_line_numbers():
    view = make_view(["a"] * 120, columns=40, rows=10, line_numbers=True)
    assert view.gutter_width() == 3
    assert view.content_offset == 4
    assert view.content_width == 36
    assert view.content_height == 9
    assert view.page_rows() == 8


def test_geometry_minimums():
    view = make_view([], columns=1, rows=1, line_numbers=True)
    assert view.gutter_width() == 1
    assert view.content_width == 1
    assert view.content_height == 1


def test_segments_in_wrap_mode():
    view = make_view(["x" * 25, ""], wrap=True)
    assert view.segments(0) == [(0, 10), (10, 20), (20, 25)]
    assert view.segments(1) == [(0, 0)]
    assert view.segment_count(0) == 3


def test_global_segment_index_round_trip():
    view = make_view(["x" * 25, "y", "z" * 12], wrap=True)
    assert view.global_segment_index(1, 0) == 3
    assert view.global_segment_index(2, 1) == 5
    assert view.from_global_segment_index(4) == (2, 0)
    assert view.from_global_segment_index(5) == (2, 1)
    assert view.from_global_segment_index(100) == (2, 1)
    assert view.from_global_segment_index(-1) == (0, 0)


def test_scroll_follows_cursor_in_wrap_mode():
    view = make_view(["x" * 25, "y", "z" * 12], rows=3, wrap=True)
    viewer = view.viewer
    viewer.cursor = 2
    viewer.cursor_col = 11

    view.ensure_cursor_visible()
    assert (viewer.top, viewer.top_segment) == (2, 0)
    assert view.cursor_screen_position() == (1, 1)


def test_scroll_up_to_cursor():
    view = make_view(["line"] * 20, rows=5)
    viewer = view.viewer
    viewer.top = 10
    viewer.cursor = 3
    view.ensure_cursor_visible()
    assert viewer.top == 3


def test_horizontal_offset_tracks_cursor():
    view = make_view(["x" * 30])
    viewer = view.viewer
    viewer.cursor_col = 25
    view.ensure_cursor_visible()
    assert viewer.h_offset == 16
    assert view.cursor_screen_position() == (0, 9)

    viewer.cursor_col = 2
    view.ensure_cursor_visible()
    assert viewer.h_offset == 2


def test_rendered_rows_have_exact_width():
    line = "2024-01-02T10:00:00Z connected ERROR " + "x" * 80
    view = make_view([line, "short"], columns=40, rows=5, line_numbers=True, rules=default_rules())
    frame = view.render()

    assert len(frame.rows) == 4
    for row in frame.rows:
        assert len(strip_ansi(row)) == 40
        escapes = ANSI_ESCAPE_RE.findall(row)
        if escapes:
            assert escapes[-1] == RESET
    assert frame.rows[0].startswith("1 \x1b[36m2024")


def test_wrap_mode_renders_continuation_rows():
    view = make_view(["abcdefghijKLMNO"], columns=10, rows=4, wrap=True, plain=True)
    frame = view.render()
    assert frame.rows[0] == "abcdefghij"
    assert frame.rows[1] == "KLMNO     "
    assert frame.rows[2] == " " * 10


def test_status_row_position():
    bottom = make_view(["a"], rows=5).render()
    assert bottom.status_row == 4
    assert bottom.cursor_row == 0

    top = make_view(["a"], rows=5, status_at_top=True).render()
    assert top.status_row == 0
    assert top.cursor_row == 1


def test_plain_mode_has_no_rule_styling():
    view = make_view(["ERROR"], plain=True, rules=default_rules())
    view.viewer.query = "err"
    assert "\x1b" not in view.render().rows[0]


def test_selection_is_reverse_video():
    view = make_view(["abc"], plain=True)
    view.viewer.toggle_select(SelectionMode.CHAR)
    view.viewer.move_cursor_col(1)
    assert view.render().rows[0] == "\x1b[7mab\x1b[0mc       "


def test_selection_composes_with_rule_color():
    view = make_view(["ERROR"], rules=default_rules())
    view.viewer.toggle_select(SelectionMode.LINE)
    assert view.render().rows[0].startswith("\x1b[1;31;7mERROR\x1b[0m")


def test_query_highlight_overrides_rule_color():
    view = make_view(["abc"])
    view.viewer.query = "b"
    assert view.render().rows[0] == "a\x1b[4;34mb\x1b[0mc       "


def test_control_characters_render_as_spaces():
    view = make_view(["a\tb"], plain=True)
    assert view.render().rows[0] == "a b       "


def test_prompt_line_is_padded():
    view = make_view(["a"])
    assert view.prompt_line("/err") == "/err      "
    assert view.prompt_line("/" + "x" * 20) == "/" + "x" * 9
