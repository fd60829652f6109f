import pytest

from view_transform import ZOOM_MAX, ViewTransform

VIEWPORT = (640, 480)
DIMS = (64, 64)


def test_small_canvas_is_centred():
    v = ViewTransform(zoom=4)
    assert v.canvas_size(DIMS) == (256, 256)
    assert v.canvas_origin(VIEWPORT, DIMS) == (192, 112)


def test_centring_ignores_scroll_when_canvas_fits():
    v = ViewTransform(zoom=4, scroll_x=5, scroll_y=-3)
    assert v.canvas_origin(VIEWPORT, DIMS) == (192, 112)


def test_large_canvas_pans_with_scroll():
    v = ViewTransform(zoom=16)
    assert v.canvas_origin(VIEWPORT, DIMS) == (-192, -272)
    v.scroll(2, 3)
    assert v.canvas_origin(VIEWPORT, DIMS) == (-192 - 32, -272 - 48)


def test_overflow_on_one_axis_pans_both():
    v = ViewTransform(zoom=8, scroll_x=1, scroll_y=1)
    # 512x128 canvas in a 400x480 viewport: only the width overflows
    assert v.canvas_origin((400, 480), (64, 16)) == (-56 - 8, 176 - 8)


def test_origin_truncates_toward_zero():
    v = ViewTransform(zoom=1)
    assert v.canvas_origin((10, 10), (65, 1)) == (-27, 4)


def test_origin_follows_viewport_resize():
    v = ViewTransform(zoom=4)
    assert v.canvas_origin((800, 600), DIMS) == (272, 172)
    assert v.canvas_origin(VIEWPORT, DIMS) == (192, 112)


def test_screen_to_cell():
    v = ViewTransform(zoom=4)
    assert v.screen_to_cell((192, 112), VIEWPORT, DIMS) == (0, 0)
    assert v.screen_to_cell((195, 115), VIEWPORT, DIMS) == (0, 0)
    assert v.screen_to_cell((196 + 4 * 9, 112 + 4 * 5), VIEWPORT, DIMS) == (5, 10)


def test_screen_to_cell_does_not_clamp():
    v = ViewTransform(zoom=4)
    assert v.screen_to_cell((639, 479), VIEWPORT, DIMS) == (91, 111)
    assert v.screen_to_cell((0, 0), VIEWPORT, DIMS) == (-28, -48)


def test_screen_to_cell_truncates_near_edge():
    v = ViewTransform(zoom=4)
    # two pixels left of the canvas still truncates to column 0
    assert v.screen_to_cell((190, 112), VIEWPORT, DIMS) == (0, 0)
    assert v.screen_to_cell((188, 112), VIEWPORT, DIMS) == (0, -1)


def test_cell_to_screen_inverts_screen_to_cell():
    v = ViewTransform(zoom=16, scroll_x=4, scroll_y=1)
    x, y = v.cell_to_screen(7, 3, VIEWPORT, DIMS)
    assert v.screen_to_cell((x, y), VIEWPORT, DIMS) == (7, 3)
    assert v.screen_to_cell((x + 15, y + 15), VIEWPORT, DIMS) == (7, 3)


def test_zoom_in_doubles_up_to_max():
    v = ViewTransform(zoom=16)
    assert v.zoom_in()
    assert v.zoom == 32
    v = ViewTransform(zoom=ZOOM_MAX)
    assert not v.zoom_in()
    assert v.zoom == ZOOM_MAX


def test_zoom_out_never_below_one():
    v = ViewTransform(zoom=16)
    seen = []
    for _ in range(10):
        v.zoom_out()
        seen.append(v.zoom)
    assert seen[:5] == [8, 4, 2, 1, 1]
    assert min(seen) == 1
    assert not v.zoom_out()


def test_zoom_must_be_positive():
    with pytest.raises(ValueError):
        ViewTransform(zoom=0)
