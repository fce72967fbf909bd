import numpy as np
import pytest

from copaint.models.actions import DrawSegment, Point
from copaint.raster import Raster, reconstruct, replay

from factories import BLANK, BLUE, GREEN, RED, WHITE, circle, clear, fill, rect, shape, stroke

SIZE = (200, 150)


def _px(buffer, x, y):
    return tuple(int(c) for c in buffer[y, x])


def test_empty_history_is_blank():
    buffer = reconstruct([], SIZE)
    assert buffer.shape == (150, 200, 4)
    assert buffer.dtype == np.uint8
    assert not buffer.any()


def test_reconstruction_is_deterministic():
    history = [
        rect(),
        circle(),
        stroke([(0, 0), (60, 70), (90, 20)]),
        fill((30, 25), "#00ff00"),
    ]
    assert np.array_equal(reconstruct(history, SIZE), reconstruct(history, SIZE))


@pytest.mark.parametrize("action", [
    rect(),
    circle(),
    shape("triangle", (20, 20), (80, 90), color="#123456", width=3),
    stroke([(5, 5), (40, 60), (120, 30)], width=5),
    fill((10, 10), "#ff00ff"),
    clear(),
], ids=["rect", "circle", "triangle", "stroke", "fill", "clear"])
def test_applying_an_action_twice_equals_once(action):
    base = [rect(start=(0, 0), end=(30, 30))]
    once = reconstruct(base + [action], SIZE)
    twice = reconstruct(base + [action, action], SIZE)
    assert np.array_equal(once, twice)


def test_single_point_stroke_paints_nothing():
    assert not reconstruct([stroke([(5, 5)])], SIZE).any()
    assert not reconstruct([stroke([])], SIZE).any()


def test_clear_resets_to_blank():
    assert not reconstruct([rect(), circle(), clear()], SIZE).any()


def test_actions_after_clear_paint_on_blank():
    after = circle()
    assert np.array_equal(
        reconstruct([rect(), clear(), after], SIZE),
        reconstruct([after], SIZE),
    )


def test_rect_outline_only():
    buffer = reconstruct([rect()], SIZE)

    top_edge = [_px(buffer, 30, y) for y in range(8, 13)]
    left_edge = [_px(buffer, x, 25) for x in range(8, 13)]
    assert RED in top_edge
    assert RED in left_edge
    assert _px(buffer, 30, 25) == BLANK
    assert _px(buffer, 5, 5) == BLANK


def test_circle_radius_is_distance_to_end_point():
    buffer = reconstruct([circle()], SIZE)

    ring = [_px(buffer, x, 100) for x in range(118, 123)]
    assert BLUE in ring
    assert _px(buffer, 100, 100) == BLANK
    assert _px(buffer, 110, 100) == BLANK
    assert _px(buffer, 130, 100) == BLANK


def test_triangle_apex_and_base():
    buffer = reconstruct([shape("triangle", (20, 20), (80, 90), color="#ff0000", width=2)], SIZE)

    apex = [_px(buffer, 50, y) for y in range(18, 23)]
    base = [_px(buffer, 50, y) for y in range(88, 93)]
    assert RED in apex
    assert RED in base
    assert _px(buffer, 50, 60) == BLANK


def test_fill_inside_rect_stays_inside():
    buffer = reconstruct([rect(width=3), fill((30, 25), "#008000")], SIZE)

    assert _px(buffer, 30, 25) == GREEN
    assert _px(buffer, 12 + 2, 12 + 2) == GREEN
    assert _px(buffer, 5, 5) == BLANK
    assert _px(buffer, 100, 100) == BLANK


def test_fill_outside_rect_covers_background_only():
    buffer = reconstruct([rect(width=3), fill((5, 5), "#0000ff")], SIZE)
    assert _px(buffer, 150, 140) == BLUE
    assert _px(buffer, 30, 25) == BLANK


def test_fill_alpha_is_opaque():
    buffer = reconstruct([fill((1, 1), "#ff000080")], SIZE)
    assert _px(buffer, 1, 1) == RED


def test_fill_out_of_bounds_is_ignored():
    assert not reconstruct([fill((500, 500))], SIZE).any()


def test_eraser_paints_white():
    buffer = reconstruct([stroke([(10, 10), (40, 10)], width=4, tool="eraser")], SIZE)
    assert _px(buffer, 25, 10) == WHITE


def test_stroke_uses_its_color():
    buffer = reconstruct([stroke([(10, 50), (60, 50)], color="#008000", width=4)], SIZE)
    assert _px(buffer, 35, 50) == GREEN


def test_undo_then_rebuild_matches_shorter_history():
    first, second = rect(), circle()
    full = reconstruct([first, second], SIZE)
    undone = reconstruct([first], SIZE)
    assert not np.array_equal(full, undone)
    assert np.array_equal(undone, reconstruct([first], SIZE))


def test_replay_keeps_size():
    raster = replay([rect()], (64, 48))
    assert raster.size == (64, 48)
    assert raster.pixels().shape == (48, 64, 4)


def test_invalid_size_rejected():
    with pytest.raises(ValueError):
        Raster(0, 10)


def test_draw_segment_requires_previous_point():
    raster = Raster(50, 50)
    raster.draw_segment(DrawSegment(current_point=Point(x=10, y=10), color="#ff0000", width=3))
    assert not raster.pixels().any()

    raster.draw_segment(DrawSegment(
        prev_point=Point(x=5, y=20), current_point=Point(x=45, y=20), color="#ff0000", width=3,
    ))
    assert _px(raster.pixels(), 25, 20) == RED
