"""Tests for canvas.renderer against a recording drawing context."""
from __future__ import annotations

import math

import pytest

from canvas.renderer import Renderer, rounded_rect_path
from canvas.transform import CoordinateTransform
from conftest import RecordingContext
from models import DiagramElement
from settings import CanvasSettings


def _render(elements=(), preview=None, zoom=1.0, pan=(0, 0), size=(800, 600)):
    t = CoordinateTransform(zoom)
    t.pan_offset.x, t.pan_offset.y = pan
    calls = []
    Renderer(CanvasSettings()).render(RecordingContext(calls), size[0], size[1], t, list(elements), preview)
    return calls


def _named(calls, name):
    return [args for n, args in calls if n == name]


def _grid_dots(calls):
    return [args for args in _named(calls, "arc") if args[3] == 0.0 and args[4] == 2 * math.pi]


# ─────────────────────────────────────────────────────────
# Grid
# ─────────────────────────────────────────────────────────


class TestGrid:
    def test_clears_before_anything_else(self):
        calls = _render()
        assert calls[0] == ("clear_rect", (0, 0, 800, 600))

    def test_dot_count_covers_surface(self):
        # 11 columns (-1..9) by 9 rows (-1..7)
        assert len(_grid_dots(_render())) == 11 * 9

    @pytest.mark.parametrize("zoom,visible", [(1, True), (4.99, True), (5, False), (8, False)])
    def test_grid_only_below_max_zoom(self, zoom, visible):
        for pan in [(0, 0), (37, -210), (-999, 5)]:
            assert bool(_grid_dots(_render(zoom=zoom, pan=pan))) is visible

    def test_logical_origin_dot_is_major(self):
        dots = {(cx, cy): r for cx, cy, r, _, _ in _grid_dots(_render(pan=(150, 0)))}
        assert dots[(150, 0)] == 8
        assert dots[(250, 0)] == 6
        assert dots[(150, 100)] == 6
        assert dots[(250, 100)] == 8

    def test_dots_follow_pan_modulo_spacing(self):
        dots = _grid_dots(_render(pan=(-30, 45)))
        xs = {round(cx) for cx, *_ in dots}
        ys = {round(cy) for _, cy, *_ in dots}
        assert 70 in xs and 170 in xs
        assert 45 in ys and 145 in ys

    def test_grid_uses_configured_color(self):
        calls = _render()
        assert ("set_fill_style", ("#C8CDD5",)) in calls


# ─────────────────────────────────────────────────────────
# Shapes
# ─────────────────────────────────────────────────────────


class TestRoundedRectPath:
    def test_path_starts_on_top_edge_inset_by_radius(self):
        calls = []
        rounded_rect_path(RecordingContext(calls), 10, 20, 100, 50, 5)
        assert calls[0] == ("begin_path", ())
        assert calls[1] == ("move_to", (15, 20))
        assert calls[-1] == ("close_path", ())
        assert len(_named(calls, "arc")) == 4

    def test_corner_arcs_are_quarter_turns(self):
        calls = []
        rounded_rect_path(RecordingContext(calls), 0, 0, 100, 50, 10)
        arcs = _named(calls, "arc")
        assert [(cx, cy) for cx, cy, *_ in arcs] == [(90, 10), (90, 40), (10, 40), (10, 10)]
        for _, _, r, start, end in arcs:
            assert r == 10
            assert end - start == pytest.approx(math.pi / 2)

    def test_radius_is_clamped_to_half_the_smaller_side(self):
        calls = []
        rounded_rect_path(RecordingContext(calls), 0, 0, 40, 20, 100)
        assert calls[1] == ("move_to", (10, 0))
        assert {args[2] for args in _named(calls, "arc")} == {10}


class TestElements:
    def test_element_drawn_in_accent_color_at_surface_position(self):
        e = DiagramElement(10, 20, 100, 50, corner_radius=5)
        calls = _render([e], zoom=5, pan=(1, 2))
        assert calls[1:4] == [
            ("set_fill_style", ("#4F6BED",)),
            ("set_stroke_style", ("#4F6BED",)),
            ("set_line_width", (2.0,)),
        ]
        assert ("move_to", (16, 22)) in calls
        assert calls[-2:] == [("fill", ()), ("stroke", ())]

    def test_elements_drawn_in_insertion_order(self):
        a = DiagramElement(0, 0, 10, 10)
        b = DiagramElement(300, 300, 10, 10)
        moves = _named(_render([a, b], zoom=5), "move_to")
        assert moves == [(0, 0), (300, 300)]

    def test_selected_element_gets_handles_and_outline(self):
        e = DiagramElement(10, 20, 100, 50, selected=True)
        calls = _render([e], zoom=5)
        assert _named(calls, "fill_rect") == [
            (6, 16, 8.0, 8.0),
            (106, 16, 8.0, 8.0),
            (6, 66, 8.0, 8.0),
            (106, 66, 8.0, 8.0),
        ]
        assert _named(calls, "stroke_rect") == [(10, 20, 100, 50)]
        assert ("set_stroke_style", ("#F97316",)) in calls

    def test_unselected_element_has_no_handles(self):
        calls = _render([DiagramElement(10, 20, 100, 50)], zoom=5)
        assert not _named(calls, "fill_rect")
        assert not _named(calls, "stroke_rect")

    def test_preview_drawn_last_from_normalized_bounds(self):
        e = DiagramElement(300, 300, 10, 10)
        preview = DiagramElement(50, 50, -40, -40)
        moves = _named(_render([e], preview=preview, zoom=5), "move_to")
        assert moves[-1] == (10, 10)

    def test_render_is_deterministic(self):
        elements = [DiagramElement(10, 20, 100, 50, corner_radius=4, selected=True)]
        assert _render(elements, pan=(13, -7)) == _render(elements, pan=(13, -7))
