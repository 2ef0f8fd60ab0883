"""Tests for canvas.shapes.ShapeModel and DiagramElement geometry."""
from __future__ import annotations

import logging

import pytest

from canvas.shapes import ShapeModel
from models import DiagramElement, ElementNotFoundError


def _selected_count(model):
    return sum(1 for e in model if e.selected)


# ─────────────────────────────────────────────────────────
# DiagramElement
# ─────────────────────────────────────────────────────────


class TestDiagramElement:
    def test_normalized_flips_negative_extent(self):
        e = DiagramElement(50, 50, -40, -40).normalized()
        assert e.geometry() == (10, 10, 40, 40, 0)

    def test_normalized_keeps_positive_extent(self):
        e = DiagramElement(10, 10, 40, 40, corner_radius=3)
        assert e.normalized().geometry() == e.geometry()

    def test_normalized_is_a_copy(self):
        e = DiagramElement(50, 50, -40, 10)
        n = e.normalized()
        assert n is not e
        assert e.width == -40

    def test_contains_is_strict(self):
        e = DiagramElement(0, 0, 10, 10)
        assert e.contains(5, 5)
        assert not e.contains(0, 5)
        assert not e.contains(10, 5)
        assert not e.contains(5, 10)

    def test_contains_with_negative_extent(self):
        assert DiagramElement(10, 10, -10, -10).contains(5, 5)

    def test_equality_is_identity(self):
        assert DiagramElement(1, 2, 3, 4) != DiagramElement(1, 2, 3, 4)


# ─────────────────────────────────────────────────────────
# ShapeModel
# ─────────────────────────────────────────────────────────


class TestShapeModel:
    def test_add_keeps_insertion_order(self):
        m = ShapeModel()
        a, b = DiagramElement(0, 0, 1, 1), DiagramElement(2, 2, 1, 1)
        assert m.add_element(a) == 0
        assert m.add_element(b) == 1
        assert m.elements == [a, b]
        assert len(m) == 2
        assert m[1] is b

    def test_add_clears_selected_flag(self):
        m = ShapeModel()
        e = DiagramElement(0, 0, 1, 1, selected=True)
        m.add_element(e)
        assert not e.selected
        assert m.selected_element is None

    def test_find_element_at_hit_and_miss(self):
        m = ShapeModel()
        e = DiagramElement(0, 0, 10, 10)
        m.add_element(e)
        assert m.find_element_at(5, 5) is e
        assert m.find_element_at(50, 50) is None

    def test_find_element_at_prefers_topmost(self):
        m = ShapeModel()
        below = DiagramElement(0, 0, 100, 100)
        above = DiagramElement(50, 50, 100, 100)
        m.add_element(below)
        m.add_element(above)
        assert m.find_element_at(75, 75) is above
        assert m.find_element_at(25, 25) is below

    def test_single_selection(self):
        m = ShapeModel()
        a, b = DiagramElement(0, 0, 1, 1), DiagramElement(2, 2, 1, 1)
        m.add_element(a)
        m.add_element(b)
        m.set_selected(a)
        m.set_selected(b)
        assert not a.selected and b.selected
        assert m.selected_index == 1
        assert _selected_count(m) == 1
        m.set_selected(None)
        assert m.selected_element is None
        assert _selected_count(m) == 0

    def test_set_selected_unknown_element(self):
        m = ShapeModel()
        with pytest.raises(ElementNotFoundError):
            m.set_selected(DiagramElement(0, 0, 1, 1))

    def test_lookup_uses_identity(self):
        m = ShapeModel()
        m.add_element(DiagramElement(0, 0, 1, 1))
        with pytest.raises(LookupError):
            m.index_of(DiagramElement(0, 0, 1, 1))

    def test_remove_before_selection_shifts_handle(self):
        m = ShapeModel()
        a, b = DiagramElement(0, 0, 1, 1), DiagramElement(2, 2, 1, 1)
        m.add_element(a)
        m.add_element(b)
        m.set_selected(b)
        m.remove(a)
        assert m.selected_index == 0
        assert m.selected_element is b

    def test_remove_selected_clears_selection(self):
        m = ShapeModel()
        a = DiagramElement(0, 0, 1, 1)
        m.add_element(a)
        m.set_selected(a)
        m.remove(a)
        assert m.selected_element is None
        assert not a.selected
        assert len(m) == 0

    def test_replace_all_restores_selection(self):
        m = ShapeModel()
        a = DiagramElement(0, 0, 1, 1)
        b = DiagramElement(2, 2, 1, 1, selected=True)
        m.replace_all([a, b])
        assert m.selected_element is b

    def test_replace_all_keeps_last_of_several_selected(self, caplog):
        m = ShapeModel()
        a = DiagramElement(0, 0, 1, 1, selected=True)
        b = DiagramElement(2, 2, 1, 1, selected=True)
        with caplog.at_level(logging.WARNING, logger="canvas.shapes"):
            m.replace_all([a, b])
        assert m.selected_element is b
        assert not a.selected
        assert "keeping the last one" in caplog.text

