"""
canvas/renderer.py

Full-frame repaint of the dot grid, diagram elements and creation preview.

The renderer draws through a ``DrawingContext`` modelled on the 2D canvas
API; ``canvas.qt_surface.QPainterContext`` implements it on top of QPainter.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Protocol

from canvas.transform import CoordinateTransform
from debug_trace import trace
from models import DiagramElement
from settings import CanvasSettings, get_settings


class DrawingContext(Protocol):
    """Minimal 2D drawing API the renderer paints with."""

    def clear_rect(self, x: float, y: float, w: float, h: float) -> None: ...
    def set_fill_style(self, color: str) -> None: ...
    def set_stroke_style(self, color: str) -> None: ...
    def set_line_width(self, width: float) -> None: ...
    def begin_path(self) -> None: ...
    def move_to(self, x: float, y: float) -> None: ...
    def line_to(self, x: float, y: float) -> None: ...
    def arc(self, cx: float, cy: float, r: float, start: float, end: float) -> None: ...
    def close_path(self) -> None: ...
    def fill(self) -> None: ...
    def stroke(self) -> None: ...
    def fill_rect(self, x: float, y: float, w: float, h: float) -> None: ...
    def stroke_rect(self, x: float, y: float, w: float, h: float) -> None: ...


def rounded_rect_path(ctx: DrawingContext, x: float, y: float, w: float, h: float, r: float) -> None:
    """Trace a rectangle with all four corners rounded by ``r``.

    Starts on the top edge inset by the radius and goes clockwise with
    quarter arcs at the corners. ``r`` is clamped to half the smaller side.
    """
    r = max(0.0, min(r, w / 2, h / 2))
    ctx.begin_path()
    ctx.move_to(x + r, y)
    ctx.line_to(x + w - r, y)
    ctx.arc(x + w - r, y + r, r, -math.pi / 2, 0.0)
    ctx.line_to(x + w, y + h - r)
    ctx.arc(x + w - r, y + h - r, r, 0.0, math.pi / 2)
    ctx.line_to(x + r, y + h)
    ctx.arc(x + r, y + h - r, r, math.pi / 2, math.pi)
    ctx.line_to(x, y + r)
    ctx.arc(x + r, y + r, r, math.pi, 3 * math.pi / 2)
    ctx.close_path()


class Renderer:
    """
    Stateless painter for the diagram.

    Only configuration (colours, sizes) is kept on the instance; every call
    to ``render`` repaints the whole surface from its arguments.
    """

    def __init__(self, canvas_settings: Optional[CanvasSettings] = None):
        if canvas_settings is None:
            canvas_settings = get_settings().settings.canvas
        self.config = canvas_settings

    def grid_visible(self, zoom_factor: float) -> bool:
        """The dot grid is skipped at high zoom where dots get too dense."""
        return zoom_factor < self.config.grid.max_zoom

    def render(
        self,
        ctx: DrawingContext,
        width: float,
        height: float,
        transform: CoordinateTransform,
        elements: Iterable[DiagramElement],
        preview: Optional[DiagramElement] = None,
    ) -> None:
        """Clear the surface and paint grid, elements and preview in that order."""
        trace(f"render {width}x{height} pan={tuple(transform.pan_offset)}", "PAINT")
        ctx.clear_rect(0, 0, width, height)

        if self.grid_visible(transform.zoom_factor):
            self.draw_grid(ctx, width, height, transform)

        for element in elements:
            self.draw_element(ctx, element, transform)

        if preview is not None:
            self.draw_element(ctx, preview, transform)

    def draw_grid(self, ctx: DrawingContext, width: float, height: float,
                  transform: CoordinateTransform) -> None:
        grid = self.config.grid
        spacing = grid.spacing
        pan_x, pan_y = transform.pan_offset

        offset_x = pan_x % spacing
        offset_y = pan_y % spacing
        origin_col = math.floor(pan_x / spacing)
        origin_row = math.floor(pan_y / spacing)
        cols = int(width // spacing) + 2
        rows = int(height // spacing) + 2

        ctx.set_fill_style(grid.color)
        # Start one cell before the edge so partially visible dots are drawn
        for row in range(-1, rows):
            y = offset_y + row * spacing
            for col in range(-1, cols):
                x = offset_x + col * spacing
                parity = (col - origin_col) + (row - origin_row)
                radius = grid.major_radius if parity % 2 == 0 else grid.minor_radius
                ctx.begin_path()
                ctx.arc(x, y, radius, 0.0, 2 * math.pi)
                ctx.fill()

    def draw_element(self, ctx: DrawingContext, element: DiagramElement,
                     transform: CoordinateTransform) -> None:
        lx, ly, w, h = element.bounds()
        x, y = transform.to_surface(lx, ly)
        shapes = self.config.shapes

        ctx.set_fill_style(shapes.accent_color)
        ctx.set_stroke_style(shapes.accent_color)
        ctx.set_line_width(shapes.line_width)
        rounded_rect_path(ctx, x, y, w, h, element.corner_radius)
        ctx.fill()
        ctx.stroke()

        if element.selected:
            self.draw_selection(ctx, x, y, w, h)

    def draw_selection(self, ctx: DrawingContext, x: float, y: float, w: float, h: float) -> None:
        """Corner handles and a bounding box outline; not interactive."""
        handles = self.config.handles
        selection = self.config.selection
        half = handles.size / 2

        ctx.set_fill_style(handles.color)
        for hx, hy in ((x, y), (x + w, y), (x, y + h), (x + w, y + h)):
            ctx.fill_rect(hx - half, hy - half, handles.size, handles.size)

        ctx.set_stroke_style(selection.outline_color)
        ctx.set_line_width(selection.line_width)
        ctx.stroke_rect(x, y, w, h)
