"""
canvas package

Diagram engine core: coordinate transform, shape model, renderer and the
interaction state machine. The Qt host pieces live in ``canvas.qt_surface``
and ``canvas.view`` and are imported explicitly by the application.
"""

from canvas.transform import CoordinateTransform, PanOffset
from canvas.shapes import ShapeModel
from canvas.renderer import DrawingContext, Renderer, rounded_rect_path
from canvas.engine import DiagramEngine, DrawingSurface

__all__ = [
    "CoordinateTransform",
    "PanOffset",
    "ShapeModel",
    "DrawingContext",
    "Renderer",
    "rounded_rect_path",
    "DiagramEngine",
    "DrawingSurface",
]
