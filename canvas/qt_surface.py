"""
canvas/qt_surface.py

QImage-backed drawing surface and a QPainter implementation of the
renderer's DrawingContext.
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from typing import Iterator

from PyQt6.QtCore import Qt, QRectF
from PyQt6.QtGui import QBrush, QColor, QImage, QPainter, QPainterPath, QPen


def parse_color(value: str, fallback: QColor) -> QColor:
    """
    Parse a settings colour string.

    Accepts "#RGB", "#RRGGBB" and "#RRGGBBAA" (alpha last, as in CSS;
    Qt's own parser expects "#AARRGGBB"). Anything else gives ``fallback``.
    """
    s = (value or "").strip().lstrip("#")
    if len(s) == 3:
        s = "".join(ch * 2 for ch in s)
    if len(s) not in (6, 8):
        return QColor(fallback)
    try:
        channels = [int(s[i:i + 2], 16) for i in range(0, len(s), 2)]
    except ValueError:
        return QColor(fallback)
    return QColor(*channels)


class QPainterContext:
    """
    Canvas-style path API on top of an active QPainter.

    Angles are radians measured clockwise on screen (y down), as in the
    HTML canvas ``arc`` call; they are converted to Qt's counter-clockwise
    degrees when the arc is added to the path.
    """

    def __init__(self, painter: QPainter):
        self.painter = painter
        self._path = QPainterPath()
        self._fill_color = QColor(Qt.GlobalColor.black)
        self._stroke_color = QColor(Qt.GlobalColor.black)
        self._line_width = 1.0

    def clear_rect(self, x: float, y: float, w: float, h: float) -> None:
        mode = self.painter.compositionMode()
        self.painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Clear)
        self.painter.fillRect(QRectF(x, y, w, h), Qt.GlobalColor.transparent)
        self.painter.setCompositionMode(mode)

    def set_fill_style(self, color: str) -> None:
        self._fill_color = parse_color(color, self._fill_color)

    def set_stroke_style(self, color: str) -> None:
        self._stroke_color = parse_color(color, self._stroke_color)

    def set_line_width(self, width: float) -> None:
        self._line_width = width

    def begin_path(self) -> None:
        self._path = QPainterPath()

    def move_to(self, x: float, y: float) -> None:
        self._path.moveTo(x, y)

    def line_to(self, x: float, y: float) -> None:
        self._path.lineTo(x, y)

    def arc(self, cx: float, cy: float, r: float, start: float, end: float) -> None:
        if r <= 0:
            # Degenerate arc collapses onto its centre
            if self._path.elementCount() == 0:
                self._path.moveTo(cx, cy)
            else:
                self._path.lineTo(cx, cy)
            return
        rect = QRectF(cx - r, cy - r, 2 * r, 2 * r)
        start_deg = -math.degrees(start)
        sweep_deg = -math.degrees(end - start)
        if self._path.elementCount() == 0:
            self._path.arcMoveTo(rect, start_deg)
        self._path.arcTo(rect, start_deg, sweep_deg)

    def close_path(self) -> None:
        self._path.closeSubpath()

    def _pen(self) -> QPen:
        pen = QPen(self._stroke_color, self._line_width)
        pen.setJoinStyle(Qt.PenJoinStyle.MiterJoin)
        return pen

    def fill(self) -> None:
        self.painter.fillPath(self._path, QBrush(self._fill_color))

    def stroke(self) -> None:
        self.painter.strokePath(self._path, self._pen())

    def fill_rect(self, x: float, y: float, w: float, h: float) -> None:
        self.painter.fillRect(QRectF(x, y, w, h), self._fill_color)

    def stroke_rect(self, x: float, y: float, w: float, h: float) -> None:
        self.painter.setPen(self._pen())
        self.painter.setBrush(Qt.BrushStyle.NoBrush)
        self.painter.drawRect(QRectF(x, y, w, h))


class QImageSurface:
    """Offscreen image the engine paints into; the view blits it on paint."""

    def __init__(self, width: int = 1, height: int = 1):
        self.image = self._new_image(width, height)

    @staticmethod
    def _new_image(width: int, height: int) -> QImage:
        image = QImage(max(1, width), max(1, height), QImage.Format.Format_ARGB32_Premultiplied)
        image.fill(Qt.GlobalColor.transparent)
        return image

    @property
    def width(self) -> int:
        return self.image.width()

    @property
    def height(self) -> int:
        return self.image.height()

    def resize(self, width: int, height: int) -> None:
        if (width, height) != (self.image.width(), self.image.height()):
            self.image = self._new_image(width, height)

    @contextmanager
    def context(self) -> Iterator[QPainterContext]:
        painter = QPainter(self.image)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        try:
            yield QPainterContext(painter)
        finally:
            painter.end()
