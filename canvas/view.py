"""
canvas/view.py

QWidget host for the diagram engine: owns the offscreen surface and
forwards raw pointer, wheel, key and resize events to the engine.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from PyQt6.QtCore import Qt, QRectF
from PyQt6.QtGui import QColor, QPainter
from PyQt6.QtWidgets import QWidget

from canvas.engine import DiagramEngine
from canvas.qt_surface import QImageSurface, parse_color
from models import Cursor, DiagramElement, PointerEvent

log = logging.getLogger(__name__)

_CURSOR_SHAPES = {
    Cursor.DEFAULT: Qt.CursorShape.ArrowCursor,
    Cursor.GRABBING: Qt.CursorShape.ClosedHandCursor,
    Cursor.CROSSHAIR: Qt.CursorShape.CrossCursor,
}

_KEY_NAMES = {
    Qt.Key.Key_Escape: "Escape",
    Qt.Key.Key_Delete: "Delete",
    Qt.Key.Key_Backspace: "Backspace",
}


class DiagramView(QWidget):
    """
    Widget that displays the engine's surface.

    The surface is ``zoom_factor`` times the widget size and is scaled back
    into the widget rect on paint.
    """

    def __init__(
        self,
        engine: DiagramEngine,
        on_elements_changed: Optional[Callable[[List[DiagramElement]], None]] = None,
        on_state_changed: Optional[Callable[[str, str], None]] = None,
        on_selection_changed: Optional[Callable[[Optional[DiagramElement]], None]] = None,
        parent=None,
    ):
        super().__init__(parent)
        self.engine = engine
        self.surface = QImageSurface()
        self._background = parse_color(engine.settings.canvas.background_color, QColor(Qt.GlobalColor.white))

        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMinimumSize(100, 100)

        engine.configure_host(
            on_redraw=self.update,
            on_cursor_changed=self._apply_cursor,
            on_elements_changed=on_elements_changed,
            on_state_changed=on_state_changed,
            on_selection_changed=on_selection_changed,
        )
        engine.bind_surface(self.surface, max(1, self.width()), max(1, self.height()))

    def _apply_cursor(self, cursor: str):
        self.setCursor(_CURSOR_SHAPES.get(cursor, Qt.CursorShape.ArrowCursor))

    @staticmethod
    def _pointer_event(event) -> PointerEvent:
        pos = event.position()
        return PointerEvent(
            x=pos.x(),
            y=pos.y(),
            buttons=event.buttons().value,
            modifiers=event.modifiers().value,
        )

    def mousePressEvent(self, event):
        self.engine.pointer_down(self._pointer_event(event))
        event.accept()

    def mouseMoveEvent(self, event):
        self.engine.pointer_move(self._pointer_event(event))
        event.accept()

    def mouseReleaseEvent(self, event):
        self.engine.pointer_up(self._pointer_event(event))
        event.accept()

    def wheelEvent(self, event):
        self.engine.wheel(event.angleDelta().y())
        event.accept()

    def keyPressEvent(self, event):
        name = _KEY_NAMES.get(event.key())
        if name is None:
            super().keyPressEvent(event)
            return
        self.engine.key_press(name)
        event.accept()

    def resizeEvent(self, event):
        size = event.size()
        if size.width() <= 0 or size.height() <= 0:
            log.debug("Ignoring resize to %dx%d", size.width(), size.height())
        else:
            self.engine.resize(size.width(), size.height())
        super().resizeEvent(event)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
        painter.fillRect(self.rect(), self._background)
        painter.drawImage(QRectF(self.rect()), self.surface.image)
        painter.end()
