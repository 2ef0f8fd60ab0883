"""
models.py

Data models and constants for the diagram canvas.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Tuple


# ----------------------------
# Errors
# ----------------------------

class DiagramError(Exception):
    """Base class for diagram engine errors."""


class SurfaceNotBoundError(DiagramError):
    """A drawing surface was required before one was bound."""


class InvalidLayoutError(DiagramError, ValueError):
    """The host reported a zero or negative layout size."""


class NoSelectionError(DiagramError):
    """An operation needs a selected element but none is selected."""


class ElementNotFoundError(DiagramError, LookupError):
    """An element is not part of the shape collection."""


class PersistenceError(DiagramError, ValueError):
    """Persisted element data is malformed."""


# ----------------------------
# Diagram element model
# ----------------------------

class ItemType:
    """Placeable item types."""
    ROUNDED_RECT = "roundedrect"


@dataclass(eq=False)
class DiagramElement:
    """A rounded rectangle placed on the diagram.

    Coordinates are in logical (diagram) space with ``x, y`` at the top-left
    corner. ``width`` and ``height`` may be negative only while the element
    is still being dragged out; ``normalized()`` gives the canonical form.

    Equality is identity: two elements with the same geometry are still
    different shapes on the canvas.
    """
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    corner_radius: float = 0.0
    selected: bool = False

    kind = ItemType.ROUNDED_RECT

    def normalized(self) -> "DiagramElement":
        """Return a copy with positive size and a top-left origin."""
        x, y, w, h = self.bounds()
        return replace(self, x=x, y=y, width=w, height=h)

    def bounds(self) -> Tuple[float, float, float, float]:
        """Return ``(x, y, width, height)`` with negative extents flipped."""
        x, w = self.x, self.width
        y, h = self.y, self.height
        if w < 0:
            w = -w
            x -= w
        if h < 0:
            h = -h
            y -= h
        return x, y, w, h

    def contains(self, lx: float, ly: float) -> bool:
        """Strict containment test against the bounding box."""
        x, y, w, h = self.bounds()
        return x < lx < x + w and y < ly < y + h

    def geometry(self) -> Tuple[float, float, float, float, float]:
        return (self.x, self.y, self.width, self.height, self.corner_radius)

    def copy(self) -> "DiagramElement":
        return replace(self)


# ----------------------------
# Input events
# ----------------------------

@dataclass(frozen=True)
class PointerEvent:
    """A raw pointer event as forwarded by the host, in surface pixels."""
    x: float
    y: float
    buttons: int = 0
    modifiers: int = 0


# ----------------------------
# Tool mode / interaction state constants
# ----------------------------

class ToolMode:
    """Tool modes selectable by the host."""
    PAN = "pan"
    SELECT = "select"
    CREATE_SHAPE = "create_shape"

    ALL = (PAN, SELECT, CREATE_SHAPE)


class InteractionState:
    """Interaction phases of the engine's state machine."""
    IDLE = "idle"
    DRAGGING = "dragging"
    ITEM_SELECTED_FOR_PLACEMENT = "item_selected_for_placement"
    CREATING_ELEMENT = "creating_element"
    SELECT_READY = "select_ready"


class Cursor:
    """Cursor names requested from the host."""
    DEFAULT = "default"
    GRABBING = "grabbing"
    CROSSHAIR = "crosshair"
