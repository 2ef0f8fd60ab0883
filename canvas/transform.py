"""
canvas/transform.py

Pan/zoom mapping between surface pixels and logical diagram space.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from models import InvalidLayoutError


@dataclass
class PanOffset:
    x: float = 0.0
    y: float = 0.0

    def __iter__(self):
        """Allow tuple unpacking: x, y = pan"""
        return iter((self.x, self.y))


class CoordinateTransform:
    """
    Additive pan offset plus multiplicative zoom factor.

    Raw pointer events arrive in physical pixels while the surface is sized
    at ``zoom_factor`` times the host layout size, so zoom is applied on the
    input side only:

    - to_logical(px, py) = (px * zoom - pan.x, py * zoom - pan.y)
    - to_surface(lx, ly) = (lx + pan.x, ly + pan.y)
    """

    def __init__(self, zoom_factor: float = 1.0):
        if zoom_factor <= 0:
            raise ValueError(f"zoom factor must be positive, got {zoom_factor}")
        self.pan_offset = PanOffset()
        self._zoom_factor = float(zoom_factor)

    @property
    def zoom_factor(self) -> float:
        return self._zoom_factor

    def to_logical(self, px: float, py: float) -> Tuple[float, float]:
        """Map raw surface pixel coordinates to logical space."""
        return (px * self._zoom_factor - self.pan_offset.x,
                py * self._zoom_factor - self.pan_offset.y)

    def to_surface(self, lx: float, ly: float) -> Tuple[float, float]:
        """Map logical coordinates to drawing coordinates on the surface."""
        return (lx + self.pan_offset.x, ly + self.pan_offset.y)

    def pan_by(self, dx: float, dy: float) -> None:
        """Add a raw pixel delta, scaled by the zoom factor, to the pan offset."""
        self.pan_offset.x += dx * self._zoom_factor
        self.pan_offset.y += dy * self._zoom_factor

    def surface_size(self, layout_width: float, layout_height: float) -> Tuple[int, int]:
        """Pixel size of the surface for a host layout size.

        Raises:
            InvalidLayoutError: If either dimension is zero or negative.
        """
        if layout_width <= 0 or layout_height <= 0:
            raise InvalidLayoutError(
                f"layout size must be positive, got {layout_width}x{layout_height}"
            )
        return (round(layout_width * self._zoom_factor),
                round(layout_height * self._zoom_factor))
