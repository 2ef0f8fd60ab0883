"""
canvas/engine.py

Diagram engine: owns the coordinate transform and shape model, runs the
interaction state machine on forwarded input events, and repaints the bound
surface through the renderer.

The tool mode (what the user picked in the toolbar) and the interaction
state (which phase of a gesture we are in) are tracked separately:

    ToolMode.PAN          -> IDLE <-> DRAGGING
    ToolMode.CREATE_SHAPE -> ITEM_SELECTED_FOR_PLACEMENT -> CREATING_ELEMENT
    ToolMode.SELECT       -> SELECT_READY

Finishing a creation gesture switches the tool mode to SELECT.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, ContextManager, Iterable, List, Optional, Protocol, Tuple

from canvas.renderer import DrawingContext, Renderer
from canvas.shapes import ShapeModel
from canvas.transform import CoordinateTransform
from debug_trace import trace, trace_call
from models import (
    Cursor,
    DiagramElement,
    InteractionState,
    ItemType,
    NoSelectionError,
    PointerEvent,
    SurfaceNotBoundError,
    ToolMode,
)
from settings import AppSettings, get_settings

log = logging.getLogger(__name__)


class DrawingSurface(Protocol):
    """A host-owned drawable of known pixel size."""

    def resize(self, width: int, height: int) -> None: ...
    def context(self) -> ContextManager[DrawingContext]: ...


class DiagramEngine:
    """
    Single-threaded diagram engine.

    Every handler mutates state synchronously and finishes its repaint
    before returning. Host callbacks:

    - on_redraw(): the surface was repainted and can be presented
    - on_cursor_changed(cursor): a ``models.Cursor`` name
    - on_elements_changed(elements): a snapshot after creation, edit or delete
    - on_state_changed(state, tool_mode): after any transition
    - on_selection_changed(element): the selected element, or None
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        renderer: Optional[Renderer] = None,
        zoom_factor: Optional[float] = None,
    ):
        if settings is None:
            settings = get_settings().settings
        self.settings = settings
        if zoom_factor is None:
            zoom_factor = settings.canvas.zoom.factor

        self._transform = CoordinateTransform(zoom_factor)
        self._shapes = ShapeModel()
        self.renderer = renderer if renderer is not None else Renderer(settings.canvas)

        self._state = InteractionState.IDLE
        self._tool_mode = ToolMode.PAN
        self._armed_item: Optional[str] = None
        self.original_pointer_position: Optional[Tuple[float, float]] = None
        self.element_being_created: Optional[DiagramElement] = None

        self._surface: Optional[DrawingSurface] = None
        self._surface_width = 0
        self._surface_height = 0

        self._on_redraw: Optional[Callable[[], None]] = None
        self._on_cursor_changed: Optional[Callable[[str], None]] = None
        self._on_elements_changed: Optional[Callable[[List[DiagramElement]], None]] = None
        self._on_state_changed: Optional[Callable[[str, str], None]] = None
        self._on_selection_changed: Optional[Callable[[Optional[DiagramElement]], None]] = None

    def configure_host(
        self,
        on_redraw: Optional[Callable[[], None]] = None,
        on_cursor_changed: Optional[Callable[[str], None]] = None,
        on_elements_changed: Optional[Callable[[List[DiagramElement]], None]] = None,
        on_state_changed: Optional[Callable[[str, str], None]] = None,
        on_selection_changed: Optional[Callable[[Optional[DiagramElement]], None]] = None,
    ):
        """Configure callbacks into the host shell."""
        self._on_redraw = on_redraw
        self._on_cursor_changed = on_cursor_changed
        self._on_elements_changed = on_elements_changed
        self._on_state_changed = on_state_changed
        self._on_selection_changed = on_selection_changed

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def transform(self) -> CoordinateTransform:
        return self._transform

    @property
    def shapes(self) -> ShapeModel:
        return self._shapes

    @property
    def state(self) -> str:
        return self._state

    @property
    def tool_mode(self) -> str:
        return self._tool_mode

    @property
    def armed_item(self) -> Optional[str]:
        return self._armed_item

    @property
    def selected_element(self) -> Optional[DiagramElement]:
        return self._shapes.selected_element

    @property
    def surface_size(self) -> Tuple[int, int]:
        return (self._surface_width, self._surface_height)

    @property
    def has_surface(self) -> bool:
        return self._surface is not None

    # ------------------------------------------------------------------
    # Surface binding and repaint
    # ------------------------------------------------------------------

    def bind_surface(self, surface: DrawingSurface, layout_width: float, layout_height: float) -> None:
        """Attach the host surface and size it from the host layout.

        Raises:
            InvalidLayoutError: If the layout size is zero or negative.
        """
        width, height = self._transform.surface_size(layout_width, layout_height)
        self._surface = surface
        self._apply_surface_size(width, height)
        log.debug("Surface bound at %dx%d", width, height)
        self.redraw()

    def resize(self, layout_width: float, layout_height: float) -> None:
        """Host resize notification: re-derive the pixel size and repaint."""
        if self._surface is None:
            raise SurfaceNotBoundError("resize notification before a surface was bound")
        width, height = self._transform.surface_size(layout_width, layout_height)
        self._apply_surface_size(width, height)
        self.redraw()

    def _apply_surface_size(self, width: int, height: int) -> None:
        self._surface_width = width
        self._surface_height = height
        self._surface.resize(width, height)

    def get_context(self) -> ContextManager[DrawingContext]:
        """Open a drawing context on the bound surface.

        Raises:
            SurfaceNotBoundError: If no surface has been bound yet.
        """
        if self._surface is None:
            raise SurfaceNotBoundError("no drawing surface bound to the engine")
        return self._surface.context()

    def redraw(self) -> None:
        """Repaint the whole surface and notify the host."""
        with self.get_context() as ctx:
            self.renderer.render(
                ctx,
                self._surface_width,
                self._surface_height,
                self._transform,
                self._shapes,
                self.element_being_created,
            )
        if self._on_redraw:
            self._on_redraw()

    def _request_redraw(self) -> None:
        """Repaint if a surface exists; before binding there is nothing to show."""
        if self._surface is None:
            trace("redraw skipped, no surface", "PAINT")
            return
        self.redraw()

    # ------------------------------------------------------------------
    # Pointer input
    # ------------------------------------------------------------------

    @trace_call("EVENT")
    def pointer_down(self, event: PointerEvent) -> None:
        if self._state == InteractionState.IDLE:
            self._begin_drag(event)
        elif self._state == InteractionState.ITEM_SELECTED_FOR_PLACEMENT:
            self._begin_create(event)
        elif self._state == InteractionState.SELECT_READY:
            self._select_at(event)
        else:
            log.debug("pointer down ignored in state %s", self._state)

    @trace_call("EVENT")
    def pointer_move(self, event: PointerEvent) -> None:
        if self._state == InteractionState.DRAGGING:
            self._drag_to(event)
        elif self._state == InteractionState.CREATING_ELEMENT:
            self._update_creation(event)
            self._request_redraw()

    @trace_call("EVENT")
    def pointer_up(self, event: PointerEvent) -> None:
        if self._state == InteractionState.DRAGGING:
            self.enter_idle()
        elif self._state == InteractionState.CREATING_ELEMENT:
            self._finish_create(event)

    def wheel(self, event: Any) -> None:
        """Zoom hook. The zoom factor is fixed; wheel input is only logged."""
        trace(f"wheel event ignored: {event!r}", "EVENT")

    def key_press(self, key: str) -> None:
        """Handle ``Escape`` (abort gesture) and ``Delete``/``Backspace``."""
        if key == "Escape":
            if self._state == InteractionState.CREATING_ELEMENT:
                self.element_being_created = None
                self.original_pointer_position = None
                self._set_state(InteractionState.ITEM_SELECTED_FOR_PLACEMENT)
                self._request_redraw()
            elif self._state == InteractionState.DRAGGING:
                self.enter_idle()
        elif key in ("Delete", "Backspace"):
            if self.selected_element is not None:
                self.delete_selected()

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------

    def _begin_drag(self, event: PointerEvent) -> None:
        self.original_pointer_position = (event.x, event.y)
        self._set_state(InteractionState.DRAGGING)
        self._set_cursor(Cursor.GRABBING)

    def _drag_to(self, event: PointerEvent) -> None:
        ax, ay = self.original_pointer_position
        self._transform.pan_by(event.x - ax, event.y - ay)
        self.original_pointer_position = (event.x, event.y)
        self._request_redraw()

    def _begin_create(self, event: PointerEvent) -> None:
        lx, ly = self._transform.to_logical(event.x, event.y)
        self.original_pointer_position = (lx, ly)
        self.element_being_created = DiagramElement(
            x=lx,
            y=ly,
            corner_radius=self.settings.canvas.shapes.default_corner_radius,
        )
        self._set_state(InteractionState.CREATING_ELEMENT)

    def _update_creation(self, event: PointerEvent) -> None:
        ax, ay = self.original_pointer_position
        lx, ly = self._transform.to_logical(event.x, event.y)
        # Negative while dragging left/up; normalized on pointer up
        self.element_being_created.width = lx - ax
        self.element_being_created.height = ly - ay

    def _finish_create(self, event: PointerEvent) -> None:
        self._update_creation(event)
        element = self.element_being_created.normalized()
        self.element_being_created = None
        self.original_pointer_position = None

        self._shapes.add_element(element)
        self._select(element)
        log.info("Created element %s", element.geometry())

        self._set_state(InteractionState.SELECT_READY, ToolMode.SELECT)
        self._armed_item = None
        self._set_cursor(Cursor.DEFAULT)
        self._request_redraw()
        self._notify_elements_changed()

    def _select_at(self, event: PointerEvent) -> None:
        lx, ly = self._transform.to_logical(event.x, event.y)
        hit = self._shapes.find_element_at(lx, ly)
        self._select(hit)
        trace(f"hit test at ({lx:g}, {ly:g}) -> {hit!r}", "EVENT")
        self._request_redraw()

    # ------------------------------------------------------------------
    # Tool / mode commands
    # ------------------------------------------------------------------

    def enter_idle(self) -> None:
        """Return to IDLE (pan tool) and reset the cursor."""
        had_preview = self._discard_creation()
        self._armed_item = None
        self.original_pointer_position = None
        self._set_state(InteractionState.IDLE, ToolMode.PAN)
        self._set_cursor(Cursor.DEFAULT)
        if had_preview:
            self._request_redraw()

    def select_item(self, item_type: Optional[str]) -> None:
        """Arm placement of ``item_type``, or disarm with None."""
        if item_type is None:
            self.enter_idle()
            return
        if item_type != ItemType.ROUNDED_RECT:
            raise ValueError(f"Unknown item type: {item_type}")

        had_preview = self._discard_creation()
        self._armed_item = item_type
        self.original_pointer_position = None
        self._set_state(InteractionState.ITEM_SELECTED_FOR_PLACEMENT, ToolMode.CREATE_SHAPE)
        self._set_cursor(Cursor.CROSSHAIR)
        if had_preview:
            self._request_redraw()

    def select_mode(self, mode: str) -> None:
        """Switch tool mode; a no-op when the mode is unchanged."""
        if mode not in ToolMode.ALL:
            raise ValueError(f"Unknown tool mode: {mode}")
        if mode == self._tool_mode:
            return

        if mode == ToolMode.PAN:
            self.enter_idle()
        elif mode == ToolMode.SELECT:
            had_preview = self._discard_creation()
            self._armed_item = None
            self.original_pointer_position = None
            self._set_state(InteractionState.SELECT_READY, ToolMode.SELECT)
            self._set_cursor(Cursor.DEFAULT)
            if had_preview:
                self._request_redraw()
        else:
            self.select_item(ItemType.ROUNDED_RECT)

    def _discard_creation(self) -> bool:
        had_preview = self.element_being_created is not None
        self.element_being_created = None
        return had_preview

    # ------------------------------------------------------------------
    # Selection editing
    # ------------------------------------------------------------------

    def require_selected(self) -> DiagramElement:
        """Return the selected element.

        Raises:
            NoSelectionError: If nothing is selected.
        """
        element = self._shapes.selected_element
        if element is None:
            raise NoSelectionError("no element is selected")
        return element

    def update_selected(self, corner_radius: Optional[float] = None) -> None:
        """Edit attributes of the selected element; silently ignored without one."""
        if corner_radius is not None and corner_radius < 0:
            raise ValueError(f"corner radius must be >= 0, got {corner_radius}")
        element = self._shapes.selected_element
        if element is None:
            log.debug("update_selected ignored, nothing selected")
            return
        if corner_radius is not None:
            element.corner_radius = float(corner_radius)
        self._request_redraw()
        self._notify_elements_changed()

    def delete_selected(self) -> None:
        """Remove the selected element.

        Raises:
            NoSelectionError: If nothing is selected.
        """
        element = self.require_selected()
        self._shapes.remove(element)
        self._notify_selection_changed()
        log.info("Deleted element %s", element.geometry())
        self._request_redraw()
        self._notify_elements_changed()

    # ------------------------------------------------------------------
    # Persistence boundary
    # ------------------------------------------------------------------

    def load(self, elements: Iterable[DiagramElement]) -> None:
        """Replace the diagram contents with copies of ``elements``."""
        self._shapes.replace_all(e.copy() for e in elements)
        self._notify_selection_changed()
        log.info("Loaded %d elements", len(self._shapes))
        self._request_redraw()

    def snapshot(self) -> List[DiagramElement]:
        """Copies of the current elements in drawing order."""
        return [e.copy() for e in self._shapes]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set_state(self, state: str, tool_mode: Optional[str] = None) -> None:
        changed = state != self._state or (tool_mode is not None and tool_mode != self._tool_mode)
        self._state = state
        if tool_mode is not None:
            self._tool_mode = tool_mode
        if changed:
            trace(f"state -> {self._state} (mode {self._tool_mode})", "STATE")
            if self._on_state_changed:
                self._on_state_changed(self._state, self._tool_mode)

    def _select(self, element: Optional[DiagramElement]) -> None:
        previous = self._shapes.selected_element
        self._shapes.set_selected(element)
        if element is not previous:
            self._notify_selection_changed()

    def _notify_selection_changed(self) -> None:
        if self._on_selection_changed:
            self._on_selection_changed(self._shapes.selected_element)

    def _set_cursor(self, cursor: str) -> None:
        if self._on_cursor_changed:
            self._on_cursor_changed(cursor)

    def _notify_elements_changed(self) -> None:
        if self._on_elements_changed:
            self._on_elements_changed(self.snapshot())
