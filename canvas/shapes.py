"""
canvas/shapes.py

Ordered collection of placed diagram elements with single selection.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional

from models import DiagramElement, ElementNotFoundError

log = logging.getLogger(__name__)


class ShapeModel:
    """
    Insertion-ordered list of elements. Later elements are on top.

    The selection is kept as an index into the list rather than a reference,
    and at most one element carries ``selected = True``.
    """

    def __init__(self):
        self._elements: List[DiagramElement] = []
        self._selected_index: Optional[int] = None

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[DiagramElement]:
        return iter(self._elements)

    def __getitem__(self, index: int) -> DiagramElement:
        return self._elements[index]

    @property
    def elements(self) -> List[DiagramElement]:
        """A shallow copy of the element list in drawing order."""
        return list(self._elements)

    @property
    def selected_index(self) -> Optional[int]:
        return self._selected_index

    @property
    def selected_element(self) -> Optional[DiagramElement]:
        if self._selected_index is None:
            return None
        return self._elements[self._selected_index]

    def index_of(self, element: DiagramElement) -> int:
        """Find an element by identity.

        Raises:
            ElementNotFoundError: If the element is not in the collection.
        """
        for i, e in enumerate(self._elements):
            if e is element:
                return i
        raise ElementNotFoundError("element is not part of this diagram")

    def add_element(self, element: DiagramElement) -> int:
        """Append an element and return its index.

        A selected flag on the incoming element is cleared; use
        ``set_selected`` to select it.
        """
        element.selected = False
        self._elements.append(element)
        return len(self._elements) - 1

    def find_element_at(self, lx: float, ly: float) -> Optional[DiagramElement]:
        """Return the topmost element strictly containing the point, or None."""
        for element in reversed(self._elements):
            if element.contains(lx, ly):
                return element
        return None

    def set_selected(self, element: Optional[DiagramElement]) -> None:
        """Select ``element`` (or clear with None), deselecting the previous one."""
        new_index = None if element is None else self.index_of(element)

        previous = self.selected_element
        if previous is not None:
            previous.selected = False
        self._selected_index = new_index
        if element is not None:
            element.selected = True

    def remove(self, element: DiagramElement) -> None:
        """Remove an element, keeping the selection handle valid."""
        index = self.index_of(element)
        del self._elements[index]
        if self._selected_index is None:
            return
        if self._selected_index == index:
            element.selected = False
            self._selected_index = None
        elif self._selected_index > index:
            self._selected_index -= 1

    def replace_all(self, elements: Iterable[DiagramElement]) -> None:
        """Replace the whole collection, e.g. with persisted state.

        If several incoming elements are marked selected, the last one wins.
        """
        self._elements = list(elements)
        self._selected_index = None
        marked = [i for i, e in enumerate(self._elements) if e.selected]
        if len(marked) > 1:
            log.warning("%d elements marked selected; keeping the last one", len(marked))
            for i in marked[:-1]:
                self._elements[i].selected = False
        if marked:
            self._selected_index = marked[-1]
