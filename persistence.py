"""
persistence.py

Key-value store and the JSON codec for the persisted element list.

The stored value is a JSON array of
``{x, y, width, height, selected, cornerRadius?}`` objects kept under a
fixed key (``storage.elements_key`` in settings, "diagram.elements" by
default). Loading is all-or-nothing: a malformed payload raises
``PersistenceError`` and nothing is returned.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from models import DiagramElement, PersistenceError
from schemas import element_defaults, validate_element_list

log = logging.getLogger(__name__)

DEFAULT_ELEMENTS_KEY = "diagram.elements"
STORE_FILE_NAME = "store.json"


# ----------------------------
# Element <-> record codec
# ----------------------------

def element_to_record(element: DiagramElement) -> Dict[str, Any]:
    """Serialize one element to its JSON record."""
    return {
        "x": element.x,
        "y": element.y,
        "width": element.width,
        "height": element.height,
        "selected": element.selected,
        "cornerRadius": element.corner_radius,
    }


def record_to_element(record: Dict[str, Any]) -> DiagramElement:
    """Build an element from an already validated record."""
    defaults = element_defaults()
    return DiagramElement(
        x=float(record["x"]),
        y=float(record["y"]),
        width=float(record["width"]),
        height=float(record["height"]),
        corner_radius=float(record.get("cornerRadius", defaults["cornerRadius"])),
        selected=bool(record.get("selected", defaults["selected"])),
    )


def elements_to_json(elements: Iterable[DiagramElement]) -> str:
    """Serialize elements to the persisted JSON array text."""
    return json.dumps([element_to_record(e) for e in elements])


def elements_from_json(text: str) -> List[DiagramElement]:
    """Parse and validate persisted JSON text.

    Raises:
        PersistenceError: If the text is not valid JSON or does not match
            the element list schema.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Persisted elements are not valid JSON: {e}") from e

    ok, errors = validate_element_list(data)
    if not ok:
        raise PersistenceError("Invalid persisted elements: " + "; ".join(errors))

    return [record_to_element(rec) for rec in data]


# ----------------------------
# Key-value store
# ----------------------------

class KeyValueStore:
    """
    String key-value store backed by a single JSON file.

    Values are opaque strings. Every ``set`` rewrites the file atomically;
    a corrupt file is kept as ``store.json.bak`` and replaced on the next
    ``set``. Reads of a corrupt file raise ``PersistenceError``.

    Args:
        data_dir: Directory holding the store file.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.path = self.data_dir / STORE_FILE_NAME

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except ValueError as e:
                raise PersistenceError(f"Store file {self.path} is corrupt: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"Store file {self.path} does not hold an object")
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.data_dir, prefix=".store-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except PersistenceError as e:
            backup = self.path.with_name(self.path.name + ".bak")
            log.warning("%s; moving it to %s and starting a new store", e, backup)
            os.replace(self.path, backup)
            data = {}
        data[key] = value
        self._write_all(data)


def load_elements(store: KeyValueStore, key: str = DEFAULT_ELEMENTS_KEY) -> List[DiagramElement]:
    """Read the element list from the store; a missing key is an empty diagram."""
    text = store.get(key)
    if text is None:
        log.info("No persisted elements under %r", key)
        return []
    elements = elements_from_json(text)
    log.info("Read %d persisted elements", len(elements))
    return elements


def save_elements(store: KeyValueStore, elements: Iterable[DiagramElement],
                  key: str = DEFAULT_ELEMENTS_KEY) -> None:
    """Write the element list to the store."""
    elements = list(elements)
    store.set(key, elements_to_json(elements))
    log.debug("Saved %d elements under %r", len(elements), key)
