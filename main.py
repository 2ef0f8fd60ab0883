"""
main.py

Diagram Canvas - Main Application

PyQt6 host for the diagram engine:
- Pan, Select and Rectangle tools
- Corner radius editing for the selected shape
- Shapes persisted to the local key-value store

Usage:
    python main.py

Dependencies:
    pip install PyQt6 platformdirs tomli-w jsonschema
"""

from __future__ import annotations

import logging
import sys
from typing import Dict, List, Optional

from PyQt6.QtGui import QAction, QActionGroup
from PyQt6.QtWidgets import QApplication, QDoubleSpinBox, QLabel, QMainWindow, QToolBar

from canvas.engine import DiagramEngine
from canvas.view import DiagramView
from debug_trace import setup_logging, trace, trace_exception
from models import DiagramElement, PersistenceError, ToolMode
from persistence import KeyValueStore, load_elements, save_elements
from settings import SettingsManager, get_settings

log = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Main window wiring the toolbar, the canvas view and persistence."""

    def __init__(self, settings_manager: SettingsManager, store: Optional[KeyValueStore] = None):
        super().__init__()
        self.setWindowTitle("Diagram Canvas")
        self.settings_manager = settings_manager
        self.store = store if store is not None else KeyValueStore(settings_manager.get_data_dir())
        self.elements_key = settings_manager.settings.storage.elements_key

        self.engine = DiagramEngine(settings_manager.settings)
        self._load_persisted()
        self._build_toolbar()

        self.view = DiagramView(
            self.engine,
            on_elements_changed=self._on_elements_changed,
            on_state_changed=self._on_state_changed,
            on_selection_changed=self._on_selection_changed,
        )
        self.setCentralWidget(self.view)
        self._on_state_changed(self.engine.state, self.engine.tool_mode)

    def _load_persisted(self):
        """Load persisted elements; a corrupt payload starts an empty diagram."""
        try:
            elements = load_elements(self.store, self.elements_key)
        except PersistenceError as e:
            log.error("Could not load persisted diagram, starting empty: %s", e)
            elements = []
        self.engine.load(elements)

    def _build_toolbar(self):
        """Build the tool and attribute toolbar."""
        tb = QToolBar("Tools")
        self.addToolBar(tb)

        group = QActionGroup(self)
        group.setExclusive(True)
        self.mode_actions: Dict[str, QAction] = {}

        def add_mode_action(text: str, mode: str, shortcut: str, tooltip: str):
            act = QAction(text, self)
            act.setCheckable(True)
            act.setShortcut(shortcut)
            act.setToolTip(f"{tooltip} ({shortcut})")
            act.setStatusTip(tooltip)
            act.triggered.connect(lambda checked, m=mode: self.engine.select_mode(m))
            group.addAction(act)
            tb.addAction(act)
            self.mode_actions[mode] = act
            return act

        add_mode_action("Pan", ToolMode.PAN, "H", "Drag to pan the canvas")
        add_mode_action("Select", ToolMode.SELECT, "S", "Click a shape to select it")
        add_mode_action("Rectangle", ToolMode.CREATE_SHAPE, "R", "Drag to draw a rounded rectangle")

        tb.addSeparator()
        tb.addWidget(QLabel(" Corner radius "))
        self.radius_spin = QDoubleSpinBox()
        self.radius_spin.setRange(0.0, 1000.0)
        self.radius_spin.setDecimals(1)
        self.radius_spin.setEnabled(False)
        self.radius_spin.valueChanged.connect(self._on_radius_changed)
        tb.addWidget(self.radius_spin)

    def _on_radius_changed(self, value: float):
        if self.engine.selected_element is None:
            return
        self.engine.update_selected(corner_radius=value)

    def _on_state_changed(self, state: str, mode: str):
        act = self.mode_actions.get(mode)
        if act is not None and not act.isChecked():
            act.setChecked(True)
        self._sync_radius_editor()
        self.statusBar().showMessage(f"Mode: {mode} ({state})")

    def _on_selection_changed(self, element: Optional[DiagramElement]):
        self._sync_radius_editor()

    def _sync_radius_editor(self):
        selected = self.engine.selected_element
        self.radius_spin.blockSignals(True)
        self.radius_spin.setEnabled(selected is not None)
        self.radius_spin.setValue(selected.corner_radius if selected is not None else 0.0)
        self.radius_spin.blockSignals(False)

    def _on_elements_changed(self, elements: List[DiagramElement]):
        """Save policy: persist after every creation, attribute edit or delete."""
        self._sync_radius_editor()
        if self.save():
            self.statusBar().showMessage(f"Saved {len(elements)} shape(s).")

    def save(self) -> bool:
        """Write the diagram to the store; failures are logged and reported, not raised."""
        try:
            save_elements(self.store, self.engine.snapshot(), self.elements_key)
        except (PersistenceError, OSError) as e:
            log.error("Could not save diagram: %s", e)
            self.statusBar().showMessage(f"Save failed: {e}")
            return False
        return True

    def closeEvent(self, event):
        # Also keeps the selection flag, which is not saved eagerly
        self.save()
        super().closeEvent(event)


def main():
    """Application entry point."""
    settings_manager = get_settings()
    settings_manager.ensure_file_complete()
    setup_logging(settings_manager.settings.logging)

    trace("Application starting", "MAIN")
    app = QApplication(sys.argv)

    def save_on_quit():
        trace("Saving settings on quit", "MAIN")
        settings_manager.save()

    app.aboutToQuit.connect(save_on_quit)

    w = MainWindow(settings_manager)
    w.resize(1200, 800)
    w.show()
    trace("Entering event loop", "MAIN")
    sys.exit(app.exec())


if __name__ == "__main__":
    def excepthook(exc_type, exc_value, exc_tb):
        import traceback
        log.critical("Uncaught exception:\n%s",
                     "".join(traceback.format_exception(exc_type, exc_value, exc_tb)))
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = excepthook

    try:
        main()
    except Exception as e:
        trace(f"FATAL: {type(e).__name__}: {e}", "CRASH")
        trace_exception("Fatal exception")
        raise
