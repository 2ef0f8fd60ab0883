"""Shared fixtures: an in-memory drawing surface that records every call."""
from __future__ import annotations

import os
from contextlib import contextmanager

import pytest

from canvas.engine import DiagramEngine
from settings import AppSettings


class RecordingContext:
    """DrawingContext that appends ``(method, args)`` tuples to ``calls``."""

    def __init__(self, calls):
        self.calls = calls

    def __getattr__(self, name):
        def record(*args):
            self.calls.append((name, args))
        return record


class RecordingSurface:
    def __init__(self):
        self.size = None
        self.calls = []
        self.frames = 0
        self.resizes = []

    def resize(self, width, height):
        self.size = (width, height)
        self.resizes.append((width, height))

    @contextmanager
    def context(self):
        self.frames += 1
        self.calls = []
        yield RecordingContext(self.calls)

    def calls_named(self, name):
        return [args for n, args in self.calls if n == name]


@pytest.fixture
def settings():
    return AppSettings()


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def engine(settings, surface):
    eng = DiagramEngine(settings)
    eng.bind_surface(surface, 800, 600)
    return eng


@pytest.fixture
def zoomed_engine(settings):
    eng = DiagramEngine(settings, zoom_factor=4)
    eng.bind_surface(RecordingSurface(), 800, 600)
    return eng


@pytest.fixture(scope="session")
def qapp():
    """Session QApplication on the offscreen platform; skips without PyQt6."""
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    QtWidgets = pytest.importorskip("PyQt6.QtWidgets")
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app
