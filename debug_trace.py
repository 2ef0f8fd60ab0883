"""
debug_trace.py

Logging setup and debug instrumentation for tracking engine events.
Enable tracing with ``[logging] trace = true`` in settings.toml.
"""

from __future__ import annotations

import logging
import sys
import traceback
from functools import wraps
from typing import Optional

from settings import LoggingSettings

LOG_FORMAT = "[%(asctime)s.%(msecs)03d] [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Toggled by setup_logging() from settings
DEBUG_TRACE = False

# Paint events are very verbose; needs DEBUG_TRACE as well
TRACE_PAINT = False

_trace_log = logging.getLogger("diagramcanvas.trace")


def setup_logging(config: Optional[LoggingSettings] = None) -> None:
    """Configure the root logger and trace flags from logging settings."""
    global DEBUG_TRACE, TRACE_PAINT
    if config is None:
        config = LoggingSettings()

    handlers = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        handlers.append(logging.FileHandler(config.log_file, mode="w", encoding="utf-8"))

    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT,
                        handlers=handlers, force=True)

    DEBUG_TRACE = config.trace
    TRACE_PAINT = config.trace_paint
    if DEBUG_TRACE:
        _trace_log.setLevel(logging.DEBUG)


def trace(msg: str, category: str = "INFO"):
    """Emit a trace message tagged with a category."""
    if not DEBUG_TRACE:
        return
    if category == "PAINT" and not TRACE_PAINT:
        return
    _trace_log.debug("[%s] %s", category, msg)


def trace_exception(msg: str = "Exception"):
    """Trace the exception currently being handled."""
    if not DEBUG_TRACE:
        return
    trace(f"{msg}: {traceback.format_exc()}", "ERROR")


def trace_call(category: str = "CALL"):
    """Decorator to trace function calls."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not DEBUG_TRACE:
                return func(*args, **kwargs)
            func_name = func.__qualname__
            trace(f">>> {func_name}", category)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                trace(f"!!! {func_name} raised {type(e).__name__}: {e}", "ERROR")
                raise
            trace(f"<<< {func_name}", category)
            return result
        return wrapper
    return decorator
