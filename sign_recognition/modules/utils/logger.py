"""
Logging setup plus a recorder for recognition results.

Console output goes to stderr; stdout is reserved for the JSON results
printed by the command line.
"""

import os
import logging
import logging.handlers
import sys
import time
from collections import deque
from functools import wraps

CONSOLE_FORMAT = "%(asctime)s  %(levelname)-5s  %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)-25s | %(message)s"
DATE_FORMAT = "%H:%M:%S"


def _level_from_name(level):
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Replace the root handlers with a console handler and, when
    ``log_file`` is set, a size-rotated file handler at DEBUG.

    Returns:
        The root logger.
    """
    root = logging.getLogger()
    root.setLevel(_level_from_name(level))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(root.level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(console)

    if not log_file:
        return root

    parent = os.path.dirname(log_file)
    if parent:
        os.makedirs(parent, exist_ok=True)
    rotating = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=int(max_size_mb * 1024 * 1024), backupCount=backup_count,
    )
    rotating.setLevel(logging.DEBUG)
    rotating.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(rotating)
    return root


class RecognitionLogger:
    """Keeps a bounded history of recognition results and logs each one
    on the ``recognition_events`` logger."""

    def __init__(self, max_history=1000):
        self.logger = logging.getLogger("recognition_events")
        self._history = deque(maxlen=max_history)
        self._total = 0

    def log_result(self, result, latency_ms=None):
        self._total += 1
        self._history.append({
            "timestamp": time.time(),
            "gesture": result.name,
            "id": result.id,
            "confidence": result.confidence,
            "source": result.source,
            "latency_ms": latency_ms,
        })
        latency = "N/A" if latency_ms is None else "%.2fms" % latency_ms
        # Frames without a gesture only show up at DEBUG
        level = logging.INFO if result.is_valid else logging.DEBUG
        self.logger.log(level, "%-8s id=%d conf=%.2f via %-7s (%s)",
                        result.name, result.id, result.confidence, result.source, latency)

    def get_history(self, last_n=None):
        """Most recent entries, oldest first; a copy."""
        entries = list(self._history)
        return entries[-last_n:] if last_n else entries

    @property
    def total_results(self):
        return self._total


def log_timing(func):
    """Log the wall time of each call at DEBUG on the function's module logger."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        if not logger.isEnabledFor(logging.DEBUG):
            return func(*args, **kwargs)
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            logger.debug("%s took %.2fms", func.__name__,
                         (time.perf_counter() - start) * 1000)

    return wrapper
