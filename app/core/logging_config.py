# -*- coding: utf-8 -*-
"""
Logging configuration.

Routes logs by severity for correct container/platform classification:
- DEBUG, INFO, WARNING → STDOUT
- ERROR, CRITICAL → STDERR

Uses QueueHandler + QueueListener so the event loop never blocks on
stdout/stderr; only the listener thread does.

Debug output is enabled by LOG_LEVEL=debug, DEBUG=1 or DEBUG=true.
"""

import atexit
import logging
import os
import queue
import sys
from logging.handlers import QueueHandler, QueueListener
from typing import Mapping, Optional


class MaxLevelFilter(logging.Filter):
    """
    Allows only records up to a specified level (inclusive).
    Used to prevent ERROR/CRITICAL logs from going to stdout.
    """

    def __init__(self, max_level):
        super().__init__()
        self.max_level = max_level

    def filter(self, record):
        return record.levelno <= self.max_level


# Module-level listener so it can be stopped on shutdown
_log_listener: QueueListener | None = None


def resolve_log_level(environ: Optional[Mapping[str, str]] = None) -> int:
    """DEBUG if LOG_LEVEL=debug or DEBUG is 1/true, otherwise INFO."""
    environ = os.environ if environ is None else environ
    log_level = environ.get("LOG_LEVEL", "").lower()
    debug = environ.get("DEBUG", "").lower()
    if log_level == "debug" or debug in ("1", "true"):
        return logging.DEBUG
    return logging.INFO


def setup_logging(level: Optional[int] = None):
    """
    Configure logging: QueueHandler on root logger; QueueListener in background
    thread with StreamHandlers.

    Must be called before any logger is used.
    """
    global _log_listener

    if level is None:
        level = resolve_log_level()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(level)
    stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)
    stderr_handler.setFormatter(formatter)

    log_queue = queue.Queue()
    root_logger.addHandler(QueueHandler(log_queue))

    # aiogram logs every polled update at INFO
    logging.getLogger("aiogram.event").setLevel(max(level, logging.WARNING))

    _log_listener = QueueListener(
        log_queue,
        stdout_handler,
        stderr_handler,
        respect_handler_level=True,
    )
    _log_listener.start()
    atexit.register(_stop_log_listener)


def _stop_log_listener():
    """Stop the queue listener (called at exit)."""
    global _log_listener
    if _log_listener is not None:
        _log_listener.stop()
        _log_listener = None
