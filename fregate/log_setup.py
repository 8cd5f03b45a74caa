"""Process-wide JSON logging set-up with a background writer."""

from __future__ import annotations

import logging
import logging.handlers
import queue
import sys
import threading
from typing import Any

from fregate.errors import FregateError
from fregate.event_formatter import EventFormatter
from fregate.headers_filter import HeadersFilter, set_headers_filter

__all__ = [
    "TRACE",
    "DEFAULT_BUFFERED_LINES_LIMIT",
    "LogLevelHandle",
    "LogGuard",
    "log_layer",
    "init_tracing",
    "get_log_layer_handle",
]

TRACE = 5
DEFAULT_BUFFERED_LINES_LIMIT = 128_000
logging.addLevelName(TRACE, "TRACE")

_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "off": logging.CRITICAL + 10,
}


def _parse_level(level: str) -> int:
    # Unparseable filters fall back to errors only.
    return _LEVELS.get(level.strip().lower(), logging.ERROR)


class LogLevelHandle:
    """Changes the level of a handler at run time."""

    def __init__(self, handler: logging.Handler) -> None:
        self._handler = handler

    @property
    def level(self) -> int:
        return self._handler.level

    def reload(self, level: str) -> None:
        """Set a new level such as ``"debug"``; unknown names mean errors only."""
        self._handler.setLevel(_parse_level(level))


class _BlockingQueueHandler(logging.handlers.QueueHandler):
    def enqueue(self, record: logging.LogRecord) -> None:
        self.queue.put(record)  # wait rather than drop lines

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        return record


class LogGuard:
    """Keeps the background writer alive; ``close`` flushes and stops it."""

    def __init__(self, listener: logging.handlers.QueueListener, handler: logging.Handler) -> None:
        self._listener = listener
        self._handler = handler
        self._closed = False

    def close(self) -> None:
        """Flush pending lines, stop the writer and detach from the root logger."""
        if self._closed:
            return
        self._closed = True
        logging.getLogger().removeHandler(self._handler)
        self._listener.stop()

    def __enter__(self) -> LogGuard:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def log_layer(
    log_level: str,
    version: str,
    service_name: str,
    component_name: str,
    log_msg_length: int | None = None,
    buffered_lines_limit: int | None = None,
) -> tuple[logging.Handler, LogLevelHandle, LogGuard]:
    """Build a handler writing JSON lines to the current stdout off-thread."""
    formatter = EventFormatter(
        log_msg_length, version=version, service=service_name, component=component_name
    )
    limit = buffered_lines_limit if buffered_lines_limit is not None else DEFAULT_BUFFERED_LINES_LIMIT
    records: queue.Queue[logging.LogRecord] = queue.Queue(maxsize=limit)

    writer = logging.StreamHandler(sys.stdout)
    writer.setFormatter(formatter)
    listener = logging.handlers.QueueListener(records, writer)

    handler = _BlockingQueueHandler(records)
    handler.setLevel(_parse_level(log_level))
    listener.start()
    return handler, LogLevelHandle(handler), LogGuard(listener, handler)


_lock = threading.Lock()
_log_handle: LogLevelHandle | None = None


def get_log_layer_handle() -> LogLevelHandle | None:
    """Return the handle installed by :func:`init_tracing`, or ``None``."""
    return _log_handle


def _install_excepthook() -> None:
    log = logging.getLogger("fregate.panic")

    def hook(exc_type: type[BaseException], exc: BaseException, tb: Any) -> None:
        frame = tb
        while frame is not None and frame.tb_next is not None:
            frame = frame.tb_next
        extra = {}
        if frame is not None:
            extra = {"panic.file": frame.tb_frame.f_code.co_filename, "panic.line": frame.tb_lineno}
        log.error("%s", exc, extra=extra)

    sys.excepthook = hook


def init_tracing(
    log_level: str,
    trace_level: str,
    version: str,
    service_name: str,
    component_name: str,
    traces_endpoint: str | None = None,
    log_msg_length: int | None = None,
    buffered_lines_limit: int | None = None,
    headers_filter: HeadersFilter | None = None,
) -> LogGuard:
    """Install JSON logging on the root logger once per process.

    Raises :class:`FregateError` when called a second time.
    """
    global _log_handle
    with _lock:
        if _log_handle is not None:
            raise FregateError("a global logging subscriber has already been set")
        handler, handle, guard = log_layer(
            log_level, version, service_name, component_name,
            log_msg_length, buffered_lines_limit,
        )
        root = logging.getLogger()
        root.addHandler(handler)
        root.setLevel(TRACE)
        _log_handle = handle
    if headers_filter is not None:
        set_headers_filter(headers_filter)
    _install_excepthook()
    return guard