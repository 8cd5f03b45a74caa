"""In-process metrics recorder rendering the Prometheus text format."""

from __future__ import annotations

import threading
from collections.abc import Callable

from fregate.errors import FregateError

__all__ = ["MetricsRecorder", "get_recorder", "render_metrics", "init_metrics"]


def _format(value: float) -> str:
    if isinstance(value, int):
        return str(value)
    return str(int(value)) if value.is_integer() else repr(value)


class MetricsRecorder:
    """Holds counters and gauges with their descriptions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}
        self._gauges: dict[str, float] = {}
        self._descriptions: dict[str, str] = {}

    def describe_counter(self, name: str, description: str) -> None:
        """Register a counter at zero with its help text."""
        with self._lock:
            self._descriptions[name] = description
            self._counters.setdefault(name, 0)

    def describe_gauge(self, name: str, description: str) -> None:
        """Register a gauge at zero with its help text."""
        with self._lock:
            self._descriptions[name] = description
            self._gauges.setdefault(name, 0.0)

    def absolute_counter(self, name: str, value: int) -> None:
        """Set a counter, never moving it backwards."""
        if value < 0:
            raise ValueError("counter values must not be negative")
        with self._lock:
            self._counters[name] = max(self._counters.get(name, 0), value)

    def increment_counter(self, name: str, value: int = 1) -> None:
        """Add ``value`` to a counter."""
        if value < 0:
            raise ValueError("counter increments must not be negative")
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + value

    def gauge(self, name: str, value: float) -> None:
        """Set a gauge."""
        with self._lock:
            self._gauges[name] = float(value)

    def render(self) -> str:
        """Return every metric in the Prometheus text exposition format."""
        with self._lock:
            series = [(n, "counter", v) for n, v in self._counters.items()]
            series += [(n, "gauge", v) for n, v in self._gauges.items()]
            descriptions = dict(self._descriptions)
        lines: list[str] = []
        for name, kind, value in sorted(series):
            if name in descriptions:
                lines.append(f"# HELP {name} {descriptions[name]}")
            lines.append(f"# TYPE {name} {kind}")
            lines.append(f"{name} {_format(value)}")
            lines.append("")
        return "\n".join(lines)


_recorder = MetricsRecorder()
_installed = False
_install_lock = threading.Lock()


def get_recorder() -> MetricsRecorder:
    """Return the process-wide recorder."""
    return _recorder


def render_metrics(callback: Callable[[], None] | None = None) -> str:
    """Run ``callback`` (if given) and return the rendered metrics."""
    if callback is not None:
        callback()
    return _recorder.render()


def init_metrics() -> None:
    """Install the process-wide recorder; raises :class:`FregateError` if already installed."""
    global _installed
    with _install_lock:
        if _installed:
            raise FregateError("attempted to set a recorder after the metrics system was already initialized")
        _installed = True