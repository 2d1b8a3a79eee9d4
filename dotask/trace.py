"""Diagnostic trace sinks.

The scheduler reports what it does (tasks starting and finishing, timers
being registered and fired, the loop parking) to an injected sink. Tracing is
for humans only; nothing in the runtime depends on it.
"""

from __future__ import annotations

from typing import Any, Protocol

from loguru import logger as loguru_logger


class TraceSink(Protocol):
    def emit(self, event: str, **fields: Any) -> None: ...


class NullTraceSink:
    """Drops every event."""

    def emit(self, event: str, **fields: Any) -> None:
        return None


class LoguruTraceSink:
    """Writes each event as a structured loguru record.

    Fields are attached with ``bind`` so sinks configured with ``serialize=True``
    receive them as JSON; the message itself stays human-readable.
    """

    def __init__(self, *, level: str = "DEBUG", component: str = "dotask") -> None:
        self._level = level
        self._logger = loguru_logger.bind(component=component)

    def emit(self, event: str, **fields: Any) -> None:
        details = " ".join(f"{key}={value}" for key, value in fields.items())
        self._logger.bind(event=event, **fields).log(
            self._level, "{} {}", event, details
        )


__all__ = [
    "LoguruTraceSink",
    "NullTraceSink",
    "TraceSink",
]
