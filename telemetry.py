"""
telemetry.py
============
Operation and info-event tracking for panel commands.

Every instrumented operation gets a fresh operation id that is handed to
the wrapped callable; info events sent under that id (e.g. a guide tab
being activated) can then be correlated with the operation that opened
the panel. Events go to the ``telemetry`` logger and are kept in a
bounded in-memory history.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Deque, Dict, Optional

logger = logging.getLogger("telemetry")


@dataclass
class OperationRecord:
    """Timing and outcome of one instrumented operation."""

    name: str
    operation_id: str
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    duration_ms: Optional[float] = None
    success: Optional[bool] = None
    error_message: Optional[str] = None

    def finalize(self, success: bool, error_message: Optional[str] = None) -> None:
        """Mark the operation as complete."""
        self.end_time = datetime.now()
        self.duration_ms = (self.end_time - self.start_time).total_seconds() * 1000
        self.success = success
        self.error_message = error_message


@dataclass
class InfoEvent:
    operation_id: str
    data: Dict[str, Any]
    timestamp: datetime = field(default_factory=datetime.now)


class Telemetry:
    """
    In-process telemetry sink.

    Args:
        max_history: Number of operations / info events kept in memory
    """

    def __init__(self, max_history: int = 200) -> None:
        self.operations: Deque[OperationRecord] = deque(maxlen=max_history)
        self.events: Deque[InfoEvent] = deque(maxlen=max_history)

    def send_info(self, operation_id: str, data: Dict[str, Any]) -> None:
        """Record an info event for an operation."""
        self.events.append(InfoEvent(operation_id=operation_id, data=dict(data)))
        logger.info("info op=%s %s", operation_id, data)

    def _start(self, name: str) -> OperationRecord:
        record = OperationRecord(name=name, operation_id=str(uuid.uuid4()))
        self.operations.append(record)
        logger.info("start %s op=%s", name, record.operation_id)
        return record

    @staticmethod
    def _finish(record: OperationRecord, exc: Optional[BaseException] = None) -> None:
        if exc is None:
            record.finalize(success=True)
            logger.info(
                "end %s op=%s (%.1f ms)",
                record.name, record.operation_id, record.duration_ms,
            )
        else:
            record.finalize(success=False, error_message=str(exc))
            logger.error(
                "fail %s op=%s: %s", record.name, record.operation_id, exc,
            )

    def instrument_operation(self, name: str, fn: Callable[..., Any]) -> Callable[..., Any]:
        """
        Wrap ``fn`` so each call runs as a named operation.

        The wrapper passes the new operation id as the first argument.
        Coroutine functions get an async wrapper. Errors are recorded and
        re-raised.
        """
        if asyncio.iscoroutinefunction(fn):
            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                record = self._start(name)
                try:
                    result = await fn(record.operation_id, *args, **kwargs)
                except Exception as exc:
                    self._finish(record, exc)
                    raise
                self._finish(record)
                return result

            return async_wrapper

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            record = self._start(name)
            try:
                result = fn(record.operation_id, *args, **kwargs)
            except Exception as exc:
                self._finish(record, exc)
                raise
            self._finish(record)
            return result

        return wrapper
