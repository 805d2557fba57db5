from __future__ import annotations

import json
import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")

METRICS_LOGGER_NAME = "metrics.actions"


class MetricsClient:
    """
    Action metrics written as JSON lines through the ``metrics.actions`` logger.
    Each line carries the action name, its duration and whether it succeeded.
    """

    def __init__(self):
        self._logger = logging.getLogger(METRICS_LOGGER_NAME)

    def configure(self, logger: logging.Logger | None = None) -> None:
        if logger:
            self._logger = logger

    def log_to_file(self, path: str | os.PathLike, *, when: str = "midnight", backups: int = 14) -> None:
        """Send metric lines to ``path``, rotated on ``when``. Repeat calls with the same path are no-ops."""
        target = Path(path).resolve()
        target.parent.mkdir(parents=True, exist_ok=True)

        logger = self._logger
        logger.setLevel(logging.INFO)
        logger.propagate = False
        current = [getattr(handler, "baseFilename", None) for handler in logger.handlers]
        if current and all(name == str(target) for name in current):
            return
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            handler.close()

        handler = TimedRotatingFileHandler(target, when=when, backupCount=backups, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    def _emit(
        self,
        action: str,
        *,
        success: bool,
        duration_ms: float | None = None,
        source: str | None = None,
        extra: dict | None = None,
    ) -> None:
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "action": action,
            "success": success,
        }
        if duration_ms is not None:
            payload["duration_ms"] = round(duration_ms, 3)
        if source:
            payload["source"] = source
        if extra:
            payload.update(extra)
        self._logger.info(json.dumps(payload, ensure_ascii=False))

    def event(self, action: str, *, source: str | None = None, extra: dict | None = None) -> None:
        self._emit(action, success=True, source=source, extra=extra)

    @asynccontextmanager
    async def span_async(self, action: str, *, source: str | None = None):
        start = time.perf_counter()
        success = True
        try:
            yield
        except Exception:
            success = False
            raise
        finally:
            duration = (time.perf_counter() - start) * 1000
            self._emit(action, success=success, duration_ms=duration, source=source)

    def wrap_async(self, action: str, *, source: str | None = None):
        def decorator(func: Callable[..., Awaitable[T]]):
            async def wrapper(*args, **kwargs):
                async with self.span_async(action, source=source):
                    return await func(*args, **kwargs)

            wrapper.__name__ = func.__name__
            wrapper.__doc__ = func.__doc__
            return wrapper

        return decorator


metrics = MetricsClient()
