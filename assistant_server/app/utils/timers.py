# app/utils/timers.py
# -*- coding: utf-8 -*-
"""
Home Security Assistant — timing utilities
------------------------------------------
Lightweight helper for measuring execution time and logging it.

Used for:
- Measuring Gemini call latency.
- Timing each HTTP request in the request-logging middleware.
"""

from __future__ import annotations

import logging
import time
from contextlib import ContextDecorator
from typing import Optional


class Stopwatch(ContextDecorator):
    """
    Simple stopwatch context manager.

    Example:
        from app.utils import Stopwatch, get_logger

        logger = get_logger(__name__)

        with Stopwatch("Gemini call", logger):
            send_message(...)

    This will log something like:
        Gemini call took 0.237 s

    Pass level=None to only measure; the result is in `.elapsed` after exit.
    """

    def __init__(
        self,
        label: str,
        logger: Optional[logging.Logger] = None,
        level: Optional[int] = logging.INFO,
    ) -> None:
        self.label = label
        self.logger = logger or logging.getLogger(__name__)
        self.level = level
        self.elapsed: float = 0.0
        self._start: float = 0.0

    def __enter__(self) -> "Stopwatch":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:  # type: ignore[override]
        self.elapsed = time.perf_counter() - self._start
        if self.level is not None:
            self.logger.log(self.level, "%s took %.3f s", self.label, self.elapsed)
