# app/utils/__init__.py
# -*- coding: utf-8 -*-
"""
Home Security Assistant — Utility toolbox
-----------------------------------------
Shared helpers used across the server:

- logging   : central logging configuration
- timers    : small timing helper

    from app.utils import setup_logging, get_logger, Stopwatch
"""

from __future__ import annotations

from .logging import (  # noqa: F401
    setup_logging,
    get_logger,
)

from .timers import (  # noqa: F401
    Stopwatch,
)
