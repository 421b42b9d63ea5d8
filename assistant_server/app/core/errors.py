# app/core/errors.py
# -*- coding: utf-8 -*-
"""
Home Security Assistant — Error types
-------------------------------------
Every failure on the chat path is one of these. Each carries the HTTP
status the API layer should answer with; the message is sent back to the
caller as {"error": "<message>"}.
"""

from __future__ import annotations


class AssistantError(Exception):
    """Base class for errors surfaced to /api/chat callers."""

    status_code: int = 500


class ConfigurationError(AssistantError):
    """GEMINI_API_KEY is not configured."""


class InfrastructureError(AssistantError):
    """The Gemini client could not be created. Cached for the process."""


class BackendCallError(AssistantError):
    """The Gemini call itself failed. Never retried."""


class ResponseFormatError(AssistantError):
    """Gemini answered, but without a usable candidate text."""


class RequestFormatError(AssistantError):
    """The inbound request body could not be parsed."""

    status_code = 400
