# app/providers/gemini.py
# -*- coding: utf-8 -*-
"""
Home Security Assistant — Gemini provider
-----------------------------------------
This module is the ONLY place that knows how to talk to Gemini through the
google-genai SDK.

Responsibilities:
- Create the SDK client from an API key.
- Build the generation config (sampling values + home-security system
  instruction).
- Turn session history + the new user text into request contents.
- Pull the reply text out of a response.

It is used by app/core/dispatch.py, which owns the client handle, the
session registry and all error mapping.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from google import genai
from google.genai import types

from app.runtime_state import SessionTurn

logger = logging.getLogger(__name__)


SYSTEM_INSTRUCTION = (
    "You are a specialized AI assistant for home security systems. "
    "Answer the following question about home security. "
    "If the question is not related to home security, politely decline to "
    "answer and explain that you only answer questions about home security "
    "systems, cameras, alarms, sensors, etc. "
    "Keep responses concise, informative, and helpful for home owners. "
    "If the user asks you to control a home security device, behave as if "
    "you have done it."
)

TEMPERATURE = 1.0
TOP_K = 40
TOP_P = 0.95
MAX_OUTPUT_TOKENS = 8192
RESPONSE_MIME_TYPE = "text/plain"


def create_client(api_key: str) -> genai.Client:
    """Create the google-genai client. Does not touch the network."""
    return genai.Client(api_key=api_key)


def build_generation_config(
    system_instruction: str = SYSTEM_INSTRUCTION,
) -> types.GenerateContentConfig:
    """Fixed sampling parameters plus the domain-scoping system instruction."""
    return types.GenerateContentConfig(
        temperature=TEMPERATURE,
        top_k=TOP_K,
        top_p=TOP_P,
        max_output_tokens=MAX_OUTPUT_TOKENS,
        response_mime_type=RESPONSE_MIME_TYPE,
        system_instruction=system_instruction,
    )


def build_contents(
    history: Sequence[SessionTurn],
    user_text: str,
) -> List[types.Content]:
    """
    Prior turns in order, followed by the new user turn.

    Roles are already Gemini's ("user" / "model").
    """
    contents = [
        types.Content(role=turn.role, parts=[types.Part(text=turn.text)])
        for turn in history
    ]
    contents.append(types.Content(role="user", parts=[types.Part(text=user_text)]))
    return contents


def send_message(
    client: Any,
    model_name: str,
    config: types.GenerateContentConfig,
    history: Sequence[SessionTurn],
    user_text: str,
) -> Any:
    """
    Blocking generate_content call. Run it in a worker thread from async code.

    SDK exceptions are left to the caller.
    """
    contents = build_contents(history, user_text)
    logger.debug(
        "Sending %d contents to %s (history_turns=%d)",
        len(contents),
        model_name,
        len(history),
    )
    return client.models.generate_content(
        model=model_name,
        contents=contents,
        config=config,
    )


def extract_reply_text(response: Any) -> Optional[str]:
    """
    Text of the first part of the first candidate.

    Returns None when there is no candidate, no content, no parts, or the
    first part carries no text.
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    if not parts:
        return None

    text = getattr(parts[0], "text", None)
    if not isinstance(text, str):
        return None
    return text
