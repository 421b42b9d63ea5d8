# app/models/chat_request.py
# -*- coding: utf-8 -*-
"""
Home Security Assistant — ChatRequest model
-------------------------------------------
Request payload for POST /api/chat.

The caller's identity is NOT part of the body; the router derives it from
the transport-level client address.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """
    Request body for /api/chat.

    A missing `message` is treated as an empty message. Anything that is not
    a JSON object with a string `message` is rejected by the router with 400.
    """

    message: str = Field(
        default="",
        description="User question in plain text.",
        examples=["What camera should I buy?"],
    )
