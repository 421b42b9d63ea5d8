# app/models/chat_response.py
# -*- coding: utf-8 -*-
"""
Home Security Assistant — response models for /api/chat.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ChatResponse(BaseModel):
    """Successful reply."""

    response: str = Field(
        ...,
        description="Assistant reply text.",
        examples=["Consider a camera with night vision."],
    )


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx answer."""

    error: str = Field(..., examples=["Invalid request body"])
