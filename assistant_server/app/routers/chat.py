# app/routers/chat.py
# -*- coding: utf-8 -*-
"""
Home Security Assistant — /api/chat router
------------------------------------------
The one HTTP endpoint the web page (or any client) calls.

Flow:
  HTTP POST /api/chat  ({"message": "..."})
    -> parse body (400 {"error": "Invalid request body"} if malformed)
    -> identity = caller's network address
    -> ChatService.generate_reply(identity, message)
    -> {"response": "..."}

Failures from the chat service are AssistantError subclasses; the handler
registered in app.main turns them into {"error": "..."} with their status.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from app.core.dispatch import ChatService
from app.core.errors import AssistantError, RequestFormatError
from app.models.chat_request import ChatRequest
from app.models.chat_response import ChatResponse, ErrorResponse

router = APIRouter(prefix="/api", tags=["chat"])
logger = logging.getLogger(__name__)


def get_chat_service(request: Request) -> ChatService:
    """Dependency: the ChatService owned by the running app."""
    return request.app.state.chat_service


def client_identity(request: Request) -> str:
    """Caller's network address, used as the conversation key."""
    if request.client is None:
        return "unknown"
    return request.client.host


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def chat_endpoint(
    request: Request,
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    identity = client_identity(request)

    # Parsed by hand so a bad body is a 400 with our error shape, not a 422.
    raw = await request.body()
    try:
        payload = ChatRequest.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning(
            "[/api/chat] invalid request body from %s: %s",
            identity,
            exc.errors(include_url=False),
        )
        raise RequestFormatError("Invalid request body") from exc

    logger.info("[/api/chat] identity=%s text=%r", identity, payload.message)

    try:
        reply = await service.generate_reply(identity, payload.message)
    except AssistantError as exc:
        logger.warning(
            "[/api/chat] %s for identity=%s: %s",
            type(exc).__name__,
            identity,
            exc,
        )
        raise

    logger.info("[/api/chat] identity=%s reply_chars=%d", identity, len(reply))
    return ChatResponse(response=reply)
