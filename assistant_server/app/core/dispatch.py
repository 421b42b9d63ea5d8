# app/core/dispatch.py
# -*- coding: utf-8 -*-
"""
Home Security Assistant — Chat dispatch
---------------------------------------
Turns one (client identity, user message) pair into one reply:

    identity + message
      -> API key check
      -> backend client handle (created once, failure cached)
      -> session lookup-or-create
      -> Gemini call with prior turns + new user turn
      -> reply extraction
      -> transcript update (user turn, then model turn)

Nothing here is retried. The transcript only changes when a reply text was
extracted; a failed or empty response leaves it as it was.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional, Tuple

import anyio

from app.core.config import Settings
from app.core.errors import (
    BackendCallError,
    ConfigurationError,
    InfrastructureError,
    ResponseFormatError,
)
from app.providers import gemini
from app.runtime_state import SessionStore
from app.utils import Stopwatch, get_logger

logger = get_logger(__name__)


ClientFactory = Callable[[str], Any]


class BackendClientHandle:
    """
    Lazily created Gemini client, shared by every session.

    The first caller builds the client (and the generation config that goes
    with it) under a lock. If that fails, the failure is remembered and every
    later caller gets an InfrastructureError for it; there is no retry.
    """

    def __init__(self, factory: ClientFactory = gemini.create_client) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._client: Any = None
        self._config: Any = None
        self._error: Optional[Exception] = None

    @property
    def state(self) -> str:
        if self._error is not None:
            return "failed"
        if self._client is not None:
            return "ready"
        return "uninitialized"

    def get(self, api_key: str) -> Tuple[Any, Any]:
        """Return (client, generation_config), creating them on first use."""
        with self._lock:
            if self._client is None and self._error is None:
                try:
                    self._client = self._factory(api_key)
                    self._config = gemini.build_generation_config()
                    logger.info("Gemini client created")
                except Exception as exc:
                    self._client = None
                    self._error = exc
                    logger.error("Failed to create Gemini client: %s", exc)

            if self._error is not None:
                raise InfrastructureError(
                    f"Error creating AI client: {self._error}"
                ) from self._error

            return self._client, self._config


class ChatService:
    """
    Per-app chat state: settings, session registry and backend client handle.

    One instance is created by the app factory and stored on `app.state`.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        sessions: Optional[SessionStore] = None,
        client_factory: ClientFactory = gemini.create_client,
    ) -> None:
        self.settings = settings
        self.sessions = sessions if sessions is not None else SessionStore()
        self.backend = BackendClientHandle(client_factory)

    async def generate_reply(self, identity: str, message: str) -> str:
        """
        Send `message` for `identity` and return the reply text.

        Raises
        ------
        ConfigurationError
            GEMINI_API_KEY is not set. No session is created.
        InfrastructureError
            The Gemini client could not be created (now or earlier).
        BackendCallError
            The Gemini call raised.
        ResponseFormatError
            The response had no candidate text. The transcript is unchanged.
        """
        api_key = self.settings.gemini_api_key
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY environment variable not set")

        client, config = self.backend.get(api_key)

        if self.settings.session_ttl_seconds > 0:
            self.sessions.prune_stale_sessions(self.settings.session_ttl_seconds)

        session = self.sessions.get_or_create_session(identity)
        history = self.sessions.history_snapshot(session)

        try:
            with Stopwatch(f"Gemini call for {identity}", logger):
                response = await anyio.to_thread.run_sync(
                    gemini.send_message,
                    client,
                    self.settings.gemini_model,
                    config,
                    history,
                    message,
                )
        except Exception as exc:
            raise BackendCallError(f"Error sending message: {exc}") from exc

        reply = gemini.extract_reply_text(response)
        if reply is None:
            raise ResponseFormatError("no valid candidates found in response")

        self.sessions.append_exchange(session, message, reply)
        return reply
