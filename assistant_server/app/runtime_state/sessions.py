# app/runtime_state/sessions.py
# -*- coding: utf-8 -*-
"""
Home Security Assistant — Runtime Session State
-----------------------------------------------

In-memory session registry for the assistant server.

Purpose
~~~~~~~
- Keep one conversation transcript per client identity (the caller's
  network address) so follow-up questions have context.
- Hand the transcript to the Gemini call as prior turns.

Design notes
~~~~~~~~~~~~
- Lives in process memory only; a restart forgets every conversation.
- Sessions are never evicted unless `prune_stale_sessions` is called
  (the chat service does so only when SESSION_TTL_SECONDS > 0).
- The mapping is guarded by one lock; each session has its own lock for
  transcript appends and snapshots. Two requests from the same identity
  are NOT serialized against each other: both may see the same history,
  and their exchanges are appended in completion order.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, PrivateAttr

from app.utils import get_logger


logger = get_logger("home_security.runtime_state")


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class SessionTurn(BaseModel):
    """One turn in the conversation history."""

    role: Literal["user", "model"]
    text: str
    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SessionData(BaseModel):
    """
    Per-client conversation state.

    Attributes
    ----------
    session_id:
        Client identity the session is keyed by.
    created_at:
        When this session was first created.
    last_seen:
        Last time the session was resolved for a request (used for pruning).
    history:
        Every turn of the conversation, oldest first. Never truncated.
    """

    session_id: str
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    last_seen: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    history: List[SessionTurn] = Field(default_factory=list)

    _lock: Any = PrivateAttr(default_factory=threading.Lock)


# ---------------------------------------------------------------------------
# Session store implementation
# ---------------------------------------------------------------------------


class SessionStore:
    """Thread-safe registry of conversation sessions keyed by client identity."""

    def __init__(self) -> None:
        self._sessions: Dict[str, SessionData] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_or_create_session(self, session_id: str) -> SessionData:
        """
        Retrieve an existing session or create an empty one.

        Concurrent first calls for the same identity all get the same object.
        Updates `last_seen` to now.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                logger.info("[SessionStore] Creating new session %s", session_id)
                session = SessionData(session_id=session_id)
                self._sessions[session_id] = session
            session.last_seen = datetime.now(timezone.utc)
            return session

    def get_session(self, session_id: str) -> Optional[SessionData]:
        """Return the SessionData for `session_id`, or None if not found."""
        with self._lock:
            return self._sessions.get(session_id)

    def history_snapshot(self, session: SessionData) -> List[SessionTurn]:
        """Copy of the session transcript, safe to hand to another thread."""
        with session._lock:
            return list(session.history)

    def append_exchange(
        self,
        session: SessionData,
        user_text: str,
        model_text: str,
    ) -> None:
        """Append the user turn, then the model turn, as one step."""
        now = datetime.now(timezone.utc)
        with session._lock:
            session.history.append(SessionTurn(role="user", text=user_text, ts=now))
            session.history.append(SessionTurn(role="model", text=model_text, ts=now))
            session.last_seen = now

    def prune_stale_sessions(self, max_age_seconds: int) -> int:
        """
        Remove sessions that have not been seen for more than `max_age_seconds`.

        Returns
        -------
        int
            Number of deleted sessions.
        """
        if max_age_seconds <= 0:
            return 0

        cutoff = datetime.now(timezone.utc) - timedelta(seconds=max_age_seconds)
        with self._lock:
            to_delete = [
                sid
                for sid, sess in self._sessions.items()
                if sess.last_seen < cutoff
            ]
            for sid in to_delete:
                logger.info(
                    "[SessionStore] Pruning stale session %s (last_seen=%s)",
                    sid,
                    self._sessions[sid].last_seen,
                )
                del self._sessions[sid]

        return len(to_delete)
