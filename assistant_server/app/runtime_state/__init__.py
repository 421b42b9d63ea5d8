"""
Runtime state package for the Home Security Assistant server.

Tracks per-client conversation state so the assistant can hold multi-turn
conversations without mixing callers.

Typical usage (see app.core.dispatch):

    from app.runtime_state import SessionStore

    store = SessionStore()
    session = store.get_or_create_session(client_ip)
    history = store.history_snapshot(session)
    # ... pass `history` to the Gemini call ...
    store.append_exchange(session, user_text, reply_text)
"""

from .sessions import (
    SessionTurn,
    SessionData,
    SessionStore,
)

__all__ = [
    "SessionTurn",
    "SessionData",
    "SessionStore",
]
