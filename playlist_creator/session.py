from __future__ import annotations

import functools
import uuid
from typing import Callable, MutableMapping, Optional

from flask import redirect, session, url_for


TOKEN_KEY = "spotify_token"
SESSION_ID_KEY = "sid"


class SessionContext:
    """Read/write access to the per-browser session state.

    Views receive one of these instead of touching ``flask.session`` directly,
    so the token has exactly two writers (callback success and logout).
    """

    def __init__(self, store: MutableMapping):
        self._store = store

    @classmethod
    def current(cls) -> "SessionContext":
        return cls(session)

    def get_token(self) -> Optional[str]:
        token = self._store.get(TOKEN_KEY)
        return token or None

    def set_token(self, token: str) -> None:
        if not token:
            raise ValueError("Refusing to store an empty token")
        self._store[TOKEN_KEY] = token

    def clear_token(self) -> None:
        self._store.pop(TOKEN_KEY, None)

    @property
    def session_id(self) -> str:
        """Stable identifier used to key server-side jobs for this browser."""
        sid = self._store.get(SESSION_ID_KEY)
        if not sid:
            sid = uuid.uuid4().hex
            self._store[SESSION_ID_KEY] = sid
        return sid


def token_required(view: Callable) -> Callable:
    """Redirect to the landing page unless the session holds a token."""

    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        ctx = SessionContext.current()
        if ctx.get_token() is None:
            return redirect(url_for("index"))
        return view(ctx, *args, **kwargs)

    return wrapper
