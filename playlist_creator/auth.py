from __future__ import annotations

import threading
from collections import OrderedDict
from urllib.parse import urlencode

from playlist_creator.config import AUTH_ENDPOINT, RESPONSE_TYPE, SCOPES, Settings


def build_authorize_url(settings: Settings, scopes: str = SCOPES) -> str:
    """Return the provider URL that starts the authorization-code grant."""
    params = {
        "client_id": settings.client_id,
        "redirect_uri": settings.redirect_uri,
        "response_type": RESPONSE_TYPE,
        "scope": scopes,
    }
    return f"{AUTH_ENDPOINT}?{urlencode(params)}"


class ConsumedCodes:
    """Remembers authorization codes that were already sent for exchange.

    The provider rejects a second exchange of the same code, so the callback
    claims a code here before calling the backend and skips the call when the
    claim fails. Only the most recent ``max_size`` codes are kept.
    """

    def __init__(self, max_size: int = 1024):
        self._max_size = max_size
        self._codes: "OrderedDict[str, None]" = OrderedDict()
        self._lock = threading.Lock()

    def claim(self, code: str) -> bool:
        """Mark ``code`` consumed. Returns False if it already was."""
        with self._lock:
            if code in self._codes:
                return False
            self._codes[code] = None
            while len(self._codes) > self._max_size:
                self._codes.popitem(last=False)
            return True

    def __contains__(self, code: object) -> bool:
        with self._lock:
            return code in self._codes

    def __len__(self) -> int:
        with self._lock:
            return len(self._codes)
