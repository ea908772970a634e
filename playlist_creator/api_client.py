from __future__ import annotations

import logging
from typing import Optional

import requests
from pydantic import ValidationError

from playlist_creator.errors import AuthorizationError, ErrorKind, GenerationError
from playlist_creator.models import PlaylistRequest, PlaylistResult, TokenInfo


logger = logging.getLogger(__name__)


class BackendClient:
    """HTTP client for the playlist backend.

    The backend proxies the provider's token exchange (``/register``) and does
    the actual playlist generation (``/playlists/generate``).
    """

    def __init__(
        self,
        api_uri: str,
        redirect_uri: str,
        timeout: float = 30.0,
        register_timeout: float = 10.0,
        http: Optional[requests.Session] = None,
    ):
        self.api_uri = api_uri.rstrip("/")
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self.register_timeout = register_timeout
        self._http = http or requests.Session()

    def register(self, code: str) -> str:
        """Exchange an authorization code for an access token."""
        try:
            resp = self._http.post(
                f"{self.api_uri}/register",
                json={"code": code, "redirect_uri": self.redirect_uri},
                timeout=self.register_timeout,
            )
        except requests.RequestException as exc:
            raise AuthorizationError(f"Token exchange request failed: {exc}") from exc
        if not resp.ok:
            raise AuthorizationError(
                f"Token exchange rejected with HTTP {resp.status_code}", status_code=resp.status_code
            )
        try:
            info = TokenInfo.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise AuthorizationError("Token exchange returned no access token", status_code=resp.status_code) from exc
        return info.access_token

    def generate_playlist(self, token: str, request: PlaylistRequest) -> PlaylistResult:
        """Ask the backend to build a playlist for ``request``."""
        try:
            resp = self._http.post(
                f"{self.api_uri}/playlists/generate",
                json=request.to_payload(self.redirect_uri),
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise GenerationError(f"Playlist request failed: {exc}") from exc
        if not resp.ok:
            raise GenerationError.from_status(resp.status_code, _detail(resp))
        try:
            return PlaylistResult.model_validate(resp.json())
        except (ValueError, ValidationError) as exc:
            raise GenerationError(
                "Backend returned an unexpected playlist payload",
                status_code=resp.status_code,
                kind=ErrorKind.OTHER_FAILURE,
            ) from exc


def _detail(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "")[:200]
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or "")[:200]
    return ""
