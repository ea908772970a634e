from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    AUTHORIZATION_FAILURE = "authorization_failure"
    SERVER_FAULT = "server_fault"
    OTHER_FAILURE = "other_failure"


class PlaylistCreatorError(Exception):
    """Base error for backend and authorization failures."""

    kind: ErrorKind = ErrorKind.OTHER_FAILURE

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthorizationError(PlaylistCreatorError):
    kind = ErrorKind.AUTHORIZATION_FAILURE


class GenerationError(PlaylistCreatorError):
    def __init__(self, message: str, status_code: int | None = None, kind: ErrorKind = ErrorKind.OTHER_FAILURE):
        super().__init__(message, status_code=status_code)
        self.kind = kind

    @classmethod
    def from_status(cls, status_code: int, detail: str = "") -> "GenerationError":
        """Map a non-2xx generation response onto an error kind.

        Only a true 500 is a server fault; every other status is normalized
        to OTHER_FAILURE so the user still gets a visible error.
        """
        kind = ErrorKind.SERVER_FAULT if status_code == 500 else ErrorKind.OTHER_FAILURE
        message = f"Playlist generation failed with HTTP {status_code}"
        if detail:
            message = f"{message}: {detail}"
        return cls(message, status_code=status_code, kind=kind)
