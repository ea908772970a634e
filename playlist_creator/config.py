from __future__ import annotations

import os
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator


AUTH_ENDPOINT = "https://accounts.spotify.com/authorize"
RESPONSE_TYPE = "code"
SCOPES = " ".join(
    [
        "playlist-modify-public",
        "playlist-modify-private",
    ]
)

STATUS_MESSAGES = (
    "Your playlist is being created...",
    "Hang tight, we are picking the best tracks...",
    "Almost there, your tunes are coming...",
)


class Settings(BaseModel):
    client_id: str = Field(..., min_length=1)
    redirect_uri: str = "http://localhost:5000/callback"
    api_uri: str = "http://localhost:8000"
    secret_key: Optional[str] = None
    status_interval_seconds: float = Field(3.0, gt=0)
    request_timeout_seconds: float = Field(30.0, gt=0)
    register_timeout_seconds: float = Field(10.0, gt=0)
    log_level: str = "INFO"

    @field_validator("api_uri")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


def load_settings() -> Settings:
    """Build settings from the environment.

    Uses environment variables:
    - SPOTIFY_CLIENT_ID (required)
    - REDIRECT_URI (defaults to http://localhost:5000/callback)
    - API_URI (defaults to http://localhost:8000)
    - APP_SECRET_KEY
    - STATUS_INTERVAL_SECONDS, REQUEST_TIMEOUT_SECONDS, LOG_LEVEL
    """
    load_dotenv(dotenv_path=find_dotenv(usecwd=True))
    values = {
        "client_id": os.getenv("SPOTIFY_CLIENT_ID", ""),
        "redirect_uri": os.getenv("REDIRECT_URI"),
        "api_uri": os.getenv("API_URI"),
        "secret_key": os.getenv("APP_SECRET_KEY"),
        "status_interval_seconds": os.getenv("STATUS_INTERVAL_SECONDS"),
        "request_timeout_seconds": os.getenv("REQUEST_TIMEOUT_SECONDS"),
        "log_level": os.getenv("LOG_LEVEL"),
    }
    # Unset variables fall back to the model defaults
    return Settings(**{k: v for k, v in values.items() if v is not None})
