from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TokenInfo(BaseModel):
    access_token: str = Field(..., min_length=1, description="Bearer token issued via the backend")


class PlaylistRequest(BaseModel):
    duration_minutes: int = Field(..., gt=0, description="Desired playlist length in minutes")
    style: str = Field(..., description="Free-text musical style, e.g. rock or chill")

    @field_validator("style")
    @classmethod
    def _style_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("style must not be empty")
        return value

    def to_payload(self, redirect_uri: str) -> dict:
        return {"minutes": self.duration_minutes, "style": self.style, "redirect_uri": redirect_uri}


class ExternalUrls(BaseModel):
    model_config = ConfigDict(extra="allow")

    spotify: str

    @field_validator("spotify")
    @classmethod
    def _web_link_only(cls, value: str) -> str:
        parsed = urlparse(value.strip())
        if parsed.scheme.lower() not in ("http", "https") or not parsed.netloc:
            raise ValueError("playlist link must be an http(s) URL")
        return value.strip()


class PlaylistResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    external_urls: ExternalUrls

    @property
    def url(self) -> str:
        return self.external_urls.spotify
