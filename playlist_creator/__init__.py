"""Spotify playlist creator web app."""

from playlist_creator.flask_app import create_app

__all__ = ["create_app"]
__version__ = "0.1.0"
