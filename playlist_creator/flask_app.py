from __future__ import annotations

import logging
import os
from concurrent.futures import Executor
from typing import Optional, Tuple

from flask import Flask, flash, jsonify, redirect, render_template, request, url_for
from pydantic import ValidationError

from playlist_creator.api_client import BackendClient
from playlist_creator.auth import ConsumedCodes, build_authorize_url
from playlist_creator.config import Settings, load_settings
from playlist_creator.errors import AuthorizationError, ErrorKind
from playlist_creator.jobs import JobRegistry, JobState
from playlist_creator.models import PlaylistRequest
from playlist_creator.session import SessionContext, token_required


logger = logging.getLogger(__name__)

AUTH_FAILED_MESSAGE = "Spotify authentication failed. Please try again."


def parse_playlist_form(form) -> Tuple[Optional[PlaylistRequest], Optional[str]]:
    """Validate the submitted form. Returns ``(request, None)`` or ``(None, error)``."""
    minutes = (form.get("minutes") or "").strip()
    style = (form.get("style") or "").strip()
    if not minutes or not style:
        return None, "Please fill in both the duration and the music style."
    try:
        duration = int(minutes)
    except ValueError:
        return None, "Duration must be a whole number of minutes."
    try:
        return PlaylistRequest(duration_minutes=duration, style=style), None
    except ValidationError:
        return None, "Duration must be a positive number of minutes."


def create_app(
    settings: Optional[Settings] = None,
    backend: Optional[BackendClient] = None,
    executor: Optional[Executor] = None,
) -> Flask:
    settings = settings or load_settings()
    app = Flask(__name__)
    app.secret_key = settings.secret_key or os.urandom(24)
    app.config["SESSION_COOKIE_NAME"] = "playlist_creator_session"
    app.config["SETTINGS"] = settings

    if backend is None:
        backend = BackendClient(
            settings.api_uri,
            settings.redirect_uri,
            timeout=settings.request_timeout_seconds,
            register_timeout=settings.register_timeout_seconds,
        )
    jobs = JobRegistry(backend, settings.status_interval_seconds, executor=executor)
    consumed_codes = ConsumedCodes()
    app.extensions["playlist_jobs"] = jobs
    app.extensions["consumed_codes"] = consumed_codes

    @app.route("/")
    def index():
        ctx = SessionContext.current()
        return render_template("landing.html", logged_in=ctx.get_token() is not None)

    @app.route("/login")
    def login():
        return redirect(build_authorize_url(settings))

    @app.route("/callback")
    def callback():
        ctx = SessionContext.current()
        error = request.args.get("error")
        if error:
            logger.warning("Provider denied authorization: %s", error)
            flash(AUTH_FAILED_MESSAGE)
            return redirect(url_for("index"))
        code = request.args.get("code")
        if not code:
            logger.warning("Callback reached without an authorization code")
            flash(AUTH_FAILED_MESSAGE)
            return redirect(url_for("index"))
        if not consumed_codes.claim(code):
            # Already exchanged; the provider would reject it a second time
            logger.info("Ignoring repeated callback for an already used code")
            if ctx.get_token() is not None:
                return redirect(url_for("form"))
            flash(AUTH_FAILED_MESSAGE)
            return redirect(url_for("index"))
        try:
            token = backend.register(code)
        except AuthorizationError as exc:
            logger.warning("Spotify authentication failed: %s", exc)
            flash(AUTH_FAILED_MESSAGE)
            return redirect(url_for("index"))
        ctx.set_token(token)
        logger.info("Session authorized")
        return redirect(url_for("form"))

    @app.route("/form", methods=["GET"])
    @token_required
    def form(ctx: SessionContext):
        job = jobs.get(ctx.session_id)
        if job is None:
            return render_template("form.html", minutes="", style="", error=None)
        snapshot = job.snapshot()
        if snapshot["state"] == JobState.PENDING:
            return render_template(
                "waiting.html",
                message=snapshot["message"],
                refresh_seconds=max(1, round(settings.status_interval_seconds)),
            )
        if snapshot["state"] == JobState.SUCCEEDED:
            return render_template("success.html", playlist=job.result)
        if snapshot["error_kind"] == ErrorKind.SERVER_FAULT:
            return render_template("internal_error.html")
        return render_template("error.html", playlist_request=job.request)

    @app.route("/form", methods=["POST"])
    @token_required
    def submit(ctx: SessionContext):
        playlist_request, error = parse_playlist_form(request.form)
        if playlist_request is None:
            return (
                render_template(
                    "form.html",
                    minutes=request.form.get("minutes", ""),
                    style=request.form.get("style", ""),
                    error=error,
                ),
                400,
            )
        _, created = jobs.submit(ctx.session_id, ctx.get_token(), playlist_request)
        if created:
            logger.info(
                "Generating a %d minute %r playlist", playlist_request.duration_minutes, playlist_request.style
            )
        return redirect(url_for("form"))

    @app.route("/form/status")
    @token_required
    def form_status(ctx: SessionContext):
        job = jobs.get(ctx.session_id)
        if job is None:
            return jsonify({"state": "idle"})
        return jsonify(job.snapshot())

    @app.route("/form/reset", methods=["POST"])
    @token_required
    def reset(ctx: SessionContext):
        jobs.clear_finished(ctx.session_id)
        return redirect(url_for("form"))

    @app.route("/logout", methods=["GET", "POST"])
    def logout():
        ctx = SessionContext.current()
        jobs.discard(ctx.session_id)
        ctx.clear_token()
        return redirect(url_for("index"))

    @app.errorhandler(404)
    def not_found(_error):
        return redirect(url_for("index"))

    return app
