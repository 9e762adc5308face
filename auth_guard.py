# auth_guard.py
from __future__ import annotations

from functools import wraps

from flask import current_app, g, request

from db import db
from errors import AdminRequired, Unauthorized
from models.user import User
from services.tokens import SESSION_COOKIE

__all__ = ["require_auth", "require_admin", "session_token"]


def session_token() -> str | None:
    """Session token from the auth-token cookie, else an ``Authorization: Bearer`` header."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def _authenticate() -> User:
    payload = current_app.extensions["tokens"].validate(session_token())
    if payload is None:
        raise Unauthorized()

    try:
        uid = int(payload["userId"])
    except (TypeError, ValueError):
        raise Unauthorized()

    user = db.session.get(User, uid)
    if user is None or not user.is_active:
        raise Unauthorized()

    g.auth = payload  # type: ignore[attr-defined]
    g.user = user     # type: ignore[attr-defined]

    current_app.logger.debug(
        "[guard] %s %s uid=%s admin=%s ip=%s",
        request.method, request.path, user.id, bool(user.is_admin), request.remote_addr,
    )
    return user


def require_auth(f):
    """Any signed-in user. Sets ``g.auth`` (token payload) and ``g.user``."""
    @wraps(f)
    def wrapped(*args, **kwargs):
        _authenticate()
        return f(*args, **kwargs)
    return wrapped


def require_admin(f):
    @wraps(f)
    def wrapped(*args, **kwargs):
        user = _authenticate()
        if not user.is_admin:
            current_app.logger.info("[guard] admin route refused uid=%s path=%s", user.id, request.path)
            raise AdminRequired()
        return f(*args, **kwargs)
    return wrapped
