# services/tokens.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

__all__ = ["TokenIssuer", "SESSION_COOKIE"]

SESSION_COOKIE = "auth-token"
_ALGORITHM = "HS256"


class TokenIssuer:
    """
    Signs and checks session tokens.

    Payload: ``{"userId", "phone", "isAdmin"}`` plus ``iat``/``exp``.
    Nothing is stored server side; a token is valid while the signature
    matches and ``exp`` is in the future.
    """

    def __init__(self, secret: str, *, ttl_days: int = 90, leeway_seconds: int = 0):
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret
        self.ttl = timedelta(days=ttl_days)
        self._leeway = leeway_seconds

    def issue(self, payload: dict, now: Optional[datetime] = None) -> str:
        issued = now or datetime.now(timezone.utc)
        claims = {
            "userId": str(payload["userId"]),
            "phone": payload["phone"],
            "isAdmin": bool(payload.get("isAdmin", False)),
            "iat": int(issued.timestamp()),
            "exp": int((issued + self.ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=_ALGORITHM)

    def validate(self, token: Any) -> Optional[dict]:
        """Decoded payload, or None for missing/malformed/forged/expired tokens."""
        if not token or not isinstance(token, str):
            return None
        try:
            data = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                leeway=self._leeway,
                options={"require": ["exp", "userId", "phone"]},
            )
        except jwt.InvalidTokenError:
            # ExpiredSignatureError and DecodeError are both InvalidTokenError
            return None
        return {
            "userId": str(data["userId"]),
            "phone": data["phone"],
            "isAdmin": data.get("isAdmin") is True,
            "exp": data["exp"],
        }
