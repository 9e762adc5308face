# services/device_trust.py
"""
Device-trust cookie ("this browser already verified phone X").

The cookie value is a signed, versioned payload::

    {"v": 1, "phone": "<digits>", "verified": true, "issuedAt": <epoch s>}

signed with itsdangerous under its own salt. A value only trusts the exact
phone it was issued for; any decode error, bad signature, expiry, unknown
version or phone mismatch means "not trusted".
"""
from __future__ import annotations

import time
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

__all__ = ["DeviceTrustManager", "TRUST_COOKIE", "TRUST_SCHEMA_VERSION"]

TRUST_COOKIE = "auth-verified"
TRUST_SCHEMA_VERSION = 1
SALT_DEVICE_TRUST = "device-trust-v1"


class DeviceTrustManager:
    def __init__(self, secret: str, *, max_age: int = 90 * 24 * 60 * 60, secure: bool = False):
        self._serializer = URLSafeTimedSerializer(secret, salt=SALT_DEVICE_TRUST)
        self.max_age = max_age
        self.secure = secure

    def encode(self, phone: str) -> str:
        return self._serializer.dumps({
            "v": TRUST_SCHEMA_VERSION,
            "phone": phone,
            "verified": True,
            "issuedAt": int(time.time()),
        })

    def decode(self, cookie_value: Optional[str]) -> Optional[dict]:
        if not cookie_value:
            return None
        try:
            data = self._serializer.loads(cookie_value, max_age=self.max_age)
        except (BadSignature, SignatureExpired):
            return None
        if not isinstance(data, dict) or data.get("v") != TRUST_SCHEMA_VERSION:
            return None
        return data

    def is_trusted(self, phone: str, cookie_value: Optional[str]) -> bool:
        if not phone:
            return False
        data = self.decode(cookie_value)
        if data is None:
            return False
        return data.get("verified") is True and data.get("phone") == phone

    def mark_trusted(self, phone: str, response) -> None:
        # overwrites any marker for a previous phone on this browser
        response.set_cookie(
            TRUST_COOKIE,
            self.encode(phone),
            max_age=self.max_age,
            httponly=True,
            secure=self.secure,
            samesite="Lax",
            path="/",
        )

    def clear(self, response) -> None:
        response.delete_cookie(TRUST_COOKIE, path="/", secure=self.secure, httponly=True, samesite="Lax")
