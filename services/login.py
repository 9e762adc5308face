# services/login.py
"""
Phone + emailed-code login.

    start_login(phone, cookie)
        ├─ unknown / inactive / no email  → error
        ├─ device cookie trusts this phone → session (no code)
        └─ else → store 4-digit code (30 min) and email it
    verify_login(phone, code)
        ├─ wrong code → attempts += 1; at the limit the code is discarded (429)
        └─ exact {phone, code, "login"} match, not expired → consume → session

Signup runs the same code cycle with type "signup" and creates the user on
verification. Cookies are set by the route layer from the returned result.
"""
from __future__ import annotations

import logging
import secrets
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from config import AuthSettings
from errors import (
    Conflict, ExpiredCode, InactiveAccount, InternalError, InvalidCode,
    MissingEmail, MissingField, NotRegistered, PortalError, TooManyAttempts,
)
from services.device_trust import DeviceTrustManager
from services.tokens import TokenIssuer
from utils.phone import format_phone as _default_format_phone

__all__ = ["LoginFlow", "LoginResult", "PendingCode", "generate_code"]

CODE_DIGITS = 4


def generate_code() -> str:
    return f"{secrets.randbelow(10 ** CODE_DIGITS):0{CODE_DIGITS}d}"


@dataclass
class LoginResult:
    phone: str
    needs_verification: bool
    user: Optional[dict] = None
    email: Optional[str] = None
    token: Optional[str] = None
    created: bool = False

    def to_json(self) -> dict:
        body = {"success": True, "needsVerification": self.needs_verification}
        if self.user is not None:
            body["user"] = self.user
        if self.needs_verification:
            body["email"] = self.email
            body["message"] = "Verification code sent to your email"
        return body


@dataclass(frozen=True)
class PendingCode:
    """A verification code row copied into plain values."""

    phone: str
    type: str
    expires_at: datetime
    attempts: int = 0
    email: Optional[str] = None
    name: Optional[str] = None
    company_name: Optional[str] = None
    address: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "PendingCode":
        return cls(
            phone=row.phone,
            type=row.type,
            expires_at=row.expires_at,
            attempts=row.attempts or 0,
            email=row.email,
            name=row.name,
            company_name=row.company_name,
            address=row.address,
        )


class LoginFlow:
    def __init__(self, *, store, mailer, tokens: TokenIssuer, device_trust: DeviceTrustManager,
                 settings: AuthSettings, format_phone: Callable[[str], str] = _default_format_phone,
                 logger: Optional[logging.Logger] = None,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.store = store
        self.mailer = mailer
        self.tokens = tokens
        self.device_trust = device_trust
        self.settings = settings
        self.format_phone = format_phone
        self.log = logger or logging.getLogger(__name__)
        self.clock = clock

    # ── helpers ─────────────────────────────────────────────────────────────
    @contextmanager
    def _internal(self, what: str):
        """Store/mailer failures become a generic 500; the cause is logged."""
        try:
            yield
        except PortalError:
            raise
        except Exception as e:
            self.log.exception("[login] %s failed", what)
            raise InternalError() from e

    def _normalize(self, raw_phone) -> str:
        phone = self.format_phone(raw_phone or "")
        if not phone:
            raise MissingField("Phone number is required")
        return phone

    def _active_user(self, phone: str):
        with self._internal("user lookup"):
            user = self.store.find_user_by_phone(phone)
        if user is None:
            raise NotRegistered()
        if not user.is_active:
            raise InactiveAccount()
        return user

    def _expired(self, expires_at: datetime) -> bool:
        exp = expires_at if expires_at.tzinfo else expires_at.replace(tzinfo=timezone.utc)
        return self.clock() > exp

    def _send_code(self, *, phone: str, email: str, name: str, type: str,
                   company_name: str | None = None, address: str | None = None) -> None:
        code = generate_code()
        expires_at = self.clock() + timedelta(minutes=self.settings.code_ttl_minutes)
        with self._internal("saving verification code"):
            self.store.save_verification_code(
                phone=phone, email=email, code=code, type=type, expires_at=expires_at,
                name=name, company_name=company_name, address=address,
            )
        if self.settings.log_verification_codes:
            self.log.info("[login] dev code for %s (%s): %s", phone, type, code)

        try:
            self.mailer.send_verification_email(email, code, name)
        except Exception as e:
            self.log.exception("[login] sending %s code to %s failed", type, email)
            # no pending code the user can never receive
            try:
                self.store.delete_verification_codes(phone, type)
            except Exception:
                self.log.exception("[login] rollback of %s code for %s failed", type, phone)
            raise InternalError("Failed to send verification email") from e
        self.log.info("[login] %s code emailed for phone=%s", type, phone)

    def _count_failure(self, phone: str, type: str) -> None:
        with self._internal("attempt tracking"):
            attempts = self.store.record_failed_attempt(phone, type)
            locked = attempts is not None and attempts >= self.settings.code_max_attempts
            if locked:
                self.store.delete_verification_codes(phone, type)
        if locked:
            self.log.warning("[login] %s code for phone=%s discarded after %s wrong attempts",
                             type, phone, attempts)
            raise TooManyAttempts()

    def _consume_code(self, phone: str, code, type: str) -> PendingCode:
        code = str(code or "").strip()
        if not code:
            raise MissingField("Phone and code are required")
        with self._internal("code lookup"):
            row = self.store.find_verification_code(phone, code, type)
        if row is None:
            self._count_failure(phone, type)
            raise InvalidCode()
        with self._internal("code consumption"):
            # the row is gone once deleted; keep what signup still needs
            pending = PendingCode.from_row(row)
            self.store.delete_verification_codes(phone, type)
        if pending.attempts >= self.settings.code_max_attempts:
            raise TooManyAttempts()
        if self._expired(pending.expires_at):
            raise ExpiredCode()
        return pending

    def _session_for(self, user, *, created: bool = False) -> LoginResult:
        with self._internal("recording login"):
            self.store.record_login(user)
        token = self.tokens.issue(
            {"userId": user.id, "phone": user.phone, "isAdmin": bool(user.is_admin)},
            now=self.clock(),
        )
        return LoginResult(
            phone=user.phone,
            needs_verification=False,
            user=user.to_public(),
            token=token,
            created=created,
        )

    # ── login ───────────────────────────────────────────────────────────────
    def start_login(self, raw_phone, trust_cookie: Optional[str] = None) -> LoginResult:
        phone = self._normalize(raw_phone)
        user = self._active_user(phone)
        if not user.email:
            raise MissingEmail()

        if self.device_trust.is_trusted(phone, trust_cookie):
            self.log.info("[login] trusted device for user=%s, skipping code", user.id)
            return self._session_for(user)

        self._send_code(
            phone=phone, email=user.email.lower(), name=user.name or user.email, type="login",
            company_name=user.company_name, address=user.address,
        )
        return LoginResult(phone=phone, needs_verification=True, email=user.email)

    def resend_login_code(self, raw_phone) -> LoginResult:
        phone = self._normalize(raw_phone)
        user = self._active_user(phone)
        if not user.email:
            raise MissingEmail()
        self._send_code(
            phone=phone, email=user.email.lower(), name=user.name or user.email, type="login",
            company_name=user.company_name, address=user.address,
        )
        return LoginResult(phone=phone, needs_verification=True, email=user.email)

    def verify_login(self, raw_phone, code) -> LoginResult:
        if not raw_phone or not code:
            raise MissingField("Phone and code are required")
        phone = self._normalize(raw_phone)
        with self._internal("user lookup"):
            user = self.store.find_user_by_phone(phone)
        if user is None:
            raise NotRegistered("Phone number not registered")
        if not user.is_active:
            raise InactiveAccount()
        self._consume_code(phone, code, "login")
        self.log.info("[login] code verified for user=%s", user.id)
        return self._session_for(user)

    # ── signup ──────────────────────────────────────────────────────────────
    def start_signup(self, *, phone, company_name, name, email, address) -> LoginResult:
        fields = (phone, company_name, name, email, address)
        if not all(str(f or "").strip() for f in fields):
            raise MissingField("All fields are required")
        phone = self._normalize(phone)
        email = str(email).strip().lower()

        with self._internal("duplicate check"):
            phone_taken = self.store.find_user_by_phone(phone) is not None
            email_taken = self.store.find_user_by_email(email) is not None
        if phone_taken:
            raise Conflict("Phone number already registered")
        if email_taken:
            raise Conflict("Email already registered")

        self._send_code(
            phone=phone, email=email, name=str(name).strip(), type="signup",
            company_name=str(company_name).strip(), address=str(address).strip(),
        )
        return LoginResult(phone=phone, needs_verification=True, email=email)

    def resend_signup_code(self, raw_phone) -> LoginResult:
        phone = self._normalize(raw_phone)
        with self._internal("pending signup lookup"):
            pending = self.store.find_pending_code(phone, "signup")
        if pending is None or not pending.email:
            raise NotRegistered("No pending signup for this phone number")
        self._send_code(
            phone=phone, email=pending.email, name=pending.name or pending.email, type="signup",
            company_name=pending.company_name, address=pending.address,
        )
        return LoginResult(phone=phone, needs_verification=True, email=pending.email)

    def verify_signup(self, raw_phone, code) -> LoginResult:
        if not raw_phone or not code:
            raise MissingField("Phone and code are required")
        phone = self._normalize(raw_phone)
        pending = self._consume_code(phone, code, "signup")

        with self._internal("duplicate check"):
            existing = self.store.find_user_by_phone(phone)
        if existing is not None:
            raise Conflict("Phone number already registered")

        with self._internal("user creation"):
            user = self.store.create_user(
                phone=phone,
                name=pending.name or phone,
                email=pending.email or "",
                company_name=pending.company_name or "",
                address=pending.address or "",
                is_admin=False,
                is_active=True,
            )
        self.log.info("[login] signup verified, user=%s created", user.id)
        return self._session_for(user, created=True)
