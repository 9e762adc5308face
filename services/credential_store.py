# services/credential_store.py
from __future__ import annotations

from typing import Optional

from sqlalchemy import func

from db import db
from models.user import User
from models.verification_code import VerificationCode
from utils.clock import to_naive_utc, utcnow

__all__ = ["CredentialStore"]


class CredentialStore:
    """Users and one-time codes, as the login flow sees them."""

    # ── Users ───────────────────────────────────────────────────────────────
    def find_user_by_phone(self, phone: str) -> Optional[User]:
        if not phone:
            return None
        return User.query.filter_by(phone=phone).first()

    def find_user_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        return User.query.filter(func.lower(User.email) == email.strip().lower()).first()

    def create_user(self, **fields) -> User:
        user = User(**fields)
        db.session.add(user)
        db.session.commit()
        return user

    def record_login(self, user: User) -> None:
        user.last_login = utcnow()
        db.session.commit()

    # ── Verification codes ─────────────────────────────────────────────────
    def save_verification_code(self, *, phone: str, code: str, type: str, expires_at,
                               email: str | None = None, name: str | None = None,
                               company_name: str | None = None,
                               address: str | None = None) -> VerificationCode:
        # one live code per phone+type; older rows are dropped on save
        VerificationCode.query.filter_by(phone=phone, type=type).delete(synchronize_session=False)
        rec = VerificationCode(
            phone=phone,
            code=code,
            type=type,
            expires_at=to_naive_utc(expires_at),
            email=(email or "").lower() or None,
            name=name,
            company_name=company_name,
            address=address,
        )
        db.session.add(rec)
        db.session.commit()
        return rec

    def find_verification_code(self, phone: str, code: str, type: str) -> Optional[VerificationCode]:
        return (
            VerificationCode.query
            .filter_by(phone=phone, code=code, type=type)
            .order_by(VerificationCode.id.desc())
            .first()
        )

    def find_pending_code(self, phone: str, type: str) -> Optional[VerificationCode]:
        return (
            VerificationCode.query
            .filter_by(phone=phone, type=type)
            .order_by(VerificationCode.id.desc())
            .first()
        )

    def record_failed_attempt(self, phone: str, type: str) -> Optional[int]:
        """Bump ``attempts`` on the pending code; None when nothing is pending."""
        row = self.find_pending_code(phone, type)
        if row is None:
            return None
        row.attempts = (row.attempts or 0) + 1
        db.session.commit()
        return row.attempts

    def delete_verification_codes(self, phone: str, type: str) -> int:
        n = VerificationCode.query.filter_by(phone=phone, type=type).delete(synchronize_session=False)
        db.session.commit()
        return n

    def rollback(self) -> None:
        db.session.rollback()
