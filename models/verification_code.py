# models/verification_code.py
from __future__ import annotations

from db import db
from utils.clock import utcnow

CODE_TYPES = ("signup", "login")


class VerificationCode(db.Model):
    __tablename__ = "verification_codes"
    __table_args__ = (
        db.Index("ix_verification_codes_phone_type", "phone", "type"),
    )

    id           = db.Column(db.Integer, primary_key=True, autoincrement=True)
    phone        = db.Column(db.String(32), nullable=False)
    email        = db.Column(db.String(254), nullable=True)
    code         = db.Column(db.String(8), nullable=False)
    type         = db.Column(db.String(16), nullable=False)          # 'signup' | 'login'
    expires_at   = db.Column(db.DateTime, nullable=False)
    attempts     = db.Column(db.Integer, nullable=False, default=0)

    # signup details, copied onto the user once the code is verified
    name         = db.Column(db.String(100), nullable=True)
    company_name = db.Column(db.String(100), nullable=True)
    address      = db.Column(db.String(500), nullable=True)

    created_at   = db.Column(db.DateTime, nullable=False, default=utcnow)
