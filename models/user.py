# models/user.py
from __future__ import annotations

from db import db
from utils.clock import iso_z, utcnow


class User(db.Model):
    __tablename__ = "users"

    id           = db.Column(db.Integer, primary_key=True, autoincrement=True)
    phone        = db.Column(db.String(32), nullable=False, unique=True, index=True)   # digits only
    name         = db.Column(db.String(100), nullable=True)
    email        = db.Column(db.String(254), nullable=True, index=True)
    company_name = db.Column(db.String(100), nullable=True)
    address      = db.Column(db.String(500), nullable=True)
    is_admin     = db.Column(db.Boolean, nullable=False, default=False, index=True)
    is_active    = db.Column(db.Boolean, nullable=False, default=True)
    last_login   = db.Column(db.DateTime, nullable=True)

    created_at   = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at   = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    orders = db.relationship("Order", back_populates="customer", lazy="dynamic")

    # ── Helpers ─────────────────────────────────────────────────────────────
    @property
    def display_name(self) -> str:
        return (self.name or "").strip() or self.phone

    def to_public(self) -> dict:
        """Fields safe to hand back after login."""
        return {
            "id": str(self.id),
            "phone": self.phone,
            "name": self.name,
            "email": self.email,
            "isAdmin": bool(self.is_admin),
        }

    def to_profile(self) -> dict:
        data = self.to_public()
        data.update({
            "companyName": self.company_name or "",
            "address": self.address or "",
            "isActive": bool(self.is_active),
            "lastLogin": iso_z(self.last_login),
            "createdAt": iso_z(self.created_at),
        })
        return data
