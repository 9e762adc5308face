# models/settings.py
from __future__ import annotations

from db import db
from utils.clock import utcnow

BACKUP_FREQUENCIES = ("daily", "weekly", "monthly")


class PortalSettings(db.Model):
    """Single-row admin settings."""
    __tablename__ = "settings"

    id                = db.Column(db.Integer, primary_key=True)
    sound_enabled     = db.Column(db.Boolean, nullable=False, default=True)
    email_enabled     = db.Column(db.Boolean, nullable=False, default=False)
    sms_enabled       = db.Column(db.Boolean, nullable=False, default=False)
    edit_time_limit   = db.Column(db.Integer, nullable=False, default=2)      # hours, 1..24
    auto_archive_days = db.Column(db.Integer, nullable=False, default=30)     # 7..365
    maintenance_mode  = db.Column(db.Boolean, nullable=False, default=False)
    backup_enabled    = db.Column(db.Boolean, nullable=False, default=True)
    backup_frequency  = db.Column(db.String(16), nullable=False, default="daily")
    updated_at        = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @classmethod
    def current(cls) -> "PortalSettings | None":
        return cls.query.order_by(cls.id).first()

    @classmethod
    def get_or_create(cls, *, edit_time_limit: int = 2) -> "PortalSettings":
        row = cls.current()
        if row is None:
            row = cls(edit_time_limit=edit_time_limit)
            db.session.add(row)
            db.session.commit()
        return row

    def to_dict(self) -> dict:
        return {
            "notifications": {
                "soundEnabled": self.sound_enabled,
                "emailEnabled": self.email_enabled,
                "smsEnabled": self.sms_enabled,
            },
            "orders": {
                "editTimeLimit": self.edit_time_limit,
                "autoArchiveDays": self.auto_archive_days,
            },
            "system": {
                "maintenanceMode": self.maintenance_mode,
                "backupEnabled": self.backup_enabled,
                "backupFrequency": self.backup_frequency,
            },
        }
