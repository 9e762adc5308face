# models/notification.py
from __future__ import annotations

from db import db
from utils.clock import iso_z, utcnow

NOTIFICATION_TYPES = ("order", "system", "info")


class Notification(db.Model):
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_user_created", "user_id", "created_at"),
    )

    id               = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id          = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title_en         = db.Column(db.String(200), nullable=False)
    title_ar         = db.Column(db.String(200), nullable=False)
    message_en       = db.Column(db.String(1000), nullable=False)
    message_ar       = db.Column(db.String(1000), nullable=False)
    type             = db.Column(db.String(16), nullable=False, default="info")
    related_order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="SET NULL"), nullable=True)
    is_read          = db.Column(db.Boolean, nullable=False, default=False)
    created_at       = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "title": {"en": self.title_en, "ar": self.title_ar},
            "message": {"en": self.message_en, "ar": self.message_ar},
            "type": self.type,
            "relatedOrder": str(self.related_order_id) if self.related_order_id else None,
            "isRead": bool(self.is_read),
            "createdAt": iso_z(self.created_at),
        }
