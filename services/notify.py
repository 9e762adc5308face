# services/notify.py
from __future__ import annotations

from flask import current_app

from db import db
from models.notification import NOTIFICATION_TYPES, Notification
from models.user import User

__all__ = ["create_notification", "notify_order_created", "notify_order_received", "notify_admins_new_order"]


def create_notification(*, user_id: int, title_en: str, title_ar: str,
                        message_en: str, message_ar: str, type: str = "info",
                        related_order_id: int | None = None) -> Notification:
    """Adds a notification to the session; the caller commits."""
    if type not in NOTIFICATION_TYPES:
        type = "info"
    n = Notification(
        user_id=user_id,
        title_en=title_en,
        title_ar=title_ar,
        message_en=message_en,
        message_ar=message_ar,
        type=type,
        related_order_id=related_order_id,
    )
    db.session.add(n)
    return n


def notify_order_created(order) -> Notification:
    return create_notification(
        user_id=order.customer_id,
        title_en="Order Created",
        title_ar="تم إنشاء الطلب",
        message_en=f"Your order {order.order_number} has been created successfully",
        message_ar=f"تم إنشاء طلبك {order.order_number} بنجاح",
        type="order",
        related_order_id=order.id,
    )


def notify_order_received(order) -> Notification:
    return create_notification(
        user_id=order.customer_id,
        title_en="Order Received",
        title_ar="تم استلام الطلب",
        message_en=f"Your order {order.order_number} has been received",
        message_ar=f"تم استلام طلبك {order.order_number}",
        type="order",
        related_order_id=order.id,
    )


def notify_admins_new_order(order) -> int:
    admins = User.query.filter_by(is_admin=True, is_active=True).all()
    for a in admins:
        create_notification(
            user_id=a.id,
            title_en="New Order",
            title_ar="طلب جديد",
            message_en=f"New order {order.order_number} from {order.customer_name}",
            message_ar=f"طلب جديد {order.order_number} من {order.customer_name}",
            type="order",
            related_order_id=order.id,
        )
    current_app.logger.info("[orders] %d admin(s) notified of %s", len(admins), order.order_number)
    return len(admins)
