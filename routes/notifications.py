# routes/notifications.py
from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from auth_guard import require_admin, require_auth
from db import db
from errors import Forbidden, MissingField, NotFound, ValidationError
from models.notification import Notification
from models.order import Order
from models.user import User
from services.notify import create_notification

__all__ = ["notifications_bp"]
notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")

PAGE_SIZE = 50


def _own(notification_id: int) -> Notification:
    n = db.session.get(Notification, notification_id)
    if n is None:
        raise NotFound("Notification not found")
    if n.user_id != g.user.id:
        raise Forbidden("Access denied")
    return n


@notifications_bp.route("", methods=["GET"])
@require_auth
def list_notifications():
    base = Notification.query.filter_by(user_id=g.user.id)
    rows = base.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(PAGE_SIZE).all()
    unread = base.filter(Notification.is_read.is_(False)).count()
    return jsonify(notifications=[n.to_dict() for n in rows], totalUnread=unread), 200


@notifications_bp.route("", methods=["POST"])
@require_admin
def create():
    data = request.get_json(silent=True) or {}
    title = data.get("title") if isinstance(data.get("title"), dict) else {}
    message = data.get("message") if isinstance(data.get("message"), dict) else {}
    try:
        user_id = int(data.get("userId"))
    except (TypeError, ValueError):
        raise MissingField("userId is required")
    if not (title.get("en") and title.get("ar") and message.get("en") and message.get("ar")):
        raise MissingField("Title and message are required in both languages")
    if db.session.get(User, user_id) is None:
        raise NotFound("User not found")

    related = data.get("relatedOrder")
    if related not in (None, ""):
        try:
            related = int(related)
        except (TypeError, ValueError):
            raise ValidationError("relatedOrder must be an order id")
        if db.session.get(Order, related) is None:
            raise NotFound("Order not found")
    else:
        related = None
    n = create_notification(
        user_id=user_id,
        title_en=title["en"],
        title_ar=title["ar"],
        message_en=message["en"],
        message_ar=message["ar"],
        type=data.get("type") or "info",
        related_order_id=related,
    )
    db.session.commit()
    return jsonify(success=True, notification=n.to_dict()), 201


@notifications_bp.route("/<int:notification_id>", methods=["PUT"])
@require_auth
def mark(notification_id: int):
    n = _own(notification_id)
    data = request.get_json(silent=True) or {}
    n.is_read = bool(data.get("isRead", True))
    db.session.commit()
    return jsonify(success=True, notification=n.to_dict()), 200


@notifications_bp.route("/<int:notification_id>", methods=["DELETE"])
@require_auth
def delete(notification_id: int):
    n = _own(notification_id)
    db.session.delete(n)
    db.session.commit()
    return jsonify(success=True, message="Notification deleted"), 200
