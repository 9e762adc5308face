# routes/orders.py
from __future__ import annotations

from io import BytesIO

from flask import Blueprint, current_app, g, jsonify, make_response, request, send_file

from auth_guard import require_auth
from db import db
from errors import Forbidden, MissingField, NotFound, ValidationError
from models.order import ORDER_STATUSES, Order
from services.edit_window import compute_deadline
from services.notify import notify_admins_new_order, notify_order_created, notify_order_received
from services.orders import (
    MAX_MESSAGE_LEN, build_order_items, decode_purchase_order, edit_hours, next_order_number,
)
from utils.clock import day_bounds, parse_day, to_naive_utc

__all__ = ["orders_bp"]
orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _load(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFound("Order not found")
    return order


def _check_owner_or_admin(order: Order) -> None:
    if not g.user.is_admin and order.customer_id != g.user.id:
        raise Forbidden("Access denied")


def _message(data: dict) -> str:
    msg = str(data.get("message") or "").strip()
    if len(msg) > MAX_MESSAGE_LEN:
        raise ValidationError(f"Message must be at most {MAX_MESSAGE_LEN} characters")
    return msg


@orders_bp.route("", methods=["GET"])
@require_auth
def list_orders():
    q = Order.query
    if not g.user.is_admin:
        q = q.filter(Order.customer_id == g.user.id)

    status = request.args.get("status")
    if status:
        if status not in ORDER_STATUSES:
            raise ValidationError("Invalid status")
        q = q.filter(Order.status == status)

    date_arg = request.args.get("date")
    if date_arg:
        day = parse_day(date_arg)
        if day is None:
            raise ValidationError("Invalid date, expected YYYY-MM-DD")
        start, end = day_bounds(day)
        q = q.filter(Order.created_at >= start, Order.created_at < end)

    orders = q.order_by(Order.created_at.desc(), Order.id.desc()).all()
    return jsonify(orders=[o.to_dict(with_customer=g.user.is_admin) for o in orders]), 200


@orders_bp.route("", methods=["POST"])
@require_auth
def create_order():
    data = request.get_json(silent=True) or {}
    items, total = build_order_items(data.get("items"))
    message = _message(data)
    attachment = decode_purchase_order(data["purchaseOrderFile"]) if data.get("purchaseOrderFile") else None

    user = g.user
    order = Order(
        order_number=next_order_number(),
        customer_id=user.id,
        customer_name=user.display_name,
        customer_phone=user.phone,
        total_items=total,
        status="new",
        message=message,
        can_edit=True,
        edit_deadline=to_naive_utc(compute_deadline(hours=edit_hours())),
    )
    order.items = items
    if attachment:
        order.attach_purchase_order(*attachment)
    order.add_history("created", user)
    db.session.add(order)
    db.session.flush()

    notify_order_created(order)
    notify_admins_new_order(order)
    db.session.commit()

    current_app.logger.info("[orders] created %s uid=%s items=%d", order.order_number, user.id, total)
    return jsonify(success=True, order=order.to_dict()), 201


@orders_bp.route("/download-file", methods=["GET"])
@require_auth
def download_purchase_order():
    raw_id = request.args.get("orderId")
    if not raw_id:
        raise MissingField("Order ID is required")
    try:
        order_id = int(raw_id)
    except ValueError:
        raise ValidationError("Invalid order ID format")

    order = _load(order_id)
    _check_owner_or_admin(order)
    if not order.po_filename or order.po_data is None:
        raise NotFound("No file attached to this order")

    resp = make_response(send_file(
        BytesIO(order.po_data),
        mimetype=order.po_content_type or "application/octet-stream",
        as_attachment=True,
        download_name=order.po_filename,
    ))
    resp.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    current_app.logger.info("[orders] file for %s downloaded by uid=%s", order.order_number, g.user.id)
    return resp


@orders_bp.route("/<int:order_id>", methods=["GET"])
@require_auth
def get_order(order_id: int):
    order = _load(order_id)
    _check_owner_or_admin(order)
    return jsonify(order=order.to_dict(with_customer=g.user.is_admin)), 200


@orders_bp.route("/<int:order_id>", methods=["PUT"])
@require_auth
def update_order(order_id: int):
    order = _load(order_id)
    _check_owner_or_admin(order)
    user = g.user
    is_admin = bool(user.is_admin)

    if not is_admin and not order.editable_by_owner():
        raise Forbidden("Order can no longer be edited")

    data = request.get_json(silent=True) or {}
    changes: list[str] = []

    if "items" in data:
        items, total = build_order_items(data.get("items"))
        order.items = items
        order.total_items = total
        changes.append("items")

    if "message" in data:
        msg = _message(data)
        if msg != (order.message or ""):
            order.message = msg
            changes.append("message")

    if "purchaseOrderFile" in data:
        if data["purchaseOrderFile"]:
            order.attach_purchase_order(*decode_purchase_order(data["purchaseOrderFile"]))
        else:
            order.clear_purchase_order()
        changes.append("purchase order file")

    action = "updated"
    new_status = data.get("status")
    if new_status is not None and new_status != order.status:
        if not is_admin:
            raise Forbidden("Only admins can change order status")
        if new_status not in ORDER_STATUSES:
            raise ValidationError("Invalid status")
        order.status = new_status
        changes.append(f"status: {new_status}")
        if new_status == "received":
            order.can_edit = False
            action = "received"
            notify_order_received(order)

    if not is_admin:
        # a customer edit restarts the window
        order.edit_deadline = to_naive_utc(compute_deadline(hours=edit_hours()))

    order.add_history(action, user, ", ".join(changes) or None)
    db.session.commit()

    current_app.logger.info("[orders] %s %s by uid=%s (%s)", action, order.order_number, user.id, ", ".join(changes) or "-")
    return jsonify(success=True, order=order.to_dict(with_customer=is_admin)), 200


@orders_bp.route("/<int:order_id>", methods=["DELETE"])
@require_auth
def delete_order(order_id: int):
    order = _load(order_id)
    _check_owner_or_admin(order)
    if not g.user.is_admin and not order.editable_by_owner():
        raise Forbidden("Order can no longer be deleted")

    number = order.order_number
    db.session.delete(order)
    db.session.commit()
    current_app.logger.info("[orders] deleted %s by uid=%s", number, g.user.id)
    return jsonify(success=True, message="Order deleted successfully"), 200
