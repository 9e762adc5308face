# routes/admin.py
from __future__ import annotations

import json

from flask import Blueprint, Response, current_app, g, jsonify, request
from sqlalchemy import func, or_

from auth_guard import require_admin
from db import db
from errors import Conflict, Forbidden, MissingField, NotFound, ValidationError
from models.favorite_order import FavoriteOrder
from models.notification import Notification
from models.order import ORDER_STATUSES, Order
from models.product import Product
from models.settings import BACKUP_FREQUENCIES, PortalSettings
from models.user import User
from services.reports import build_report, customer_product_matrix, matrix_csv, order_stats, report_range
from utils.clock import day_bounds, iso_z, parse_day, utcnow
from utils.phone import format_phone

__all__ = ["admin_bp"]
admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------
def _page_args(default_limit: int = 20) -> tuple[int, int]:
    page = max(request.args.get("page", type=int, default=1) or 1, 1)
    limit = min(max(request.args.get("limit", type=int, default=default_limit) or default_limit, 1), 100)
    return page, limit


def _day_arg(name: str):
    raw = request.args.get(name)
    if not raw:
        return None
    day = parse_day(raw)
    if day is None:
        raise ValidationError(f"Invalid {name}, expected YYYY-MM-DD")
    return day


def _as_bool(x) -> bool:
    if isinstance(x, bool):
        return x
    return str(x).strip().lower() in {"1", "true", "yes", "on"}


def _int_in(value, lo: int, hi: int, label: str) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number")
    if not lo <= n <= hi:
        raise ValidationError(f"{label} must be between {lo} and {hi}")
    return n


def _customer(user_id: int) -> User:
    u = db.session.get(User, user_id)
    if u is None:
        raise NotFound("Customer not found")
    if u.is_admin:
        raise Forbidden("Admin accounts cannot be modified here")
    return u


def _admin(user_id: int) -> User:
    u = db.session.get(User, user_id)
    if u is None or not u.is_admin:
        raise NotFound("Admin not found")
    return u


def _ensure_phone_free(phone: str, exclude_id: int | None = None) -> None:
    q = User.query.filter(User.phone == phone)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    if q.first() is not None:
        raise Conflict("Phone number already registered")


# -------------------------------------------------------------------
# Dashboard
# -------------------------------------------------------------------
@admin_bp.route("/stats", methods=["GET"])
@require_admin
def stats():
    mode = (request.args.get("filter") or "today").lower()
    if mode == "all":
        start = end = None
    elif mode == "custom":
        day = _day_arg("date")
        if day is None:
            raise MissingField("date is required for a custom filter")
        start, end = day_bounds(day)
    else:
        start, end = day_bounds(utcnow().date())
    return jsonify(stats=order_stats(start, end), filter=mode), 200


@admin_bp.route("/orders", methods=["GET"])
@require_admin
def orders():
    page, limit = _page_args()
    q = Order.query

    status = request.args.get("status")
    if status and status != "all":
        if status not in ORDER_STATUSES:
            raise ValidationError("Invalid status")
        q = q.filter(Order.status == status)

    search = (request.args.get("search") or "").strip()
    if search:
        q = q.filter(Order.order_number.ilike(f"%{search}%"))

    start_day, end_day = _day_arg("startDate"), _day_arg("endDate")
    if start_day:
        q = q.filter(Order.created_at >= day_bounds(start_day)[0])
    if end_day:
        q = q.filter(Order.created_at < day_bounds(end_day)[1])

    customer_id = request.args.get("customerId", type=int)
    if customer_id:
        q = q.filter(Order.customer_id == customer_id)

    total = q.count()
    rows = (
        q.order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return jsonify(
        orders=[o.to_dict(with_customer=True) for o in rows],
        pagination={
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    ), 200


@admin_bp.route("/reports", methods=["GET"])
@require_admin
def reports():
    start, end = report_range(_day_arg("startDate"), _day_arg("endDate"))
    return jsonify(report=build_report(start, end)), 200


@admin_bp.route("/reports/export.csv", methods=["GET"])
@require_admin
def reports_export():
    start, end = report_range(_day_arg("startDate"), _day_arg("endDate"))
    orders = Order.query.filter(Order.created_at >= start, Order.created_at < end).all()
    body = matrix_csv(customer_product_matrix(orders))
    filename = f"orders-{start:%Y%m%d}-{end:%Y%m%d}.csv"
    current_app.logger.info("[admin] report export uid=%s rows=%d", g.user.id, len(orders))
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


# -------------------------------------------------------------------
# Settings
# -------------------------------------------------------------------
@admin_bp.route("/settings", methods=["GET"])
@require_admin
def get_settings():
    row = PortalSettings.get_or_create(
        edit_time_limit=current_app.extensions["auth_settings"].order_edit_hours,
    )
    return jsonify(settings=row.to_dict()), 200


@admin_bp.route("/settings", methods=["PUT"])
@require_admin
def update_settings():
    row = PortalSettings.get_or_create(
        edit_time_limit=current_app.extensions["auth_settings"].order_edit_hours,
    )
    data = request.get_json(silent=True) or {}
    notif = data.get("notifications") or {}
    orders_cfg = data.get("orders") or {}
    system = data.get("system") or {}

    if "soundEnabled" in notif:
        row.sound_enabled = _as_bool(notif["soundEnabled"])
    if "emailEnabled" in notif:
        row.email_enabled = _as_bool(notif["emailEnabled"])
    if "smsEnabled" in notif:
        row.sms_enabled = _as_bool(notif["smsEnabled"])

    if "editTimeLimit" in orders_cfg:
        row.edit_time_limit = _int_in(orders_cfg["editTimeLimit"], 1, 24, "editTimeLimit")
    if "autoArchiveDays" in orders_cfg:
        row.auto_archive_days = _int_in(orders_cfg["autoArchiveDays"], 7, 365, "autoArchiveDays")

    if "maintenanceMode" in system:
        row.maintenance_mode = _as_bool(system["maintenanceMode"])
    if "backupEnabled" in system:
        row.backup_enabled = _as_bool(system["backupEnabled"])
    if "backupFrequency" in system:
        freq = str(system["backupFrequency"])
        if freq not in BACKUP_FREQUENCIES:
            raise ValidationError("Invalid backupFrequency")
        row.backup_frequency = freq

    db.session.commit()
    current_app.logger.info("[admin] settings updated by uid=%s", g.user.id)
    return jsonify(success=True, settings=row.to_dict()), 200


# -------------------------------------------------------------------
# Customers
# -------------------------------------------------------------------
@admin_bp.route("/customers", methods=["GET"])
@require_admin
def list_customers():
    page, limit = _page_args()
    q = User.query.filter(User.is_admin.is_(False))

    search = (request.args.get("search") or "").strip()
    if search:
        like = f"%{search}%"
        q = q.filter(or_(
            User.name.ilike(like),
            User.phone.ilike(like),
            User.email.ilike(like),
            User.company_name.ilike(like),
        ))

    status = (request.args.get("status") or "all").lower()
    if status == "active":
        q = q.filter(User.is_active.is_(True))
    elif status == "inactive":
        q = q.filter(User.is_active.is_(False))

    total = q.count()
    users = q.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()

    ids = [u.id for u in users]
    counts = dict(
        db.session.query(Order.customer_id, func.count(Order.id))
        .filter(Order.customer_id.in_(ids))
        .group_by(Order.customer_id)
        .all()
    ) if ids else {}

    items = []
    for u in users:
        d = u.to_profile()
        d["orderCount"] = int(counts.get(u.id, 0))
        items.append(d)

    return jsonify(
        customers=items,
        pagination={"page": page, "limit": limit, "total": total, "pages": (total + limit - 1) // limit},
    ), 200


@admin_bp.route("/customers", methods=["POST"])
@require_admin
def create_customer():
    data = request.get_json(silent=True) or {}
    phone = format_phone(data.get("phone"))
    name = str(data.get("name") or "").strip()
    if not phone or not name:
        raise MissingField("Phone and name are required")
    _ensure_phone_free(phone)

    u = User(
        phone=phone,
        name=name,
        email=str(data.get("email") or "").strip().lower() or None,
        company_name=str(data.get("companyName") or "").strip(),
        address=str(data.get("address") or "").strip(),
        is_admin=False,
        is_active=_as_bool(data.get("isActive", True)),
    )
    db.session.add(u)
    db.session.commit()
    current_app.logger.info("[admin] customer created id=%s by uid=%s", u.id, g.user.id)
    return jsonify(success=True, customer=u.to_profile()), 201


@admin_bp.route("/customers/<int:user_id>", methods=["PUT", "PATCH"])
@require_admin
def update_customer(user_id: int):
    u = _customer(user_id)
    data = request.get_json(silent=True) or {}

    if "phone" in data:
        phone = format_phone(data.get("phone"))
        if not phone:
            raise MissingField("Phone number is required")
        _ensure_phone_free(phone, exclude_id=u.id)
        u.phone = phone
    if "name" in data:
        u.name = str(data.get("name") or "").strip()
    if "email" in data:
        u.email = str(data.get("email") or "").strip().lower() or None
    if "companyName" in data:
        u.company_name = str(data.get("companyName") or "").strip()
    if "address" in data:
        u.address = str(data.get("address") or "").strip()
    if "isActive" in data:
        u.is_active = _as_bool(data.get("isActive"))

    db.session.commit()
    current_app.logger.info("[admin] customer updated id=%s by uid=%s", u.id, g.user.id)
    return jsonify(success=True, customer=u.to_profile()), 200


@admin_bp.route("/customers/<int:user_id>", methods=["DELETE"])
@require_admin
def delete_customer(user_id: int):
    u = _customer(user_id)
    orders = Order.query.filter_by(customer_id=u.id).count()
    if orders:
        raise Conflict(
            "Customer has orders and cannot be deleted. Set isActive to false instead.",
            extra={"orderCount": orders},
        )
    for f in FavoriteOrder.query.filter_by(customer_id=u.id).all():
        db.session.delete(f)
    Notification.query.filter_by(user_id=u.id).delete(synchronize_session=False)
    db.session.delete(u)
    db.session.commit()
    current_app.logger.info("[admin] customer deleted id=%s by uid=%s", user_id, g.user.id)
    return jsonify(success=True, message="Customer deleted successfully"), 200


# -------------------------------------------------------------------
# Admin accounts
# -------------------------------------------------------------------
@admin_bp.route("/admins", methods=["GET"])
@require_admin
def list_admins():
    rows = User.query.filter(User.is_admin.is_(True)).order_by(User.created_at.asc()).all()
    return jsonify(admins=[u.to_profile() for u in rows]), 200


@admin_bp.route("/admins", methods=["POST"])
@require_admin
def create_admin():
    data = request.get_json(silent=True) or {}
    phone = format_phone(data.get("phone"))
    name = str(data.get("name") or "").strip()
    email = str(data.get("email") or "").strip().lower()
    if not phone or not name or not email:
        raise MissingField("Phone, name and email are required")
    _ensure_phone_free(phone)

    u = User(phone=phone, name=name, email=email, is_admin=True, is_active=True)
    db.session.add(u)
    db.session.commit()
    current_app.logger.info("[admin] admin created id=%s by uid=%s", u.id, g.user.id)
    return jsonify(success=True, admin=u.to_profile()), 201


@admin_bp.route("/admins/<int:user_id>", methods=["PUT"])
@require_admin
def update_admin(user_id: int):
    u = _admin(user_id)
    data = request.get_json(silent=True) or {}

    if "name" in data:
        u.name = str(data.get("name") or "").strip()
    if "email" in data:
        email = str(data.get("email") or "").strip().lower()
        if not email:
            raise MissingField("Email is required")
        u.email = email
    if "phone" in data:
        phone = format_phone(data.get("phone"))
        if not phone:
            raise MissingField("Phone number is required")
        _ensure_phone_free(phone, exclude_id=u.id)
        u.phone = phone
    if "isActive" in data:
        active = _as_bool(data.get("isActive"))
        if not active and u.id == g.user.id:
            raise Forbidden("You cannot deactivate your own account")
        u.is_active = active

    db.session.commit()
    return jsonify(success=True, admin=u.to_profile()), 200


@admin_bp.route("/admins/<int:user_id>", methods=["DELETE"])
@require_admin
def delete_admin(user_id: int):
    u = _admin(user_id)
    if u.id == g.user.id:
        raise Forbidden("You cannot delete your own account")
    if User.query.filter(User.is_admin.is_(True)).count() <= 1:
        raise Forbidden("Cannot delete the last admin")

    Notification.query.filter_by(user_id=u.id).delete(synchronize_session=False)
    db.session.delete(u)
    db.session.commit()
    current_app.logger.info("[admin] admin deleted id=%s by uid=%s", user_id, g.user.id)
    return jsonify(success=True, message="Admin deleted successfully"), 200


# -------------------------------------------------------------------
# Backup
# -------------------------------------------------------------------
@admin_bp.route("/backup", methods=["POST"])
@require_admin
def backup():
    now = utcnow()
    payload = {
        "createdAt": iso_z(now),
        "orders": [o.to_dict() for o in Order.query.order_by(Order.id).all()],
        "users": [u.to_profile() for u in User.query.order_by(User.id).all()],
        "products": [p.to_dict() for p in Product.query.order_by(Product.id).all()],
        "favorites": [f.to_dict() for f in FavoriteOrder.query.order_by(FavoriteOrder.id).all()],
    }
    current_app.logger.info(
        "[admin] backup by uid=%s orders=%d users=%d",
        g.user.id, len(payload["orders"]), len(payload["users"]),
    )
    return Response(
        json.dumps(payload, ensure_ascii=False),
        mimetype="application/json",
        headers={"Content-Disposition": f"attachment; filename=backup-{now:%Y%m%d-%H%M%S}.json"},
    )
