# services/orders.py
from __future__ import annotations

import base64
import binascii
from datetime import datetime

from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from db import db
from errors import ValidationError
from models.order import UNIT_TYPES, OrderCounter, OrderItem
from models.product import Product
from models.settings import PortalSettings
from utils.clock import utcnow

__all__ = [
    "next_order_number", "build_order_items", "edit_hours", "decode_purchase_order", "MAX_MESSAGE_LEN",
]

MAX_MESSAGE_LEN = 500


def next_order_number(now: datetime | None = None) -> str:
    """``STyyMMdd-NNNN`` from the per-day counter row (incremented in the DB)."""
    day = (now or utcnow()).strftime("%y%m%d")
    key = f"counter-{day}"

    for _ in range(3):
        res = db.session.execute(
            update(OrderCounter)
            .where(OrderCounter.id == key)
            .values(count=OrderCounter.count + 1)
        )
        if res.rowcount:
            break
        db.session.add(OrderCounter(id=key, count=1))
        try:
            db.session.flush()
            break
        except IntegrityError:
            # another request created today's row first
            db.session.rollback()
    else:
        raise RuntimeError(f"could not allocate order number for {key}")

    seq = db.session.execute(select(OrderCounter.count).where(OrderCounter.id == key)).scalar_one()
    return f"ST{day}-{seq:04d}"


def _product_id(raw) -> int | None:
    if isinstance(raw, dict):
        raw = raw.get("id") or raw.get("_id")
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def build_order_items(items, *, min_total: int | None = None) -> tuple[list[OrderItem], int]:
    """
    Validate ``[{product, quantity, unitType?}]`` and snapshot product names.

    Every product must exist and be available; quantities are positive
    integers and their sum must reach ``min_total``.
    """
    if min_total is None:
        min_total = int(current_app.config.get("MIN_ORDER_ITEMS", 2))
    if not isinstance(items, list) or not items:
        raise ValidationError("Order must contain items")

    built: list[OrderItem] = []
    total = 0
    for raw in items:
        if not isinstance(raw, dict):
            raise ValidationError("Invalid order item")
        pid = _product_id(raw.get("product"))
        try:
            qty = int(raw.get("quantity"))
        except (TypeError, ValueError):
            raise ValidationError("Invalid quantity")
        if qty < 1:
            raise ValidationError("Quantity must be at least 1")
        unit = raw.get("unitType") or "piece"
        if unit not in UNIT_TYPES:
            raise ValidationError("Invalid unit type")

        product = db.session.get(Product, pid) if pid is not None else None
        if product is None or not product.is_available:
            raise ValidationError(f"Product {raw.get('product')} is not available")

        built.append(OrderItem(
            product_id=product.id,
            name_en=product.name_en,
            name_ar=product.name_ar,
            quantity=qty,
            unit_type=unit,
        ))
        total += qty

    if total < min_total:
        raise ValidationError(f"Minimum order is {min_total} items")
    return built, total


def edit_hours() -> int:
    """Edit window length: the settings row if present, else ORDER_EDIT_HOURS."""
    row = PortalSettings.current()
    if row is not None:
        return int(row.edit_time_limit)
    return int(current_app.extensions["auth_settings"].order_edit_hours)


def decode_purchase_order(raw, *, max_bytes: int | None = None) -> tuple[str, str, bytes]:
    """
    ``{filename, contentType?, data}`` → ``(filename, content_type, bytes)``.

    ``data`` is base64, optionally as a ``data:<type>;base64,`` URL.
    """
    if max_bytes is None:
        max_bytes = int(current_app.config.get("MAX_ATTACHMENT_MB", 5)) * 1024 * 1024
    if not isinstance(raw, dict):
        raise ValidationError("Invalid purchase order file")

    filename = str(raw.get("filename") or "").strip()
    if not filename or len(filename) > 255:
        raise ValidationError("Purchase order filename is required")
    content_type = str(raw.get("contentType") or "").strip()

    data = str(raw.get("data") or "")
    if data.startswith("data:") and "," in data:
        header, data = data.split(",", 1)
        content_type = content_type or header[5:].split(";", 1)[0]
    try:
        blob = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Purchase order file must be base64 encoded")
    if not blob:
        raise ValidationError("Purchase order file is empty")
    if len(blob) > max_bytes:
        raise ValidationError(f"Purchase order file must be at most {max_bytes // (1024 * 1024)} MB")
    return filename, (content_type or "application/octet-stream")[:100], blob
