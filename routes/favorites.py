# routes/favorites.py
from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from auth_guard import require_auth
from db import db
from errors import Forbidden, MissingField, NotFound, ValidationError
from models.favorite_order import FavoriteItem, FavoriteOrder
from models.product import Product

__all__ = ["favorites_bp"]
favorites_bp = Blueprint("favorites", __name__, url_prefix="/api/favorites")

MAX_NAME_LEN = 50


def _customer_only():
    if g.user.is_admin:
        raise Forbidden("Favorites are for customers only")


@favorites_bp.route("", methods=["GET"])
@require_auth
def list_favorites():
    _customer_only()
    rows = (
        FavoriteOrder.query
        .filter_by(customer_id=g.user.id)
        .order_by(FavoriteOrder.created_at.desc(), FavoriteOrder.id.desc())
        .all()
    )
    return jsonify(favorites=[f.to_dict() for f in rows]), 200


@favorites_bp.route("", methods=["POST"])
@require_auth
def create_favorite():
    _customer_only()
    data = request.get_json(silent=True) or {}

    name = str(data.get("name") or "").strip()
    items = data.get("items")
    if not name or not isinstance(items, list) or not items:
        raise MissingField("Name and items are required")
    if len(name) > MAX_NAME_LEN:
        raise ValidationError(f"Name must be at most {MAX_NAME_LEN} characters")

    limit = int(current_app.config.get("MAX_FAVORITES", 10))
    if FavoriteOrder.query.filter_by(customer_id=g.user.id).count() >= limit:
        raise ValidationError(f"You can save at most {limit} favorite orders")

    fav = FavoriteOrder(customer_id=g.user.id, name=name)
    total = 0
    for raw in items:
        if not isinstance(raw, dict):
            raise ValidationError("Invalid item")
        ref = raw.get("product")
        if isinstance(ref, dict):
            ref = ref.get("id")
        try:
            pid, qty = int(ref), int(raw.get("quantity"))
        except (TypeError, ValueError):
            raise ValidationError("Invalid item")
        if qty < 1:
            raise ValidationError("Quantity must be at least 1")
        if db.session.get(Product, pid) is None:
            raise ValidationError(f"Product {ref} not found")
        fav.items.append(FavoriteItem(product_id=pid, quantity=qty))
        total += qty
    fav.total_items = total

    db.session.add(fav)
    db.session.commit()
    current_app.logger.info("[orders] favorite saved id=%s uid=%s", fav.id, g.user.id)
    return jsonify(success=True, favorite=fav.to_dict()), 201


@favorites_bp.route("/<int:favorite_id>", methods=["DELETE"])
@require_auth
def delete_favorite(favorite_id: int):
    _customer_only()
    fav = db.session.get(FavoriteOrder, favorite_id)
    if fav is None:
        raise NotFound("Favorite not found")
    if fav.customer_id != g.user.id:
        raise Forbidden("Access denied")
    db.session.delete(fav)
    db.session.commit()
    return jsonify(success=True, message="Favorite deleted successfully"), 200
