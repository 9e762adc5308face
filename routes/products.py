# routes/products.py
from __future__ import annotations

import re

from flask import Blueprint, current_app, jsonify, request

from auth_guard import require_admin
from db import db
from errors import Conflict, MissingField, NotFound, ValidationError
from models.product import PLACEHOLDER_IMAGE, Product

__all__ = ["products_bp", "slugify"]
products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def slugify(name: str) -> str:
    return re.sub(r"\s+", "-", (name or "").strip().lower())


def _sort_order(value, default: int) -> int:
    if value in (None, ""):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("order must be a number")


def _as_bool(x, default=False) -> bool:
    if x is None:
        return default
    if isinstance(x, bool):
        return x
    return str(x).strip().lower() in {"1", "true", "yes", "on"}


def _load(product_id: int) -> Product:
    p = db.session.get(Product, product_id)
    if p is None:
        raise NotFound("Product not found")
    return p


def _ensure_unique_slug(slug: str, exclude_id: int | None = None) -> None:
    q = Product.query.filter(Product.slug == slug)
    if exclude_id is not None:
        q = q.filter(Product.id != exclude_id)
    if db.session.query(q.exists()).scalar():
        raise Conflict("Product already exists")


@products_bp.route("", methods=["GET"])
def list_products():
    q = Product.query
    if _as_bool(request.args.get("available")):
        q = q.filter(Product.is_available.is_(True))
    rows = q.order_by(Product.sort_order.asc(), Product.name_en.asc()).all()
    return jsonify(products=[p.to_dict() for p in rows]), 200


@products_bp.route("/<int:product_id>", methods=["GET"])
def get_product(product_id: int):
    return jsonify(product=_load(product_id).to_dict()), 200


@products_bp.route("", methods=["POST"])
@require_admin
def create_product():
    data = request.get_json(silent=True) or {}
    name_en = str(data.get("nameEn") or "").strip()
    name_ar = str(data.get("nameAr") or "").strip()
    if not name_en or not name_ar:
        raise MissingField("Product name in both languages is required")

    slug = slugify(name_en)
    _ensure_unique_slug(slug)

    last = db.session.query(db.func.max(Product.sort_order)).scalar() or 0
    p = Product(
        name_en=name_en,
        name_ar=name_ar,
        slug=slug,
        image=str(data.get("image") or "").strip() or PLACEHOLDER_IMAGE,
        is_available=_as_bool(data.get("isAvailable"), True),
        sort_order=_sort_order(data.get("order"), last + 1),
    )
    db.session.add(p)
    db.session.commit()
    current_app.logger.info("[admin] product created id=%s slug=%s", p.id, p.slug)
    return jsonify(success=True, product=p.to_dict()), 201


@products_bp.route("/<int:product_id>", methods=["PUT"])
@require_admin
def update_product(product_id: int):
    p = _load(product_id)
    data = request.get_json(silent=True) or {}

    if "nameEn" in data:
        name_en = str(data.get("nameEn") or "").strip()
        if not name_en:
            raise MissingField("English name cannot be empty")
        slug = slugify(name_en)
        _ensure_unique_slug(slug, exclude_id=p.id)
        p.name_en, p.slug = name_en, slug
    if "nameAr" in data:
        name_ar = str(data.get("nameAr") or "").strip()
        if not name_ar:
            raise MissingField("Arabic name cannot be empty")
        p.name_ar = name_ar
    if "image" in data:
        p.image = str(data.get("image") or "").strip() or PLACEHOLDER_IMAGE
    if "isAvailable" in data:
        p.is_available = _as_bool(data.get("isAvailable"))
    if "order" in data:
        p.sort_order = _sort_order(data.get("order"), 0)

    db.session.commit()
    current_app.logger.info("[admin] product updated id=%s", p.id)
    return jsonify(success=True, product=p.to_dict()), 200


@products_bp.route("/<int:product_id>", methods=["DELETE"])
@require_admin
def delete_product(product_id: int):
    p = _load(product_id)
    db.session.delete(p)
    db.session.commit()
    current_app.logger.info("[admin] product deleted id=%s", product_id)
    return jsonify(success=True, message="Product deleted successfully"), 200
