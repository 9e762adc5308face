# routes/profile.py
from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from auth_guard import require_auth
from db import db
from errors import ValidationError

__all__ = ["profile_bp"]
profile_bp = Blueprint("profile", __name__, url_prefix="/api/profile")

# json key → (column, max length)
_EDITABLE = {
    "name": ("name", 100),
    "companyName": ("company_name", 100),
    "email": ("email", 100),
    "address": ("address", 500),
}


@profile_bp.route("", methods=["GET"])
@require_auth
def get_profile():
    return jsonify(user=g.user.to_profile()), 200


@profile_bp.route("", methods=["PUT"])
@require_auth
def update_profile():
    data = request.get_json(silent=True) or {}
    user = g.user

    for key, (attr, max_len) in _EDITABLE.items():
        if key not in data:
            continue
        value = str(data.get(key) or "").strip()
        if len(value) > max_len:
            raise ValidationError(f"{key} must be at most {max_len} characters")
        if key == "email":
            value = value.lower()
        setattr(user, attr, value)

    db.session.commit()
    return jsonify(success=True, user=user.to_profile()), 200
