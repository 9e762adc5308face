# routes/auth.py
from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from auth_guard import require_auth
from services.credential_store import CredentialStore
from services.device_trust import TRUST_COOKIE
from services.login import LoginFlow, LoginResult
from services.tokens import SESSION_COOKIE
from utils.phone import format_phone

__all__ = ["auth_bp"]
auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------
def _flow() -> LoginFlow:
    ext = current_app.extensions
    return LoginFlow(
        store=CredentialStore(),
        mailer=ext["mailer"],
        tokens=ext["tokens"],
        device_trust=ext["device_trust"],
        settings=ext["auth_settings"],
        format_phone=format_phone,
        logger=current_app.logger,
    )


def _body() -> dict:
    return request.get_json(silent=True) or {}


def _with_session(result: LoginResult, body: dict, status: int = 200):
    """Session cookie + device-trust marker for a freshly authenticated phone."""
    ext = current_app.extensions
    settings = ext["auth_settings"]
    resp = jsonify(body)
    resp.status_code = status
    resp.set_cookie(
        SESSION_COOKIE,
        result.token,
        max_age=settings.session_max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="Lax",
        path="/",
    )
    ext["device_trust"].mark_trusted(result.phone, resp)
    return resp


# -------------------------------------------------------------------
# Login
# -------------------------------------------------------------------
@auth_bp.route("/login", methods=["POST"])
def login():
    data = _body()
    result = _flow().start_login(data.get("phone"), request.cookies.get(TRUST_COOKIE))
    if result.needs_verification:
        return jsonify(result.to_json()), 200
    current_app.logger.info("[login] device-trusted login phone=%s", result.phone)
    return _with_session(result, result.to_json())


@auth_bp.route("/verify-login", methods=["POST"])
def verify_login():
    data = _body()
    result = _flow().verify_login(data.get("phone"), data.get("code"))
    return _with_session(result, {
        "success": True,
        "message": "Login successful",
        "user": result.user,
    })


@auth_bp.route("/resend-login", methods=["POST"])
def resend_login():
    result = _flow().resend_login_code(_body().get("phone"))
    return jsonify({
        "success": True,
        "message": "New verification code sent",
        "email": result.email,
    }), 200


@auth_bp.route("/check-device", methods=["POST"])
def check_device():
    phone = format_phone(_body().get("phone"))
    if not phone:
        return jsonify(error="Phone number is required"), 400
    trusted = current_app.extensions["device_trust"].is_trusted(phone, request.cookies.get(TRUST_COOKIE))
    return jsonify(isVerified=trusted, phone=phone), 200


# -------------------------------------------------------------------
# Signup
# -------------------------------------------------------------------
@auth_bp.route("/signup", methods=["POST"])
def signup():
    data = _body()
    result = _flow().start_signup(
        phone=data.get("phone"),
        company_name=data.get("companyName"),
        name=data.get("name"),
        email=data.get("email"),
        address=data.get("address"),
    )
    return jsonify({
        "success": True,
        "message": "Verification code sent to your email",
        "email": result.email,
    }), 200


@auth_bp.route("/resend-signup", methods=["POST"])
def resend_signup():
    result = _flow().resend_signup_code(_body().get("phone"))
    return jsonify({
        "success": True,
        "message": "New verification code sent",
        "email": result.email,
    }), 200


@auth_bp.route("/verify", methods=["POST"])
def verify_signup():
    data = _body()
    result = _flow().verify_signup(data.get("phone"), data.get("code"))
    return _with_session(result, {
        "success": True,
        "message": "Account created successfully",
        "user": result.user,
    }, status=201)


# -------------------------------------------------------------------
# Session
# -------------------------------------------------------------------
@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    return jsonify(user=g.user.to_profile()), 200


@auth_bp.route("/logout", methods=["POST"])
def logout():
    ext = current_app.extensions
    settings = ext["auth_settings"]
    resp = jsonify(success=True, message="Logged out successfully")
    resp.delete_cookie(SESSION_COOKIE, path="/", secure=settings.cookie_secure, httponly=True, samesite="Lax")
    if settings.clear_device_trust_on_logout:
        ext["device_trust"].clear(resp)
    return resp, 200
