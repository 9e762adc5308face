# backend/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

from dotenv import load_dotenv

load_dotenv()


def _to_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}

def _to_int(val: str | None, default: int) -> int:
    try:
        return int(val) if val is not None else default
    except ValueError:
        return default


class Config:
    # ── Core ─────────────────────────────────────────────────────────────────
    DEBUG = _to_bool(os.environ.get("DEBUG") or os.environ.get("FLASK_DEBUG"), False)
    TESTING = False
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev_secret")  # ← override in prod!
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///portal.db",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # ── Auth / JWT ──────────────────────────────────────────────────────────
    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY
    SESSION_TTL_DAYS = _to_int(os.environ.get("SESSION_TTL_DAYS"), 90)
    DEVICE_TRUST_TTL_DAYS = _to_int(os.environ.get("DEVICE_TRUST_TTL_DAYS"), 90)
    VERIFICATION_CODE_TTL_MINUTES = _to_int(os.environ.get("VERIFICATION_CODE_TTL_MINUTES"), 30)
    VERIFICATION_CODE_MAX_ATTEMPTS = _to_int(os.environ.get("VERIFICATION_CODE_MAX_ATTEMPTS"), 5)
    COOKIE_SECURE = _to_bool(os.environ.get("COOKIE_SECURE"), False)
    CLEAR_DEVICE_TRUST_ON_LOGOUT = _to_bool(os.environ.get("CLEAR_DEVICE_TRUST_ON_LOGOUT"), True)
    LOG_VERIFICATION_CODES = _to_bool(os.environ.get("LOG_VERIFICATION_CODES"), False)

    # ── Orders ──────────────────────────────────────────────────────────────
    ORDER_EDIT_HOURS = _to_int(os.environ.get("ORDER_EDIT_HOURS"), 2)
    MIN_ORDER_ITEMS = _to_int(os.environ.get("MIN_ORDER_ITEMS"), 2)
    MAX_FAVORITES = _to_int(os.environ.get("MAX_FAVORITES"), 10)
    MAX_ATTACHMENT_MB = _to_int(os.environ.get("MAX_ATTACHMENT_MB"), 5)

    # ── Mail (SMTP) ─────────────────────────────────────────────────────────
    SMTP_HOST = os.environ.get("SMTP_HOST", "smtp.gmail.com")
    SMTP_USER = os.environ.get("SMTP_USER")
    SMTP_PASS = os.environ.get("SMTP_PASS")
    MAIL_FROM = os.environ.get("MAIL_FROM", "Selective Trading <no-reply@selectivetrading.com>")
    APP_NAME = os.environ.get("APP_NAME", "Selective Trading")


class ProductionConfig(Config):
    DEBUG = False
    SECRET_KEY = os.environ.get("SECRET_KEY")
    JWT_SECRET = os.environ.get("JWT_SECRET") or SECRET_KEY
    COOKIE_SECURE = True
    LOG_VERIFICATION_CODES = False


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = "DEBUG"
    LOG_VERIFICATION_CODES = _to_bool(os.environ.get("LOG_VERIFICATION_CODES"), True)


class TestingConfig(Config):
    DEBUG = True
    TESTING = True
    SECRET_KEY = "test-secret"
    JWT_SECRET = "test-jwt-secret"
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ENGINE_OPTIONS = {}
    COOKIE_SECURE = False
    LOG_VERIFICATION_CODES = False


CONFIGS = {
    "production": ProductionConfig,
    "development": DevelopmentConfig,
    "testing": TestingConfig,
}


@dataclass(frozen=True)
class AuthSettings:
    """Knobs the login flow and the edit-window gate are built with."""

    jwt_secret: str
    session_ttl_days: int = 90
    device_trust_secret: str = ""
    device_trust_ttl_days: int = 90
    code_ttl_minutes: int = 30
    code_max_attempts: int = 5
    order_edit_hours: int = 2
    cookie_secure: bool = False
    clear_device_trust_on_logout: bool = True
    log_verification_codes: bool = False

    @property
    def session_max_age(self) -> int:
        return self.session_ttl_days * 24 * 60 * 60

    @property
    def device_trust_max_age(self) -> int:
        return self.device_trust_ttl_days * 24 * 60 * 60

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "AuthSettings":
        secret = cfg.get("JWT_SECRET") or cfg.get("SECRET_KEY")
        if not secret:
            raise RuntimeError("JWT_SECRET / SECRET_KEY is not set.")
        return cls(
            jwt_secret=secret,
            session_ttl_days=int(cfg.get("SESSION_TTL_DAYS", 90)),
            device_trust_secret=cfg.get("SECRET_KEY") or secret,
            device_trust_ttl_days=int(cfg.get("DEVICE_TRUST_TTL_DAYS", 90)),
            code_ttl_minutes=int(cfg.get("VERIFICATION_CODE_TTL_MINUTES", 30)),
            code_max_attempts=int(cfg.get("VERIFICATION_CODE_MAX_ATTEMPTS", 5)),
            order_edit_hours=int(cfg.get("ORDER_EDIT_HOURS", 2)),
            cookie_secure=bool(cfg.get("COOKIE_SECURE", False)),
            clear_device_trust_on_logout=bool(cfg.get("CLEAR_DEVICE_TRUST_ON_LOGOUT", True)),
            log_verification_codes=bool(cfg.get("LOG_VERIFICATION_CODES", False)),
        )
