# tests/conftest.py
from __future__ import annotations

from datetime import timedelta

import pytest

from app import create_app
from config import TestingConfig
from db import db
from models.product import Product
from models.user import User
from utils.clock import utcnow


class RecordingMailer:
    """Stands in for utils.mail.Mailer; keeps every code it was asked to send."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    def send_verification_email(self, to, code, name):
        if self.fail:
            raise RuntimeError("smtp connection refused")
        self.sent.append({"to": to, "code": code, "name": name})

    @property
    def last_code(self) -> str:
        return self.sent[-1]["code"]


def make_app(config_class=TestingConfig):
    app = create_app(config_class)
    app.extensions["mailer"] = RecordingMailer()
    return app


@pytest.fixture
def app():
    app = make_app()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def mailer(app) -> RecordingMailer:
    return app.extensions["mailer"]


def cookie_header(resp, name: str) -> str | None:
    """Raw Set-Cookie header for ``name`` from a response."""
    for h in resp.headers.getlist("Set-Cookie"):
        if h.startswith(name + "="):
            return h
    return None


def cookie_value(resp, name: str) -> str | None:
    h = cookie_header(resp, name)
    if h is None:
        return None
    return h.split(";", 1)[0].split("=", 1)[1]


class Factory:
    """Row builders; every call runs in its own app context and returns plain ids."""

    def __init__(self, app):
        self.app = app

    def user(self, phone="966501112233", *, name="Sara", email="sara@example.com",
             is_admin=False, is_active=True, company_name="Acme", address="Riyadh") -> int:
        with self.app.app_context():
            u = User(phone=phone, name=name, email=email, is_admin=is_admin,
                     is_active=is_active, company_name=company_name, address=address)
            db.session.add(u)
            db.session.commit()
            return u.id

    def admin(self, phone="966500000001", *, name="Admin", email="admin@example.com") -> int:
        return self.user(phone, name=name, email=email, is_admin=True)

    def product(self, name_en="Oat Milk", name_ar="حليب الشوفان", *, available=True, order=0) -> int:
        with self.app.app_context():
            p = Product(name_en=name_en, name_ar=name_ar, slug=name_en.lower().replace(" ", "-"),
                        is_available=available, sort_order=order)
            db.session.add(p)
            db.session.commit()
            return p.id

    def token(self, user_id: int) -> str:
        with self.app.app_context():
            u = db.session.get(User, user_id)
            return self.app.extensions["tokens"].issue(
                {"userId": u.id, "phone": u.phone, "isAdmin": bool(u.is_admin)}
            )

    def headers(self, user_id: int) -> dict:
        return {"Authorization": f"Bearer {self.token(user_id)}"}

    def expire_order_window(self, order_id: int) -> None:
        from models.order import Order
        with self.app.app_context():
            o = db.session.get(Order, order_id)
            o.edit_deadline = utcnow() - timedelta(minutes=1)
            db.session.commit()


@pytest.fixture
def factory(app) -> Factory:
    return Factory(app)
