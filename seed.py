#!/usr/bin/env python3
# seed.py
import os

from db import db
from models.product import Product
from models.settings import PortalSettings
from models.user import User
from routes.products import slugify
from utils.phone import format_phone

DEFAULT_PRODUCTS = [
    ("Almond Milk", "حليب لوز", "/images/almond.jpg"),
    ("Coconut Milk", "حليب جوز الهند", "/images/coconut.jpg"),
    ("Oat Milk", "حليب الشوفان", "/images/oat.jpg"),
    ("Soy Milk", "حليب الصويا", "/images/soy.jpg"),
    ("Lactose-Free Milk", "حليب خالي اللاكتوز", "/images/lactose.jpg"),
]


def run_seed() -> dict:
    """
    Creates the admin account, the default products and the settings row.

    Needs an app context. Safe to run repeatedly: existing rows are left
    alone and only missing ones are added.
    """
    created = {"admin": 0, "products": 0, "settings": 0}

    phone = format_phone(os.environ.get("ADMIN_PHONE", "966501234567"))
    if User.query.filter_by(phone=phone).first() is None:
        db.session.add(User(
            phone=phone,
            name=os.environ.get("ADMIN_NAME", "System Admin"),
            email=os.environ.get("ADMIN_EMAIL", "admin@selective-trading.com").lower(),
            is_admin=True,
            is_active=True,
        ))
        created["admin"] = 1
        print(f"➕ Created admin account {phone}.")
    else:
        print(f"ℹ️ Admin account {phone} already exists.")

    for order, (name_en, name_ar, image) in enumerate(DEFAULT_PRODUCTS, start=1):
        slug = slugify(name_en)
        if Product.query.filter_by(slug=slug).first() is None:
            db.session.add(Product(
                name_en=name_en, name_ar=name_ar, slug=slug, image=image,
                is_available=True, sort_order=order,
            ))
            created["products"] += 1

    if PortalSettings.current() is None:
        db.session.add(PortalSettings(edit_time_limit=2, auto_archive_days=30))
        created["settings"] = 1

    db.session.commit()
    print(f"✅ Seeded: {created}")
    return created


if __name__ == "__main__":
    from app import create_app

    with create_app().app_context():
        run_seed()
