# models/product.py
from __future__ import annotations

from db import db
from utils.clock import utcnow

PLACEHOLDER_IMAGE = "/images/placeholder.png"


class Product(db.Model):
    __tablename__ = "products"

    id           = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name_en      = db.Column(db.String(120), nullable=False)
    name_ar      = db.Column(db.String(120), nullable=False)
    slug         = db.Column(db.String(140), nullable=False, unique=True, index=True)
    image        = db.Column(db.String(255), nullable=False, default=PLACEHOLDER_IMAGE)
    is_available = db.Column(db.Boolean, nullable=False, default=True, index=True)
    sort_order   = db.Column(db.Integer, nullable=False, default=0)

    created_at   = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at   = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": {"en": self.name_en, "ar": self.name_ar},
            "nameEn": self.name_en,
            "nameAr": self.name_ar,
            "slug": self.slug,
            "image": self.image,
            "isAvailable": bool(self.is_available),
            "order": self.sort_order,
        }
