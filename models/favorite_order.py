# models/favorite_order.py
from __future__ import annotations

from db import db
from utils.clock import iso_z, utcnow


class FavoriteOrder(db.Model):
    __tablename__ = "favorite_orders"

    id          = db.Column(db.Integer, primary_key=True, autoincrement=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name        = db.Column(db.String(100), nullable=False)
    total_items = db.Column(db.Integer, nullable=False, default=0)
    created_at  = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at  = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    items = db.relationship(
        "FavoriteItem",
        back_populates="favorite",
        cascade="all, delete-orphan",
        order_by="FavoriteItem.id",
    )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "customer": str(self.customer_id),
            "name": self.name,
            "items": [i.to_dict() for i in self.items],
            "totalItems": self.total_items,
            "createdAt": iso_z(self.created_at),
        }


class FavoriteItem(db.Model):
    __tablename__ = "favorite_items"

    id          = db.Column(db.Integer, primary_key=True, autoincrement=True)
    favorite_id = db.Column(db.Integer, db.ForeignKey("favorite_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id  = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantity    = db.Column(db.Integer, nullable=False)

    favorite = db.relationship("FavoriteOrder", back_populates="items")
    product  = db.relationship("Product")

    def to_dict(self) -> dict:
        p = self.product
        return {
            "product": {
                "id": str(self.product_id),
                "name": {"en": p.name_en, "ar": p.name_ar} if p else None,
                "image": p.image if p else "",
                "isAvailable": bool(p.is_available) if p else False,
            },
            "quantity": self.quantity,
        }
