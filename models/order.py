# models/order.py
from __future__ import annotations

from db import db
from services.edit_window import can_edit
from utils.clock import iso_z, utcnow

ORDER_STATUSES = ("new", "received")
UNIT_TYPES = ("carton", "piece")
HISTORY_ACTIONS = ("created", "updated", "received", "cancelled")


class Order(db.Model):
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_customer_created", "customer_id", "created_at"),
        db.Index("ix_orders_status_created", "status", "created_at"),
    )

    id             = db.Column(db.Integer, primary_key=True, autoincrement=True)
    order_number   = db.Column(db.String(32), nullable=False, unique=True)
    customer_id    = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    customer_name  = db.Column(db.String(100), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=False)
    total_items    = db.Column(db.Integer, nullable=False, default=0)
    status         = db.Column(db.String(16), nullable=False, default="new")
    message        = db.Column(db.String(500), nullable=True)
    can_edit       = db.Column(db.Boolean, nullable=False, default=True)  # false once received
    edit_deadline  = db.Column(db.DateTime, nullable=True)

    # purchase-order attachment
    po_filename     = db.Column(db.String(255), nullable=True)
    po_content_type = db.Column(db.String(100), nullable=True)
    po_size         = db.Column(db.Integer, nullable=True)
    po_data         = db.deferred(db.Column(db.LargeBinary(length=16 * 1024 * 1024), nullable=True))
    po_uploaded_at  = db.Column(db.DateTime, nullable=True)

    created_at     = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at     = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    customer = db.relationship("User", back_populates="orders")
    items    = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    history  = db.relationship(
        "OrderHistory",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderHistory.id",
    )

    # ── Helpers ─────────────────────────────────────────────────────────────
    def editable_by_owner(self, now=None) -> bool:
        """Status gate + edit-window gate."""
        return self.status == "new" and bool(self.can_edit) and can_edit(self.edit_deadline, now)

    def attach_purchase_order(self, filename: str, content_type: str, data: bytes) -> None:
        self.po_filename = filename
        self.po_content_type = content_type
        self.po_data = data
        self.po_size = len(data)
        self.po_uploaded_at = utcnow()

    def clear_purchase_order(self) -> None:
        self.po_filename = self.po_content_type = self.po_data = None
        self.po_size = self.po_uploaded_at = None

    def purchase_order_info(self) -> dict | None:
        if not self.po_filename:
            return None
        return {
            "filename": self.po_filename,
            "contentType": self.po_content_type,
            "size": self.po_size or 0,
            "uploadedAt": iso_z(self.po_uploaded_at),
        }

    def add_history(self, action: str, user, changes: str | None = None) -> None:
        self.history.append(OrderHistory(
            action=action,
            by_id=user.id,
            by_name=user.display_name,
            changes=changes,
        ))

    def to_dict(self, *, with_customer: bool = False) -> dict:
        data = {
            "id": str(self.id),
            "orderNumber": self.order_number,
            "customer": str(self.customer_id),
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "items": [i.to_dict() for i in self.items],
            "totalItems": self.total_items,
            "status": self.status,
            "message": self.message or "",
            "canEdit": self.editable_by_owner(),
            "editDeadline": iso_z(self.edit_deadline),
            "purchaseOrderFile": self.purchase_order_info(),
            "history": [h.to_dict() for h in self.history],
            "createdAt": iso_z(self.created_at),
            "updatedAt": iso_z(self.updated_at),
        }
        if with_customer and self.customer is not None:
            data["customer"] = {
                "id": str(self.customer.id),
                "name": self.customer.name or "",
                "phone": self.customer.phone,
                "companyName": self.customer.company_name or "",
            }
        return data


class OrderItem(db.Model):
    __tablename__ = "order_items"

    id         = db.Column(db.Integer, primary_key=True, autoincrement=True)
    order_id   = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    name_en    = db.Column(db.String(120), nullable=False)   # snapshot at order time
    name_ar    = db.Column(db.String(120), nullable=False)
    quantity   = db.Column(db.Integer, nullable=False)
    unit_type  = db.Column(db.String(10), nullable=False, default="piece")

    order   = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "product": {
                "id": str(self.product_id) if self.product_id is not None else None,
                "nameEn": self.name_en,
                "nameAr": self.name_ar,
                "image": self.product.image if self.product is not None else "",
            },
            "productName": {"en": self.name_en, "ar": self.name_ar},
            "quantity": self.quantity,
            "unitType": self.unit_type,
        }


class OrderHistory(db.Model):
    __tablename__ = "order_history"

    id        = db.Column(db.Integer, primary_key=True, autoincrement=True)
    order_id  = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    action    = db.Column(db.String(16), nullable=False)
    by_id     = db.Column(db.Integer, nullable=False)
    by_name   = db.Column(db.String(100), nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)
    changes   = db.Column(db.String(500), nullable=True)

    order = db.relationship("Order", back_populates="history")

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "by": str(self.by_id),
            "byName": self.by_name,
            "timestamp": iso_z(self.timestamp),
            "changes": self.changes,
        }


class OrderCounter(db.Model):
    __tablename__ = "order_counters"

    id         = db.Column(db.String(32), primary_key=True)   # "counter-YYMMDD"
    count      = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
