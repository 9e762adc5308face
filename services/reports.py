# services/reports.py
"""
Admin dashboard numbers and the customer × product matrix.

Everything here works on orders whose ``created_at`` falls inside a
half-open ``[start, end)`` range of naive UTC datetimes.
"""
from __future__ import annotations

import csv
import io
from collections import defaultdict
from datetime import date, datetime, timedelta

from sqlalchemy import func

from db import db
from models.order import Order, OrderItem
from models.user import User
from utils.clock import day_bounds, utcnow

__all__ = ["order_stats", "build_report", "customer_product_matrix", "matrix_csv", "report_range"]

TOP_N = 10


def report_range(start_day: date | None, end_day: date | None, *, default_days: int = 30) -> tuple[datetime, datetime]:
    """Inclusive day range → ``[start, end)``; defaults to the last ``default_days`` days."""
    end_day = end_day or utcnow().date()
    start_day = start_day or (end_day - timedelta(days=default_days - 1))
    if start_day > end_day:
        start_day, end_day = end_day, start_day
    return day_bounds(start_day)[0], day_bounds(end_day)[1]


def _orders_between(start: datetime | None, end: datetime | None):
    q = Order.query
    if start is not None:
        q = q.filter(Order.created_at >= start)
    if end is not None:
        q = q.filter(Order.created_at < end)
    return q


def order_stats(start: datetime | None = None, end: datetime | None = None) -> dict:
    base = _orders_between(start, end)
    total = base.count()
    new = base.filter(Order.status == "new").count()
    received = base.filter(Order.status == "received").count()
    customers = User.query.filter(User.is_admin.is_(False)).count()

    order_ids = [oid for (oid,) in base.with_entities(Order.id).all()]
    rows = (
        db.session.query(
            OrderItem.product_id,
            OrderItem.name_en,
            OrderItem.name_ar,
            func.sum(OrderItem.quantity).label("qty"),
        )
        .filter(OrderItem.order_id.in_(order_ids))
        .group_by(OrderItem.product_id, OrderItem.name_en, OrderItem.name_ar)
        .order_by(func.sum(OrderItem.quantity).desc())
        .all()
    )
    return {
        "totalOrders": total,
        "newOrders": new,
        "receivedOrders": received,
        "totalCustomers": customers,
        "productQuantities": [
            {
                "productId": str(r.product_id) if r.product_id is not None else None,
                "nameEn": r.name_en,
                "nameAr": r.name_ar,
                "quantity": int(r.qty or 0),
            }
            for r in rows
        ],
    }


def customer_product_matrix(orders) -> dict:
    products: dict[str, dict] = {}
    customers: dict[int, dict] = {}

    for o in orders:
        row = customers.setdefault(o.customer_id, {
            "customerId": str(o.customer_id),
            "name": o.customer_name,
            "phone": o.customer_phone,
            "quantities": defaultdict(int),
            "total": 0,
        })
        for it in o.items:
            key = str(it.product_id) if it.product_id is not None else f"name:{it.name_en}"
            products.setdefault(key, {"id": key, "nameEn": it.name_en, "nameAr": it.name_ar})
            row["quantities"][key] += it.quantity
            row["total"] += it.quantity

    rows = sorted(customers.values(), key=lambda r: (-r["total"], r["name"] or ""))
    for r in rows:
        r["quantities"] = dict(r["quantities"])
    return {
        "products": sorted(products.values(), key=lambda p: p["nameEn"]),
        "rows": rows,
    }


def build_report(start: datetime, end: datetime) -> dict:
    orders = _orders_between(start, end).order_by(Order.created_at.asc()).all()

    daily: dict[str, dict] = {}
    by_product: dict[str, dict] = {}
    by_customer: dict[int, dict] = {}
    statuses: dict[str, int] = defaultdict(int)
    total_items = 0

    for o in orders:
        day = o.created_at.date().isoformat()
        d = daily.setdefault(day, {"date": day, "orders": 0, "items": 0})
        d["orders"] += 1
        d["items"] += o.total_items
        statuses[o.status] += 1
        total_items += o.total_items

        c = by_customer.setdefault(o.customer_id, {
            "customerId": str(o.customer_id),
            "name": o.customer_name,
            "phone": o.customer_phone,
            "orders": 0,
            "items": 0,
        })
        c["orders"] += 1
        c["items"] += o.total_items

        for it in o.items:
            key = str(it.product_id) if it.product_id is not None else f"name:{it.name_en}"
            p = by_product.setdefault(key, {
                "productId": key, "nameEn": it.name_en, "nameAr": it.name_ar, "quantity": 0, "orders": 0,
            })
            p["quantity"] += it.quantity
            p["orders"] += 1

    new_customers = (
        User.query
        .filter(User.is_admin.is_(False), User.created_at >= start, User.created_at < end)
        .count()
    )
    n = len(orders)
    return {
        "range": {"start": start.date().isoformat(), "end": (end - timedelta(days=1)).date().isoformat()},
        "dailyTrend": sorted(daily.values(), key=lambda d: d["date"]),
        "topProducts": sorted(by_product.values(), key=lambda p: -p["quantity"])[:TOP_N],
        "topCustomers": sorted(by_customer.values(), key=lambda c: (-c["orders"], -c["items"]))[:TOP_N],
        "statusDistribution": dict(statuses),
        "summary": {
            "totalOrders": n,
            "totalItems": total_items,
            "uniqueCustomers": len(by_customer),
            "newCustomers": new_customers,
            "averageOrderSize": round(total_items / n, 2) if n else 0,
        },
        "matrix": customer_product_matrix(orders),
    }


def matrix_csv(matrix: dict) -> str:
    buf = io.StringIO()
    w = csv.writer(buf)
    products = matrix["products"]
    w.writerow(["Customer", "Phone", *[p["nameEn"] for p in products], "Total"])
    for r in matrix["rows"]:
        w.writerow([
            r["name"],
            r["phone"],
            *[r["quantities"].get(p["id"], 0) for p in products],
            r["total"],
        ])
    return buf.getvalue()
