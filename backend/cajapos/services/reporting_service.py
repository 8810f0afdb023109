# Overview: Service-layer operations for reporting; the owner's daily summary.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func

from ..extensions import db
from ..models import CustomerOrder, Product, Sale, SaleItem
from ..models.orders import OPEN_ORDER_STATUSES
from ..models.sales import PAYMENT_METHODS
from ..money import money_to_json
from ..time_utils import start_of_today


def _as_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def daily_summary(since: datetime | None = None) -> dict:
    """
    Sales since midnight (UTC) plus the kitchen backlog.

    sales_by_payment_method always carries every payment method.
    """
    since = since or start_of_today()

    total, count = db.session.query(
        func.coalesce(func.sum(Sale.total_amount), 0),
        func.count(Sale.id),
    ).filter(Sale.sale_date >= since).one()

    by_method = {method: 0.0 for method in PAYMENT_METHODS}
    rows = db.session.query(
        Sale.payment_method,
        func.coalesce(func.sum(Sale.total_amount), 0),
    ).filter(Sale.sale_date >= since).group_by(Sale.payment_method).all()
    for method, method_total in rows:
        if method in by_method:
            by_method[method] = money_to_json(_as_decimal(method_total))

    quantity_sum = func.sum(SaleItem.quantity).label("total_quantity")
    top = db.session.query(Product.name, quantity_sum).join(
        SaleItem, SaleItem.product_id == Product.id
    ).join(
        Sale, Sale.id == SaleItem.sale_id
    ).filter(
        Sale.sale_date >= since
    ).group_by(Product.name).order_by(quantity_sum.desc(), Product.name.asc()).first()

    pending = db.session.query(func.count(CustomerOrder.id)).filter(
        CustomerOrder.status.in_(OPEN_ORDER_STATUSES)
    ).scalar()

    return {
        "total_sales_today": money_to_json(_as_decimal(total)),
        "number_of_sales_today": int(count or 0),
        "sales_by_payment_method": by_method,
        "top_selling_product_today": (
            {"name": top[0], "total_quantity": int(top[1])}
            if top else {"name": "N/A", "total_quantity": 0}
        ),
        "pending_customer_orders": int(pending or 0),
    }
