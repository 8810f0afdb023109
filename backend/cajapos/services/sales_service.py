# Overview: Service-layer operations for sales; the all-or-nothing sale transaction and the activity feed.

"""
Sale Transaction Processor

WHY: A sale touches three things at once: the cash drawer (cash sales),
the sale record with its lines, and product stock. Either all of them
change or none does.

ORDER OF WORK (one transaction):
1. Validate payment method, lines and total
2. Special sales need an admin credential; the admin is the attributed
   employee
3. Cash sales credit the active session (conditional UPDATE)
4. Insert the sale, then per line insert the item and decrement stock
   with a conditional UPDATE (stock >= quantity)
5. Commit; the audit entry is written afterwards and may fail on its own

STOCK: a line that drives stock to zero deactivates the product; a sale
never reactivates one.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy import case

from ..errors import InsufficientStockError, ValidationError
from ..extensions import db
from ..models import Employee, Product, Sale, SaleItem
from ..models.sales import PAYMENT_CASH, PAYMENT_METHODS, PAYMENT_SPECIAL
from ..money import ZERO, net_from_total, quantize
from ..validation import parse_amount, parse_int, parse_list
from . import audit_service, auth_service, cash_session_service
from .concurrency import atomic

SALE_PROCESSED_MESSAGE = "Venta procesada"


@dataclass
class SaleLine:
    product_id: int
    quantity: int
    price_at_sale: Decimal


def _parse_lines(items) -> list[SaleLine]:
    lines = []
    for raw in parse_list(items, "Los productos de la venta"):
        lines.append(SaleLine(
            product_id=parse_int(raw.get("product_id"), "product_id", minimum=1),
            quantity=parse_int(raw.get("quantity"), "La cantidad", minimum=1),
            price_at_sale=parse_amount(raw.get("price_at_sale"), "El precio"),
        ))
    return lines


def _price_lines(lines: list[SaleLine]) -> None:
    """
    Check every line against the catalog.

    With ENFORCE_CATALOG_PRICES the catalog price replaces the submitted
    one; otherwise a deviation is only logged.
    """
    product_ids = {line.product_id for line in lines}
    products = {
        p.id: p
        for p in db.session.query(Product).filter(Product.id.in_(product_ids)).all()
    }

    enforce = current_app.config.get("ENFORCE_CATALOG_PRICES", False)
    for line in lines:
        product = products.get(line.product_id)
        if product is None:
            raise ValidationError(f"Producto ID {line.product_id} no encontrado.")

        catalog_price = quantize(Decimal(product.selling_price))
        if line.price_at_sale == catalog_price:
            continue
        if enforce:
            line.price_at_sale = catalog_price
        else:
            current_app.logger.warning(
                "Sale line price differs from catalog: product_id=%s submitted=%s catalog=%s",
                line.product_id, line.price_at_sale, catalog_price,
            )


def _check_total(lines: list[SaleLine], total: Decimal) -> None:
    computed = sum((quantize(line.price_at_sale * line.quantity) for line in lines), ZERO)
    if computed != total:
        raise ValidationError(
            f"El total ({total}) no coincide con la suma de los productos ({computed})."
        )


def _decrement_stock(product_id: int, quantity: int) -> None:
    """
    stock -= quantity, only if enough is on hand; deactivate at zero.

    Raises InsufficientStockError when no row qualified.
    """
    updated = db.session.query(Product).filter(
        Product.id == product_id,
        Product.stock >= quantity,
    ).update(
        {
            Product.stock: Product.stock - quantity,
            Product.is_active: case(
                (Product.stock - quantity <= 0, False),
                else_=Product.is_active,
            ),
        },
        synchronize_session=False,
    )
    if not updated:
        raise InsufficientStockError(product_id)


def process_sale(
    caller: Employee,
    items,
    total_amount,
    payment_method,
    admin_rut=None,
    admin_password=None,
) -> Sale:
    """
    Record a sale atomically and return it.

    Raises ValidationError, AdminAuthorizationError (special sales),
    NoActiveSessionError (cash sales with the register closed) or
    InsufficientStockError; in every case nothing was written.
    """
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError("Método de pago inválido.")
    lines = _parse_lines(items)
    total = parse_amount(total_amount, "El total")

    approval = None
    with atomic():
        attributed_employee_id = caller.id
        if payment_method == PAYMENT_SPECIAL:
            approval = auth_service.authorize_admin(admin_rut, admin_password, "APPROVE_SPECIAL_SALE")
            attributed_employee_id = approval.employee_id

        _price_lines(lines)
        _check_total(lines, total)

        if payment_method == PAYMENT_CASH:
            cash_session_service.credit_cash_sale(total)

        sale = Sale(
            total_amount=total,
            net_amount=net_from_total(total),
            employee_id=attributed_employee_id,
            payment_method=payment_method,
        )
        db.session.add(sale)
        db.session.flush()

        for line in lines:
            db.session.add(SaleItem(
                sale_id=sale.id,
                product_id=line.product_id,
                quantity=line.quantity,
                price_at_sale=line.price_at_sale,
            ))
            _decrement_stock(line.product_id, line.quantity)

    details = f"Venta procesada por ${total} con método '{payment_method}'."
    if approval is not None:
        details += f" Autorizada por: {approval.name}. Registrada por (cajero): {caller.full_name}."
    audit_service.log_action(caller.id, caller.full_name, "SALE_PROCESSED", details)

    return sale


def list_sales(start: datetime | None = None, end: datetime | None = None) -> list[Sale]:
    query = db.session.query(Sale)
    if start is not None:
        query = query.filter(Sale.sale_date >= start)
    if end is not None:
        query = query.filter(Sale.sale_date <= end)
    return query.order_by(Sale.sale_date.desc(), Sale.id.desc()).all()


def get_activity_feed(start: datetime | None = None, end: datetime | None = None) -> list[dict]:
    """
    Sales (with their lines) and audit entries in one list, newest first.

    Each entry carries "type": "SALE" or "LOG".
    """
    feed = []
    for sale in list_sales(start, end):
        entry = sale.to_dict()
        entry.update({
            "type": "SALE",
            "created_at": entry["sale_date"],
            "employee_name": sale.employee.full_name if sale.employee else None,
            "items": [item.to_dict() for item in sale.items],
            "_sort": sale.sale_date,
        })
        feed.append(entry)

    for log in audit_service.list_actions(start, end):
        entry = log.to_dict()
        entry.update({"type": "LOG", "_sort": log.created_at})
        feed.append(entry)

    feed.sort(key=lambda entry: entry["_sort"], reverse=True)
    for entry in feed:
        del entry["_sort"]
    return feed
