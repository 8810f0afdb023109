# Overview: Service-layer operations for products; pricing, stock-driven activation and alert lists.

"""
Product Ledger

Selling prices are derived from cost (margin 40%, VAT 19%, rounded to the
nearest $50). Activation follows stock:
- created with stock 0 -> inactive
- edited from stock <= 0 to stock > 0 -> reactivated
- edited to stock <= 0 -> deactivated
- toggled on only while stock > 0
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Employee, Product, Supplier
from ..money import selling_price_from_cost
from ..time_utils import utcnow
from ..validation import parse_amount, parse_date, parse_int, parse_text, require_json_object
from . import audit_service


def calculate_selling_price(cost: Decimal) -> Decimal:
    return selling_price_from_cost(cost)


def _parse_product_payload(payload) -> dict:
    data = require_json_object(payload)

    supplier_id = parse_int(data.get("supplier_id"), "supplier_id", minimum=1, required=False)
    if supplier_id is not None and db.session.get(Supplier, supplier_id) is None:
        raise ValidationError("Proveedor no encontrado.")

    # The frontend still sends the legacy Spanish key
    expiration_raw = data.get("expiration_date", data.get("fecha_vencimiento"))

    return {
        "name": parse_text(data.get("name"), "El nombre", max_length=255),
        "code": parse_text(data.get("code"), "El código", required=False, max_length=64),
        "category": parse_text(data.get("category"), "La categoría", required=False, max_length=64),
        "cost_price": parse_amount(data.get("cost_price"), "El precio de costo"),
        "stock": parse_int(data.get("stock"), "El stock", minimum=0),
        "supplier_id": supplier_id,
        "expiration_date": parse_date(expiration_raw, "La fecha de vencimiento"),
    }


def _commit_product() -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("El código ingresado ya existe.")


def _code_taken(code: str | None, exclude_id: int | None = None) -> bool:
    if code is None:
        return False
    query = db.session.query(Product.id).filter(Product.code == code)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def list_products(include_inactive: bool = False) -> list[Product]:
    query = db.session.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Producto no encontrado.")
    return product


def create_product(actor: Employee, payload) -> Product:
    data = _parse_product_payload(payload)
    if _code_taken(data["code"]):
        raise ConflictError("El código ingresado ya existe.")

    product = Product(
        selling_price=calculate_selling_price(data["cost_price"]),
        is_active=data["stock"] > 0,
        **data,
    )
    db.session.add(product)
    _commit_product()

    audit_service.log_action(
        actor.id, actor.full_name, "PRODUCT_CREATE",
        f"Creó el producto '{product.name}' (Stock: {product.stock}).",
    )
    return product


def update_product(actor: Employee, product_id: int, payload) -> Product:
    """
    Replace a product's editable fields.

    The selling price is only recomputed when recalculate_price is true.
    """
    data = _parse_product_payload(payload)
    recalculate = bool(require_json_object(payload).get("recalculate_price"))

    product = get_product(product_id)
    if _code_taken(data["code"], exclude_id=product.id):
        raise ConflictError("El código ingresado ya existe.")

    old_stock = product.stock
    old_cost = product.cost_price
    old_active = product.is_active

    new_stock = data["stock"]
    new_active = old_active
    if old_stock <= 0 and new_stock > 0:
        new_active = True
    elif new_stock <= 0:
        new_active = False

    for field, value in data.items():
        setattr(product, field, value)
    product.is_active = new_active
    if recalculate:
        product.selling_price = calculate_selling_price(data["cost_price"])

    _commit_product()

    details = [f"'{product.name}' actualizado."]
    if old_stock != new_stock:
        details.append(f"Stock: {old_stock} -> {new_stock}.")
    if old_cost != data["cost_price"]:
        details.append(f"Costo: ${old_cost} -> ${data['cost_price']}.")
    if old_active != new_active:
        details.append(f"Estado cambiado a {'Activo' if new_active else 'Inactivo'}.")
    audit_service.log_action(actor.id, actor.full_name, "PRODUCT_UPDATE", " ".join(details))

    return product


def toggle_status(actor: Employee, product_id: int) -> Product:
    product = get_product(product_id)
    new_status = not product.is_active
    if new_status and product.stock <= 0:
        raise ValidationError("No se puede activar un producto sin stock.")

    product.is_active = new_status
    db.session.commit()

    action = "PRODUCT_ACTIVATE" if new_status else "PRODUCT_DEACTIVATE"
    audit_service.log_action(
        actor.id, actor.full_name, action,
        f"Cambió el estado de '{product.name}' a {'Activo' if new_status else 'Inactivo'}.",
    )
    return product


def low_stock_products() -> list[Product]:
    """Active products with 0 < stock <= LOW_STOCK_THRESHOLD, lowest first."""
    threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    return db.session.query(Product).filter(
        Product.is_active.is_(True),
        Product.stock > 0,
        Product.stock <= threshold,
    ).order_by(Product.stock.asc(), Product.name.asc()).all()


def expiring_soon_products() -> list[Product]:
    """Active products expiring between today and EXPIRING_SOON_DAYS from now."""
    today = utcnow().date()
    horizon = today + timedelta(days=current_app.config["EXPIRING_SOON_DAYS"])
    return db.session.query(Product).filter(
        Product.is_active.is_(True),
        Product.expiration_date.isnot(None),
        Product.expiration_date >= today,
        Product.expiration_date <= horizon,
    ).order_by(Product.expiration_date.asc()).all()
