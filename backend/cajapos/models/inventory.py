from __future__ import annotations

from ..extensions import db
from ..money import money_to_json
from ..time_utils import to_iso_date, to_utc_z, utcnow

PO_STATUS_ORDERED = "ordenado"
PO_STATUS_PARTIAL = "recibido_parcial"
PO_STATUS_COMPLETE = "recibido_completo"
PO_STATUS_CANCELLED = "cancelado"


class Product(db.Model):
    """
    Product master data with on-hand stock.

    STOCK RULES:
    - stock never goes negative; sales decrement it with a conditional
      UPDATE (stock >= quantity)
    - a sale that leaves stock <= 0 deactivates the product; a sale never
      reactivates one
    - manual edits reactivate a product whose stock goes from <= 0 to > 0

    selling_price is derived from cost_price at creation (and on request
    when updating); see money.selling_price_from_cost.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    # Optional barcode / internal code
    code = db.Column(db.String(64), nullable=True, unique=True)
    category = db.Column(db.String(64), nullable=True, index=True)

    cost_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    selling_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    stock = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)
    expiration_date = db.Column(db.Date, nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    supplier = db.relationship("Supplier", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock} active={self.is_active}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "category": self.category,
            "is_active": self.is_active,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier.name if self.supplier else None,
            "price": money_to_json(self.selling_price),
            "cost_price": money_to_json(self.cost_price),
            "stock": self.stock,
            "expiration_date": to_iso_date(self.expiration_date),
        }


class Supplier(db.Model):
    """Vendor the store buys products from."""
    __tablename__ = "suppliers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    rut = db.Column(db.String(16), nullable=True, unique=True)
    contact_person = db.Column(db.String(128), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True, unique=True)
    address = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "rut": self.rut,
            "contact_person": self.contact_person,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "created_at": to_utc_z(self.created_at),
        }


class PurchaseOrder(db.Model):
    """
    Order placed with a supplier.

    LIFECYCLE: ordenado -> recibido_parcial -> recibido_completo.
    Receiving items adds to product stock in the same transaction.
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.Index("ix_purchase_orders_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)

    order_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    expected_delivery_date = db.Column(db.Date, nullable=True)

    status = db.Column(db.String(32), nullable=False, default=PO_STATUS_ORDERED)
    total_cost = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False)

    supplier = db.relationship("Supplier", backref=db.backref("purchase_orders", lazy=True))
    items = db.relationship("PurchaseOrderItem", backref="purchase_order", lazy=True, order_by="PurchaseOrderItem.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier.name if self.supplier else None,
            "order_date": to_utc_z(self.order_date),
            "expected_delivery_date": to_iso_date(self.expected_delivery_date),
            "status": self.status,
            "total_cost": money_to_json(self.total_cost),
            "notes": self.notes,
            "created_by": self.created_by,
            "items": [item.to_dict() for item in self.items],
        }


class PurchaseOrderItem(db.Model):
    __tablename__ = "purchase_order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity_ordered = db.Column(db.Integer, nullable=False)
    quantity_received = db.Column(db.Integer, nullable=False, default=0)
    cost_price_at_purchase = db.Column(db.Numeric(12, 2), nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity_ordered": self.quantity_ordered,
            "quantity_received": self.quantity_received,
            "cost_price_at_purchase": money_to_json(self.cost_price_at_purchase),
        }
