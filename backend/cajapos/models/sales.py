from __future__ import annotations

from ..extensions import db
from ..money import money_to_json
from ..time_utils import to_utc_z, utcnow

PAYMENT_CASH = "efectivo"
PAYMENT_CARD = "tarjeta"
PAYMENT_SPECIAL = "venta especial"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_CARD, PAYMENT_SPECIAL)


class Sale(db.Model):
    """
    A committed sale. Immutable: there is no update or delete path.

    employee_id is the attributed employee: the cashier for cash/card
    sales, the authorizing admin for special sales.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_sale_date", "sale_date"),
        db.Index("ix_sales_payment_method_date", "payment_method", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Tax-inclusive total and its tax-exclusive counterpart
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    net_amount = db.Column(db.Numeric(12, 2), nullable=False)

    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)
    payment_method = db.Column(db.String(32), nullable=False)

    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    employee = db.relationship("Employee", backref=db.backref("sales", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "total_amount": money_to_json(self.total_amount),
            "net_amount": money_to_json(self.net_amount),
            "employee_id": self.employee_id,
            "payment_method": self.payment_method,
            "sale_date": to_utc_z(self.sale_date),
        }


class SaleItem(db.Model):
    """Line item on a sale; price_at_sale is the unit price charged."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    price_at_sale = db.Column(db.Numeric(12, 2), nullable=False)

    sale = db.relationship(
        "Sale",
        backref=db.backref("items", lazy=True, order_by="SaleItem.id"),
    )
    product = db.relationship("Product")

    @property
    def subtotal(self):
        return self.price_at_sale * self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "price_at_sale": money_to_json(self.price_at_sale),
            "subtotal": money_to_json(self.subtotal),
        }
