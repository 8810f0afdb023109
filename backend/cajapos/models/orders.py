from __future__ import annotations

from ..extensions import db
from ..money import money_to_json
from ..time_utils import to_iso_date, to_utc_z, utcnow

ORDER_STATUS_PENDING = "pendiente"
ORDER_STATUS_IN_PREPARATION = "en_preparacion"
ORDER_STATUS_READY = "listo_para_entrega"
ORDER_STATUS_COMPLETED = "completado"
ORDER_STATUS_CANCELLED = "cancelado"

CUSTOMER_ORDER_STATUSES = (
    ORDER_STATUS_PENDING,
    ORDER_STATUS_IN_PREPARATION,
    ORDER_STATUS_READY,
    ORDER_STATUS_COMPLETED,
    ORDER_STATUS_CANCELLED,
)

# Orders still waiting on the kitchen
OPEN_ORDER_STATUSES = (ORDER_STATUS_PENDING, ORDER_STATUS_IN_PREPARATION)


class CustomerOrder(db.Model):
    """
    Made-to-order request (cakes, trays) taken at the counter.

    Items are free-text: custom orders are not catalog products and do
    not touch stock.
    """
    __tablename__ = "customer_orders"
    __table_args__ = (
        db.Index("ix_customer_orders_status_delivery", "status", "delivery_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(128), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=True)

    order_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    delivery_date = db.Column(db.Date, nullable=False)

    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    down_payment = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    status = db.Column(db.String(32), nullable=False, default=ORDER_STATUS_PENDING)
    notes = db.Column(db.Text, nullable=True)

    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False)

    items = db.relationship("CustomerOrderItem", backref="order", lazy=True, order_by="CustomerOrderItem.id")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "order_date": to_utc_z(self.order_date),
            "delivery_date": to_iso_date(self.delivery_date),
            "total_amount": money_to_json(self.total_amount),
            "down_payment": money_to_json(self.down_payment),
            "status": self.status,
            "notes": self.notes,
            "employee_id": self.employee_id,
            "items": [item.to_dict() for item in self.items],
        }


class CustomerOrderItem(db.Model):
    __tablename__ = "customer_order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("customer_orders.id"), nullable=False, index=True)
    description = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": money_to_json(self.unit_price),
        }
