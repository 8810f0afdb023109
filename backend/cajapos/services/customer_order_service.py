# Overview: Service-layer operations for customer orders (made-to-order requests).

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import CustomerOrder, CustomerOrderItem, Employee
from ..models.orders import CUSTOMER_ORDER_STATUSES, ORDER_STATUS_PENDING
from ..validation import (
    parse_amount,
    parse_date,
    parse_int,
    parse_list,
    parse_text,
    require_json_object,
)
from . import audit_service
from .concurrency import atomic


def list_customer_orders() -> list[CustomerOrder]:
    return db.session.query(CustomerOrder).order_by(
        CustomerOrder.delivery_date.asc(), CustomerOrder.id.asc()
    ).all()


def create_customer_order(actor: Employee, payload) -> CustomerOrder:
    data = require_json_object(payload)
    customer_name = parse_text(data.get("customer_name"), "El nombre del cliente", max_length=128)
    customer_phone = parse_text(data.get("customer_phone"), "El teléfono", required=False, max_length=32)
    delivery_date = parse_date(data.get("delivery_date"), "La fecha de entrega", required=True)
    total_amount = parse_amount(data.get("total_amount"), "El total")
    down_payment = parse_amount(data.get("down_payment"), "El abono", required=False)
    notes = parse_text(data.get("notes"), "Las notas", required=False)

    if down_payment is not None and down_payment > total_amount:
        raise ValidationError("El abono no puede superar el total del pedido.")

    items = []
    for raw in parse_list(data.get("items"), "Los productos del pedido", allow_empty=True):
        items.append(CustomerOrderItem(
            description=parse_text(raw.get("description"), "La descripción", max_length=255),
            quantity=parse_int(raw.get("quantity"), "La cantidad", minimum=1),
            unit_price=parse_amount(raw.get("unit_price"), "El precio unitario"),
        ))

    with atomic():
        order = CustomerOrder(
            customer_name=customer_name,
            customer_phone=customer_phone,
            delivery_date=delivery_date,
            total_amount=total_amount,
            down_payment=down_payment if down_payment is not None else 0,
            status=ORDER_STATUS_PENDING,
            notes=notes,
            employee_id=actor.id,
            items=items,
        )
        db.session.add(order)

    audit_service.log_action(
        actor.id, actor.full_name, "CUSTOMER_ORDER_CREATE",
        f"Creó pedido para cliente '{customer_name}' por ${total_amount}.",
    )
    return order


def update_status(actor: Employee, order_id: int, status) -> CustomerOrder:
    if status not in CUSTOMER_ORDER_STATUSES:
        raise ValidationError("Estado de pedido inválido.")

    order = db.session.get(CustomerOrder, order_id)
    if order is None:
        raise NotFoundError("Pedido no encontrado.")

    order.status = status
    db.session.commit()

    audit_service.log_action(
        actor.id, actor.full_name, "CUSTOMER_ORDER_UPDATE",
        f"Actualizó estado del pedido #{order.id} a '{status}'.",
    )
    return order
