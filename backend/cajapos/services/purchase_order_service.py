# Overview: Service-layer operations for purchase orders; ordering from suppliers and receiving stock.

"""
Purchase Orders

LIFECYCLE:
- ordenado: created, nothing received
- recibido_parcial: some units received
- recibido_completo: received >= ordered (terminal)
- cancelado: cancelled before anything was received (terminal)

Receiving adds to product stock in the same transaction as the received
counters. It does not reactivate products; that is an explicit product
edit or toggle.
"""

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Employee, Product, PurchaseOrder, PurchaseOrderItem, Supplier
from ..models.inventory import (
    PO_STATUS_CANCELLED,
    PO_STATUS_COMPLETE,
    PO_STATUS_ORDERED,
    PO_STATUS_PARTIAL,
)
from ..money import ZERO, quantize
from ..validation import (
    parse_amount,
    parse_date,
    parse_int,
    parse_list,
    parse_text,
    require_json_object,
)
from . import audit_service
from .concurrency import atomic, lock_for_update


def list_purchase_orders() -> list[PurchaseOrder]:
    return db.session.query(PurchaseOrder).order_by(
        PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc()
    ).all()


def get_purchase_order(order_id: int) -> PurchaseOrder:
    order = db.session.get(PurchaseOrder, order_id)
    if order is None:
        raise NotFoundError("Orden de compra no encontrada.")
    return order


def create_purchase_order(actor: Employee, payload) -> PurchaseOrder:
    """
    Header and items in one transaction.

    total_cost defaults to the sum of quantity * cost_price when omitted.
    """
    data = require_json_object(payload)
    supplier_id = parse_int(data.get("supplier_id"), "supplier_id", minimum=1)
    expected = parse_date(data.get("expected_delivery_date"), "La fecha de entrega")
    notes = parse_text(data.get("notes"), "Las notas", required=False)

    lines = []
    for raw in parse_list(data.get("items"), "Los productos de la orden"):
        lines.append((
            parse_int(raw.get("product_id"), "product_id", minimum=1),
            parse_int(raw.get("quantity"), "La cantidad", minimum=1),
            parse_amount(raw.get("cost_price"), "El precio de costo"),
        ))

    computed_total = sum((quantize(cost * qty) for _, qty, cost in lines), ZERO)
    total_cost = parse_amount(data.get("total_cost"), "El costo total", required=False)
    if total_cost is None:
        total_cost = computed_total

    with atomic():
        if db.session.get(Supplier, supplier_id) is None:
            raise ValidationError("Proveedor no encontrado.")
        product_ids = {product_id for product_id, _, _ in lines}
        found = db.session.query(Product.id).filter(Product.id.in_(product_ids)).count()
        if found != len(product_ids):
            raise ValidationError("La orden incluye productos que no existen.")

        order = PurchaseOrder(
            supplier_id=supplier_id,
            expected_delivery_date=expected,
            status=PO_STATUS_ORDERED,
            total_cost=total_cost,
            notes=notes,
            created_by=actor.id,
        )
        db.session.add(order)
        db.session.flush()

        for product_id, quantity, cost in lines:
            db.session.add(PurchaseOrderItem(
                purchase_order_id=order.id,
                product_id=product_id,
                quantity_ordered=quantity,
                quantity_received=0,
                cost_price_at_purchase=cost,
            ))

    audit_service.log_action(
        actor.id, actor.full_name, "PURCHASE_ORDER_CREATE",
        f"Creó orden de compra #{order.id} por ${total_cost}.",
    )
    return order


def receive_items(actor: Employee, order_id: int, payload) -> PurchaseOrder:
    """
    Record received units and add them to stock.

    items_received: [{item_id, quantity_received}]. Every item must belong
    to the order and every quantity must be positive.
    """
    data = require_json_object(payload)
    received = []
    for raw in parse_list(data.get("items_received"), "Los items recibidos"):
        received.append((
            parse_int(raw.get("item_id"), "item_id", minimum=1),
            parse_int(raw.get("quantity_received"), "La cantidad recibida", minimum=1),
        ))

    with atomic():
        order = lock_for_update(
            db.session.query(PurchaseOrder).filter(PurchaseOrder.id == order_id)
        ).first()
        if order is None:
            raise NotFoundError("Orden de compra no encontrada.")
        if order.status in (PO_STATUS_COMPLETE, PO_STATUS_CANCELLED):
            raise ValidationError("La orden de compra ya no admite recepciones.")

        items_by_id = {item.id: item for item in order.items}
        for item_id, quantity in received:
            item = items_by_id.get(item_id)
            if item is None:
                raise ValidationError(f"El item {item_id} no pertenece a la orden de compra.")

            item.quantity_received += quantity
            db.session.query(Product).filter(Product.id == item.product_id).update(
                {Product.stock: Product.stock + quantity},
                synchronize_session=False,
            )

        total_ordered = sum(item.quantity_ordered for item in order.items)
        total_received = sum(item.quantity_received for item in order.items)
        order.status = PO_STATUS_COMPLETE if total_received >= total_ordered else PO_STATUS_PARTIAL

    audit_service.log_action(
        actor.id, actor.full_name, "PURCHASE_ORDER_RECEIVE",
        f"Recibió items para la orden de compra #{order.id}.",
    )
    return order


def cancel_purchase_order(actor: Employee, order_id: int) -> PurchaseOrder:
    """Only orders with nothing received yet can be cancelled."""
    with atomic():
        order = lock_for_update(
            db.session.query(PurchaseOrder).filter(PurchaseOrder.id == order_id)
        ).first()
        if order is None:
            raise NotFoundError("Orden de compra no encontrada.")
        if order.status != PO_STATUS_ORDERED:
            raise ValidationError("Solo se pueden cancelar órdenes sin recepciones.")
        order.status = PO_STATUS_CANCELLED

    audit_service.log_action(
        actor.id, actor.full_name, "PURCHASE_ORDER_CANCEL",
        f"Canceló la orden de compra #{order.id}.",
    )
    return order
