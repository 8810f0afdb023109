# Overview: Service-layer operations for suppliers.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Employee, Product, PurchaseOrder, Supplier
from ..validation import parse_text, require_json_object
from . import audit_service


def _parse_supplier_payload(payload) -> dict:
    data = require_json_object(payload)
    return {
        "name": parse_text(data.get("name"), "El nombre del proveedor", max_length=255),
        "rut": parse_text(data.get("rut"), "El RUT", required=False, max_length=16),
        "contact_person": parse_text(data.get("contact_person"), "El contacto", required=False, max_length=128),
        "phone": parse_text(data.get("phone"), "El teléfono", required=False, max_length=32),
        "email": parse_text(data.get("email"), "El email", required=False, max_length=255),
        "address": parse_text(data.get("address"), "La dirección", required=False, max_length=255),
    }


def _duplicate_exists(data: dict, exclude_id: int | None = None) -> bool:
    clauses = []
    if data["rut"]:
        clauses.append(Supplier.rut == data["rut"])
    if data["email"]:
        clauses.append(Supplier.email == data["email"])
    if not clauses:
        return False
    query = db.session.query(Supplier.id).filter(db.or_(*clauses))
    if exclude_id is not None:
        query = query.filter(Supplier.id != exclude_id)
    return query.first() is not None


def _commit(conflict_message: str) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(conflict_message)


def list_suppliers() -> list[Supplier]:
    return db.session.query(Supplier).order_by(Supplier.name.asc()).all()


def get_supplier(supplier_id: int) -> Supplier:
    supplier = db.session.get(Supplier, supplier_id)
    if supplier is None:
        raise NotFoundError("Proveedor no encontrado.")
    return supplier


def create_supplier(actor: Employee, payload) -> Supplier:
    data = _parse_supplier_payload(payload)
    conflict = "El RUT o Email ingresado ya existe."
    if _duplicate_exists(data):
        raise ConflictError(conflict)

    supplier = Supplier(**data)
    db.session.add(supplier)
    _commit(conflict)

    audit_service.log_action(actor.id, actor.full_name, "SUPPLIER_CREATE", f"Creó al proveedor '{supplier.name}'.")
    return supplier


def update_supplier(actor: Employee, supplier_id: int, payload) -> Supplier:
    data = _parse_supplier_payload(payload)
    supplier = get_supplier(supplier_id)

    conflict = "El RUT o Email ingresado ya pertenece a otro proveedor."
    if _duplicate_exists(data, exclude_id=supplier.id):
        raise ConflictError(conflict)

    for field, value in data.items():
        setattr(supplier, field, value)
    _commit(conflict)

    audit_service.log_action(actor.id, actor.full_name, "SUPPLIER_UPDATE", f"Actualizó al proveedor '{supplier.name}'.")
    return supplier


def delete_supplier(actor: Employee, supplier_id: int) -> None:
    """Raises ConflictError while any product or purchase order references the supplier."""
    supplier = get_supplier(supplier_id)

    in_use = (
        db.session.query(Product.id).filter(Product.supplier_id == supplier.id).first() is not None
        or db.session.query(PurchaseOrder.id).filter(PurchaseOrder.supplier_id == supplier.id).first() is not None
    )
    if in_use:
        raise ConflictError("No se puede eliminar el proveedor porque está en uso.")

    name = supplier.name
    db.session.delete(supplier)
    _commit("No se puede eliminar el proveedor porque está en uso.")

    audit_service.log_action(actor.id, actor.full_name, "SUPPLIER_DELETE", f"Eliminó al proveedor '{name}'.")
