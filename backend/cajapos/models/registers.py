from __future__ import annotations

from ..extensions import db
from ..money import money_to_json
from ..time_utils import to_utc_z


class CashSession(db.Model):
    """
    The register's cash balance between an open and a close.

    LIFECYCLE:
    - active: opened with a start amount; cash sales and movements change
      current_balance
    - closed: is_active=False, end_time set; terminal for the row

    INVARIANT: at most one active row system-wide. The partial unique
    index below makes the database reject a second one, so two racing
    opens cannot both commit.
    """
    __tablename__ = "cash_sessions"
    __table_args__ = (
        db.Index(
            "uq_cash_sessions_single_active",
            "is_active",
            unique=True,
            sqlite_where=db.text("is_active = 1"),
            postgresql_where=db.text("is_active"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)

    start_amount = db.Column(db.Numeric(12, 2), nullable=False)
    current_balance = db.Column(db.Numeric(12, 2), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    start_time = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    end_time = db.Column(db.DateTime(timezone=True), nullable=True)

    employee = db.relationship("Employee", backref=db.backref("cash_sessions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "start_amount": money_to_json(self.start_amount),
            "current_balance": money_to_json(self.current_balance),
            "is_active": self.is_active,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time) if self.end_time else None,
        }


class CashMovement(db.Model):
    """
    Admin-approved cash added to or removed from the active session.

    Written in the same transaction as the balance change, so the
    movement history always adds up to the balance (unlike the audit
    log, which is best-effort).
    """
    __tablename__ = "cash_movements"
    __table_args__ = (
        db.Index("ix_cash_movements_session_created", "cash_session_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    cash_session_id = db.Column(db.Integer, db.ForeignKey("cash_sessions.id"), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False)
    approved_by_employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False)

    movement_type = db.Column(db.String(8), nullable=False)  # ADD, REMOVE
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    reason = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    cash_session = db.relationship("CashSession", backref=db.backref("movements", lazy=True))
    employee = db.relationship("Employee", foreign_keys=[employee_id])
    approved_by = db.relationship("Employee", foreign_keys=[approved_by_employee_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cash_session_id": self.cash_session_id,
            "employee_id": self.employee_id,
            "approved_by_employee_id": self.approved_by_employee_id,
            "type": self.movement_type,
            "amount": money_to_json(self.amount),
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
        }
