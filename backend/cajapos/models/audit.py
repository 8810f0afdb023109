from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class ActionLog(db.Model):
    """
    Append-only record of who did what.

    employee_name is copied at write time so entries stay readable after
    an employee is renamed.

    NOT transactional with the action it records: entries are written
    after the action commits, and a failed write never undoes the action.
    """
    __tablename__ = "action_logs"
    __table_args__ = (
        db.Index("ix_action_logs_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=True, index=True)
    employee_name = db.Column(db.String(128), nullable=False)
    action_type = db.Column(db.String(64), nullable=False, index=True)
    details = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "action_type": self.action_type,
            "details": self.details,
            "created_at": to_utc_z(self.created_at),
        }
