# Overview: Capability definitions per role and the single role check.

"""
Role capabilities.

Every authorization decision in the backend goes through
role_has_capability(); routes declare the capability they need with
@require_capability and never compare role strings themselves.

Format of CAPABILITY_DEFINITIONS: (code, description, category)
"""

from .models.employees import ROLE_ADMIN, ROLE_CASHIER

CAPABILITY_DEFINITIONS = [
    # SALES
    ("PROCESS_SALE", "Register sales at the counter", "SALES"),
    ("VIEW_ACTIVITY", "View the sales and activity feed", "SALES"),
    ("APPROVE_SPECIAL_SALE", "Authorize special (no-charge) sales", "SALES"),

    # CASHBOX
    ("OPERATE_CASHBOX", "Open and close the cash session", "CASHBOX"),
    ("APPROVE_CASH_MOVEMENT", "Approve cash added to or removed from the register", "CASHBOX"),
    ("VIEW_CASH_MOVEMENTS", "Review the cash movement history", "CASHBOX"),

    # INVENTORY
    ("MANAGE_INVENTORY", "Create and edit products and stock", "INVENTORY"),
    ("VIEW_SUPPLIERS", "View suppliers", "INVENTORY"),
    ("MANAGE_SUPPLIERS", "Create, edit and delete suppliers", "INVENTORY"),
    ("MANAGE_PURCHASE_ORDERS", "Create and receive purchase orders", "INVENTORY"),

    # ORDERS
    ("MANAGE_CUSTOMER_ORDERS", "Take and update customer orders", "ORDERS"),

    # ADMINISTRATION
    ("MANAGE_EMPLOYEES", "Create and edit employee accounts", "ADMINISTRATION"),
    ("VIEW_REPORTS", "View the daily summary report", "ADMINISTRATION"),
]

CAPABILITY_CODES = frozenset(code for code, _, _ in CAPABILITY_DEFINITIONS)

_CASHIER_CAPABILITIES = frozenset({
    "PROCESS_SALE",
    "VIEW_ACTIVITY",
    "OPERATE_CASHBOX",
    "MANAGE_INVENTORY",
    "VIEW_SUPPLIERS",
    "MANAGE_PURCHASE_ORDERS",
    "MANAGE_CUSTOMER_ORDERS",
})

ROLE_CAPABILITIES = {
    ROLE_ADMIN: CAPABILITY_CODES,
    ROLE_CASHIER: _CASHIER_CAPABILITIES,
}


def role_has_capability(role: str | None, capability: str) -> bool:
    """Allow/deny for a role value; unknown roles and codes are denied."""
    if capability not in CAPABILITY_CODES:
        return False
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


def capabilities_for_role(role: str | None) -> list[str]:
    return sorted(ROLE_CAPABILITIES.get(role, frozenset()))
