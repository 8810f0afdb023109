from .employees import Employee, SessionToken
from .registers import CashSession, CashMovement
from .sales import Sale, SaleItem
from .inventory import Product, Supplier, PurchaseOrder, PurchaseOrderItem
from .orders import CustomerOrder, CustomerOrderItem
from .audit import ActionLog

__all__ = [
    'Employee', 'SessionToken',
    'CashSession', 'CashMovement',
    'Sale', 'SaleItem',
    'Product', 'Supplier', 'PurchaseOrder', 'PurchaseOrderItem',
    'CustomerOrder', 'CustomerOrderItem',
    'ActionLog',
]
