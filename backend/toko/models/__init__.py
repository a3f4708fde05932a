from .tenancy import TENANT_STATUSES, Tenant
from .auth import ROLES, User, SessionToken
from .inventory import PURCHASE_PAYMENT_STATUSES, Product, Supplier, Purchase, PurchaseItem
from .sales import PAYMENT_METHODS, Sale, SaleItem

__all__ = [
    'TENANT_STATUSES', 'Tenant',
    'ROLES', 'User', 'SessionToken',
    'PURCHASE_PAYMENT_STATUSES', 'Product', 'Supplier', 'Purchase', 'PurchaseItem',
    'PAYMENT_METHODS', 'Sale', 'SaleItem',
]
