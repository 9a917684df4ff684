from .catalog import Category, Product
from .auth import User, SessionToken, ROLES, ROLE_ADMIN, ROLE_MANAGER, ROLE_CASHIER
from .transactions import (
    Transaction,
    TransactionItem,
    DocumentSequence,
    PAYMENT_METHODS,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
)
from .settings import Setting

__all__ = [
    'Category', 'Product',
    'User', 'SessionToken', 'ROLES', 'ROLE_ADMIN', 'ROLE_MANAGER', 'ROLE_CASHIER',
    'Transaction', 'TransactionItem', 'DocumentSequence',
    'PAYMENT_METHODS', 'STATUS_COMPLETED', 'STATUS_CANCELLED',
    'Setting',
]
