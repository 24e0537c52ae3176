from .tenancy import Tenant, User, USER_ROLES
from .inventory import Product
from .sales import Sale, SaleItem, PAYMENT_METHODS, PAYMENT_STATUSES
from .ledger import LedgerEntry, ENTRY_TYPES, ENTRY_INCOME, ENTRY_EXPENSE, SALES_CATEGORY
from .documents import InvoiceSequence

__all__ = [
    'Tenant', 'User', 'USER_ROLES',
    'Product',
    'Sale', 'SaleItem', 'PAYMENT_METHODS', 'PAYMENT_STATUSES',
    'LedgerEntry', 'ENTRY_TYPES', 'ENTRY_INCOME', 'ENTRY_EXPENSE', 'SALES_CATEGORY',
    'InvoiceSequence',
]
