from .branches import Branch
from .catalog import ProductCategory, Product, BranchInventory
from .customers import Customer
from .transactions import Transaction, TransactionItem, InvoiceSequence
from .auth import User, SessionToken, ROLE_HEAD_OFFICE, ROLE_BRANCH_ADMIN, ROLES

__all__ = [
    'Branch',
    'ProductCategory', 'Product', 'BranchInventory',
    'Customer',
    'Transaction', 'TransactionItem', 'InvoiceSequence',
    'User', 'SessionToken', 'ROLE_HEAD_OFFICE', 'ROLE_BRANCH_ADMIN', 'ROLES',
]
