from .ledger import LedgerMovement
from .closures import DailyClosure
from .settings import SystemConfig
from .sales import Sale
from .expenses import Expense, EmployeePayment
from .inventory import Product

__all__ = [
    'LedgerMovement',
    'DailyClosure',
    'SystemConfig',
    'Sale',
    'Expense', 'EmployeePayment',
    'Product',
]
