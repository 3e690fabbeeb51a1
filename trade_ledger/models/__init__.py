"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from trade_ledger.models.base import Base
from trade_ledger.models.enums import (
    AccountType,
    TransactionType,
    PaymentMethod,
    BalanceContext,
)
from trade_ledger.models.party import Supplier, Customer
from trade_ledger.models.account import Account
from trade_ledger.models.transaction import Transaction
from trade_ledger.models.transaction_entry import TransactionEntry
from trade_ledger.models.purchase import Purchase, PurchaseItem
from trade_ledger.models.sale import Sale, SaleItem
from trade_ledger.models.payment import Payment, Receipt

__all__ = [
    "Base",
    "AccountType",
    "TransactionType",
    "PaymentMethod",
    "BalanceContext",
    "Supplier",
    "Customer",
    "Account",
    "Transaction",
    "TransactionEntry",
    "Purchase",
    "PurchaseItem",
    "Sale",
    "SaleItem",
    "Payment",
    "Receipt",
]
