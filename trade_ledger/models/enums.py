"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored. A mistyped account type
or payment method is caught before it reaches the ledger.
"""

import enum


class AccountType(str, enum.Enum):
    """The five fundamental accounting categories."""
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"

    @property
    def is_debit_normal(self) -> bool:
        """Asset and expense balances grow with debits."""
        return self in (AccountType.ASSET, AccountType.EXPENSE)


class TransactionType(str, enum.Enum):
    """Business event a transaction was posted for."""
    PURCHASE = "PURCHASE"
    SALE = "SALE"
    PAYMENT = "PAYMENT"
    RECEIPT = "RECEIPT"
    JOURNAL = "JOURNAL"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    CHEQUE = "CHEQUE"
    UPI = "UPI"
    CARD = "CARD"

    @property
    def is_cash(self) -> bool:
        return self is PaymentMethod.CASH


class BalanceContext(str, enum.Enum):
    """Screen a balance is being read for."""
    PAYMENT = "payment"
    RECEIPT = "receipt"
