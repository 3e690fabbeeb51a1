"""
Pydantic schemas for ledger reads.

These define what the balance and ledger endpoints return.
They are separate from the database models because the
presentation shape (balance nature, display balance, running
balance) does not exist in storage at all.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel

from trade_ledger.models.enums import AccountType, TransactionType
from trade_ledger.schemas.account import PartyRef


class EntryLeg(BaseModel):
    """
    One leg of a posting, before it is written.

    Sign and one-sidedness are checked by LedgerService so
    that a bad leg surfaces as a ledger error, not a schema error.
    """
    account_id: int
    debit_amount: Decimal = Decimal("0.00")
    credit_amount: Decimal = Decimal("0.00")
    description: str


class TransactionEntryResponse(BaseModel):
    id: int
    transaction_id: int
    account_id: int
    debit_amount: Decimal
    credit_amount: Decimal
    description: str

    model_config = {"from_attributes": True}


class TransactionResponse(BaseModel):
    id: int
    transaction_type: TransactionType
    date: datetime
    amount: Decimal
    description: str
    reference_no: str | None
    notes: str | None
    purchase_id: int | None
    sale_id: int | None
    payment_id: int | None
    receipt_id: int | None
    entries: list[TransactionEntryResponse]

    model_config = {"from_attributes": True}


class BalanceResult(BaseModel):
    """
    An account's balance, raw and as presented to a user.

    accounting_balance follows the normal-balance sign
    convention of the account type; everything below
    balance_nature is presentation only.
    """
    account_id: int
    account_name: str
    account_type: AccountType

    # Raw accounting data
    total_debits: Decimal
    total_credits: Decimal
    transaction_balance: Decimal
    opening_balance: Decimal
    accounting_balance: Decimal

    # Balance nature
    balance_nature: Literal["debit", "credit"]
    has_normal_balance: bool
    absolute_balance: Decimal
    is_zero_balance: bool

    # Presentation
    balance: Decimal
    display_balance: Decimal
    balance_type: str
    balance_description: str
    available_for_payment: Decimal
    available_for_receipt: Decimal
    warning_message: str | None = None
    context_message: str | None = None

    # Account capabilities
    can_debit_on_payment: bool
    can_credit_on_receipt: bool
    supplier: PartyRef | None = None
    customer: PartyRef | None = None


class LedgerLine(BaseModel):
    entry_id: int
    transaction_id: int
    date: datetime
    description: str
    transaction_type: TransactionType
    debit_amount: Decimal
    credit_amount: Decimal
    running_balance: Decimal


class AccountLedger(BaseModel):
    account_id: int
    account_name: str
    account_type: AccountType
    opening_balance: Decimal
    closing_balance: Decimal
    lines: list[LedgerLine]


class IntegrityReport(BaseModel):
    """Trial balance over the whole ledger."""
    total_debits: Decimal
    total_credits: Decimal
    difference: Decimal
    is_balanced: bool
    unbalanced_transaction_ids: list[int]
