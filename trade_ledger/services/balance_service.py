"""
Balance service: derived account balances.

Balances are never stored. They are computed from the entries
every time, plus the account's opening balance, and then
classified for presentation. The classification functions are
pure; BalanceService only reads.

Sign convention (the "accounting balance"):
    ASSET, EXPENSE              debits - credits
    LIABILITY, EQUITY, REVENUE  credits - debits
A positive accounting balance is a normal balance.
"""

from decimal import Decimal

from sqlalchemy.orm import Session

from trade_ledger.config import get_settings
from trade_ledger.models.account import Account
from trade_ledger.models.enums import AccountType, BalanceContext
from trade_ledger.money import ZERO, to_money
from trade_ledger.schemas.account import PartyRef
from trade_ledger.schemas.ledger import BalanceResult
from trade_ledger.services.account_service import AccountService
from trade_ledger.services.ledger_service import LedgerService


def signed_balance(
    account_type: AccountType, total_debits: Decimal, total_credits: Decimal
) -> Decimal:
    """Apply the normal-balance sign convention of the account type."""
    if account_type.is_debit_normal:
        return to_money(total_debits - total_credits)
    return to_money(total_credits - total_debits)


def classify_nature(account_type: AccountType, balance: Decimal) -> dict:
    """Whether the balance sits on the debit or the credit side."""
    normal = balance >= 0
    if account_type.is_debit_normal:
        nature = "debit" if normal else "credit"
    else:
        nature = "credit" if normal else "debit"
    return {
        "balance_nature": nature,
        "has_normal_balance": normal,
        "absolute_balance": abs(balance),
        "is_zero_balance": balance == 0,
    }


def present_balance(
    account_type: AccountType, balance: Decimal, supplier_name: str | None = None
) -> dict:
    """User-facing reading of an accounting balance."""
    info = {
        "balance": balance,
        "display_balance": balance,
        "balance_type": "neutral",
        "balance_description": "",
        "available_for_payment": ZERO,
        "available_for_receipt": ZERO,
        "warning_message": None,
    }

    if account_type == AccountType.ASSET:
        if balance > 0:
            info["balance_type"] = "positive"
            info["balance_description"] = "Available balance"
            info["available_for_payment"] = balance
        elif balance < 0:
            info["balance_type"] = "negative"
            info["balance_description"] = "Overdrawn"
            info["warning_message"] = "This account is overdrawn"
        else:
            info["balance_description"] = "Zero balance"

    elif account_type == AccountType.LIABILITY:
        if balance > 0:
            info["balance_type"] = "liability"
            info["balance_description"] = (
                f"Amount owed to {supplier_name}" if supplier_name else "Amount owed"
            )
            info["available_for_payment"] = balance
        elif balance < 0:
            # The supplier owes us: an advance, shown as a positive amount
            info["balance_type"] = "asset"
            info["display_balance"] = abs(balance)
            info["balance_description"] = (
                f"Advance paid to {supplier_name}"
                if supplier_name else "Advance/Credit balance"
            )
        else:
            info["balance_description"] = "No outstanding balance"

    elif account_type == AccountType.EXPENSE:
        info["balance_type"] = "expense"
        info["balance_description"] = "Total expenses"

    elif account_type == AccountType.REVENUE:
        info["balance_type"] = "income"
        info["balance_description"] = "Total income"

    elif account_type == AccountType.EQUITY:
        info["balance_type"] = "equity"
        info["balance_description"] = "Equity balance"

    return info


def context_message(
    account_type: AccountType,
    balance: Decimal,
    context: BalanceContext | None,
    currency_symbol: str = "₹",
) -> str | None:
    """A hint for the screen the balance is shown on. Never changes numbers."""
    if context == BalanceContext.PAYMENT:
        if account_type == AccountType.ASSET:
            if balance > 0:
                return f"{currency_symbol}{balance:.2f} available for payments"
            return "Insufficient funds for payment"
        if account_type == AccountType.LIABILITY and balance > 0:
            return f"{currency_symbol}{balance:.2f} outstanding - can be paid down"
    elif context == BalanceContext.RECEIPT:
        if account_type == AccountType.ASSET:
            return "Can receive payments to this account"
    return None


class BalanceService:

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()
        self.ledger_service = LedgerService(db)
        self.account_service = AccountService(db)

    def compute_balance(
        self, account_id: int, context: BalanceContext | None = None
    ) -> BalanceResult:
        """
        Compute an account's balance and its presentation.

        Raises AccountNotFoundError for an unknown id. Performs
        no writes.
        """
        account = self.account_service.get_account(account_id)
        total_debits, total_credits = self.ledger_service.sum_entries(account.id)
        return self._build_result(account, total_debits, total_credits, context)

    def _build_result(
        self,
        account: Account,
        total_debits: Decimal,
        total_credits: Decimal,
        context: BalanceContext | None = None,
    ) -> BalanceResult:
        transaction_balance = signed_balance(
            account.account_type, total_debits, total_credits
        )
        opening_balance = to_money(account.opening_balance)
        accounting_balance = to_money(transaction_balance + opening_balance)

        supplier_name = account.supplier.name if account.supplier else None

        return BalanceResult(
            account_id=account.id,
            account_name=account.name,
            account_type=account.account_type,
            total_debits=total_debits,
            total_credits=total_credits,
            transaction_balance=transaction_balance,
            opening_balance=opening_balance,
            accounting_balance=accounting_balance,
            **classify_nature(account.account_type, accounting_balance),
            **present_balance(account.account_type, accounting_balance, supplier_name),
            context_message=context_message(
                account.account_type,
                accounting_balance,
                context,
                self.settings.CURRENCY_SYMBOL,
            ),
            can_debit_on_payment=account.can_debit_on_payment,
            can_credit_on_receipt=account.can_credit_on_receipt,
            supplier=PartyRef.model_validate(account.supplier) if account.supplier else None,
            customer=PartyRef.model_validate(account.customer) if account.customer else None,
        )
