"""Business logic services."""

from trade_ledger.services.ledger_service import LedgerService
from trade_ledger.services.account_service import AccountService
from trade_ledger.services.balance_service import BalanceService
from trade_ledger.services.report_service import ReportService
from trade_ledger.services.transaction_service import TransactionService

__all__ = [
    "LedgerService",
    "AccountService",
    "BalanceService",
    "ReportService",
    "TransactionService",
]
