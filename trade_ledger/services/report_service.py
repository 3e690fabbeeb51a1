"""
Report service: per-account ledger with running balance.
"""

from sqlalchemy.orm import Session

from trade_ledger.money import to_money
from trade_ledger.schemas.ledger import AccountLedger, LedgerLine
from trade_ledger.services.account_service import AccountService
from trade_ledger.services.balance_service import signed_balance
from trade_ledger.services.ledger_service import LedgerService


class ReportService:

    def __init__(self, db: Session):
        self.db = db
        self.ledger_service = LedgerService(db)
        self.account_service = AccountService(db)

    def get_ledger(self, account_id: int) -> AccountLedger:
        """
        Return an account's entries with a running balance.

        The running balance starts at the opening balance and
        moves by each entry under the account type's sign
        convention, so the last line agrees with the account's
        accounting balance.
        """
        account = self.account_service.get_account(account_id)
        running = to_money(account.opening_balance)

        lines = []
        for entry in self.ledger_service.get_entries_by_account(account.id):
            running = to_money(
                running
                + signed_balance(
                    account.account_type, entry.debit_amount, entry.credit_amount
                )
            )
            lines.append(LedgerLine(
                entry_id=entry.id,
                transaction_id=entry.transaction_id,
                date=entry.transaction.date,
                description=entry.transaction.description,
                transaction_type=entry.transaction.transaction_type,
                debit_amount=to_money(entry.debit_amount),
                credit_amount=to_money(entry.credit_amount),
                running_balance=running,
            ))

        return AccountLedger(
            account_id=account.id,
            account_name=account.name,
            account_type=account.account_type,
            opening_balance=to_money(account.opening_balance),
            closing_balance=running,
            lines=lines,
        )
