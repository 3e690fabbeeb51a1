"""
Ledger service: the only writer of transaction entries.

This service enforces the fundamental rules:
1. Every transaction has at least two legs
2. Each leg is a debit or a credit, never both, never negative
3. Total debits equal total credits
4. Every referenced account exists and is active

No other service adds TransactionEntry rows. Nothing here
commits: the caller wraps the posting in atomic(...), so a
failure anywhere discards every write of the unit.
"""

import logging
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from trade_ledger.exceptions import (
    AccountInactiveError,
    AccountNotFoundError,
    LedgerValidationError,
    NotFoundError,
    UnbalancedTransactionError,
)
from trade_ledger.models.account import Account
from trade_ledger.models.transaction import Transaction
from trade_ledger.models.transaction_entry import TransactionEntry
from trade_ledger.money import ZERO, to_money
from trade_ledger.schemas.ledger import EntryLeg, IntegrityReport

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Posts and reads ledger entries.

    The service takes a database session as a constructor
    argument. The caller controls the transaction boundary.
    """

    def __init__(self, db: Session):
        self.db = db

    def post_entries(
        self, transaction: Transaction, legs: list[EntryLeg]
    ) -> list[TransactionEntry]:
        """
        Write a balanced set of legs under a transaction header.

        All legs are validated before the first one is written.
        The header is added to the session if it is new.
        """
        if len(legs) < 2:
            raise LedgerValidationError(
                "A transaction needs at least two entries", field="entries"
            )

        # --- Validate each leg ---
        rounded = []
        for leg in legs:
            debit = to_money(leg.debit_amount)
            credit = to_money(leg.credit_amount)
            if debit < 0 or credit < 0:
                raise LedgerValidationError(
                    "Entry amounts cannot be negative", field="entries"
                )
            if (debit > 0) == (credit > 0):
                raise LedgerValidationError(
                    "Each entry must be either a debit or a credit",
                    field="entries",
                )
            rounded.append((leg, debit, credit))

        # --- Enforce balance rule ---
        total_debits = sum((debit for _, debit, _ in rounded), ZERO)
        total_credits = sum((credit for _, _, credit in rounded), ZERO)
        if total_debits != total_credits:
            logger.warning(
                "Rejected unbalanced posting: debits=%s credits=%s",
                total_debits, total_credits,
            )
            raise UnbalancedTransactionError(total_debits, total_credits)

        # --- Validate all accounts ---
        account_ids = {leg.account_id for leg in legs}
        accounts = self.db.execute(
            select(Account).where(Account.id.in_(account_ids))
        ).scalars().all()
        accounts_by_id = {a.id: a for a in accounts}

        missing = account_ids - set(accounts_by_id)
        if missing:
            raise AccountNotFoundError(min(missing))
        for account in accounts_by_id.values():
            if not account.is_active:
                raise AccountInactiveError(account.code)

        # --- Write ---
        if transaction.id is None:
            self.db.add(transaction)
            self.db.flush()

        entries = [
            self._write_entry(transaction, leg.account_id, debit, credit, leg.description)
            for leg, debit, credit in rounded
        ]
        self.db.flush()

        logger.info(
            "Posted transaction %s (%s) amount=%s legs=%d",
            transaction.id,
            transaction.transaction_type.value,
            transaction.amount,
            len(entries),
        )
        return entries

    def _write_entry(
        self,
        transaction: Transaction,
        account_id: int,
        debit: Decimal,
        credit: Decimal,
        description: str,
    ) -> TransactionEntry:
        entry = TransactionEntry(
            account_id=account_id,
            debit_amount=debit,
            credit_amount=credit,
            description=description,
        )
        transaction.entries.append(entry)
        return entry

    def delete_transaction(self, transaction: Transaction) -> None:
        """Remove a transaction header and all of its entries."""
        logger.info(
            "Deleting transaction %s (%s) amount=%s",
            transaction.id,
            transaction.transaction_type.value,
            transaction.amount,
        )
        self.db.delete(transaction)
        self.db.flush()

    def get_transaction(self, transaction_id: int) -> Transaction:
        transaction = self.db.get(Transaction, transaction_id)
        if not transaction:
            raise NotFoundError("Transaction", transaction_id)
        return transaction

    def get_entries_by_account(self, account_id: int) -> list[TransactionEntry]:
        """
        Return all entries for an account in ledger order.

        Ordered by transaction date, then transaction id, then
        entry id, so entries posted on the same day keep the
        order they were posted in.
        """
        entries = self.db.execute(
            select(TransactionEntry)
            .join(Transaction, TransactionEntry.transaction_id == Transaction.id)
            .where(TransactionEntry.account_id == account_id)
            .order_by(Transaction.date, Transaction.id, TransactionEntry.id)
        ).scalars().all()
        return list(entries)

    def get_entries_by_transaction(
        self, transaction_id: int
    ) -> list[TransactionEntry]:
        """Return all entries for a transaction."""
        entries = self.db.execute(
            select(TransactionEntry)
            .where(TransactionEntry.transaction_id == transaction_id)
            .order_by(TransactionEntry.id)
        ).scalars().all()
        return list(entries)

    def account_has_entries(self, account_id: int) -> bool:
        first = self.db.execute(
            select(TransactionEntry.id)
            .where(TransactionEntry.account_id == account_id)
            .limit(1)
        ).scalar_one_or_none()
        return first is not None

    def sum_entries(self, account_id: int) -> tuple[Decimal, Decimal]:
        """Return (total_debits, total_credits) for an account."""
        total_debits, total_credits = self.db.execute(
            select(
                func.coalesce(func.sum(TransactionEntry.debit_amount), 0),
                func.coalesce(func.sum(TransactionEntry.credit_amount), 0),
            ).where(TransactionEntry.account_id == account_id)
        ).one()
        return to_money(total_debits), to_money(total_credits)

    def check_integrity(self) -> IntegrityReport:
        """
        Trial balance over every entry in the ledger.

        Also lists any transaction whose own legs do not balance,
        which can only happen if rows were written around this
        service.
        """
        total_debits, total_credits = self.db.execute(
            select(
                func.coalesce(func.sum(TransactionEntry.debit_amount), 0),
                func.coalesce(func.sum(TransactionEntry.credit_amount), 0),
            )
        ).one()
        total_debits = to_money(total_debits)
        total_credits = to_money(total_credits)

        unbalanced = self.db.execute(
            select(TransactionEntry.transaction_id)
            .group_by(TransactionEntry.transaction_id)
            .having(
                func.round(
                    func.sum(TransactionEntry.debit_amount)
                    - func.sum(TransactionEntry.credit_amount),
                    2,
                ) != 0
            )
            .order_by(TransactionEntry.transaction_id)
        ).scalars().all()

        if unbalanced or total_debits != total_credits:
            logger.error(
                "Ledger out of balance: debits=%s credits=%s transactions=%s",
                total_debits, total_credits, list(unbalanced),
            )

        return IntegrityReport(
            total_debits=total_debits,
            total_credits=total_credits,
            difference=total_debits - total_credits,
            is_balanced=total_debits == total_credits and not unbalanced,
            unbalanced_transaction_ids=list(unbalanced),
        )
