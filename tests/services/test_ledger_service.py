"""
Tests for the LedgerService.

These cover the posting rules every transaction must obey,
the entry queries, and the trial balance check.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from trade_ledger.database import atomic
from trade_ledger.exceptions import (
    AccountInactiveError,
    AccountNotFoundError,
    LedgerValidationError,
    UnbalancedTransactionError,
)
from trade_ledger.models.enums import TransactionType
from trade_ledger.models.transaction import Transaction
from trade_ledger.models.transaction_entry import TransactionEntry
from trade_ledger.schemas.ledger import EntryLeg
from trade_ledger.services.account_service import AccountService
from trade_ledger.services.ledger_service import LedgerService


def journal(amount, date=None, description="Journal"):
    """Helper: an unsaved JOURNAL transaction header."""
    return Transaction(
        transaction_type=TransactionType.JOURNAL,
        amount=Decimal(amount),
        description=description,
        date=date or datetime(2024, 1, 15, 10, 0),
    )


def legs(debit_id, credit_id, amount):
    """Helper: a simple debit/credit pair."""
    return [
        EntryLeg(account_id=debit_id, debit_amount=Decimal(amount), description="Dr"),
        EntryLeg(account_id=credit_id, credit_amount=Decimal(amount), description="Cr"),
    ]


def count_entries(db_session):
    return db_session.execute(select(func.count(TransactionEntry.id))).scalar()


class TestPostEntries:

    def test_balanced_posting_writes_all_legs(self, db_session, chart):
        service = LedgerService(db_session)
        with atomic(db_session):
            entries = service.post_entries(
                journal("250.00"), legs(chart["1111"], chart["3100"], "250.00")
            )

        assert len(entries) == 2
        assert entries[0].debit_amount == Decimal("250.00")
        assert entries[0].credit_amount == Decimal("0.00")
        assert entries[1].credit_amount == Decimal("250.00")
        assert count_entries(db_session) == 2

    def test_split_posting_balances_across_many_legs(self, db_session, chart):
        service = LedgerService(db_session)
        with atomic(db_session):
            entries = service.post_entries(journal("100.00"), [
                EntryLeg(account_id=chart["5110"], debit_amount=Decimal("100.00"), description="Dr"),
                EntryLeg(account_id=chart["1111"], credit_amount=Decimal("30.00"), description="Cr"),
                EntryLeg(account_id=chart["1112"], credit_amount=Decimal("70.00"), description="Cr"),
            ])
        assert len(entries) == 3

    def test_unbalanced_posting_rejected(self, db_session, chart):
        service = LedgerService(db_session)
        with pytest.raises(UnbalancedTransactionError, match="does not balance"):
            service.post_entries(journal("100.00"), [
                EntryLeg(account_id=chart["1111"], debit_amount=Decimal("100.00"), description="Dr"),
                EntryLeg(account_id=chart["3100"], credit_amount=Decimal("99.99"), description="Cr"),
            ])
        db_session.rollback()
        assert count_entries(db_session) == 0

    def test_single_leg_rejected(self, db_session, chart):
        service = LedgerService(db_session)
        with pytest.raises(LedgerValidationError, match="at least two"):
            service.post_entries(journal("10.00"), [
                EntryLeg(account_id=chart["1111"], debit_amount=Decimal("10.00"), description="Dr"),
            ])

    def test_leg_with_both_sides_rejected(self, db_session, chart):
        service = LedgerService(db_session)
        with pytest.raises(LedgerValidationError, match="either a debit or a credit"):
            service.post_entries(journal("10.00"), [
                EntryLeg(
                    account_id=chart["1111"],
                    debit_amount=Decimal("10.00"),
                    credit_amount=Decimal("10.00"),
                    description="Both",
                ),
                EntryLeg(account_id=chart["3100"], credit_amount=Decimal("0"), description="None"),
            ])

    def test_negative_amount_rejected(self, db_session, chart):
        service = LedgerService(db_session)
        with pytest.raises(LedgerValidationError, match="negative"):
            service.post_entries(journal("10.00"), [
                EntryLeg(account_id=chart["1111"], debit_amount=Decimal("-10.00"), description="Dr"),
                EntryLeg(account_id=chart["3100"], credit_amount=Decimal("-10.00"), description="Cr"),
            ])

    def test_unknown_account_rejected(self, db_session, chart):
        service = LedgerService(db_session)
        with pytest.raises(AccountNotFoundError, match="99999"):
            service.post_entries(journal("10.00"), legs(chart["1111"], 99999, "10.00"))

    def test_inactive_account_rejected(self, db_session, chart):
        with atomic(db_session):
            AccountService(db_session).deactivate_account(chart["3100"])

        service = LedgerService(db_session)
        with pytest.raises(AccountInactiveError, match="3100"):
            service.post_entries(journal("10.00"), legs(chart["1111"], chart["3100"], "10.00"))

    def test_amounts_rounded_half_up(self, db_session, chart):
        service = LedgerService(db_session)
        with atomic(db_session):
            entries = service.post_entries(
                journal("10.01"), legs(chart["1111"], chart["3100"], "10.005")
            )
        assert entries[0].debit_amount == Decimal("10.01")
        assert entries[1].credit_amount == Decimal("10.01")


class TestEntryQueries:

    def test_entries_by_account_in_date_order(self, db_session, chart):
        service = LedgerService(db_session)
        with atomic(db_session):
            later = service.post_entries(
                journal("20.00", date=datetime(2024, 3, 1)),
                legs(chart["1111"], chart["3100"], "20.00"),
            )
            earlier = service.post_entries(
                journal("10.00", date=datetime(2024, 1, 1)),
                legs(chart["1111"], chart["3100"], "10.00"),
            )

        entries = service.get_entries_by_account(chart["1111"])
        assert [e.id for e in entries] == [earlier[0].id, later[0].id]

    def test_same_day_entries_keep_posting_order(self, db_session, chart):
        service = LedgerService(db_session)
        same_day = datetime(2024, 2, 2, 9, 0)
        with atomic(db_session):
            first = service.post_entries(
                journal("1.00", date=same_day), legs(chart["1111"], chart["3100"], "1.00")
            )
            second = service.post_entries(
                journal("2.00", date=same_day), legs(chart["1111"], chart["3100"], "2.00")
            )

        entries = service.get_entries_by_account(chart["1111"])
        assert [e.id for e in entries] == [first[0].id, second[0].id]

    def test_entries_by_transaction(self, db_session, chart):
        service = LedgerService(db_session)
        transaction = journal("5.00")
        with atomic(db_session):
            service.post_entries(transaction, legs(chart["1111"], chart["3100"], "5.00"))

        entries = service.get_entries_by_transaction(transaction.id)
        assert len(entries) == 2
        assert {e.account_id for e in entries} == {chart["1111"], chart["3100"]}

    def test_account_has_entries(self, db_session, chart):
        service = LedgerService(db_session)
        assert not service.account_has_entries(chart["1111"])
        with atomic(db_session):
            service.post_entries(journal("5.00"), legs(chart["1111"], chart["3100"], "5.00"))
        assert service.account_has_entries(chart["1111"])

    def test_sum_entries(self, db_session, chart):
        service = LedgerService(db_session)
        with atomic(db_session):
            service.post_entries(journal("40.00"), legs(chart["1111"], chart["3100"], "40.00"))
            service.post_entries(journal("15.50"), legs(chart["5210"], chart["1111"], "15.50"))

        assert service.sum_entries(chart["1111"]) == (Decimal("40.00"), Decimal("15.50"))

    def test_delete_transaction_removes_entries(self, db_session, chart):
        service = LedgerService(db_session)
        transaction = journal("5.00")
        with atomic(db_session):
            service.post_entries(transaction, legs(chart["1111"], chart["3100"], "5.00"))

        with atomic(db_session):
            service.delete_transaction(transaction)

        assert count_entries(db_session) == 0


class TestIntegrity:

    def test_empty_ledger_is_balanced(self, db_session):
        report = LedgerService(db_session).check_integrity()
        assert report.is_balanced
        assert report.total_debits == Decimal("0.00")

    def test_posted_ledger_is_balanced(self, db_session, chart):
        service = LedgerService(db_session)
        with atomic(db_session):
            service.post_entries(journal("40.00"), legs(chart["1111"], chart["3100"], "40.00"))
            service.post_entries(journal("12.34"), legs(chart["5210"], chart["1111"], "12.34"))

        report = service.check_integrity()
        assert report.is_balanced
        assert report.total_debits == Decimal("52.34")
        assert report.difference == Decimal("0.00")
        assert report.unbalanced_transaction_ids == []

    def test_entry_written_around_the_service_is_reported(self, db_session, chart):
        service = LedgerService(db_session)
        transaction = journal("40.00")
        with atomic(db_session):
            service.post_entries(transaction, legs(chart["1111"], chart["3100"], "40.00"))
            db_session.add(TransactionEntry(
                transaction_id=transaction.id,
                account_id=chart["1111"],
                debit_amount=Decimal("1.00"),
                credit_amount=Decimal("0.00"),
                description="stray",
            ))

        report = service.check_integrity()
        assert not report.is_balanced
        assert report.unbalanced_transaction_ids == [transaction.id]
