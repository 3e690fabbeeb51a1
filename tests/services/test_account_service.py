"""
Tests for the AccountService: the chart of accounts and the
supplier/customer directory.
"""

from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import select

from trade_ledger.config import get_settings
from trade_ledger.database import atomic
from trade_ledger.exceptions import (
    AccountNotFoundError,
    ConsistencyViolationError,
    DuplicateCodeError,
    HasChildAccountsError,
    HasLedgerEntriesError,
    InvalidParentError,
    TypeMismatchError,
)
from trade_ledger.models.account import Account
from trade_ledger.models.enums import AccountType, TransactionType
from trade_ledger.models.transaction import Transaction
from trade_ledger.schemas.account import (
    AccountCreate,
    AccountUpdate,
    CustomerCreate,
    SupplierCreate,
)
from trade_ledger.schemas.ledger import EntryLeg
from trade_ledger.seed import DEFAULT_CHART, seed_chart_of_accounts
from trade_ledger.services.account_service import AccountService
from trade_ledger.services.ledger_service import LedgerService


def make_account(service, code, name, account_type, parent_id=None, **kwargs):
    """Helper: create an account and commit it."""
    with atomic(service.db):
        account = service.create_account(AccountCreate(
            code=code,
            name=name,
            account_type=account_type,
            parent_id=parent_id,
            **kwargs,
        ))
    return account


def post_journal(db_session, debit_id, credit_id, amount):
    """Helper: post a two-leg journal entry and commit it."""
    with atomic(db_session):
        LedgerService(db_session).post_entries(
            Transaction(
                transaction_type=TransactionType.JOURNAL,
                amount=Decimal(amount),
                description="Journal",
                date=datetime(2024, 1, 1),
            ),
            [
                EntryLeg(account_id=debit_id, debit_amount=Decimal(amount), description="Dr"),
                EntryLeg(account_id=credit_id, credit_amount=Decimal(amount), description="Cr"),
            ],
        )


class TestCreateAccount:

    def test_create_root_account(self, db_session):
        service = AccountService(db_session)
        account = make_account(service, "1000", "Assets", AccountType.ASSET)

        assert account.id is not None
        assert account.parent_id is None
        assert account.is_active is True
        assert account.opening_balance == Decimal("0.00")
        assert account.can_debit_on_payment is True
        assert account.can_credit_on_receipt is True

    def test_create_child_account(self, db_session):
        service = AccountService(db_session)
        parent = make_account(service, "5000", "Expenses", AccountType.EXPENSE)
        child = make_account(service, "5100", "Rent", AccountType.EXPENSE, parent.id)

        assert child.parent_id == parent.id
        assert [c.code for c in parent.children] == ["5100"]

    def test_duplicate_code_rejected(self, db_session):
        service = AccountService(db_session)
        make_account(service, "1000", "Assets", AccountType.ASSET)

        with pytest.raises(DuplicateCodeError, match="already exists"):
            make_account(service, "1000", "Other Assets", AccountType.ASSET)

    def test_unknown_parent_rejected(self, db_session):
        service = AccountService(db_session)
        with pytest.raises(InvalidParentError, match="not found"):
            make_account(service, "1100", "Current", AccountType.ASSET, parent_id=424242)

    def test_child_type_must_match_parent(self, db_session):
        service = AccountService(db_session)
        parent = make_account(service, "1000", "Assets", AccountType.ASSET)

        with pytest.raises(TypeMismatchError, match="same type"):
            make_account(service, "1100", "Loans", AccountType.LIABILITY, parent.id)

    def test_flags_inherited_from_parent(self, db_session):
        service = AccountService(db_session)
        parent = make_account(
            service, "5000", "Expenses", AccountType.EXPENSE,
            can_debit_on_payment=False,
        )
        child = make_account(service, "5100", "Rent", AccountType.EXPENSE, parent.id)
        explicit = make_account(
            service, "5200", "Travel", AccountType.EXPENSE, parent.id,
            can_debit_on_payment=True,
        )

        assert child.can_debit_on_payment is False
        assert explicit.can_debit_on_payment is True

    def test_opening_balance_rounded(self, db_session):
        service = AccountService(db_session)
        account = make_account(
            service, "1111", "Cash", AccountType.ASSET,
            opening_balance=Decimal("100.50"),
        )
        assert account.opening_balance == Decimal("100.50")


class TestBulkCreate:

    def test_duplicate_in_batch_first_wins(self, db_session):
        service = AccountService(db_session)
        created, errors = service.bulk_create_accounts([
            AccountCreate(code="5001", name="Fuel", account_type=AccountType.EXPENSE),
            AccountCreate(code="5001", name="Fuel again", account_type=AccountType.EXPENSE),
        ])

        assert [a.name for a in created] == ["Fuel"]
        assert len(errors) == 1
        assert errors[0]["index"] == 1
        assert errors[0]["code"] == "5001"
        assert errors[0]["error"] == "DUPLICATE_CODE"

    def test_failed_item_does_not_undo_others(self, db_session, database):
        service = AccountService(db_session)
        created, errors = service.bulk_create_accounts([
            AccountCreate(code="1000", name="Assets", account_type=AccountType.ASSET),
            AccountCreate(
                code="1100", name="Orphan", account_type=AccountType.ASSET, parent_id=999,
            ),
            AccountCreate(code="2000", name="Liabilities", account_type=AccountType.LIABILITY),
        ])

        assert [a.code for a in created] == ["1000", "2000"]
        assert errors[0]["error"] == "INVALID_PARENT"

        check = database.session()
        try:
            codes = check.execute(select(Account.code).order_by(Account.code)).scalars().all()
            assert codes == ["1000", "2000"]
        finally:
            check.close()

    def test_each_item_runs_under_posting_timeout(self, db_session, monkeypatch):
        timeouts = []

        def recording_atomic(session, timeout_ms=None):
            timeouts.append(timeout_ms)
            return atomic(session, timeout_ms)

        monkeypatch.setattr(
            "trade_ledger.services.account_service.atomic", recording_atomic
        )

        created, errors = AccountService(db_session).bulk_create_accounts([
            AccountCreate(code="5001", name="Fuel", account_type=AccountType.EXPENSE),
            AccountCreate(code="5002", name="Tolls", account_type=AccountType.EXPENSE),
        ])

        assert len(created) == 2
        assert errors == []
        assert timeouts == [get_settings().POSTING_TIMEOUT_MS] * 2


class TestChart:

    def test_seed_is_idempotent(self, db_session):
        with atomic(db_session):
            first = seed_chart_of_accounts(db_session)
        with atomic(db_session):
            second = seed_chart_of_accounts(db_session)

        assert first == len(DEFAULT_CHART)
        assert second == 0

    def test_chart_is_a_tree_ordered_by_code(self, db_session, chart):
        roots = AccountService(db_session).get_chart()

        assert [r.code for r in roots] == ["1000", "2000", "3000", "4000", "5000"]
        current_assets = roots[0].children[0]
        assert current_assets.code == "1100"
        cash = current_assets.children[0]
        assert [c.code for c in cash.children] == ["1111", "1112", "1113"]

    def test_chart_hides_inactive_accounts(self, db_session, chart):
        service = AccountService(db_session)
        with atomic(db_session):
            service.deactivate_account(chart["1113"])

        roots = service.get_chart()
        cash = roots[0].children[0].children[0]
        assert [c.code for c in cash.children] == ["1111", "1112"]

    def test_eligible_debit_accounts(self, db_session, chart):
        service = AccountService(db_session)
        with atomic(db_session):
            supplier = service.create_supplier(SupplierCreate(name="ABC Traders"))

        eligible = service.find_eligible_debit_accounts()
        codes = {a.code for a in eligible}

        assert supplier.account.code in codes
        assert "5210" in codes
        # Liabilities without a supplier are not payable targets
        assert "2111" not in codes
        assert all(
            a.account_type in (AccountType.EXPENSE, AccountType.LIABILITY) for a in eligible
        )

    def test_eligible_credit_accounts(self, db_session, chart):
        service = AccountService(db_session)
        with atomic(db_session):
            customer = service.create_customer(CustomerCreate(name="Fresh Mart"))

        codes = {a.code for a in service.find_eligible_credit_accounts()}
        assert customer.account.code in codes
        assert "4110" in codes
        assert "1111" not in codes


class TestUpdateAccount:

    def test_rename(self, db_session, chart):
        service = AccountService(db_session)
        with atomic(db_session):
            account = service.update_account(chart["1111"], AccountUpdate(name="Till"))
        assert account.name == "Till"

    def test_code_change_must_stay_unique(self, db_session, chart):
        service = AccountService(db_session)
        with pytest.raises(DuplicateCodeError):
            with atomic(db_session):
                service.update_account(chart["1111"], AccountUpdate(code="1112"))

    def test_cannot_be_own_parent(self, db_session, chart):
        service = AccountService(db_session)
        with pytest.raises(InvalidParentError, match="own parent"):
            with atomic(db_session):
                service.update_account(chart["1100"], AccountUpdate(parent_id=chart["1100"]))

    def test_cannot_move_under_descendant(self, db_session, chart):
        service = AccountService(db_session)
        with pytest.raises(InvalidParentError, match="descendant"):
            with atomic(db_session):
                service.update_account(chart["1100"], AccountUpdate(parent_id=chart["1111"]))

    def test_type_change_refused_with_entries(self, db_session, chart):
        post_journal(db_session, chart["1140"], chart["3100"], "10.00")
        service = AccountService(db_session)

        with pytest.raises(ConsistencyViolationError, match="transaction entries"):
            with atomic(db_session):
                service.update_account(
                    chart["1140"], AccountUpdate(account_type=AccountType.EXPENSE)
                )

    def test_type_change_must_match_parent(self, db_session, chart):
        service = AccountService(db_session)
        with pytest.raises(TypeMismatchError):
            with atomic(db_session):
                service.update_account(
                    chart["1140"], AccountUpdate(account_type=AccountType.EXPENSE)
                )


class TestDeleteAccount:

    def test_delete_unused_leaf(self, db_session, chart):
        service = AccountService(db_session)
        with atomic(db_session):
            service.delete_account(chart["1140"])

        with pytest.raises(AccountNotFoundError):
            service.get_account(chart["1140"])

    def test_delete_with_entries_refused(self, db_session, chart):
        post_journal(db_session, chart["1111"], chart["3100"], "10.00")
        service = AccountService(db_session)

        with pytest.raises(HasLedgerEntriesError, match="deactivate it instead"):
            with atomic(db_session):
                service.delete_account(chart["1111"])

    def test_delete_with_children_refused(self, db_session, chart):
        service = AccountService(db_session)
        with pytest.raises(HasChildAccountsError):
            with atomic(db_session):
                service.delete_account(chart["1110"])

    def test_deactivate_keeps_history(self, db_session, chart):
        post_journal(db_session, chart["1111"], chart["3100"], "10.00")
        service = AccountService(db_session)
        with atomic(db_session):
            account = service.deactivate_account(chart["1111"])

        assert account.is_active is False
        assert LedgerService(db_session).account_has_entries(chart["1111"])


class TestDirectory:

    def test_supplier_gets_payable_account(self, db_session, chart):
        service = AccountService(db_session)
        with atomic(db_session):
            supplier = service.create_supplier(SupplierCreate(name="ABC Traders", phone="98450"))

        account = supplier.account
        assert account.code == f"2111-S{supplier.id:04d}"
        assert account.name == "ABC Traders - Payable"
        assert account.account_type == AccountType.LIABILITY
        assert account.parent_id == chart["2111"]
        assert account.is_eligible_for_payment()
        assert not account.is_eligible_for_receipt()

    def test_customer_gets_receivable_account(self, db_session, chart):
        service = AccountService(db_session)
        with atomic(db_session):
            customer = service.create_customer(CustomerCreate(name="Fresh Mart"))

        account = customer.account
        assert account.code == f"1121-C{customer.id:04d}"
        assert account.name == "Fresh Mart - Receivable"
        assert account.account_type == AccountType.ASSET
        assert account.is_eligible_for_receipt()
        assert not account.is_eligible_for_payment()

    def test_supplier_needs_trade_payables_in_chart(self, db_session):
        service = AccountService(db_session)
        with pytest.raises(InvalidParentError, match="2111"):
            with atomic(db_session):
                service.create_supplier(SupplierCreate(name="ABC Traders"))
