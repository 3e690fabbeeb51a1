"""
Account service: the chart of accounts and the party directory.

This service owns the account tree: creating, reshaping,
deactivating and deleting nodes, and answering which accounts
may take part in a payment or a receipt. Creating a supplier
or customer also opens that party's subsidiary ledger account.
"""

import logging

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from trade_ledger.config import get_settings
from trade_ledger.database import atomic
from trade_ledger.exceptions import (
    AccountNotFoundError,
    ConsistencyViolationError,
    DuplicateCodeError,
    HasChildAccountsError,
    HasLedgerEntriesError,
    InvalidParentError,
    LedgerError,
    LedgerValidationError,
    NotFoundError,
    TypeMismatchError,
)
from trade_ledger.models.account import Account
from trade_ledger.models.enums import AccountType
from trade_ledger.models.party import Customer, Supplier
from trade_ledger.money import to_money
from trade_ledger.schemas.account import (
    AccountCreate,
    AccountTreeNode,
    AccountUpdate,
    CustomerCreate,
    SupplierCreate,
)
from trade_ledger.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)


class AccountService:

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()
        self.ledger_service = LedgerService(db)

    # --- Lookups ---

    def get_account(self, account_id: int) -> Account:
        account = self.db.get(Account, account_id)
        if not account:
            raise AccountNotFoundError(account_id)
        return account

    def get_account_by_code(self, code: str) -> Account | None:
        return self.db.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()

    def _check_code_available(self, code: str) -> None:
        if self.get_account_by_code(code) is not None:
            raise DuplicateCodeError(code)

    # --- Creation ---

    def create_account(self, request: AccountCreate) -> Account:
        """
        Add one account to the chart.

        A child must have its parent's type. Eligibility flags
        that are not given are inherited from the parent, and
        default to true for a root account.

        Raises DuplicateCodeError, InvalidParentError or
        TypeMismatchError; nothing is written in that case.
        """
        self._check_code_available(request.code)

        parent = None
        if request.parent_id is not None:
            parent = self.db.get(Account, request.parent_id)
            if not parent:
                raise InvalidParentError(
                    f"Parent account {request.parent_id} not found"
                )
            if parent.account_type != request.account_type:
                raise TypeMismatchError(parent.account_type, request.account_type)

        if request.supplier_id is not None and request.customer_id is not None:
            raise LedgerValidationError(
                "An account can be linked to a supplier or a customer, not both"
            )
        if request.supplier_id is not None and not self.db.get(Supplier, request.supplier_id):
            raise NotFoundError("Supplier", request.supplier_id)
        if request.customer_id is not None and not self.db.get(Customer, request.customer_id):
            raise NotFoundError("Customer", request.customer_id)

        account = Account(
            code=request.code,
            name=request.name,
            description=request.description,
            account_type=request.account_type,
            opening_balance=to_money(request.opening_balance),
            is_active=request.is_active,
            parent_id=parent.id if parent else None,
            supplier_id=request.supplier_id,
            customer_id=request.customer_id,
            can_debit_on_payment=self._inherit(
                request.can_debit_on_payment, parent, "can_debit_on_payment"
            ),
            can_credit_on_receipt=self._inherit(
                request.can_credit_on_receipt, parent, "can_credit_on_receipt"
            ),
        )
        self.db.add(account)
        self.db.flush()
        logger.info(
            "Created account %s %r (%s)",
            account.code, account.name, account.account_type.value,
        )
        return account

    @staticmethod
    def _inherit(value: bool | None, parent: Account | None, flag: str) -> bool:
        if value is not None:
            return value
        if parent is not None:
            return getattr(parent, flag)
        return True

    def bulk_create_accounts(
        self, requests: list[AccountCreate]
    ) -> tuple[list[Account], list[dict]]:
        """
        Create several accounts, each in its own unit of work.

        A failing item does not affect the others. Returns the
        created accounts and one error dict per failed item:
        {"index", "code", "error", "message"}. When a code
        appears twice in the batch the first occurrence wins.
        """
        created = []
        errors = []
        for index, request in enumerate(requests):
            try:
                with atomic(self.db, self.settings.POSTING_TIMEOUT_MS):
                    account = self.create_account(request)
            except LedgerError as e:
                logger.warning(
                    "Bulk create: item %d (%s) rejected: %s",
                    index, request.code, e,
                )
                errors.append({
                    "index": index,
                    "code": request.code,
                    "error": e.code,
                    "message": str(e),
                })
                continue
            created.append(account)
        return created, errors

    # --- Chart queries ---

    def get_chart(self) -> list[AccountTreeNode]:
        """
        Return the active chart of accounts as a tree.

        Roots and every level of children are ordered by code.
        An active account under an inactive parent is not shown.
        """
        accounts = self.db.execute(
            select(Account)
            .where(Account.is_active.is_(True))
            .order_by(Account.code)
        ).scalars().all()

        nodes = {
            a.id: AccountTreeNode(
                id=a.id,
                code=a.code,
                name=a.name,
                account_type=a.account_type,
                opening_balance=a.opening_balance,
                supplier_id=a.supplier_id,
                customer_id=a.customer_id,
                children=[],
            )
            for a in accounts
        }
        roots = []
        for account in accounts:
            node = nodes[account.id]
            if account.parent_id is None:
                roots.append(node)
            elif account.parent_id in nodes:
                nodes[account.parent_id].children.append(node)
        return roots

    def find_eligible_debit_accounts(self) -> list[Account]:
        """Accounts a payment may debit: expenses and supplier payables."""
        accounts = self.db.execute(
            select(Account)
            .where(
                Account.is_active.is_(True),
                Account.can_debit_on_payment.is_(True),
                or_(
                    Account.account_type == AccountType.EXPENSE,
                    and_(
                        Account.account_type == AccountType.LIABILITY,
                        Account.supplier_id.is_not(None),
                    ),
                ),
            )
            .order_by(Account.code)
        ).scalars().all()
        return list(accounts)

    def find_eligible_credit_accounts(self) -> list[Account]:
        """Accounts a receipt may credit: revenue and customer receivables."""
        accounts = self.db.execute(
            select(Account)
            .where(
                Account.is_active.is_(True),
                Account.can_credit_on_receipt.is_(True),
                or_(
                    Account.account_type == AccountType.REVENUE,
                    and_(
                        Account.account_type == AccountType.ASSET,
                        Account.customer_id.is_not(None),
                    ),
                ),
            )
            .order_by(Account.code)
        ).scalars().all()
        return list(accounts)

    # --- Changes ---

    def update_account(self, account_id: int, request: AccountUpdate) -> Account:
        """
        Apply a partial update to an account.

        Changing the code keeps codes unique. Changing the type
        is refused once the account has entries, or when it
        would no longer match its parent or children. Changing
        the parent refuses self-parenting and cycles.
        """
        account = self.get_account(account_id)
        changes = request.model_dump(exclude_unset=True)

        new_code = changes.get("code")
        if new_code is not None and new_code != account.code:
            self._check_code_available(new_code)

        new_type = changes.get("account_type") or account.account_type
        if new_type != account.account_type:
            if self.ledger_service.account_has_entries(account.id):
                raise ConsistencyViolationError(
                    f"Cannot change the type of account {account.code} "
                    f"with transaction entries"
                )
            for child in account.children:
                if child.account_type != new_type:
                    raise TypeMismatchError(new_type, child.account_type)

        if "parent_id" in changes:
            parent = self._validate_new_parent(account, changes["parent_id"])
        else:
            parent = account.parent
        if parent is not None and parent.account_type != new_type:
            raise TypeMismatchError(parent.account_type, new_type)

        for field, value in changes.items():
            if value is None and field not in ("parent_id", "description"):
                continue
            setattr(account, field, value)

        self.db.flush()
        logger.info("Updated account %s: %s", account.code, sorted(changes))
        return account

    def _validate_new_parent(
        self, account: Account, parent_id: int | None
    ) -> Account | None:
        if parent_id is None:
            return None
        if parent_id == account.id:
            raise InvalidParentError("An account cannot be its own parent")
        parent = self.db.get(Account, parent_id)
        if not parent:
            raise InvalidParentError(f"Parent account {parent_id} not found")

        # Walk up from the new parent; reaching the account means a cycle
        ancestor = parent
        while ancestor is not None:
            if ancestor.id == account.id:
                raise InvalidParentError(
                    f"Account {parent.code} is a descendant of "
                    f"{account.code} and cannot be its parent"
                )
            ancestor = ancestor.parent
        return parent

    def deactivate_account(self, account_id: int) -> Account:
        """
        Soft-delete an account.

        Its entries stay in the ledger; it can no longer take
        part in new postings and drops out of the chart.
        """
        account = self.get_account(account_id)
        account.is_active = False
        self.db.flush()
        logger.info("Deactivated account %s", account.code)
        return account

    def delete_account(self, account_id: int) -> None:
        """
        Hard-delete an account that was never used.

        Accounts with entries must be deactivated instead, and
        accounts with children must be emptied first.
        """
        account = self.get_account(account_id)

        if self.ledger_service.account_has_entries(account.id):
            logger.warning("Refused to delete account %s: has entries", account.code)
            raise HasLedgerEntriesError(account.code)

        children = self.db.execute(
            select(func.count(Account.id)).where(Account.parent_id == account.id)
        ).scalar()
        if children:
            logger.warning("Refused to delete account %s: has children", account.code)
            raise HasChildAccountsError(account.code, children)

        self.db.delete(account)
        self.db.flush()
        logger.info("Deleted account %s", account.code)

    # --- Directory ---

    def create_supplier(self, request: SupplierCreate) -> Supplier:
        """
        Add a supplier and open its payable account.

        The account sits under Trade Payables, is coded
        <parent>-S<id> and can be debited by payments but not
        credited by receipts.
        """
        parent = self._control_account(self.settings.TRADE_PAYABLES_CODE, "Trade payables")

        supplier = Supplier(
            name=request.name,
            phone=request.phone,
            address=request.address,
        )
        self.db.add(supplier)
        self.db.flush()

        self.create_account(AccountCreate(
            code=f"{parent.code}-S{supplier.id:04d}",
            name=f"{supplier.name} - Payable",
            account_type=AccountType.LIABILITY,
            parent_id=parent.id,
            supplier_id=supplier.id,
            can_debit_on_payment=True,
            can_credit_on_receipt=False,
        ))
        self.db.refresh(supplier)
        logger.info("Created supplier %s %r", supplier.id, supplier.name)
        return supplier

    def create_customer(self, request: CustomerCreate) -> Customer:
        """
        Add a customer and open its receivable account.

        The account sits under Trade Receivables, is coded
        <parent>-C<id> and can be credited by receipts but not
        debited by payments.
        """
        parent = self._control_account(
            self.settings.TRADE_RECEIVABLES_CODE, "Trade receivables"
        )

        customer = Customer(
            name=request.name,
            phone=request.phone,
            address=request.address,
        )
        self.db.add(customer)
        self.db.flush()

        self.create_account(AccountCreate(
            code=f"{parent.code}-C{customer.id:04d}",
            name=f"{customer.name} - Receivable",
            account_type=AccountType.ASSET,
            parent_id=parent.id,
            customer_id=customer.id,
            can_debit_on_payment=False,
            can_credit_on_receipt=True,
        ))
        self.db.refresh(customer)
        logger.info("Created customer %s %r", customer.id, customer.name)
        return customer

    def _control_account(self, code: str, label: str) -> Account:
        parent = self.get_account_by_code(code)
        if parent is None:
            raise InvalidParentError(
                f"{label} account {code} is missing from the chart of accounts"
            )
        return parent

    def get_supplier(self, supplier_id: int) -> Supplier:
        supplier = self.db.get(Supplier, supplier_id)
        if not supplier:
            raise NotFoundError("Supplier", supplier_id)
        return supplier

    def get_customer(self, customer_id: int) -> Customer:
        customer = self.db.get(Customer, customer_id)
        if not customer:
            raise NotFoundError("Customer", customer_id)
        return customer

    def list_suppliers(self) -> list[Supplier]:
        return list(
            self.db.execute(select(Supplier).order_by(Supplier.name)).scalars().all()
        )

    def list_customers(self) -> list[Customer]:
        return list(
            self.db.execute(select(Customer).order_by(Customer.name)).scalars().all()
        )
