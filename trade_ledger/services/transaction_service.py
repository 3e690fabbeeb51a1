"""
Transaction service: payments, receipts, purchases and sales.

Each operation:
1. Resolves and validates the accounts involved (exist, active,
   eligible for the role they play)
2. Validates the business documents (supplier, customer,
   purchase, sale) and that they belong together
3. Creates or changes the document record
4. Posts one balanced transaction through LedgerService
5. Keeps the document's paid/received amount and balance in step

Nothing here commits. The caller wraps each operation in
atomic(...), so any failure leaves no trace of it.
"""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from trade_ledger.config import get_settings
from trade_ledger.exceptions import (
    AccountInactiveError,
    AccountNotEligibleError,
    AccountNotFoundError,
    ConsistencyViolationError,
    InvalidAccountStateError,
    LedgerValidationError,
    NotFoundError,
    PartyMismatchError,
    PaymentsExistError,
)
from trade_ledger.models.account import Account
from trade_ledger.models.enums import PaymentMethod, TransactionType
from trade_ledger.models.party import Customer, Supplier
from trade_ledger.models.payment import Payment, Receipt
from trade_ledger.models.purchase import Purchase, PurchaseItem
from trade_ledger.models.sale import Sale, SaleItem
from trade_ledger.models.transaction import Transaction
from trade_ledger.money import ZERO, line_amount, to_money
from trade_ledger.schemas.ledger import EntryLeg
from trade_ledger.schemas.transaction import (
    PaymentCreate,
    PaymentUpdate,
    PurchaseCreate,
    PurchaseItemCreate,
    PurchaseItemsUpdate,
    ReceiptCreate,
    ReceiptUpdate,
    SaleCreate,
    SaleItemCreate,
    SaleItemsUpdate,
)
from trade_ledger.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("payment_method", "amount", "reference", "notes", "date")


class TransactionService:

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()
        self.ledger_service = LedgerService(db)

    # --- Account resolution ---

    def _account_by_code(self, code: str, label: str) -> Account:
        account = self.db.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()
        if account is None:
            raise InvalidAccountStateError(
                f"{label} account {code} is missing from the chart of accounts"
            )
        if not account.is_active:
            raise AccountInactiveError(account.code)
        return account

    def _cash_or_bank_account(self, method: PaymentMethod) -> Account:
        """
        The account money moves through for a payment method.

        CASH goes through the cash account; every other method
        goes through the bank account.
        """
        if method.is_cash:
            return self._account_by_code(self.settings.CASH_ACCOUNT_CODE, "Cash")
        return self._account_by_code(self.settings.BANK_ACCOUNT_CODE, "Bank")

    def _group_by_cash_account(self, documents) -> list[tuple[Account, Decimal]]:
        """Sum upfront payments/receipts per resolved cash or bank account."""
        accounts = {}
        totals = {}
        for document in documents:
            account = self._cash_or_bank_account(document.payment_method)
            accounts[account.id] = account
            totals[account.id] = totals.get(account.id, ZERO) + to_money(document.amount)
        return [(accounts[i], to_money(total)) for i, total in totals.items()]

    def _payment_debit_account(self, account_id: int) -> Account:
        account = self.db.get(Account, account_id)
        if not account:
            raise AccountNotFoundError(account_id)
        if not account.is_active:
            raise AccountInactiveError(account.code)
        if not account.is_eligible_for_payment():
            logger.warning("Account %s rejected as payment debit account", account.code)
            raise AccountNotEligibleError(account.code, "a payment debit account")
        return account

    def _receipt_credit_account(self, account_id: int) -> Account:
        account = self.db.get(Account, account_id)
        if not account:
            raise AccountNotFoundError(account_id)
        if not account.is_active:
            raise AccountInactiveError(account.code)
        if not account.is_eligible_for_receipt():
            logger.warning("Account %s rejected as receipt credit account", account.code)
            raise AccountNotEligibleError(account.code, "a receipt credit account")
        return account

    @staticmethod
    def _party_account(party: Supplier | Customer, role: str) -> Account:
        account = party.account
        if account is None or not account.is_active:
            raise InvalidAccountStateError(
                f"{party.name} has no active {role} account"
            )
        return account

    # --- Lookups ---

    def _get_supplier(self, supplier_id: int) -> Supplier:
        supplier = self.db.get(Supplier, supplier_id)
        if not supplier:
            raise NotFoundError("Supplier", supplier_id)
        return supplier

    def _get_customer(self, customer_id: int) -> Customer:
        customer = self.db.get(Customer, customer_id)
        if not customer:
            raise NotFoundError("Customer", customer_id)
        return customer

    def get_payment(self, payment_id: int) -> Payment:
        payment = self.db.get(Payment, payment_id)
        if not payment:
            raise NotFoundError("Payment", payment_id)
        return payment

    def get_receipt(self, receipt_id: int) -> Receipt:
        receipt = self.db.get(Receipt, receipt_id)
        if not receipt:
            raise NotFoundError("Receipt", receipt_id)
        return receipt

    def get_purchase(self, purchase_id: int) -> Purchase:
        purchase = self.db.get(Purchase, purchase_id)
        if not purchase:
            raise NotFoundError("Purchase", purchase_id)
        return purchase

    def get_sale(self, sale_id: int) -> Sale:
        sale = self.db.get(Sale, sale_id)
        if not sale:
            raise NotFoundError("Sale", sale_id)
        return sale

    def get_transaction(self, transaction_id: int) -> Transaction:
        return self.ledger_service.get_transaction(transaction_id)

    def list_payments(self) -> list[Payment]:
        return list(self.db.execute(
            select(Payment).order_by(Payment.date.desc(), Payment.id.desc())
        ).scalars().all())

    def list_receipts(self) -> list[Receipt]:
        return list(self.db.execute(
            select(Receipt).order_by(Receipt.date.desc(), Receipt.id.desc())
        ).scalars().all())

    def list_purchases(self) -> list[Purchase]:
        return list(self.db.execute(
            select(Purchase).order_by(Purchase.date.desc(), Purchase.id.desc())
        ).scalars().all())

    def list_sales(self) -> list[Sale]:
        return list(self.db.execute(
            select(Sale).order_by(Sale.date.desc(), Sale.id.desc())
        ).scalars().all())

    # --- Shared helpers ---

    def _drop_posting(self, document) -> None:
        """Delete the document's own transaction, if it has one."""
        if document.transaction is not None:
            self.ledger_service.delete_transaction(document.transaction)
        self.db.expire(document, ["transaction"])

    def _next_invoice_no(self, prefix: str, model, date: datetime) -> str:
        last_id = self.db.execute(select(func.max(model.id))).scalar() or 0
        return f"{prefix}-{date:%Y%m%d}-{last_id + 1:04d}"

    @staticmethod
    def _upfront(documents) -> list:
        """Payments/receipts recorded with their document, not posted separately."""
        return [d for d in documents if d.transaction is None]

    @staticmethod
    def _apply_to_purchase(purchase: Purchase, amount: Decimal) -> None:
        purchase.paid_amount = to_money(purchase.paid_amount + amount)
        purchase.balance = to_money(purchase.balance - amount)

    @staticmethod
    def _apply_to_sale(sale: Sale, amount: Decimal) -> None:
        sale.received_amount = to_money(sale.received_amount + amount)
        sale.balance = to_money(sale.balance - amount)

    # --- Payments ---

    def post_payment(self, request: PaymentCreate) -> Payment:
        """
        Record money paid out and post it.

        Accounting:
            DEBIT  expense or supplier payable (expense grows / debt shrinks)
            CREDIT cash or bank (asset shrinks)
        """
        debit_account = self._payment_debit_account(request.debit_account_id)
        cash_bank = self._cash_or_bank_account(request.payment_method)

        supplier = None
        if request.supplier_id is not None:
            supplier = self._get_supplier(request.supplier_id)

        purchase = None
        if request.purchase_id is not None:
            purchase = self.get_purchase(request.purchase_id)
            if supplier is not None and purchase.supplier_id != supplier.id:
                raise PartyMismatchError("Purchase", purchase.id, "supplier", supplier.id)
            if supplier is None:
                supplier = purchase.supplier

        payment = Payment(
            supplier_id=supplier.id if supplier else None,
            purchase_id=purchase.id if purchase else None,
            debit_account_id=debit_account.id,
            payment_method=request.payment_method,
            amount=to_money(request.amount),
            reference=request.reference,
            notes=request.notes,
            date=request.date or datetime.utcnow(),
        )
        self.db.add(payment)
        self.db.flush()

        self._post_payment_transaction(payment, supplier, purchase, debit_account, cash_bank)
        if purchase is not None:
            self._apply_to_purchase(purchase, payment.amount)

        self.db.flush()
        self.db.refresh(payment)
        logger.info(
            "Payment %s posted: %s %s from %s to %s",
            payment.id, payment.payment_method.value, payment.amount,
            cash_bank.code, debit_account.code,
        )
        return payment

    def _post_payment_transaction(
        self,
        payment: Payment,
        supplier: Supplier | None,
        purchase: Purchase | None,
        debit_account: Account,
        cash_bank: Account,
    ) -> Transaction:
        method = payment.payment_method.value
        description = f"Payment {payment.id} - {method}"
        if supplier is not None:
            description += f" to {supplier.name}"
        if purchase is not None:
            description += f" for Purchase #{purchase.id}"

        transaction = Transaction(
            transaction_type=TransactionType.PAYMENT,
            amount=payment.amount,
            description=description,
            date=payment.date,
            reference_no=payment.reference,
            notes=payment.notes,
            payment_id=payment.id,
        )
        self.ledger_service.post_entries(transaction, [
            EntryLeg(
                account_id=debit_account.id,
                debit_amount=payment.amount,
                description=f"Payment {payment.id} - {method} (Debit)",
            ),
            EntryLeg(
                account_id=cash_bank.id,
                credit_amount=payment.amount,
                description=f"Payment {payment.id} - {method} (Credit)",
            ),
        ])
        return transaction

    def update_payment(self, payment_id: int, request: PaymentUpdate) -> Payment:
        """
        Change a posted payment.

        The old posting is removed and a new one written from
        the updated values; the purchase's paid amount and
        balance move by the difference.
        """
        payment = self.get_payment(payment_id)
        if payment.transaction is None:
            raise ConsistencyViolationError(
                f"Payment {payment.id} was recorded with purchase "
                f"{payment.purchase_id}; edit the purchase instead"
            )

        old_amount = payment.amount
        for field, value in request.model_dump(exclude_unset=True).items():
            if field in EDITABLE_FIELDS and value is not None:
                setattr(payment, field, to_money(value) if field == "amount" else value)

        debit_account = self._payment_debit_account(payment.debit_account_id)
        cash_bank = self._cash_or_bank_account(payment.payment_method)

        self._drop_posting(payment)
        self.db.flush()
        self._post_payment_transaction(
            payment, payment.supplier, payment.purchase, debit_account, cash_bank
        )
        if payment.purchase is not None:
            self._apply_to_purchase(payment.purchase, payment.amount - old_amount)

        self.db.flush()
        self.db.refresh(payment)
        logger.info("Payment %s updated: amount %s -> %s", payment.id, old_amount, payment.amount)
        return payment

    def delete_payment(self, payment_id: int) -> None:
        """Remove a posted payment, its transaction and its effect on the purchase."""
        payment = self.get_payment(payment_id)
        if payment.transaction is None:
            raise ConsistencyViolationError(
                f"Payment {payment.id} was recorded with purchase "
                f"{payment.purchase_id}; delete or edit the purchase instead"
            )

        if payment.purchase is not None:
            self._apply_to_purchase(payment.purchase, -payment.amount)
        self._drop_posting(payment)
        self.db.delete(payment)
        self.db.flush()
        logger.info("Payment %s deleted", payment_id)

    # --- Receipts ---

    def post_receipt(self, request: ReceiptCreate) -> Receipt:
        """
        Record money received and post it.

        Accounting:
            DEBIT  cash or bank (asset grows)
            CREDIT revenue or customer receivable (income grows / debt shrinks)
        """
        credit_account = self._receipt_credit_account(request.credit_account_id)
        cash_bank = self._cash_or_bank_account(request.payment_method)

        customer = None
        if request.customer_id is not None:
            customer = self._get_customer(request.customer_id)

        sale = None
        if request.sale_id is not None:
            sale = self.get_sale(request.sale_id)
            if customer is not None and sale.customer_id != customer.id:
                raise PartyMismatchError("Sale", sale.id, "customer", customer.id)
            if customer is None:
                customer = sale.customer

        receipt = Receipt(
            customer_id=customer.id if customer else None,
            sale_id=sale.id if sale else None,
            credit_account_id=credit_account.id,
            payment_method=request.payment_method,
            amount=to_money(request.amount),
            reference=request.reference,
            notes=request.notes,
            date=request.date or datetime.utcnow(),
        )
        self.db.add(receipt)
        self.db.flush()

        self._post_receipt_transaction(receipt, customer, sale, credit_account, cash_bank)
        if sale is not None:
            self._apply_to_sale(sale, receipt.amount)

        self.db.flush()
        self.db.refresh(receipt)
        logger.info(
            "Receipt %s posted: %s %s from %s to %s",
            receipt.id, receipt.payment_method.value, receipt.amount,
            credit_account.code, cash_bank.code,
        )
        return receipt

    def _post_receipt_transaction(
        self,
        receipt: Receipt,
        customer: Customer | None,
        sale: Sale | None,
        credit_account: Account,
        cash_bank: Account,
    ) -> Transaction:
        method = receipt.payment_method.value
        description = f"Receipt {receipt.id} - {method}"
        if customer is not None:
            description += f" from {customer.name}"
        if sale is not None:
            description += f" for Sale #{sale.id}"

        transaction = Transaction(
            transaction_type=TransactionType.RECEIPT,
            amount=receipt.amount,
            description=description,
            date=receipt.date,
            reference_no=receipt.reference,
            notes=receipt.notes,
            receipt_id=receipt.id,
        )
        self.ledger_service.post_entries(transaction, [
            EntryLeg(
                account_id=cash_bank.id,
                debit_amount=receipt.amount,
                description=f"Receipt {receipt.id} - {method} (Debit)",
            ),
            EntryLeg(
                account_id=credit_account.id,
                credit_amount=receipt.amount,
                description=f"Receipt {receipt.id} - {method} (Credit)",
            ),
        ])
        return transaction

    def update_receipt(self, receipt_id: int, request: ReceiptUpdate) -> Receipt:
        """Change a posted receipt; see update_payment."""
        receipt = self.get_receipt(receipt_id)
        if receipt.transaction is None:
            raise ConsistencyViolationError(
                f"Receipt {receipt.id} was recorded with sale "
                f"{receipt.sale_id}; edit the sale instead"
            )

        old_amount = receipt.amount
        for field, value in request.model_dump(exclude_unset=True).items():
            if field in EDITABLE_FIELDS and value is not None:
                setattr(receipt, field, to_money(value) if field == "amount" else value)

        credit_account = self._receipt_credit_account(receipt.credit_account_id)
        cash_bank = self._cash_or_bank_account(receipt.payment_method)

        self._drop_posting(receipt)
        self.db.flush()
        self._post_receipt_transaction(
            receipt, receipt.customer, receipt.sale, credit_account, cash_bank
        )
        if receipt.sale is not None:
            self._apply_to_sale(receipt.sale, receipt.amount - old_amount)

        self.db.flush()
        self.db.refresh(receipt)
        logger.info("Receipt %s updated: amount %s -> %s", receipt.id, old_amount, receipt.amount)
        return receipt

    def delete_receipt(self, receipt_id: int) -> None:
        receipt = self.get_receipt(receipt_id)
        if receipt.transaction is None:
            raise ConsistencyViolationError(
                f"Receipt {receipt.id} was recorded with sale "
                f"{receipt.sale_id}; delete or edit the sale instead"
            )

        if receipt.sale is not None:
            self._apply_to_sale(receipt.sale, -receipt.amount)
        self._drop_posting(receipt)
        self.db.delete(receipt)
        self.db.flush()
        logger.info("Receipt %s deleted", receipt_id)

    # --- Purchases ---

    @staticmethod
    def _build_purchase_items(
        items: list[PurchaseItemCreate],
    ) -> tuple[list[PurchaseItem], Decimal]:
        built = []
        total = ZERO
        for item in items:
            amount = line_amount(item.quantity, item.rate, item.weight_deduction)
            built.append(PurchaseItem(
                item_name=item.item_name,
                quantity=item.quantity,
                weight_deduction=item.weight_deduction,
                rate=to_money(item.rate),
                amount=amount,
            ))
            total += amount
        total = to_money(total)
        if total <= 0:
            raise LedgerValidationError(
                "Purchase total must be greater than zero", field="items"
            )
        return built, total

    def record_purchase(self, request: PurchaseCreate) -> Purchase:
        """
        Record a purchase from a supplier and post it.

        Accounting:
            DEBIT  purchases expense, for the total
            CREDIT supplier payable, for whatever was not paid upfront
            CREDIT cash / bank, for each upfront payment method
        """
        supplier = self._get_supplier(request.supplier_id)
        items, total = self._build_purchase_items(request.items)

        paid = to_money(sum((p.amount for p in request.payments), ZERO))
        if paid > total:
            raise LedgerValidationError(
                f"Upfront payments ({paid}) exceed the purchase total ({total})",
                field="payments",
            )

        date = request.date or datetime.utcnow()
        purchase = Purchase(
            invoice_no=self._next_invoice_no("PUR", Purchase, date),
            supplier_id=supplier.id,
            date=date,
            total_amount=total,
            paid_amount=paid,
            balance=to_money(total - paid),
            notes=request.notes,
            items=items,
        )
        self.db.add(purchase)
        self.db.flush()

        for upfront in request.payments:
            self.db.add(Payment(
                supplier_id=supplier.id,
                purchase_id=purchase.id,
                payment_method=upfront.method,
                amount=to_money(upfront.amount),
                reference=upfront.reference,
                date=date,
            ))
        self.db.flush()

        self._post_purchase_transaction(purchase)
        self.db.flush()
        self.db.refresh(purchase)
        logger.info(
            "Purchase %s recorded: total=%s paid=%s supplier=%s",
            purchase.invoice_no, purchase.total_amount, purchase.paid_amount, supplier.id,
        )
        return purchase

    def _post_purchase_transaction(self, purchase: Purchase) -> Transaction:
        upfront = self._upfront(purchase.payments)
        on_credit = to_money(
            purchase.total_amount - sum((p.amount for p in upfront), ZERO)
        )
        expense = self._account_by_code(
            self.settings.PURCHASES_EXPENSE_CODE, "Purchases expense"
        )

        legs = [EntryLeg(
            account_id=expense.id,
            debit_amount=purchase.total_amount,
            description=f"Purchase {purchase.id} - {expense.name} (Debit)",
        )]
        if on_credit > 0:
            payable = self._party_account(purchase.supplier, "payable")
            legs.append(EntryLeg(
                account_id=payable.id,
                credit_amount=on_credit,
                description=f"Purchase {purchase.id} - Trade Payable (Credit)",
            ))
        for account, amount in self._group_by_cash_account(upfront):
            legs.append(EntryLeg(
                account_id=account.id,
                credit_amount=amount,
                description=f"Purchase {purchase.id} - {account.name} Payment (Credit)",
            ))

        transaction = Transaction(
            transaction_type=TransactionType.PURCHASE,
            amount=purchase.total_amount,
            description=(
                f"Purchase {purchase.id} - {purchase.supplier.name} "
                f"(Invoice: {purchase.invoice_no})"
            ),
            date=purchase.date,
            reference_no=purchase.invoice_no,
            notes=purchase.notes,
            purchase_id=purchase.id,
        )
        self.ledger_service.post_entries(transaction, legs)
        return transaction

    def update_purchase_items(
        self, purchase_id: int, request: PurchaseItemsUpdate
    ) -> Purchase:
        """
        Replace a purchase's items and rebuild its posting.

        The total may only change while no payment references
        the purchase; otherwise the payments would no longer
        add up against it.
        """
        purchase = self.get_purchase(purchase_id)
        items, total = self._build_purchase_items(request.items)

        if total != purchase.total_amount and purchase.payments:
            logger.warning(
                "Refused to change total of purchase %s: payments exist",
                purchase.invoice_no,
            )
            raise PaymentsExistError(
                f"Cannot change the total of purchase {purchase.invoice_no} "
                f"from {purchase.total_amount} to {total}: "
                f"{len(purchase.payments)} payment(s) reference it"
            )

        purchase.items = items
        purchase.total_amount = total
        purchase.balance = to_money(total - purchase.paid_amount)
        if request.notes is not None:
            purchase.notes = request.notes

        self._drop_posting(purchase)
        self.db.flush()
        self._post_purchase_transaction(purchase)
        self.db.flush()
        self.db.refresh(purchase)
        logger.info("Purchase %s items updated: total=%s", purchase.invoice_no, total)
        return purchase

    def delete_purchase(self, purchase_id: int) -> None:
        """
        Delete a purchase with its items, upfront payments and posting.

        Refused while separately posted payments reference it.
        """
        purchase = self.get_purchase(purchase_id)
        upfront = self._upfront(purchase.payments)
        posted = len(purchase.payments) - len(upfront)
        if posted:
            logger.warning(
                "Refused to delete purchase %s: %d posted payment(s)",
                purchase.invoice_no, posted,
            )
            raise PaymentsExistError(
                f"Cannot delete purchase {purchase.invoice_no}: {posted} "
                f"payment(s) have been posted against it; delete them first"
            )

        invoice_no = purchase.invoice_no
        for payment in upfront:
            self.db.delete(payment)
        self.db.flush()
        self.db.expire(purchase, ["payments"])

        self._drop_posting(purchase)
        self.db.delete(purchase)
        self.db.flush()
        logger.info("Purchase %s deleted", invoice_no)

    # --- Sales ---

    @staticmethod
    def _build_sale_items(
        items: list[SaleItemCreate],
    ) -> tuple[list[SaleItem], Decimal]:
        built = []
        total = ZERO
        for item in items:
            amount = line_amount(item.quantity, item.rate)
            built.append(SaleItem(
                item_name=item.item_name,
                quantity=item.quantity,
                rate=to_money(item.rate),
                amount=amount,
            ))
            total += amount
        total = to_money(total)
        if total <= 0:
            raise LedgerValidationError(
                "Sale total must be greater than zero", field="items"
            )
        return built, total

    def record_sale(self, request: SaleCreate) -> Sale:
        """
        Record a sale to a customer and post it.

        Accounting:
            DEBIT  customer receivable, for whatever was not received upfront
            DEBIT  cash / bank, for each upfront receipt method
            CREDIT sales revenue, for the total
        """
        customer = self._get_customer(request.customer_id)
        items, total = self._build_sale_items(request.items)

        received = to_money(sum((r.amount for r in request.receipts), ZERO))
        if received > total:
            raise LedgerValidationError(
                f"Upfront receipts ({received}) exceed the sale total ({total})",
                field="receipts",
            )

        date = request.date or datetime.utcnow()
        sale = Sale(
            invoice_no=self._next_invoice_no("SAL", Sale, date),
            customer_id=customer.id,
            date=date,
            total_amount=total,
            received_amount=received,
            balance=to_money(total - received),
            notes=request.notes,
            items=items,
        )
        self.db.add(sale)
        self.db.flush()

        for upfront in request.receipts:
            self.db.add(Receipt(
                customer_id=customer.id,
                sale_id=sale.id,
                payment_method=upfront.method,
                amount=to_money(upfront.amount),
                reference=upfront.reference,
                date=date,
            ))
        self.db.flush()

        self._post_sale_transaction(sale)
        self.db.flush()
        self.db.refresh(sale)
        logger.info(
            "Sale %s recorded: total=%s received=%s customer=%s",
            sale.invoice_no, sale.total_amount, sale.received_amount, customer.id,
        )
        return sale

    def _post_sale_transaction(self, sale: Sale) -> Transaction:
        upfront = self._upfront(sale.receipts)
        on_credit = to_money(
            sale.total_amount - sum((r.amount for r in upfront), ZERO)
        )
        revenue = self._account_by_code(
            self.settings.SALES_REVENUE_CODE, "Sales revenue"
        )

        legs = []
        if on_credit > 0:
            receivable = self._party_account(sale.customer, "receivable")
            legs.append(EntryLeg(
                account_id=receivable.id,
                debit_amount=on_credit,
                description=f"Sale {sale.id} - Trade Receivable (Debit)",
            ))
        for account, amount in self._group_by_cash_account(upfront):
            legs.append(EntryLeg(
                account_id=account.id,
                debit_amount=amount,
                description=f"Sale {sale.id} - {account.name} Receipt (Debit)",
            ))
        legs.append(EntryLeg(
            account_id=revenue.id,
            credit_amount=sale.total_amount,
            description=f"Sale {sale.id} - {revenue.name} (Credit)",
        ))

        transaction = Transaction(
            transaction_type=TransactionType.SALE,
            amount=sale.total_amount,
            description=(
                f"Sale {sale.id} - {sale.customer.name} "
                f"(Invoice: {sale.invoice_no})"
            ),
            date=sale.date,
            reference_no=sale.invoice_no,
            notes=sale.notes,
            sale_id=sale.id,
        )
        self.ledger_service.post_entries(transaction, legs)
        return transaction

    def update_sale_items(self, sale_id: int, request: SaleItemsUpdate) -> Sale:
        """Replace a sale's items and rebuild its posting; see update_purchase_items."""
        sale = self.get_sale(sale_id)
        items, total = self._build_sale_items(request.items)

        if total != sale.total_amount and sale.receipts:
            logger.warning(
                "Refused to change total of sale %s: receipts exist", sale.invoice_no
            )
            raise PaymentsExistError(
                f"Cannot change the total of sale {sale.invoice_no} "
                f"from {sale.total_amount} to {total}: "
                f"{len(sale.receipts)} receipt(s) reference it"
            )

        sale.items = items
        sale.total_amount = total
        sale.balance = to_money(total - sale.received_amount)
        if request.notes is not None:
            sale.notes = request.notes

        self._drop_posting(sale)
        self.db.flush()
        self._post_sale_transaction(sale)
        self.db.flush()
        self.db.refresh(sale)
        logger.info("Sale %s items updated: total=%s", sale.invoice_no, total)
        return sale

    def delete_sale(self, sale_id: int) -> None:
        sale = self.get_sale(sale_id)
        upfront = self._upfront(sale.receipts)
        posted = len(sale.receipts) - len(upfront)
        if posted:
            logger.warning(
                "Refused to delete sale %s: %d posted receipt(s)",
                sale.invoice_no, posted,
            )
            raise PaymentsExistError(
                f"Cannot delete sale {sale.invoice_no}: {posted} "
                f"receipt(s) have been posted against it; delete them first"
            )

        invoice_no = sale.invoice_no
        for receipt in upfront:
            self.db.delete(receipt)
        self.db.flush()
        self.db.expire(sale, ["receipts"])

        self._drop_posting(sale)
        self.db.delete(sale)
        self.db.flush()
        logger.info("Sale %s deleted", invoice_no)
