"""
Account model (chart of accounts).

Every account in the system is a node in one tree: cash,
bank, supplier payables, customer receivables, revenue and
expenses alike. Entries are posted against these nodes.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, DateTime, ForeignKey, CheckConstraint,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trade_ledger.models.base import Base, Money
from trade_ledger.models.enums import AccountType


class Account(Base):
    """
    A single account in the chart of accounts.

    A child always has its parent's type. An account linked to
    a supplier or customer is a subsidiary ledger account for
    that party; it is linked to at most one of them.

    Once it has entries, an account is never deleted, only
    deactivated via is_active=False.
    """

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint(
            "NOT (supplier_id IS NOT NULL AND customer_id IS NOT NULL)",
            name="ck_account_single_party",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(
        String(20), unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    account_type: Mapped[AccountType] = mapped_column(
        SAEnum(AccountType, name="account_type_enum", create_constraint=True),
        nullable=False,
    )
    opening_balance: Mapped[Decimal] = mapped_column(
        Money, nullable=False, default=Decimal("0.00")
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True, index=True
    )
    supplier_id: Mapped[int | None] = mapped_column(
        ForeignKey("suppliers.id"), unique=True, nullable=True
    )
    customer_id: Mapped[int | None] = mapped_column(
        ForeignKey("customers.id"), unique=True, nullable=True
    )
    can_debit_on_payment: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    can_credit_on_receipt: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    parent: Mapped["Account | None"] = relationship(
        back_populates="children", remote_side=[id]
    )
    children: Mapped[list["Account"]] = relationship(
        back_populates="parent", order_by="Account.code"
    )
    supplier: Mapped["Supplier | None"] = relationship(back_populates="account")
    customer: Mapped["Customer | None"] = relationship(back_populates="account")
    entries: Mapped[list["TransactionEntry"]] = relationship(
        back_populates="account"
    )

    def is_eligible_for_payment(self) -> bool:
        """Can this account be debited by a Payment?"""
        if not self.can_debit_on_payment:
            return False
        if self.account_type == AccountType.EXPENSE:
            return True
        return (
            self.account_type == AccountType.LIABILITY
            and self.supplier_id is not None
        )

    def is_eligible_for_receipt(self) -> bool:
        """Can this account be credited by a Receipt?"""
        if not self.can_credit_on_receipt:
            return False
        if self.account_type == AccountType.REVENUE:
            return True
        return (
            self.account_type == AccountType.ASSET
            and self.customer_id is not None
        )

    def __repr__(self) -> str:
        return f"<Account {self.code} ({self.account_type.value})>"
