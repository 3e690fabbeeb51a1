"""
Transaction entry model (one ledger line).

Each entry is one leg of a transaction: a debit or a
credit against a single account. Within a transaction the
debit legs and credit legs sum to the same amount.
"""

from decimal import Decimal

from sqlalchemy import String, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trade_ledger.models.base import Base, Money


class TransactionEntry(Base):
    """
    A debit or credit line in the ledger.

    Exactly one of debit_amount / credit_amount is nonzero.
    The database enforces that; the balance rule across a
    transaction's legs is enforced by LedgerService.
    """

    __tablename__ = "transaction_entries"
    __table_args__ = (
        CheckConstraint(
            "debit_amount >= 0 AND credit_amount >= 0",
            name="ck_entry_non_negative",
        ),
        CheckConstraint(
            "(debit_amount > 0 AND credit_amount = 0) "
            "OR (credit_amount > 0 AND debit_amount = 0)",
            name="ck_entry_one_side",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    transaction_id: Mapped[int] = mapped_column(
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    debit_amount: Mapped[Decimal] = mapped_column(
        Money, nullable=False, default=Decimal("0.00")
    )
    credit_amount: Mapped[Decimal] = mapped_column(
        Money, nullable=False, default=Decimal("0.00")
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)

    transaction: Mapped["Transaction"] = relationship(back_populates="entries")
    account: Mapped["Account"] = relationship(back_populates="entries")

    @property
    def is_debit(self) -> bool:
        return self.debit_amount > 0

    def __repr__(self) -> str:
        side = "DEBIT" if self.is_debit else "CREDIT"
        amount = self.debit_amount if self.is_debit else self.credit_amount
        return f"<TransactionEntry {side} {amount} account={self.account_id}>"
