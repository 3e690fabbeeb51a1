"""
Transaction model.

The header of one balanced posting. A transaction adds
business context (what happened, for which document) to
the raw debit/credit entries underneath it.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, ForeignKey, Text,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trade_ledger.models.base import Base, Money
from trade_ledger.models.enums import TransactionType


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    transaction_type: Mapped[TransactionType] = mapped_column(
        SAEnum(
            TransactionType,
            name="transaction_type_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    reference_no: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Originating business document, at most one is set
    purchase_id: Mapped[int | None] = mapped_column(
        ForeignKey("purchases.id"), nullable=True, index=True
    )
    sale_id: Mapped[int | None] = mapped_column(
        ForeignKey("sales.id"), nullable=True, index=True
    )
    payment_id: Mapped[int | None] = mapped_column(
        ForeignKey("payments.id"), nullable=True, index=True
    )
    receipt_id: Mapped[int | None] = mapped_column(
        ForeignKey("receipts.id"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    # Relationships
    entries: Mapped[list["TransactionEntry"]] = relationship(
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionEntry.id",
    )
    purchase: Mapped["Purchase | None"] = relationship(
        back_populates="transaction"
    )
    sale: Mapped["Sale | None"] = relationship(back_populates="transaction")
    payment: Mapped["Payment | None"] = relationship(
        back_populates="transaction"
    )
    receipt: Mapped["Receipt | None"] = relationship(
        back_populates="transaction"
    )

    def __repr__(self) -> str:
        return (
            f"<Transaction {self.transaction_type.value} {self.amount}>"
        )
