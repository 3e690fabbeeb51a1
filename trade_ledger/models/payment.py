"""
Payment and receipt models.

A payment is money leaving the business (to a supplier or
for an expense); a receipt is money coming in. Each one
posted on its own has exactly one PAYMENT/RECEIPT
transaction. Upfront payments recorded while creating a
purchase or sale are covered by that document's transaction
and have none of their own.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, Text, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trade_ledger.models.base import Base, Money
from trade_ledger.models.enums import PaymentMethod


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(primary_key=True)
    supplier_id: Mapped[int | None] = mapped_column(
        ForeignKey("suppliers.id"), nullable=True, index=True
    )
    purchase_id: Mapped[int | None] = mapped_column(
        ForeignKey("purchases.id"), nullable=True, index=True
    )
    debit_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(PaymentMethod, name="payment_method_enum", create_constraint=True),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    supplier: Mapped["Supplier | None"] = relationship()
    purchase: Mapped["Purchase | None"] = relationship(back_populates="payments")
    debit_account: Mapped["Account | None"] = relationship()
    transaction: Mapped["Transaction | None"] = relationship(
        back_populates="payment"
    )

    def __repr__(self) -> str:
        return f"<Payment {self.id} {self.payment_method.value} {self.amount}>"


class Receipt(Base):
    __tablename__ = "receipts"

    id: Mapped[int] = mapped_column(primary_key=True)
    customer_id: Mapped[int | None] = mapped_column(
        ForeignKey("customers.id"), nullable=True, index=True
    )
    sale_id: Mapped[int | None] = mapped_column(
        ForeignKey("sales.id"), nullable=True, index=True
    )
    credit_account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(PaymentMethod, name="payment_method_enum", create_constraint=True),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    customer: Mapped["Customer | None"] = relationship()
    sale: Mapped["Sale | None"] = relationship(back_populates="receipts")
    credit_account: Mapped["Account | None"] = relationship()
    transaction: Mapped["Transaction | None"] = relationship(
        back_populates="receipt"
    )

    def __repr__(self) -> str:
        return f"<Receipt {self.id} {self.payment_method.value} {self.amount}>"
