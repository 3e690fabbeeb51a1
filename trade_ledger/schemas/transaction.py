"""
Pydantic schemas for payments, receipts, purchases and sales.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from trade_ledger.models.enums import PaymentMethod
from trade_ledger.schemas.account import PartyRef
from trade_ledger.schemas.ledger import TransactionResponse


# --- Payment / Receipt Schemas ---

class PaymentCreate(BaseModel):
    debit_account_id: int
    payment_method: PaymentMethod
    amount: Decimal = Field(gt=0, decimal_places=2)
    supplier_id: int | None = None
    purchase_id: int | None = None
    reference: str | None = Field(default=None, max_length=100)
    notes: str | None = None
    date: datetime | None = None


class PaymentUpdate(BaseModel):
    payment_method: PaymentMethod | None = None
    amount: Decimal | None = Field(default=None, gt=0, decimal_places=2)
    reference: str | None = Field(default=None, max_length=100)
    notes: str | None = None
    date: datetime | None = None


class PaymentResponse(BaseModel):
    id: int
    supplier_id: int | None
    purchase_id: int | None
    debit_account_id: int | None
    payment_method: PaymentMethod
    amount: Decimal
    reference: str | None
    notes: str | None
    date: datetime
    supplier: PartyRef | None
    transaction: TransactionResponse | None

    model_config = {"from_attributes": True}


class ReceiptCreate(BaseModel):
    credit_account_id: int
    payment_method: PaymentMethod
    amount: Decimal = Field(gt=0, decimal_places=2)
    customer_id: int | None = None
    sale_id: int | None = None
    reference: str | None = Field(default=None, max_length=100)
    notes: str | None = None
    date: datetime | None = None


class ReceiptUpdate(PaymentUpdate):
    pass


class ReceiptResponse(BaseModel):
    id: int
    customer_id: int | None
    sale_id: int | None
    credit_account_id: int | None
    payment_method: PaymentMethod
    amount: Decimal
    reference: str | None
    notes: str | None
    date: datetime
    customer: PartyRef | None
    transaction: TransactionResponse | None

    model_config = {"from_attributes": True}


# --- Purchase / Sale Schemas ---

class UpfrontPayment(BaseModel):
    """Money paid or received at the time the document is created."""
    method: PaymentMethod
    amount: Decimal = Field(gt=0, decimal_places=2)
    reference: str | None = Field(default=None, max_length=100)


class PurchaseItemCreate(BaseModel):
    item_name: str = Field(min_length=1, max_length=100)
    quantity: Decimal = Field(gt=0)
    weight_deduction: Decimal = Field(default=Decimal("0"), ge=0)
    rate: Decimal = Field(ge=0, decimal_places=2)


class PurchaseCreate(BaseModel):
    supplier_id: int
    items: list[PurchaseItemCreate] = Field(min_length=1)
    payments: list[UpfrontPayment] = []
    date: datetime | None = None
    notes: str | None = None


class PurchaseItemsUpdate(BaseModel):
    items: list[PurchaseItemCreate] = Field(min_length=1)
    notes: str | None = None


class PurchaseItemResponse(BaseModel):
    id: int
    item_name: str
    quantity: Decimal
    weight_deduction: Decimal
    rate: Decimal
    amount: Decimal

    model_config = {"from_attributes": True}


class PurchaseResponse(BaseModel):
    id: int
    invoice_no: str
    supplier_id: int
    date: datetime
    total_amount: Decimal
    paid_amount: Decimal
    balance: Decimal
    notes: str | None
    supplier: PartyRef
    items: list[PurchaseItemResponse]
    transaction: TransactionResponse | None

    model_config = {"from_attributes": True}


class SaleItemCreate(BaseModel):
    item_name: str = Field(min_length=1, max_length=100)
    quantity: Decimal = Field(gt=0)
    rate: Decimal = Field(ge=0, decimal_places=2)


class SaleCreate(BaseModel):
    customer_id: int
    items: list[SaleItemCreate] = Field(min_length=1)
    receipts: list[UpfrontPayment] = []
    date: datetime | None = None
    notes: str | None = None


class SaleItemsUpdate(BaseModel):
    items: list[SaleItemCreate] = Field(min_length=1)
    notes: str | None = None


class SaleItemResponse(BaseModel):
    id: int
    item_name: str
    quantity: Decimal
    rate: Decimal
    amount: Decimal

    model_config = {"from_attributes": True}


class SaleResponse(BaseModel):
    id: int
    invoice_no: str
    customer_id: int
    date: datetime
    total_amount: Decimal
    received_amount: Decimal
    balance: Decimal
    notes: str | None
    customer: PartyRef
    items: list[SaleItemResponse]
    transaction: TransactionResponse | None

    model_config = {"from_attributes": True}
