"""
Pydantic schemas for the chart of accounts and the
supplier/customer directory.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from trade_ledger.models.enums import AccountType


# --- Account Schemas ---

class AccountCreate(BaseModel):
    """Request to create a ledger account."""
    code: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=100)
    account_type: AccountType
    parent_id: int | None = None
    description: str | None = Field(default=None, max_length=255)
    is_active: bool = True
    opening_balance: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    # None means "inherit from the parent, or true for a root account"
    can_debit_on_payment: bool | None = None
    can_credit_on_receipt: bool | None = None
    supplier_id: int | None = None
    customer_id: int | None = None


class AccountUpdate(BaseModel):
    """Partial update; only fields that are set are applied."""
    code: str | None = Field(default=None, min_length=1, max_length=20)
    name: str | None = Field(default=None, min_length=1, max_length=100)
    account_type: AccountType | None = None
    parent_id: int | None = None
    description: str | None = Field(default=None, max_length=255)
    is_active: bool | None = None
    can_debit_on_payment: bool | None = None
    can_credit_on_receipt: bool | None = None


class AccountResponse(BaseModel):
    id: int
    code: str
    name: str
    description: str | None
    account_type: AccountType
    opening_balance: Decimal
    is_active: bool
    parent_id: int | None
    supplier_id: int | None
    customer_id: int | None
    can_debit_on_payment: bool
    can_credit_on_receipt: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AccountTreeNode(BaseModel):
    """An account with its active descendants, for the chart view."""
    id: int
    code: str
    name: str
    account_type: AccountType
    opening_balance: Decimal
    supplier_id: int | None
    customer_id: int | None
    children: list["AccountTreeNode"] = []

    model_config = {"from_attributes": True}


class BulkCreateError(BaseModel):
    index: int
    code: str
    error: str
    message: str


class BulkCreateResponse(BaseModel):
    """
    Outcome of creating several accounts in one request.

    Items succeed or fail independently; both lists are
    always returned.
    """
    success: bool
    created: int
    failed: int
    data: list[AccountResponse]
    errors: list[BulkCreateError] = []


# --- Directory Schemas ---

class PartyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=30)
    address: str | None = Field(default=None, max_length=255)


class SupplierCreate(PartyCreate):
    pass


class CustomerCreate(PartyCreate):
    pass


class PartyRef(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class PartyResponse(BaseModel):
    id: int
    name: str
    phone: str | None
    address: str | None
    is_active: bool
    account: AccountResponse | None
    created_at: datetime

    model_config = {"from_attributes": True}
