"""
Supplier and customer directory endpoints.

Creating a party also opens its ledger account, so both
land in the same unit of work.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from trade_ledger.config import get_settings
from trade_ledger.database import atomic, get_db
from trade_ledger.schemas.account import (
    CustomerCreate,
    PartyResponse,
    SupplierCreate,
)
from trade_ledger.services.account_service import AccountService

settings = get_settings()

router = APIRouter(tags=["Directory"])


# --- Supplier Endpoints ---

@router.post("/suppliers", response_model=PartyResponse, status_code=201)
def create_supplier(request: SupplierCreate, db: Session = Depends(get_db)):
    """Create a supplier together with its payable account."""
    service = AccountService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        supplier = service.create_supplier(request)
    return supplier


@router.get("/suppliers", response_model=list[PartyResponse])
def list_suppliers(db: Session = Depends(get_db)):
    return AccountService(db).list_suppliers()


@router.get("/suppliers/{supplier_id}", response_model=PartyResponse)
def get_supplier(supplier_id: int, db: Session = Depends(get_db)):
    return AccountService(db).get_supplier(supplier_id)


# --- Customer Endpoints ---

@router.post("/customers", response_model=PartyResponse, status_code=201)
def create_customer(request: CustomerCreate, db: Session = Depends(get_db)):
    """Create a customer together with its receivable account."""
    service = AccountService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        customer = service.create_customer(request)
    return customer


@router.get("/customers", response_model=list[PartyResponse])
def list_customers(db: Session = Depends(get_db)):
    return AccountService(db).list_customers()


@router.get("/customers/{customer_id}", response_model=PartyResponse)
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    return AccountService(db).get_customer(customer_id)
