"""
Purchase and sale API endpoints.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from trade_ledger.config import get_settings
from trade_ledger.database import atomic, get_db
from trade_ledger.schemas.transaction import (
    PurchaseCreate,
    PurchaseItemsUpdate,
    PurchaseResponse,
    SaleCreate,
    SaleItemsUpdate,
    SaleResponse,
)
from trade_ledger.services.transaction_service import TransactionService

settings = get_settings()

router = APIRouter(tags=["Invoices"])


# --- Purchase Endpoints ---

@router.post("/purchases", response_model=PurchaseResponse, status_code=201)
def record_purchase(request: PurchaseCreate, db: Session = Depends(get_db)):
    """
    Record a purchase invoice with optional upfront payments.

    The unpaid part is credited to the supplier's payable
    account; upfront payments are credited to cash or bank.
    """
    service = TransactionService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        purchase = service.record_purchase(request)
    return purchase


@router.get("/purchases", response_model=list[PurchaseResponse])
def list_purchases(db: Session = Depends(get_db)):
    return TransactionService(db).list_purchases()


@router.get("/purchases/{purchase_id}", response_model=PurchaseResponse)
def get_purchase(purchase_id: int, db: Session = Depends(get_db)):
    return TransactionService(db).get_purchase(purchase_id)


@router.put("/purchases/{purchase_id}/items", response_model=PurchaseResponse)
def update_purchase_items(
    purchase_id: int,
    request: PurchaseItemsUpdate,
    db: Session = Depends(get_db),
):
    service = TransactionService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        purchase = service.update_purchase_items(purchase_id, request)
    return purchase


@router.delete("/purchases/{purchase_id}", status_code=204)
def delete_purchase(purchase_id: int, db: Session = Depends(get_db)):
    service = TransactionService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        service.delete_purchase(purchase_id)
    return Response(status_code=204)


# --- Sale Endpoints ---

@router.post("/sales", response_model=SaleResponse, status_code=201)
def record_sale(request: SaleCreate, db: Session = Depends(get_db)):
    """
    Record a sale invoice with optional upfront receipts.

    The unreceived part is debited to the customer's
    receivable account; upfront receipts to cash or bank.
    """
    service = TransactionService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        sale = service.record_sale(request)
    return sale


@router.get("/sales", response_model=list[SaleResponse])
def list_sales(db: Session = Depends(get_db)):
    return TransactionService(db).list_sales()


@router.get("/sales/{sale_id}", response_model=SaleResponse)
def get_sale(sale_id: int, db: Session = Depends(get_db)):
    return TransactionService(db).get_sale(sale_id)


@router.put("/sales/{sale_id}/items", response_model=SaleResponse)
def update_sale_items(
    sale_id: int,
    request: SaleItemsUpdate,
    db: Session = Depends(get_db),
):
    service = TransactionService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        sale = service.update_sale_items(sale_id, request)
    return sale


@router.delete("/sales/{sale_id}", status_code=204)
def delete_sale(sale_id: int, db: Session = Depends(get_db)):
    service = TransactionService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        service.delete_sale(sale_id)
    return Response(status_code=204)
