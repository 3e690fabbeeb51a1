"""
Payment and receipt API endpoints.

Every write here posts (or re-posts) exactly one balanced
transaction inside a single atomic unit of work.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from trade_ledger.config import get_settings
from trade_ledger.database import atomic, get_db
from trade_ledger.schemas.transaction import (
    PaymentCreate,
    PaymentResponse,
    PaymentUpdate,
    ReceiptCreate,
    ReceiptResponse,
    ReceiptUpdate,
)
from trade_ledger.services.transaction_service import TransactionService

settings = get_settings()

router = APIRouter(tags=["Payments"])


# --- Payment Endpoints ---

@router.post("/payments", response_model=PaymentResponse, status_code=201)
def post_payment(request: PaymentCreate, db: Session = Depends(get_db)):
    """
    Pay a supplier or an expense.

    Debits the chosen account and credits cash (for CASH) or
    the bank account (for every other method). If a purchase
    is referenced, its paid amount and balance are updated too.
    """
    service = TransactionService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        payment = service.post_payment(request)
    return payment


@router.get("/payments", response_model=list[PaymentResponse])
def list_payments(db: Session = Depends(get_db)):
    return TransactionService(db).list_payments()


@router.get("/payments/{payment_id}", response_model=PaymentResponse)
def get_payment(payment_id: int, db: Session = Depends(get_db)):
    return TransactionService(db).get_payment(payment_id)


@router.put("/payments/{payment_id}", response_model=PaymentResponse)
def update_payment(
    payment_id: int,
    request: PaymentUpdate,
    db: Session = Depends(get_db),
):
    service = TransactionService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        payment = service.update_payment(payment_id, request)
    return payment


@router.delete("/payments/{payment_id}", status_code=204)
def delete_payment(payment_id: int, db: Session = Depends(get_db)):
    service = TransactionService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        service.delete_payment(payment_id)
    return Response(status_code=204)


# --- Receipt Endpoints ---

@router.post("/receipts", response_model=ReceiptResponse, status_code=201)
def post_receipt(request: ReceiptCreate, db: Session = Depends(get_db)):
    """
    Receive money from a customer or as other income.

    Debits cash or bank by method and credits the chosen
    revenue or customer receivable account.
    """
    service = TransactionService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        receipt = service.post_receipt(request)
    return receipt


@router.get("/receipts", response_model=list[ReceiptResponse])
def list_receipts(db: Session = Depends(get_db)):
    return TransactionService(db).list_receipts()


@router.get("/receipts/{receipt_id}", response_model=ReceiptResponse)
def get_receipt(receipt_id: int, db: Session = Depends(get_db)):
    return TransactionService(db).get_receipt(receipt_id)


@router.put("/receipts/{receipt_id}", response_model=ReceiptResponse)
def update_receipt(
    receipt_id: int,
    request: ReceiptUpdate,
    db: Session = Depends(get_db),
):
    service = TransactionService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        receipt = service.update_receipt(receipt_id, request)
    return receipt


@router.delete("/receipts/{receipt_id}", status_code=204)
def delete_receipt(receipt_id: int, db: Session = Depends(get_db)):
    service = TransactionService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        service.delete_receipt(receipt_id)
    return Response(status_code=204)
