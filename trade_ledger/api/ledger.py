"""
Ledger API endpoints.

Read-only views over the transactions and entries as a
whole, as opposed to one account at a time.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from trade_ledger.database import get_db
from trade_ledger.schemas.ledger import IntegrityReport, TransactionResponse
from trade_ledger.services.ledger_service import LedgerService

router = APIRouter(prefix="/ledger", tags=["Ledger"])


@router.get("/integrity", response_model=IntegrityReport)
def check_ledger_integrity(db: Session = Depends(get_db)):
    """
    Trial balance over the whole ledger.

    Total debits must equal total credits, and so must the
    legs of every single transaction.
    """
    return LedgerService(db).check_integrity()


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: int, db: Session = Depends(get_db)):
    """A transaction header with all of its entries."""
    return LedgerService(db).get_transaction(transaction_id)
