"""
Chart of accounts API endpoints.

The API layer is thin: it parses the request, runs the
service call inside one atomic unit of work and shapes the
response. Ledger errors are turned into HTTP responses by
the handlers registered in main.py.
"""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from trade_ledger.config import get_settings
from trade_ledger.database import atomic, get_db
from trade_ledger.models.enums import BalanceContext
from trade_ledger.schemas.account import (
    AccountCreate,
    AccountResponse,
    AccountTreeNode,
    AccountUpdate,
    BulkCreateError,
    BulkCreateResponse,
)
from trade_ledger.schemas.ledger import AccountLedger, BalanceResult
from trade_ledger.services.account_service import AccountService
from trade_ledger.services.balance_service import BalanceService
from trade_ledger.services.report_service import ReportService

settings = get_settings()

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post("", status_code=201)
def create_accounts(
    request: AccountCreate | list[AccountCreate],
    db: Session = Depends(get_db),
):
    """
    Create one account, or several from a JSON array.

    A single account returns 201. A batch returns 201 when
    every item was created, 207 when only some were, and
    400 when none were; the body lists both outcomes.
    """
    service = AccountService(db)

    if not isinstance(request, list):
        with atomic(db, settings.POSTING_TIMEOUT_MS):
            account = service.create_account(request)
        return JSONResponse(
            status_code=201,
            content=AccountResponse.model_validate(account).model_dump(mode="json"),
        )

    created, errors = service.bulk_create_accounts(request)
    if not errors:
        status_code = 201
    elif created:
        status_code = 207
    else:
        status_code = 400

    body = BulkCreateResponse(
        success=not errors,
        created=len(created),
        failed=len(errors),
        data=[AccountResponse.model_validate(a) for a in created],
        errors=[BulkCreateError(**e) for e in errors],
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@router.get("/chart", response_model=list[AccountTreeNode])
def get_chart_of_accounts(db: Session = Depends(get_db)):
    """Active accounts as a tree, every level ordered by code."""
    return AccountService(db).get_chart()


@router.get("/eligible/debit", response_model=list[AccountResponse])
def list_payment_debit_accounts(db: Session = Depends(get_db)):
    """Accounts a payment may debit."""
    return AccountService(db).find_eligible_debit_accounts()


@router.get("/eligible/credit", response_model=list[AccountResponse])
def list_receipt_credit_accounts(db: Session = Depends(get_db)):
    """Accounts a receipt may credit."""
    return AccountService(db).find_eligible_credit_accounts()


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(account_id: int, db: Session = Depends(get_db)):
    return AccountService(db).get_account(account_id)


@router.patch("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: int,
    request: AccountUpdate,
    db: Session = Depends(get_db),
):
    service = AccountService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        account = service.update_account(account_id, request)
    return account


@router.post("/{account_id}/deactivate", response_model=AccountResponse)
def deactivate_account(account_id: int, db: Session = Depends(get_db)):
    """
    Soft-delete an account.

    The account keeps its history but drops out of the chart
    and can no longer be posted to.
    """
    service = AccountService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        account = service.deactivate_account(account_id)
    return account


@router.delete("/{account_id}", status_code=204)
def delete_account(account_id: int, db: Session = Depends(get_db)):
    """Hard-delete an account that has no entries and no children."""
    service = AccountService(db)
    with atomic(db, settings.POSTING_TIMEOUT_MS):
        service.delete_account(account_id)
    return Response(status_code=204)


@router.get("/{account_id}/balance", response_model=BalanceResult)
def get_account_balance(
    account_id: int,
    context: BalanceContext | None = None,
    db: Session = Depends(get_db),
):
    """
    Balance derived from ledger entries plus the opening balance.

    The optional context (payment or receipt) only adds a
    hint message; the amounts are the same either way.
    """
    return BalanceService(db).compute_balance(account_id, context)


@router.get("/{account_id}/ledger", response_model=AccountLedger)
def get_account_ledger(account_id: int, db: Session = Depends(get_db)):
    """Every entry on the account in posting order, with running balance."""
    return ReportService(db).get_ledger(account_id)
