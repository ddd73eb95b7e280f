# app/routers/loans.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.errors import InvalidInput
from app.core.security import ActiveSession, require_session
from app.db import get_db
from app.models import LoanStatus
from app.schemas import ApiResponse, LoanIn, LoanRecord, LoanReturnIn, OverdueLoan
from app.services import loans as service
from app.services.lifecycle import return_loan

router = APIRouter(prefix="/loans", tags=["Loans"])


@router.post("", response_model=ApiResponse[LoanRecord], summary="Registrar empréstimo")
def create_loan(
    payload: LoanIn,
    db: Session = Depends(get_db),
    session: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(service.create_loan(db, payload, actor=session.identity))


@router.get("", response_model=ApiResponse[list[LoanRecord]])
def list_loans(
    status: str | None = None,
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    if status is not None:
        status = status.strip().upper()
        if status not in (LoanStatus.BORROWED, LoanStatus.RETURNED):
            raise InvalidInput(f"Status inválido: {status}")
    return ApiResponse.ok(service.list_loans(db, status))


@router.get("/pending", response_model=ApiResponse[list[LoanRecord]])
def pending_loans(
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(service.list_loans(db, LoanStatus.BORROWED))


@router.get("/overdue", response_model=ApiResponse[list[OverdueLoan]])
def overdue_loans(
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(service.get_overdue_loans(db))


@router.post("/{loan_id}/return", response_model=ApiResponse[LoanRecord], summary="Devolver empréstimo")
def return_(
    loan_id: int,
    payload: LoanReturnIn,
    db: Session = Depends(get_db),
    session: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(return_loan(
        db,
        loan_id,
        actor=session.identity,
        actual_return_date=payload.actual_return_date,
        return_notes=payload.return_notes,
    ))
