# app/routers/employees.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.security import ActiveSession, require_session
from app.db import get_db
from app.schemas import (
    ApiResponse, DocumentRecord, EmployeeDetail, EmployeeIn, EmployeeRecord, EmployeeUpdate,
    TerminationIn, TerminationResult,
)
from app.services import employees as service
from app.services.documents import list_employee_documents
from app.services.lifecycle import terminate_employee

router = APIRouter(prefix="/employees", tags=["Employees"])


@router.post("", response_model=ApiResponse[EmployeeRecord], summary="Cadastrar funcionário")
def create_employee(
    payload: EmployeeIn,
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(service.create_employee(db, payload))


@router.get("", response_model=ApiResponse[list[EmployeeRecord]])
def list_employees(
    status: str | None = None,
    department_id: int | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=service.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(service.list_employees(db, status, department_id, page, page_size))


@router.get("/search", response_model=ApiResponse[list[EmployeeRecord]])
def search_employees(
    q: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=service.MAX_SEARCH_LIMIT),
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(service.search_employees(db, q, limit))


@router.get("/{employee_id}", response_model=ApiResponse[EmployeeDetail])
def get_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(service.get_employee_detail(db, employee_id))


@router.put("/{employee_id}", response_model=ApiResponse[EmployeeRecord])
def update_employee(
    employee_id: int,
    payload: EmployeeUpdate,
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(service.update_employee(db, employee_id, payload))


@router.post("/{employee_id}/terminate", response_model=ApiResponse[TerminationResult],
             summary="Desligar funcionário (libera a posição e opcionalmente arquiva)")
def terminate(
    employee_id: int,
    payload: TerminationIn,
    db: Session = Depends(get_db),
    session: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(terminate_employee(
        db,
        employee_id,
        payload.termination_date,
        actor=session.identity,
        box_id=payload.box_id,
        disposal_eligible_date=payload.disposal_eligible_date,
    ))


@router.get("/{employee_id}/documents", response_model=ApiResponse[list[DocumentRecord]])
def employee_documents(
    employee_id: int,
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    service.get_employee(db, employee_id)
    return ApiResponse.ok(list_employee_documents(db, employee_id))
