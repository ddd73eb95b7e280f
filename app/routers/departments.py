# app/routers/departments.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.security import ActiveSession, require_session
from app.db import get_db
from app.schemas import ApiResponse, DepartmentIn, DepartmentRecord
from app.services import departments as service

router = APIRouter(prefix="/departments", tags=["Departments"])


@router.get("", response_model=ApiResponse[list[DepartmentRecord]])
def list_departments(
    active_only: bool = False,
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(service.list_departments(db, active_only))


@router.post("", response_model=ApiResponse[DepartmentRecord])
def create_department(
    payload: DepartmentIn,
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(service.create_department(db, payload))


@router.put("/{department_id}", response_model=ApiResponse[DepartmentRecord])
def update_department(
    department_id: int,
    payload: DepartmentIn,
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(service.update_department(db, department_id, payload))
