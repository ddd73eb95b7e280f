# app/routers/reports.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.security import ActiveSession, require_session
from app.db import get_db
from app.schemas import (
    ApiResponse, DashboardStats, LoansReport, MovementIn, MovementRecord, MovementRecorded, MovementsReport,
)
from app.services.movements import list_movements, record_movement
from app.services.reports import dashboard_stats, loans_report, movements_report, snapshot_summary

router = APIRouter()


@router.get("/reports/dashboard", tags=["Reports"], response_model=ApiResponse[DashboardStats])
def dashboard(
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(dashboard_stats(db))


@router.get("/reports/loans", tags=["Reports"], response_model=ApiResponse[LoansReport])
def loans(
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(loans_report(db))


@router.get("/movements", tags=["Movements"], response_model=ApiResponse[list[MovementRecord]])
def movements(
    limit: int = Query(25, ge=1, le=500),
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(list_movements(db, limit))


@router.get("/reports/movements", tags=["Reports"], response_model=ApiResponse[MovementsReport])
def movements_summary(
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(movements_report(db, limit))


@router.post("/movements", tags=["Movements"], response_model=ApiResponse[MovementRecorded])
def add_movement(
    payload: MovementIn,
    db: Session = Depends(get_db),
    session: ActiveSession = Depends(require_session),
):
    movement = record_movement(db, session.identity, payload)
    return ApiResponse.ok(MovementRecorded(movement=movement, snapshot=snapshot_summary(db)))
