# app/routers/file_cabinets.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.security import ActiveSession, require_session
from app.db import get_db
from app.schemas import (
    ApiResponse, DrawerAssignmentIn, DrawerIn, DrawerPositionRecord, DrawerRecord,
    FileCabinetIn, FileCabinetRecord, FileCabinetWithOccupancy, OccupationMap,
    ReorganizationPlan, ReorganizationRequest,
)
from app.services.assignment import assign_employee_position
from app.services.occupancy import get_occupation_map
from app.services.reorganization import suggest_reorganization
from app.services.storage import create_drawer, create_file_cabinet, list_file_cabinets

router = APIRouter(tags=["File cabinets"])


@router.post("/file-cabinets", response_model=ApiResponse[FileCabinetRecord],
             summary="Criar gaveteiro com N gavetas")
def create_cabinet(
    payload: FileCabinetIn,
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(create_file_cabinet(db, payload))


@router.get("/file-cabinets", response_model=ApiResponse[list[FileCabinetWithOccupancy]])
def list_cabinets(
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(list_file_cabinets(db))


@router.post("/drawers", response_model=ApiResponse[DrawerRecord], summary="Adicionar gaveta")
def add_drawer(
    payload: DrawerIn,
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(create_drawer(db, payload))


@router.get("/occupation-map", response_model=ApiResponse[OccupationMap], summary="Mapa de ocupação")
def occupation_map(
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(get_occupation_map(db))


@router.post("/drawer-positions/assign", response_model=ApiResponse[DrawerPositionRecord],
             summary="Atribuir funcionário a uma posição de gaveta")
def assign_position(
    payload: DrawerAssignmentIn,
    db: Session = Depends(get_db),
    session: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(assign_employee_position(
        db, payload.employee_id, payload.drawer_id, payload.position, actor=session.identity
    ))


@router.post("/reorganization/suggest", response_model=ApiResponse[ReorganizationPlan],
             summary="Sugerir remanejamento de gavetas críticas")
def suggest(
    payload: ReorganizationRequest,
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(suggest_reorganization(db, payload.critical_threshold, payload.max_moves))
