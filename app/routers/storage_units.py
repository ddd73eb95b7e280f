# app/routers/storage_units.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.security import ActiveSession, require_session
from app.db import get_db
from app.schemas import ApiResponse, StorageUnitCreated, StorageUnitIn, StorageUnitRecord
from app.services.reports import snapshot_summary
from app.services.storage_units import create_storage_unit, list_storage_units

router = APIRouter(prefix="/storage-units", tags=["Storage units"])


@router.get("", response_model=ApiResponse[list[StorageUnitRecord]])
def list_units(
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(list_storage_units(db))


@router.post("", response_model=ApiResponse[StorageUnitCreated], summary="Cadastrar unidade de armazenamento")
def create_unit(
    payload: StorageUnitIn,
    db: Session = Depends(get_db),
    session: ActiveSession = Depends(require_session),
):
    unit = create_storage_unit(db, payload, actor=session.identity)
    return ApiResponse.ok(StorageUnitCreated(unit=unit, snapshot=snapshot_summary(db)))
