# app/routers/dead_archive.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.security import ActiveSession, require_session
from app.db import get_db
from app.schemas import (
    ApiResponse, ArchiveBoxIn, ArchiveBoxRecord, ArchiveItemRecord, ArchiveTransferIn,
    DisposalCandidate, DisposalIn, DisposalTerm,
)
from app.services import lifecycle
from app.services.dead_archive import create_archive_box, list_archive_boxes

router = APIRouter(prefix="/archive", tags=["Dead archive"])


@router.post("/boxes", response_model=ApiResponse[ArchiveBoxRecord], summary="Criar caixa")
def create_box(
    payload: ArchiveBoxIn,
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(create_archive_box(db, payload))


@router.get("/boxes", response_model=ApiResponse[list[ArchiveBoxRecord]])
def list_boxes(
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(list_archive_boxes(db))


@router.post("/transfer", response_model=ApiResponse[ArchiveItemRecord],
             summary="Transferir prontuário para o arquivo morto")
def transfer(
    payload: ArchiveTransferIn,
    db: Session = Depends(get_db),
    session: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(lifecycle.transfer_to_archive(
        db,
        payload.employee_id,
        payload.box_id,
        actor=session.identity,
        disposal_eligible_date=payload.disposal_eligible_date,
    ))


@router.get("/disposal-candidates", response_model=ApiResponse[list[DisposalCandidate]])
def disposal_candidates(
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(lifecycle.get_disposal_candidates(db))


@router.post("/disposal", response_model=ApiResponse[DisposalTerm], summary="Registrar descarte")
def register_disposal(
    payload: DisposalIn,
    db: Session = Depends(get_db),
    session: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(lifecycle.register_disposal(
        db, payload.item_ids, actor=session.identity, term_number=payload.term_number
    ))
