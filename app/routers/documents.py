# app/routers/documents.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.security import ActiveSession, require_session
from app.db import get_db
from app.schemas import (
    ApiResponse, DocumentCategoryRecord, DocumentIn, DocumentRecord, DocumentTypeRecord,
)
from app.services import documents as service

router = APIRouter(prefix="/documents", tags=["Documents"])


@router.get("/categories", response_model=ApiResponse[list[DocumentCategoryRecord]])
def list_categories(
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(service.list_document_categories(db))


@router.get("/types", response_model=ApiResponse[list[DocumentTypeRecord]])
def list_types(
    category_id: int | None = None,
    db: Session = Depends(get_db),
    _: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(service.list_document_types(db, category_id))


@router.post("", response_model=ApiResponse[DocumentRecord], summary="Registrar documento")
def create_document(
    payload: DocumentIn,
    db: Session = Depends(get_db),
    session: ActiveSession = Depends(require_session),
):
    return ApiResponse.ok(service.create_document(db, payload, actor=session.identity))
