# app/services/documents.py
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.core.errors import InvalidInput, NotFound
from app.db import atomic
from app.models import Document, DocumentCategory, DocumentType
from app.schemas import DocumentCategoryRecord, DocumentIn, DocumentRecord, DocumentTypeRecord
from app.services.employees import get_employee


def _to_record(doc: Document) -> DocumentRecord:
    record = DocumentRecord.model_validate(doc)
    record.category_name = doc.category.name
    record.type_name = doc.type.name
    return record


def list_document_categories(db: Session) -> list[DocumentCategoryRecord]:
    stmt = select(DocumentCategory).options(selectinload(DocumentCategory.types)).order_by(DocumentCategory.id)
    return [DocumentCategoryRecord.model_validate(c) for c in db.scalars(stmt).all()]


def list_document_types(db: Session, category_id: int | None = None) -> list[DocumentTypeRecord]:
    stmt = select(DocumentType)
    if category_id is not None:
        stmt = stmt.where(DocumentType.category_id == category_id)
    stmt = stmt.order_by(DocumentType.category_id, DocumentType.name)
    return [DocumentTypeRecord.model_validate(t) for t in db.scalars(stmt).all()]


def create_document(db: Session, data: DocumentIn, actor: str) -> DocumentRecord:
    with atomic(db):
        get_employee(db, data.employee_id)
        if db.get(DocumentCategory, data.category_id) is None:
            raise NotFound(f"Categoria {data.category_id} não encontrada")
        doc_type = db.get(DocumentType, data.type_id)
        if doc_type is None:
            raise NotFound(f"Tipo de documento {data.type_id} não encontrado")
        if doc_type.category_id != data.category_id:
            raise InvalidInput("Tipo de documento não pertence à categoria informada")
        doc = Document(
            employee_id=data.employee_id,
            category_id=data.category_id,
            type_id=data.type_id,
            document_date=data.document_date,
            expiration_date=data.expiration_date,
            description=data.description,
            filed_by=actor,
        )
        db.add(doc)
    db.refresh(doc)
    return _to_record(doc)


def list_employee_documents(db: Session, employee_id: int) -> list[DocumentRecord]:
    stmt = (
        select(Document)
        .options(selectinload(Document.category), selectinload(Document.type))
        .where(Document.employee_id == employee_id)
        .order_by(Document.filed_at.desc(), Document.id.desc())
    )
    return [_to_record(d) for d in db.scalars(stmt).all()]
