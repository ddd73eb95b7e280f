# app/seed.py
import logging

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.db import Base, atomic
from app.models import DocumentCategory, DocumentType
from app.services.users import ensure_default_admin

logger = logging.getLogger(__name__)

# categoria -> [(tipo, anos de guarda)]
DOCUMENT_TAXONOMY: dict[str, list[tuple[str, int | None]]] = {
    "Admissional": [
        ("Contrato de trabalho", None),
        ("Ficha de registro", None),
        ("Exame admissional", 20),
        ("Documentos pessoais", 5),
    ],
    "Folha de pagamento": [
        ("Holerite", 5),
        ("Recibo de férias", 5),
        ("Recibo de 13º salário", 5),
    ],
    "Saúde ocupacional": [
        ("ASO periódico", 20),
        ("Atestado médico", 5),
    ],
    "Rescisório": [
        ("Termo de rescisão", 10),
        ("Exame demissional", 20),
        ("Aviso prévio", 5),
    ],
}


def create_schema(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)


def seed_document_taxonomy(db: Session) -> int:
    """Insere categorias/tipos que ainda não existem. Retorna quantos tipos criou."""
    created = 0
    with atomic(db):
        for cat_name, types in DOCUMENT_TAXONOMY.items():
            category = db.scalars(select(DocumentCategory).where(DocumentCategory.name == cat_name)).first()
            if category is None:
                category = DocumentCategory(name=cat_name)
                db.add(category)
                db.flush()
            existing = {t.name for t in category.types}
            for type_name, years in types:
                if type_name not in existing:
                    db.add(DocumentType(category_id=category.id, name=type_name, retention_years=years))
                    created += 1
    return created


def init_db(engine: Engine, db: Session) -> None:
    settings = get_settings()
    create_schema(engine)
    created = seed_document_taxonomy(db)
    if created:
        logger.info("document_taxonomy_seeded", extra={"types": created})
    if settings.DEFAULT_ADMIN_LOGIN and settings.DEFAULT_ADMIN_PASSWORD:
        ensure_default_admin(db, settings.DEFAULT_ADMIN_LOGIN, settings.DEFAULT_ADMIN_PASSWORD)
