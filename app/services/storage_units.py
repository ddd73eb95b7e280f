# app/services/storage_units.py
"""Unidades de armazenamento avulsas (pastas, envelopes, caixas, gaveteiros)."""
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db import atomic
from app.models import StorageUnit
from app.schemas import StorageUnitIn, StorageUnitRecord
from app.services.movements import UNIT_CREATED, log_movement

logger = logging.getLogger(__name__)


def to_record(unit: StorageUnit) -> StorageUnitRecord:
    return StorageUnitRecord(
        id=unit.id,
        label=unit.label,
        type=unit.type,
        section=unit.section,
        capacity=unit.capacity,
        occupancy=unit.occupancy,
        metadata=unit.details,
        created_at=unit.created_at,
        updated_at=unit.updated_at,
    )


def list_storage_units(db: Session) -> list[StorageUnitRecord]:
    stmt = select(StorageUnit).order_by(StorageUnit.updated_at.desc(), StorageUnit.id.desc())
    return [to_record(u) for u in db.scalars(stmt).all()]


def create_storage_unit(db: Session, data: StorageUnitIn, actor: str) -> StorageUnitRecord:
    """Cria a unidade (ocupação 0) e registra a movimentação de cadastro."""
    with atomic(db):
        unit = StorageUnit(
            label=data.label,
            type=data.type.upper(),
            section=data.section,
            capacity=data.capacity,
            occupancy=0,
            details=data.metadata,
        )
        db.add(unit)
        log_movement(
            db, actor, UNIT_CREATED,
            reference=data.section,
            item_label=data.label,
            to_unit=data.section,
            note=f"Unidade {data.label} criada",
        )
    db.refresh(unit)
    logger.info("storage_unit_created", extra={"unit": unit.id, "type": unit.type})
    return to_record(unit)
