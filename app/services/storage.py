# app/services/storage.py
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.db import atomic, snapshot
from app.models import Drawer, FileCabinet
from app.schemas import (
    DrawerIn, DrawerRecord, FileCabinetIn, FileCabinetRecord, FileCabinetWithOccupancy,
)
from app.services.occupancy import build_occupation_map, drawer_stats

logger = logging.getLogger(__name__)

def create_file_cabinet(db: Session, data: FileCabinetIn) -> FileCabinetRecord:
    """Cria o gaveteiro e exatamente ``drawer_count`` gavetas numeradas de 1 a N."""
    with atomic(db):
        cabinet = FileCabinet(
            number=data.number.strip(),
            location=data.location,
            drawer_count=data.drawer_count,
            active=True,
        )
        db.add(cabinet)
        db.flush()
        for n in range(1, data.drawer_count + 1):
            db.add(Drawer(cabinet_id=cabinet.id, number=n, capacity=data.drawer_capacity))
    db.refresh(cabinet)
    logger.info("cabinet_created", extra={"cabinet": cabinet.number, "drawers": cabinet.drawer_count})
    return FileCabinetRecord.model_validate(cabinet)

def create_drawer(db: Session, data: DrawerIn) -> DrawerRecord:
    with atomic(db):
        cabinet = db.get(FileCabinet, data.cabinet_id, with_for_update=True)
        if cabinet is None:
            raise NotFound(f"Gaveteiro {data.cabinet_id} não encontrado")
        drawer = Drawer(
            cabinet_id=cabinet.id,
            number=data.number,
            capacity=data.capacity,
            label=data.label,
        )
        db.add(drawer)
        db.flush()
        cabinet.drawer_count = cabinet.drawer_count + 1
    db.refresh(drawer)
    return DrawerRecord.model_validate(drawer)

def list_file_cabinets(db: Session) -> list[FileCabinetWithOccupancy]:
    with snapshot(db):
        cabinets = list(db.scalars(select(FileCabinet)).all())
        occupation = build_occupation_map(cabinets, drawer_stats(db))
        by_id = {c.id: FileCabinetRecord.model_validate(c) for c in cabinets}
    return [
        FileCabinetWithOccupancy(cabinet=by_id[node.cabinet_id], occupancy=node)
        for node in occupation.cabinets
    ]
