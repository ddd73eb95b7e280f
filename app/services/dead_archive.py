# app/services/dead_archive.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db import atomic
from app.models import ArchiveBox
from app.schemas import ArchiveBoxIn, ArchiveBoxRecord


def create_archive_box(db: Session, data: ArchiveBoxIn) -> ArchiveBoxRecord:
    with atomic(db):
        box = ArchiveBox(
            box_number=data.box_number.strip(),
            year=data.year,
            period=data.period,
            letter_range=data.letter_range,
            location=data.location,
            capacity=data.capacity,
            current_count=0,
        )
        db.add(box)
    db.refresh(box)
    return ArchiveBoxRecord.model_validate(box)


def list_archive_boxes(db: Session) -> list[ArchiveBoxRecord]:
    stmt = select(ArchiveBox).order_by(ArchiveBox.year.desc(), ArchiveBox.box_number)
    return [ArchiveBoxRecord.model_validate(b) for b in db.scalars(stmt).all()]
