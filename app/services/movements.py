# app/services/movements.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db import atomic
from app.models import Movement
from app.schemas import MovementIn, MovementRecord

ASSIGN_POSITION = "ATRIBUICAO_POSICAO"
TERMINATION = "DEMISSAO"
ARCHIVE_TRANSFER = "TRANSFERENCIA_ARQUIVO"
DISPOSAL = "DESCARTE"
LOAN = "EMPRESTIMO"
LOAN_RETURN = "DEVOLUCAO"
UNIT_CREATED = "Cadastro de unidade"


def log_movement(db: Session, actor: str, action: str, **fields) -> Movement:
    """Adiciona a movimentação na transação corrente, sem commit."""
    movement = Movement(actor=actor, action=action, **fields)
    db.add(movement)
    return movement


def record_movement(db: Session, actor: str, data: MovementIn) -> MovementRecord:
    with atomic(db):
        movement = log_movement(
            db,
            actor,
            data.action.strip(),
            reference=data.reference,
            item_label=data.item_label,
            from_unit=data.from_unit,
            to_unit=data.to_unit,
            note=data.note,
        )
    db.refresh(movement)
    return MovementRecord.model_validate(movement)


def list_movements(db: Session, limit: int = 25) -> list[MovementRecord]:
    rows = db.scalars(
        select(Movement).order_by(Movement.created_at.desc(), Movement.id.desc()).limit(limit)
    ).all()
    return [MovementRecord.model_validate(m) for m in rows]
