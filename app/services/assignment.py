# app/services/assignment.py
"""Atribuição de funcionários a posições de gaveta.

Os dois lados da referência (``drawer_positions.employee_id`` e
``employees.drawer_position_id``) são sempre gravados na mesma transação.
"""
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import ConstraintViolation, InvalidInput, NotFound
from app.db import atomic
from app.models import Drawer, DrawerPosition, Employee, EmployeeStatus
from app.schemas import DrawerPositionRecord
from app.services.movements import ASSIGN_POSITION, log_movement
from app.services.occupancy import format_location

logger = logging.getLogger(__name__)


def position_location(position: DrawerPosition) -> str:
    drawer = position.drawer
    return f"{format_location(drawer.cabinet.number, drawer.number)}-P{position.position_number}"


def release_employee_position(db: Session, employee: Employee) -> list[DrawerPosition]:
    """Libera a posição do funcionário nos dois lados. Não faz commit."""
    held = db.scalars(
        select(DrawerPosition)
        .where(DrawerPosition.employee_id == employee.id)
        .with_for_update()
    ).all()
    for position in held:
        position.employee_id = None
        position.is_occupied = False
    employee.drawer_position_id = None
    db.flush()
    return list(held)


def assign_employee_position(
    db: Session, employee_id: int, drawer_id: int, position: int, actor: str
) -> DrawerPositionRecord:
    if position < 1:
        raise InvalidInput("Posição deve ser um inteiro positivo")

    with atomic(db):
        employee = db.get(Employee, employee_id, with_for_update=True)
        if employee is None:
            raise NotFound(f"Funcionário {employee_id} não encontrado")
        if employee.status == EmployeeStatus.TERMINATED:
            raise ConstraintViolation("Funcionário desligado não pode ocupar posição em gaveta")
        drawer = db.get(Drawer, drawer_id)
        if drawer is None:
            raise NotFound(f"Gaveta {drawer_id} não encontrada")
        if position > drawer.capacity:
            raise ConstraintViolation(
                f"Posição {position} excede a capacidade da gaveta ({drawer.capacity})"
            )

        target = db.scalars(
            select(DrawerPosition)
            .where(DrawerPosition.drawer_id == drawer_id, DrawerPosition.position_number == position)
            .with_for_update()
        ).first()

        previous = db.scalars(
            select(DrawerPosition)
            .where(DrawerPosition.employee_id == employee_id)
            .with_for_update()
        ).first()
        from_unit = None
        if previous is not None and (target is None or previous.id != target.id):
            from_unit = position_location(previous)
            previous.employee_id = None
            previous.is_occupied = False
            db.flush()

        if target is not None and target.employee_id not in (None, employee_id):
            evicted = db.get(Employee, target.employee_id, with_for_update=True)
            if evicted is not None and evicted.drawer_position_id == target.id:
                evicted.drawer_position_id = None
            logger.warning(
                "position_overwritten",
                extra={"position_id": target.id, "evicted_employee": target.employee_id,
                       "employee": employee_id},
            )

        if target is None:
            target = DrawerPosition(
                drawer_id=drawer_id,
                position_number=position,
                employee_id=employee_id,
                is_occupied=True,
            )
            db.add(target)
        else:
            target.employee_id = employee_id
            target.is_occupied = True
        db.flush()
        employee.drawer_position_id = target.id

        log_movement(
            db, actor, ASSIGN_POSITION,
            reference=employee.registration,
            item_label=employee.full_name,
            from_unit=from_unit,
            to_unit=f"{format_location(drawer.cabinet.number, drawer.number)}-P{position}",
        )

    db.refresh(target)
    return DrawerPositionRecord.model_validate(target)


def get_employee_drawer_position(db: Session, employee_id: int) -> DrawerPositionRecord | None:
    position = db.scalars(
        select(DrawerPosition).where(DrawerPosition.employee_id == employee_id)
    ).first()
    return DrawerPositionRecord.model_validate(position) if position else None
