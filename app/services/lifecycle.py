# app/services/lifecycle.py
"""Transições que envolvem mais de uma entidade.

Cada operação roda em uma única transação (``atomic``): ou todas as
escritas são aplicadas, ou nenhuma.
"""
import logging
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.errors import ConstraintViolation, InvalidInput, NotFound
from app.db import atomic
from app.models import ArchiveBox, ArchiveItem, Employee, EmployeeStatus, Loan, LoanStatus
from app.schemas import (
    ArchiveItemRecord, DisposalCandidate, DisposalTerm, LoanRecord, TerminationResult,
)
from app.services.assignment import position_location, release_employee_position
from app.services.employees import to_record
from app.services.movements import (
    ARCHIVE_TRANSFER, DISPOSAL, LOAN_RETURN, TERMINATION, log_movement,
)

logger = logging.getLogger(__name__)

TERM_PREFIX = "TERMO-"


def add_years(d: date, years: int) -> date:
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        # 29/02 em ano não bissexto
        return d.replace(year=d.year + years, day=28)


def generate_term_number(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"{TERM_PREFIX}{now:%Y%m%d%H%M%S}"


def _load_employee(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id, with_for_update=True)
    if employee is None:
        raise NotFound(f"Funcionário {employee_id} não encontrado")
    return employee


def _archive(
    db: Session,
    employee: Employee,
    box_id: int,
    disposal_eligible_date: date | None,
    actor: str,
) -> ArchiveItem:
    box = db.get(ArchiveBox, box_id, with_for_update=True)
    if box is None:
        raise NotFound(f"Caixa {box_id} não encontrada")
    if box.current_count >= box.capacity:
        raise ConstraintViolation(f"Caixa {box.box_number} está cheia ({box.capacity})")

    transfer_date = date.today()
    eligible = disposal_eligible_date or add_years(
        transfer_date, get_settings().ARCHIVE_RETENTION_YEARS
    )
    item = ArchiveItem(
        employee_id=employee.id,
        box_id=box.id,
        transfer_date=transfer_date,
        disposal_eligible_date=eligible,
        disposed=False,
        transferred_by=actor,
    )
    db.add(item)
    box.current_count = ArchiveBox.current_count + 1
    log_movement(
        db, actor, ARCHIVE_TRANSFER,
        reference=employee.registration,
        item_label=employee.full_name,
        to_unit=box.box_number,
    )
    db.flush()
    return item


def terminate_employee(
    db: Session,
    employee_id: int,
    termination_date: date,
    actor: str,
    box_id: int | None = None,
    disposal_eligible_date: date | None = None,
) -> TerminationResult:
    """Desliga o funcionário, libera a posição e, se ``box_id`` vier, arquiva."""
    with atomic(db):
        employee = _load_employee(db, employee_id)
        if employee.status == EmployeeStatus.TERMINATED:
            raise ConstraintViolation(f"Funcionário {employee.registration} já está desligado")
        if termination_date < employee.admission_date:
            raise InvalidInput("Data de desligamento anterior à admissão")

        freed = release_employee_position(db, employee)
        employee.status = EmployeeStatus.TERMINATED
        employee.termination_date = termination_date
        log_movement(
            db, actor, TERMINATION,
            reference=employee.registration,
            item_label=employee.full_name,
            from_unit=position_location(freed[0]) if freed else None,
        )
        item = None
        if box_id is not None:
            item = _archive(db, employee, box_id, disposal_eligible_date, actor)

    db.refresh(employee)
    logger.info("employee_terminated", extra={"employee": employee.id, "archived": item is not None})
    return TerminationResult(
        employee=to_record(employee),
        archive_item=ArchiveItemRecord.model_validate(item) if item is not None else None,
    )


def transfer_to_archive(
    db: Session,
    employee_id: int,
    box_id: int,
    actor: str,
    disposal_eligible_date: date | None = None,
) -> ArchiveItemRecord:
    with atomic(db):
        employee = _load_employee(db, employee_id)
        item = _archive(db, employee, box_id, disposal_eligible_date, actor)
    db.refresh(item)
    logger.info("archive_transfer", extra={"employee": employee_id, "box": box_id, "item": item.id})
    return ArchiveItemRecord.model_validate(item)


def get_disposal_candidates(db: Session, today: date | None = None) -> list[DisposalCandidate]:
    today = today or date.today()
    rows = db.execute(
        select(ArchiveItem, Employee, ArchiveBox)
        .join(Employee, Employee.id == ArchiveItem.employee_id)
        .join(ArchiveBox, ArchiveBox.id == ArchiveItem.box_id)
        .where(ArchiveItem.disposed.is_(False), ArchiveItem.disposal_eligible_date <= today)
        .order_by(ArchiveItem.disposal_eligible_date, ArchiveItem.id)
    ).all()
    return [
        DisposalCandidate(
            item_id=item.id,
            employee_id=employee.id,
            employee_name=employee.full_name,
            employee_registration=employee.registration,
            box_id=box.id,
            box_number=box.box_number,
            transfer_date=item.transfer_date,
            disposal_eligible_date=item.disposal_eligible_date,
        )
        for item, employee, box in rows
    ]


def register_disposal(
    db: Session,
    item_ids: list[int],
    actor: str,
    term_number: str | None = None,
) -> DisposalTerm:
    """Marca todos os itens como descartados sob o mesmo termo, ou nenhum."""
    ids = list(dict.fromkeys(item_ids))
    if not ids:
        raise InvalidInput("Informe ao menos um item")
    term = (term_number or "").strip() or generate_term_number()
    today = date.today()

    with atomic(db):
        items = {
            i.id: i
            for i in db.scalars(
                select(ArchiveItem).where(ArchiveItem.id.in_(ids)).with_for_update()
            ).all()
        }
        missing = [i for i in ids if i not in items]
        if missing:
            raise NotFound(f"Itens não encontrados: {missing}")
        disposed = [i for i in ids if items[i].disposed]
        if disposed:
            raise ConstraintViolation(f"Itens já descartados: {disposed}")
        early = [i for i in ids if items[i].disposal_eligible_date > today]
        if early:
            raise ConstraintViolation(f"Itens ainda não elegíveis para descarte: {early}")

        for i in ids:
            items[i].disposed = True
            items[i].disposal_date = today
            items[i].disposal_term_number = term
        log_movement(db, actor, DISPOSAL, reference=term, note=f"{len(ids)} item(ns)")

    records = []
    for i in ids:
        db.refresh(items[i])
        records.append(ArchiveItemRecord.model_validate(items[i]))
    logger.info("disposal_registered", extra={"term": term, "items": len(ids)})
    return DisposalTerm(
        term_number=term,
        disposal_date=today,
        registered_by=actor,
        items=records,
        total_items=len(records),
    )


def return_loan(
    db: Session,
    loan_id: int,
    actor: str,
    actual_return_date: date | None = None,
    return_notes: str | None = None,
) -> LoanRecord:
    with atomic(db):
        loan = db.get(Loan, loan_id, with_for_update=True)
        if loan is None:
            raise NotFound(f"Empréstimo {loan_id} não encontrado")
        if loan.status != LoanStatus.BORROWED:
            raise ConstraintViolation(f"Empréstimo {loan_id} já foi devolvido")
        returned_on = actual_return_date or date.today()
        if returned_on < loan.loan_date:
            raise InvalidInput("Data de devolução anterior ao empréstimo")
        loan.status = LoanStatus.RETURNED
        loan.actual_return_date = returned_on
        loan.return_notes = return_notes
        loan.returned_by = actor
        log_movement(db, actor, LOAN_RETURN, reference=str(loan.id), item_label=loan.requester_name)
    db.refresh(loan)
    return LoanRecord.model_validate(loan)
