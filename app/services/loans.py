# app/services/loans.py
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import InvalidInput, NotFound
from app.db import atomic
from app.models import Department, Employee, Loan, LoanStatus
from app.schemas import LoanIn, LoanRecord, OverdueLoan
from app.services.employees import get_employee
from app.services.movements import LOAN, log_movement


def create_loan(db: Session, data: LoanIn, actor: str) -> LoanRecord:
    loan_date = data.loan_date or date.today()
    if data.expected_return_date is not None and data.expected_return_date < loan_date:
        raise InvalidInput("Data prevista de devolução anterior ao empréstimo")
    with atomic(db):
        employee = get_employee(db, data.employee_id)
        if data.requester_department_id is not None and db.get(Department, data.requester_department_id) is None:
            raise NotFound(f"Departamento {data.requester_department_id} não encontrado")
        loan = Loan(
            employee_id=employee.id,
            requester_name=data.requester_name.strip(),
            requester_department_id=data.requester_department_id,
            reason=data.reason,
            loan_date=loan_date,
            expected_return_date=data.expected_return_date,
            status=LoanStatus.BORROWED,
            loaned_by=actor,
        )
        db.add(loan)
        log_movement(
            db, actor, LOAN,
            reference=employee.registration,
            item_label=employee.full_name,
            to_unit=data.requester_name.strip()[:60],
        )
    db.refresh(loan)
    return LoanRecord.model_validate(loan)


def list_loans(db: Session, status: str | None = None) -> list[LoanRecord]:
    stmt = select(Loan)
    if status:
        stmt = stmt.where(Loan.status == status)
    stmt = stmt.order_by(Loan.loan_date.desc(), Loan.id.desc())
    return [LoanRecord.model_validate(l) for l in db.scalars(stmt).all()]


def get_employee_active_loans(db: Session, employee_id: int) -> list[LoanRecord]:
    stmt = (
        select(Loan)
        .where(Loan.employee_id == employee_id, Loan.status == LoanStatus.BORROWED)
        .order_by(Loan.loan_date.desc(), Loan.id.desc())
    )
    return [LoanRecord.model_validate(l) for l in db.scalars(stmt).all()]


def get_overdue_loans(db: Session, today: date | None = None) -> list[OverdueLoan]:
    today = today or date.today()
    rows = db.execute(
        select(Loan, Employee)
        .join(Employee, Employee.id == Loan.employee_id)
        .where(
            Loan.status == LoanStatus.BORROWED,
            Loan.expected_return_date.is_not(None),
            Loan.expected_return_date < today,
        )
        .order_by(Loan.expected_return_date, Loan.id)
    ).all()
    return [
        OverdueLoan(
            **LoanRecord.model_validate(loan).model_dump(),
            employee_name=employee.full_name,
            employee_registration=employee.registration,
            days_overdue=(today - loan.expected_return_date).days,
        )
        for loan, employee in rows
    ]
