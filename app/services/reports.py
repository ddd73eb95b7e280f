# app/services/reports.py
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models import (
    ArchiveBox, Employee, EmployeeStatus, Loan, LoanStatus, Movement, StorageUnit, StorageUnitType,
)
from app.schemas import (
    DashboardStats, LoansReport, MovementRecord, MovementsReport, SnapshotSummary,
)
from app.services.lifecycle import get_disposal_candidates
from app.services.loans import get_overdue_loans
from app.services.occupancy import get_occupation_map


def _count(db: Session, stmt) -> int:
    return db.scalar(stmt) or 0


def dashboard_stats(db: Session, today: date | None = None) -> DashboardStats:
    today = today or date.today()
    occupancy = get_occupation_map(db).totals
    employees = dict(
        db.execute(select(Employee.status, func.count(Employee.id)).group_by(Employee.status)).all()
    )
    return DashboardStats(
        active_employees=employees.get(EmployeeStatus.ACTIVE, 0),
        terminated_employees=employees.get(EmployeeStatus.TERMINATED, 0),
        active_loans=_count(db, select(func.count(Loan.id)).where(Loan.status == LoanStatus.BORROWED)),
        overdue_loans=len(get_overdue_loans(db, today)),
        archive_boxes=_count(db, select(func.count(ArchiveBox.id))),
        disposal_candidates=len(get_disposal_candidates(db, today)),
        occupancy=occupancy,
    )


def loans_report(db: Session, today: date | None = None) -> LoansReport:
    by_status = dict(
        db.execute(select(Loan.status, func.count(Loan.id)).group_by(Loan.status)).all()
    )
    overdue = get_overdue_loans(db, today)
    return LoansReport(
        total=sum(by_status.values()),
        borrowed=by_status.get(LoanStatus.BORROWED, 0),
        returned=by_status.get(LoanStatus.RETURNED, 0),
        overdue=len(overdue),
        overdue_loans=overdue,
    )


def _today_filter():
    # data do próprio banco: created_at também vem do relógio do servidor
    return func.date(Movement.created_at) == func.current_date()


def snapshot_summary(db: Session) -> SnapshotSummary:
    """Contagem de unidades por tipo, movimentações do dia e a última movimentação."""
    units_by_type = {kind: 0 for kind in StorageUnitType.ALL}
    for kind, total in db.execute(
        select(StorageUnit.type, func.count(StorageUnit.id)).group_by(StorageUnit.type)
    ).all():
        key = kind.upper()
        units_by_type[key] = units_by_type.get(key, 0) + total
    last = db.scalars(
        select(Movement).order_by(Movement.created_at.desc(), Movement.id.desc()).limit(1)
    ).first()
    return SnapshotSummary(
        total_units=sum(units_by_type.values()),
        units_by_type=units_by_type,
        movements_today=_count(db, select(func.count(Movement.id)).where(_today_filter())),
        last_movement=MovementRecord.model_validate(last) if last else None,
    )


def movements_report(db: Session, limit: int = 100) -> MovementsReport:
    by_action = dict(
        db.execute(
            select(Movement.action, func.count(Movement.id))
            .group_by(Movement.action)
            .order_by(Movement.action)
        ).all()
    )
    recent = db.scalars(
        select(Movement).order_by(Movement.created_at.desc(), Movement.id.desc()).limit(limit)
    ).all()
    return MovementsReport(
        total=sum(by_action.values()),
        today=_count(db, select(func.count(Movement.id)).where(_today_filter())),
        by_action=by_action,
        recent=[MovementRecord.model_validate(m) for m in recent],
    )
