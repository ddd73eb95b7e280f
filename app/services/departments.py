# app/services/departments.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.db import atomic
from app.models import Department
from app.schemas import DepartmentIn, DepartmentRecord


def list_departments(db: Session, active_only: bool = False) -> list[DepartmentRecord]:
    stmt = select(Department)
    if active_only:
        stmt = stmt.where(Department.active.is_(True))
    stmt = stmt.order_by(Department.name)
    return [DepartmentRecord.model_validate(d) for d in db.scalars(stmt).all()]


def create_department(db: Session, data: DepartmentIn) -> DepartmentRecord:
    with atomic(db):
        dep = Department(
            name=data.name.strip(),
            code=data.code,
            description=data.description,
            active=data.active,
        )
        db.add(dep)
    db.refresh(dep)
    return DepartmentRecord.model_validate(dep)


def update_department(db: Session, department_id: int, data: DepartmentIn) -> DepartmentRecord:
    with atomic(db):
        dep = db.get(Department, department_id)
        if dep is None:
            raise NotFound(f"Departamento {department_id} não encontrado")
        dep.name = data.name.strip()
        dep.code = data.code
        dep.description = data.description
        dep.active = data.active
    db.refresh(dep)
    return DepartmentRecord.model_validate(dep)
