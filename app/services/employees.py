# app/services/employees.py
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from app.core.errors import InvalidInput, NotFound
from app.db import atomic
from app.models import Department, Drawer, DrawerPosition, Employee, EmployeeStatus
from app.schemas import EmployeeDetail, EmployeeIn, EmployeeRecord, EmployeeUpdate
from app.services.occupancy import format_location

MAX_PAGE_SIZE = 200
MAX_SEARCH_LIMIT = 100

_LOAD_OPTIONS = (
    selectinload(Employee.department),
    selectinload(Employee.drawer_position)
    .selectinload(DrawerPosition.drawer)
    .selectinload(Drawer.cabinet),
)


def to_record(employee: Employee) -> EmployeeRecord:
    record = EmployeeRecord.model_validate(employee)
    if employee.department is not None:
        record.department_name = employee.department.name
    position = employee.drawer_position
    if position is not None:
        drawer = position.drawer
        record.drawer_location = (
            f"{format_location(drawer.cabinet.number, drawer.number)}-P{position.position_number}"
        )
    return record


def get_employee(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise NotFound(f"Funcionário {employee_id} não encontrado")
    return employee


def _check_department(db: Session, department_id: int | None) -> None:
    if department_id is not None and db.get(Department, department_id) is None:
        raise NotFound(f"Departamento {department_id} não encontrado")


def create_employee(db: Session, data: EmployeeIn) -> EmployeeRecord:
    with atomic(db):
        _check_department(db, data.department_id)
        employee = Employee(
            full_name=data.full_name,
            registration=data.registration,
            national_id=data.national_id,
            department_id=data.department_id,
            admission_date=data.admission_date,
            status=EmployeeStatus.ACTIVE,
            notes=data.notes,
        )
        db.add(employee)
    db.refresh(employee)
    return to_record(employee)


def update_employee(db: Session, employee_id: int, data: EmployeeUpdate) -> EmployeeRecord:
    changes = data.model_dump(exclude_unset=True)
    with atomic(db):
        employee = get_employee(db, employee_id)
        if "department_id" in changes:
            _check_department(db, changes["department_id"])
        if changes.get("full_name") is not None:
            changes["full_name"] = changes["full_name"].strip()
        for field, value in changes.items():
            setattr(employee, field, value)
    db.refresh(employee)
    return to_record(employee)


def list_employees(
    db: Session,
    status: str | None = None,
    department_id: int | None = None,
    page: int = 1,
    page_size: int = 50,
) -> list[EmployeeRecord]:
    if page < 1:
        raise InvalidInput("page deve ser >= 1")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise InvalidInput(f"page_size deve ser 1..{MAX_PAGE_SIZE}")
    stmt = select(Employee).options(*_LOAD_OPTIONS)
    if status:
        status = status.strip().upper()
        if status not in (EmployeeStatus.ACTIVE, EmployeeStatus.TERMINATED):
            raise InvalidInput(f"Status inválido: {status}")
        stmt = stmt.where(Employee.status == status)
    if department_id is not None:
        stmt = stmt.where(Employee.department_id == department_id)
    stmt = stmt.order_by(Employee.full_name, Employee.id).offset((page - 1) * page_size).limit(page_size)
    return [to_record(e) for e in db.scalars(stmt).all()]


def search_employees(db: Session, query: str, limit: int = 20) -> list[EmployeeRecord]:
    term = (query or "").strip().lower()
    if not term:
        raise InvalidInput("Informe o termo de busca")
    if not 1 <= limit <= MAX_SEARCH_LIMIT:
        raise InvalidInput(f"limit deve ser 1..{MAX_SEARCH_LIMIT}")
    pattern = f"%{term}%"
    stmt = (
        select(Employee)
        .options(*_LOAD_OPTIONS)
        .where(or_(
            func.lower(Employee.full_name).like(pattern),
            func.lower(Employee.registration).like(pattern),
            func.lower(Employee.national_id).like(pattern),
        ))
        .order_by(Employee.full_name, Employee.id)
        .limit(limit)
    )
    return [to_record(e) for e in db.scalars(stmt).all()]


def get_employee_detail(db: Session, employee_id: int) -> EmployeeDetail:
    # imports locais: documents/loans importam este módulo
    from app.services.assignment import get_employee_drawer_position
    from app.services.documents import list_employee_documents
    from app.services.loans import get_employee_active_loans

    employee = get_employee(db, employee_id)
    return EmployeeDetail(
        basic=to_record(employee),
        documents=list_employee_documents(db, employee_id),
        active_loans=get_employee_active_loans(db, employee_id),
        drawer_position=get_employee_drawer_position(db, employee_id),
    )
