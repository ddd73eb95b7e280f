from datetime import date, datetime
from typing import Any, Generic, Literal, TypeVar
from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: T) -> "ApiResponse[T]":
        return cls(success=True, data=data)


class Record(BaseModel):
    model_config = ConfigDict(from_attributes=True)


def _blank_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


# -------- auth --------
class Credentials(BaseModel):
    login: str = Field(min_length=1, max_length=120)
    password: str = Field(min_length=1, max_length=128)


class UserProfile(Record):
    id: int
    name: str
    login: str
    role: str


# -------- departments --------
class DepartmentIn(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    code: str | None = Field(default=None, max_length=30)
    description: str | None = None
    active: bool = True

    @field_validator("code", "description", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)


class DepartmentRecord(Record):
    id: int
    name: str
    code: str | None
    description: str | None
    active: bool


# -------- employees --------
class EmployeeIn(BaseModel):
    full_name: str = Field(min_length=1, max_length=160)
    registration: str = Field(min_length=1, max_length=40)
    national_id: str | None = Field(default=None, max_length=20)
    department_id: int | None = Field(default=None, ge=1)
    admission_date: date
    notes: str | None = None

    @field_validator("national_id", "notes", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator("full_name", "registration")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("campo obrigatório")
        return v


class EmployeeUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=160)
    national_id: str | None = Field(default=None, max_length=20)
    department_id: int | None = Field(default=None, ge=1)
    admission_date: date | None = None
    notes: str | None = None

    # omitir mantém o valor atual; null explícito não é aceito
    @field_validator("full_name", "admission_date")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("campo obrigatório não pode ser nulo")
        return v


class EmployeeRecord(Record):
    id: int
    full_name: str
    registration: str
    national_id: str | None
    department_id: int | None
    department_name: str | None = None
    admission_date: date
    termination_date: date | None
    status: str
    drawer_position_id: int | None
    drawer_location: str | None = None
    notes: str | None


class TerminationIn(BaseModel):
    termination_date: date
    box_id: int | None = Field(default=None, ge=1)
    disposal_eligible_date: date | None = None


# -------- storage --------
class FileCabinetIn(BaseModel):
    number: str = Field(min_length=1, max_length=30)
    location: str | None = Field(default=None, max_length=120)
    drawer_count: int = Field(ge=1, le=20)
    drawer_capacity: int = Field(default=50, ge=0, le=1000)

    @field_validator("location", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)


class FileCabinetRecord(Record):
    id: int
    number: str
    location: str | None
    drawer_count: int
    active: bool


class DrawerIn(BaseModel):
    cabinet_id: int = Field(ge=1)
    number: int = Field(ge=1)
    capacity: int = Field(ge=0, le=1000)
    label: str | None = Field(default=None, max_length=120)


class DrawerRecord(Record):
    id: int
    cabinet_id: int
    number: int
    capacity: int
    label: str | None


class DrawerPositionRecord(Record):
    id: int
    drawer_id: int
    position_number: int
    employee_id: int | None
    is_occupied: bool


class DrawerAssignmentIn(BaseModel):
    employee_id: int = Field(ge=1)
    drawer_id: int = Field(ge=1)
    position: int


class DrawerOccupancy(BaseModel):
    drawer_id: int
    number: int
    label: str | None
    capacity: int
    occupied: int
    occupancy_rate: float
    critical: bool


class CabinetOccupancy(BaseModel):
    cabinet_id: int
    number: str
    location: str | None
    total_positions: int
    occupied_positions: int
    occupancy_rate: float
    status: Literal["OK", "WARNING", "CRITICAL"]
    drawers: list[DrawerOccupancy]


class OccupationTotals(BaseModel):
    total_cabinets: int
    total_positions: int
    occupied_positions: int
    occupancy_rate: float
    warning_cabinets: int
    critical_cabinets: int


class OccupationMap(BaseModel):
    cabinets: list[CabinetOccupancy]
    totals: OccupationTotals


class FileCabinetWithOccupancy(BaseModel):
    cabinet: FileCabinetRecord
    occupancy: CabinetOccupancy


class ReorganizationRequest(BaseModel):
    critical_threshold: int | None = None
    max_moves: int | None = None


class ReorganizationSuggestion(BaseModel):
    employee_id: int
    employee_name: str
    from_drawer_id: int
    from_location: str
    to_drawer_id: int
    to_location: str
    reason: str


class ReorganizationPlan(BaseModel):
    critical_threshold: int
    max_moves: int
    suggestions: list[ReorganizationSuggestion]
    total_moves: int


# -------- documents --------
class DocumentTypeRecord(Record):
    id: int
    category_id: int
    name: str
    retention_years: int | None


class DocumentCategoryRecord(Record):
    id: int
    name: str
    description: str | None
    types: list[DocumentTypeRecord] = []


class DocumentIn(BaseModel):
    employee_id: int = Field(ge=1)
    category_id: int = Field(ge=1)
    type_id: int = Field(ge=1)
    document_date: date | None = None
    expiration_date: date | None = None
    description: str | None = None


class DocumentRecord(Record):
    id: int
    employee_id: int
    category_id: int
    type_id: int
    category_name: str | None = None
    type_name: str | None = None
    document_date: date | None
    expiration_date: date | None
    description: str | None
    filed_by: str
    filed_at: datetime


# -------- loans --------
class LoanIn(BaseModel):
    employee_id: int = Field(ge=1)
    requester_name: str = Field(min_length=1, max_length=160)
    requester_department_id: int | None = Field(default=None, ge=1)
    reason: str | None = None
    loan_date: date | None = None
    expected_return_date: date | None = None


class LoanReturnIn(BaseModel):
    actual_return_date: date | None = None
    return_notes: str | None = None


class LoanRecord(Record):
    id: int
    employee_id: int
    requester_name: str
    requester_department_id: int | None
    reason: str | None
    loan_date: date
    expected_return_date: date | None
    actual_return_date: date | None
    status: str
    loaned_by: str
    returned_by: str | None
    return_notes: str | None


class OverdueLoan(LoanRecord):
    employee_name: str
    employee_registration: str
    days_overdue: int


# -------- arquivo morto --------
class ArchiveBoxIn(BaseModel):
    box_number: str = Field(min_length=1, max_length=40)
    year: int = Field(ge=1900, le=2100)
    period: str | None = Field(default=None, max_length=60)
    letter_range: str | None = Field(default=None, max_length=20)
    location: str | None = Field(default=None, max_length=120)
    capacity: int = Field(default=50, ge=1, le=10000)


class ArchiveBoxRecord(Record):
    id: int
    box_number: str
    year: int
    period: str | None
    letter_range: str | None
    location: str | None
    capacity: int
    current_count: int


class ArchiveTransferIn(BaseModel):
    employee_id: int = Field(ge=1)
    box_id: int = Field(ge=1)
    disposal_eligible_date: date | None = None


class ArchiveItemRecord(Record):
    id: int
    employee_id: int
    box_id: int
    transfer_date: date
    disposal_eligible_date: date
    disposed: bool
    disposal_date: date | None
    disposal_term_number: str | None
    transferred_by: str


class DisposalCandidate(BaseModel):
    item_id: int
    employee_id: int
    employee_name: str
    employee_registration: str
    box_id: int
    box_number: str
    transfer_date: date
    disposal_eligible_date: date


class DisposalIn(BaseModel):
    item_ids: list[int] = Field(min_length=1, max_length=500)
    term_number: str | None = Field(default=None, max_length=60)


class DisposalTerm(BaseModel):
    term_number: str
    disposal_date: date
    registered_by: str
    items: list[ArchiveItemRecord]
    total_items: int


class TerminationResult(BaseModel):
    employee: EmployeeRecord
    archive_item: ArchiveItemRecord | None = None


class EmployeeDetail(BaseModel):
    basic: EmployeeRecord
    documents: list[DocumentRecord]
    active_loans: list[LoanRecord]
    drawer_position: DrawerPositionRecord | None


# -------- movimentações --------
class MovementIn(BaseModel):
    action: str = Field(min_length=3, max_length=60)
    reference: str | None = Field(default=None, max_length=120)
    item_label: str | None = Field(default=None, max_length=160)
    from_unit: str | None = Field(default=None, max_length=60)
    to_unit: str | None = Field(default=None, max_length=60)
    note: str | None = None


class MovementRecord(Record):
    id: int
    reference: str | None
    item_label: str | None
    from_unit: str | None
    to_unit: str | None
    action: str
    note: str | None
    actor: str
    created_at: datetime


# -------- relatórios --------
class DashboardStats(BaseModel):
    active_employees: int
    terminated_employees: int
    active_loans: int
    overdue_loans: int
    archive_boxes: int
    disposal_candidates: int
    occupancy: OccupationTotals


class LoansReport(BaseModel):
    total: int
    borrowed: int
    returned: int
    overdue: int
    overdue_loans: list[OverdueLoan]


class MovementsReport(BaseModel):
    total: int
    today: int
    by_action: dict[str, int]
    recent: list[MovementRecord]


# -------- unidades de armazenamento --------
class StorageUnitIn(BaseModel):
    label: str = Field(max_length=120)
    type: str = Field(max_length=30)
    section: str | None = Field(default=None, max_length=60)
    capacity: int = Field(default=0, ge=0)
    metadata: dict[str, Any] | None = None

    @field_validator("label")
    @classmethod
    def label_required(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Informe um identificador")
        return v

    @field_validator("type")
    @classmethod
    def type_required(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("Informe o tipo da unidade")
        return v

    @field_validator("section", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)


class StorageUnitRecord(BaseModel):
    id: int
    label: str
    type: str
    section: str | None
    capacity: int
    occupancy: int
    metadata: dict[str, Any] | None
    created_at: datetime
    updated_at: datetime


# -------- resumo do acervo --------
class SnapshotSummary(BaseModel):
    total_units: int
    units_by_type: dict[str, int]
    movements_today: int
    last_movement: MovementRecord | None


class LoginResult(BaseModel):
    token: str
    profile: UserProfile
    expires_at: datetime
    snapshot: SnapshotSummary


class MovementRecorded(BaseModel):
    movement: MovementRecord
    snapshot: SnapshotSummary


class StorageUnitCreated(BaseModel):
    unit: StorageUnitRecord
    snapshot: SnapshotSummary
