from datetime import date, datetime
from typing import Optional
from sqlalchemy import (
    String, Integer, Date, DateTime, Boolean, Text, JSON, ForeignKey, UniqueConstraint, Index, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db import Base


class EmployeeStatus:
    ACTIVE = "ACTIVE"
    TERMINATED = "TERMINATED"


class LoanStatus:
    BORROWED = "BORROWED"
    RETURNED = "RETURNED"


class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    login: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(30), nullable=False, default="admin")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())


class Department(Base):
    __tablename__ = "departments"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    code: Mapped[str | None] = mapped_column(String(30), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    employees: Mapped[list["Employee"]] = relationship(back_populates="department")


class Employee(Base):
    __tablename__ = "employees"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(160), nullable=False)
    registration: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    national_id: Mapped[str | None] = mapped_column(String(20), nullable=True)
    department_id: Mapped[int | None] = mapped_column(ForeignKey("departments.id"), index=True)
    admission_date: Mapped[date] = mapped_column(Date, nullable=False)
    termination_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=EmployeeStatus.ACTIVE)
    # referência não proprietária; o lado inverso é drawer_positions.employee_id
    drawer_position_id: Mapped[int | None] = mapped_column(
        ForeignKey("drawer_positions.id", use_alter=True, name="fk_employees_drawer_position"),
        nullable=True,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    department: Mapped[Optional["Department"]] = relationship(back_populates="employees")
    drawer_position: Mapped[Optional["DrawerPosition"]] = relationship(
        foreign_keys=[drawer_position_id], post_update=True
    )

    __table_args__ = (
        Index("ix_employees_status", "status"),
        Index("ix_employees_full_name", "full_name"),
    )


class FileCabinet(Base):
    __tablename__ = "file_cabinets"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    number: Mapped[str] = mapped_column(String(30), nullable=False, unique=True)
    location: Mapped[str | None] = mapped_column(String(120), nullable=True)
    drawer_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())
    drawers: Mapped[list["Drawer"]] = relationship(
        back_populates="cabinet", order_by="Drawer.number"
    )


class Drawer(Base):
    __tablename__ = "drawers"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cabinet_id: Mapped[int] = mapped_column(ForeignKey("file_cabinets.id"), nullable=False, index=True)
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    label: Mapped[str | None] = mapped_column(String(120), nullable=True)

    cabinet: Mapped["FileCabinet"] = relationship(back_populates="drawers")
    positions: Mapped[list["DrawerPosition"]] = relationship(
        back_populates="drawer", order_by="DrawerPosition.position_number"
    )

    __table_args__ = (
        UniqueConstraint("cabinet_id", "number", name="uq_drawer_number"),
    )


class DrawerPosition(Base):
    __tablename__ = "drawer_positions"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    drawer_id: Mapped[int] = mapped_column(ForeignKey("drawers.id"), nullable=False, index=True)
    position_number: Mapped[int] = mapped_column(Integer, nullable=False)
    # único: um funcionário ocupa no máximo uma posição
    employee_id: Mapped[int | None] = mapped_column(ForeignKey("employees.id"), nullable=True, unique=True)
    is_occupied: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )

    drawer: Mapped["Drawer"] = relationship(back_populates="positions")
    employee: Mapped[Optional["Employee"]] = relationship(foreign_keys=[employee_id])

    __table_args__ = (
        UniqueConstraint("drawer_id", "position_number", name="uq_drawer_position"),
    )


class DocumentCategory(Base):
    __tablename__ = "document_categories"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    types: Mapped[list["DocumentType"]] = relationship(
        back_populates="category", order_by="DocumentType.name"
    )


class DocumentType(Base):
    __tablename__ = "document_types"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("document_categories.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    retention_years: Mapped[int | None] = mapped_column(Integer, nullable=True)
    category: Mapped["DocumentCategory"] = relationship(back_populates="types")

    __table_args__ = (
        UniqueConstraint("category_id", "name", name="uq_document_type_name"),
    )


class Document(Base):
    __tablename__ = "documents"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id"), nullable=False, index=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("document_categories.id"), nullable=False)
    type_id: Mapped[int] = mapped_column(ForeignKey("document_types.id"), nullable=False)
    document_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expiration_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    filed_by: Mapped[str] = mapped_column(String(120), nullable=False)
    filed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    category: Mapped["DocumentCategory"] = relationship()
    type: Mapped["DocumentType"] = relationship()


class Loan(Base):
    __tablename__ = "loans"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id"), nullable=False, index=True)
    requester_name: Mapped[str] = mapped_column(String(160), nullable=False)
    requester_department_id: Mapped[int | None] = mapped_column(ForeignKey("departments.id"), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    loan_date: Mapped[date] = mapped_column(Date, nullable=False)
    expected_return_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    actual_return_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=LoanStatus.BORROWED)
    loaned_by: Mapped[str] = mapped_column(String(120), nullable=False)
    returned_by: Mapped[str | None] = mapped_column(String(120), nullable=True)
    return_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    employee: Mapped["Employee"] = relationship()
    requester_department: Mapped[Optional["Department"]] = relationship()

    __table_args__ = (
        Index("ix_loans_status_expected", "status", "expected_return_date"),
    )


class ArchiveBox(Base):
    __tablename__ = "archive_boxes"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    box_number: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    period: Mapped[str | None] = mapped_column(String(60), nullable=True)
    letter_range: Mapped[str | None] = mapped_column(String(20), nullable=True)
    location: Mapped[str | None] = mapped_column(String(120), nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    # contador de transferências; não é decrementado no descarte
    current_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())
    items: Mapped[list["ArchiveItem"]] = relationship(back_populates="box")


class ArchiveItem(Base):
    __tablename__ = "archive_items"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id"), nullable=False, index=True)
    box_id: Mapped[int] = mapped_column(ForeignKey("archive_boxes.id"), nullable=False, index=True)
    transfer_date: Mapped[date] = mapped_column(Date, nullable=False)
    disposal_eligible_date: Mapped[date] = mapped_column(Date, nullable=False)
    disposed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    disposal_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    disposal_term_number: Mapped[str | None] = mapped_column(String(60), nullable=True)
    transferred_by: Mapped[str] = mapped_column(String(120), nullable=False)

    employee: Mapped["Employee"] = relationship()
    box: Mapped["ArchiveBox"] = relationship(back_populates="items")

    __table_args__ = (
        Index("ix_archive_items_disposal", "disposed", "disposal_eligible_date"),
    )


class StorageUnitType:
    PASTA = "PASTA"
    ENVELOPE = "ENVELOPE"
    GAVETEIRO = "GAVETEIRO"
    CAIXA = "CAIXA"

    ALL = (PASTA, ENVELOPE, GAVETEIRO, CAIXA)


class StorageUnit(Base):
    """Unidade física avulsa (pasta, envelope, caixa...). ``type`` é livre, gravado em maiúsculas."""
    __tablename__ = "storage_units"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label: Mapped[str] = mapped_column(String(120), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    section: Mapped[str | None] = mapped_column(String(60), nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    occupancy: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # "metadata" é reservado no declarative
    details: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )


class Movement(Base):
    __tablename__ = "movements"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reference: Mapped[str | None] = mapped_column(String(120), nullable=True)
    item_label: Mapped[str | None] = mapped_column(String(160), nullable=True)
    from_unit: Mapped[str | None] = mapped_column(String(60), nullable=True)
    to_unit: Mapped[str | None] = mapped_column(String(60), nullable=True)
    action: Mapped[str] = mapped_column(String(60), nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    actor: Mapped[str] = mapped_column(String(120), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), index=True
    )
