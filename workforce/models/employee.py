"""
Branch, Employee & Attendance models — the roster and raw check-in events.

Rows are written by the attendance capture app; this service only reads
them and feeds snapshots to the aggregation core.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Index, String)
from sqlalchemy.orm import relationship

from workforce.db.base import Base


class Branch(Base):
    __tablename__ = "branches"

    branch_id: str = Column(String(64), primary_key=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    address: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]

    employees = relationship("Employee", back_populates="branch")


class Employee(Base):
    __tablename__ = "employees"

    employee_id: str = Column(String(64), primary_key=True)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    designation: str | None = Column(String(100), nullable=True)  # type: ignore[assignment]
    branch_id: str | None = Column(  # type: ignore[assignment]
        String(64), ForeignKey("branches.branch_id"), nullable=True, index=True
    )
    face_id: str | None = Column(String(128), nullable=True)  # type: ignore[assignment]
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    branch = relationship("Branch", back_populates="employees")
    attendances = relationship(
        "Attendance",
        back_populates="employee",
        cascade="all, delete-orphan",
    )


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (Index("ix_attendance_employee_date", "employee_id", "date"),)

    attendance_id: str = Column(String(64), primary_key=True)  # type: ignore[assignment]
    employee_id: str = Column(  # type: ignore[assignment]
        String(64), ForeignKey("employees.employee_id"), nullable=False
    )
    check_in_time: datetime = Column(DateTime(timezone=True), nullable=False, index=True)  # type: ignore[assignment]
    check_out_time: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="present")  # type: ignore[assignment]
    # present | late | half-day
    date: str = Column(String(10), index=True)  # type: ignore[assignment]  # YYYY-MM-DD of check-in

    employee = relationship("Employee", back_populates="attendances")
