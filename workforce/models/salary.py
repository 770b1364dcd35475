"""
Salary record model — one live payroll record per (employee, month, year).

Amounts are stored as integer minor units (paise / cents).
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (BigInteger, Column, DateTime, ForeignKey, Integer,
                        String, UniqueConstraint)

from workforce.db.base import Base

EARNING_COLUMNS = ("basic", "hra", "conveyance", "medical", "special", "bonus")
DEDUCTION_COLUMNS = ("pf", "esi", "pt", "tds", "advance")


class SalaryRecord(Base):
    __tablename__ = "salary_records"
    __table_args__ = (
        UniqueConstraint("employee_id", "month", "year", name="uq_salary_employee_period"),
    )

    salary_id: str = Column(String(32), primary_key=True)  # type: ignore[assignment]
    employee_id: str = Column(  # type: ignore[assignment]
        String(64), ForeignKey("employees.employee_id"), nullable=False, index=True
    )
    month: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    year: int = Column(Integer, nullable=False)  # type: ignore[assignment]
    payment_type: str = Column(String(10), nullable=False, default="CASH")  # type: ignore[assignment]
    working_days: int = Column(Integer, nullable=False, default=26)  # type: ignore[assignment]

    # Earnings
    basic: int = Column(BigInteger, nullable=False, default=0)  # type: ignore[assignment]
    hra: int = Column(BigInteger, nullable=False, default=0)  # type: ignore[assignment]
    conveyance: int = Column(BigInteger, nullable=False, default=0)  # type: ignore[assignment]
    medical: int = Column(BigInteger, nullable=False, default=0)  # type: ignore[assignment]
    special: int = Column(BigInteger, nullable=False, default=0)  # type: ignore[assignment]
    bonus: int = Column(BigInteger, nullable=False, default=0)  # type: ignore[assignment]

    # Deductions
    pf: int = Column(BigInteger, nullable=False, default=0)  # type: ignore[assignment]
    esi: int = Column(BigInteger, nullable=False, default=0)  # type: ignore[assignment]
    pt: int = Column(BigInteger, nullable=False, default=0)  # type: ignore[assignment]
    tds: int = Column(BigInteger, nullable=False, default=0)  # type: ignore[assignment]
    advance: int = Column(BigInteger, nullable=False, default=0)  # type: ignore[assignment]

    gross_salary: int = Column(BigInteger, nullable=False)  # type: ignore[assignment]
    total_deductions: int = Column(BigInteger, nullable=False)  # type: ignore[assignment]
    net_salary: int = Column(BigInteger, nullable=False)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="Processed")  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
