"""
SQL-backed collaborators for the aggregation core.

Roster, branch and event providers read one snapshot per call; every range
is fetched in **one** query and split per day in Python. ``SqlPayrollStore``
persists payroll records keyed by (employee, month, year).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.core.values import from_minor_units, to_minor_units
from workforce.models.employee import Attendance
from workforce.models.employee import Branch as BranchRow
from workforce.models.employee import Employee
from workforce.models.salary import DEDUCTION_COLUMNS, EARNING_COLUMNS, SalaryRecord
from workforce.schemas.attendance import AttendanceEvent
from workforce.schemas.payroll import Deductions, Earnings, PayrollRecord
from workforce.schemas.roster import Branch, RosterEntry
from workforce.services.payroll import PeriodKey
from workforce.services.rollup import EventFetch
from workforce.services.sessions import load_events

logger = logging.getLogger(__name__)


# ── Roster / branches ───────────────────────────────────────────────
def _to_roster_entry(emp: Employee) -> RosterEntry:
    return RosterEntry(
        employee_id=emp.employee_id,
        name=emp.name,
        branch_id=emp.branch_id,
        designation=emp.designation,
        face_id=emp.face_id,
    )


async def fetch_roster(db: AsyncSession, *, branch_id: str | None = None) -> list[RosterEntry]:
    """Active employees as of now, optionally restricted to one branch."""
    stmt = select(Employee).where(Employee.is_active.is_(True))
    if branch_id is not None:
        stmt = stmt.where(Employee.branch_id == branch_id)
    result = await db.execute(stmt.order_by(Employee.name))
    return [_to_roster_entry(emp) for emp in result.scalars().all()]


async def fetch_employee(db: AsyncSession, employee_id: str) -> RosterEntry | None:
    result = await db.execute(select(Employee).where(Employee.employee_id == employee_id))
    emp = result.scalar_one_or_none()
    return _to_roster_entry(emp) if emp is not None else None


async def fetch_branches(db: AsyncSession) -> list[Branch]:
    result = await db.execute(select(BranchRow).order_by(BranchRow.name))
    return [Branch.model_validate(b) for b in result.scalars().all()]


# ── Events ──────────────────────────────────────────────────────────
def _to_row(att: Attendance) -> dict:
    return {
        "employee_id": att.employee_id,
        "attendance_id": att.attendance_id,
        "check_in_time": att.check_in_time,
        "check_out_time": att.check_out_time,
        "status": att.status,
    }


def _load(rows: Iterable[Attendance]) -> list[AttendanceEvent]:
    # Malformed rows (e.g. a legacy status) are dropped and logged by load_events.
    batch = load_events(_to_row(att) for att in rows)
    if batch.rejected:
        logger.warning("Skipped %d malformed attendance row(s)", len(batch.rejected))
    return batch.events


async def fetch_events(
    db: AsyncSession,
    start: date,
    end: date,
) -> list[AttendanceEvent]:
    """Events whose check-in date lies in [start, end], newest first."""
    stmt = select(Attendance).where(
        Attendance.date >= start.isoformat(),
        Attendance.date <= end.isoformat(),
    )
    result = await db.execute(stmt.order_by(Attendance.check_in_time.desc()))
    return _load(result.scalars().all())


async def fetch_recent_events(db: AsyncSession, employee_id: str, days: int) -> list[AttendanceEvent]:
    """Every session of the employee's ``days`` most recent attendance dates."""
    recent_dates = (
        select(Attendance.date)
        .where(Attendance.employee_id == employee_id)
        .distinct()
        .order_by(Attendance.date.desc())
        .limit(days)
    )
    result = await db.execute(
        select(Attendance)
        .where(
            Attendance.employee_id == employee_id,
            Attendance.date.in_(recent_dates),
        )
        .order_by(Attendance.check_in_time.desc())
    )
    return _load(result.scalars().all())


def preloaded_fetch(events: Iterable[AttendanceEvent]) -> EventFetch:
    """Per-day event provider over events already loaded in one query."""
    by_day: dict[date, list[AttendanceEvent]] = defaultdict(list)
    for ev in events:
        by_day[ev.work_date].append(ev)

    async def fetch(day: date) -> list[AttendanceEvent]:
        return by_day.get(day, [])

    return fetch


# ── Payroll records ────────────────────────────────────────────────
def _to_record(row: SalaryRecord) -> PayrollRecord:
    return PayrollRecord(
        salary_id=row.salary_id,
        employee_id=row.employee_id,
        month=row.month,
        year=row.year,
        payment_type=row.payment_type,
        working_days=row.working_days,
        earnings=Earnings(**{c: from_minor_units(getattr(row, c)) for c in EARNING_COLUMNS}),
        deductions=Deductions(**{c: from_minor_units(getattr(row, c)) for c in DEDUCTION_COLUMNS}),
        gross_salary=from_minor_units(row.gross_salary),
        total_deductions=from_minor_units(row.total_deductions),
        net_salary=from_minor_units(row.net_salary),
        status=row.status,
    )


class SqlPayrollStore:
    """``AsyncPayrollStore`` over the session; the caller owns the transaction (commit / rollback)."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def _row_by_key(self, key: PeriodKey) -> SalaryRecord | None:
        employee_id, month, year = key
        result = await self._db.execute(
            select(SalaryRecord).where(
                SalaryRecord.employee_id == employee_id,
                SalaryRecord.month == month,
                SalaryRecord.year == year,
            )
        )
        return result.scalar_one_or_none()

    async def get(self, key: PeriodKey) -> PayrollRecord | None:
        row = await self._row_by_key(key)
        return _to_record(row) if row is not None else None

    async def get_by_id(self, salary_id: str) -> PayrollRecord | None:
        row = await self._db.get(SalaryRecord, salary_id)
        return _to_record(row) if row is not None else None

    async def save(self, record: PayrollRecord) -> None:
        row = await self._row_by_key(record.period_key)
        if row is None:
            row = SalaryRecord(salary_id=record.salary_id)
            self._db.add(row)
        elif row.salary_id != record.salary_id:
            raise ValueError(
                f"Period already holds record {row.salary_id!r}; replace it instead of stacking"
            )

        row.employee_id = record.employee_id
        row.month = record.month
        row.year = record.year
        row.payment_type = record.payment_type.value
        row.working_days = record.working_days
        for column in EARNING_COLUMNS:
            setattr(row, column, to_minor_units(getattr(record.earnings, column)))
        for column in DEDUCTION_COLUMNS:
            setattr(row, column, to_minor_units(getattr(record.deductions, column)))
        row.gross_salary = to_minor_units(record.gross_salary)
        row.total_deductions = to_minor_units(record.total_deductions)
        row.net_salary = to_minor_units(record.net_salary)
        row.status = record.status.value
        await self._db.flush()
        logger.debug("Stored salary %s for %s", record.salary_id, record.period_key)

    async def history(self, employee_id: str) -> list[PayrollRecord]:
        result = await self._db.execute(
            select(SalaryRecord)
            .where(SalaryRecord.employee_id == employee_id)
            .order_by(SalaryRecord.year.desc(), SalaryRecord.month.desc())
        )
        return [_to_record(row) for row in result.scalars().all()]
