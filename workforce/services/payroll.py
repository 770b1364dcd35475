"""
Payroll calculator — salary components into a processed payroll record.

Totals are summed in integer minor units and depend only on the component
sets passed in, so processing or editing with identical inputs always
produces identical totals. Net pay is not clamped at zero.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from workforce.core.errors import PayrollRecordNotFoundError
from workforce.core.values import from_minor_units, sum_minor_units
from workforce.schemas.payroll import (
    Deductions,
    Earnings,
    PaymentType,
    PayrollRecord,
    PayrollStatus,
    PayrollTotals,
    SalaryEdit,
    SalaryInput,
)

logger = logging.getLogger(__name__)

PeriodKey = tuple[str, int, int]  # (employee_id, month, year)


@runtime_checkable
class PayrollStore(Protocol):
    """Record store owned by the caller; at most one live record per key."""

    def get(self, key: PeriodKey) -> PayrollRecord | None: ...

    def get_by_id(self, salary_id: str) -> PayrollRecord | None: ...

    def save(self, record: PayrollRecord) -> None: ...


@runtime_checkable
class AsyncPayrollStore(Protocol):
    """``PayrollStore`` for I/O-bound backends such as a database session."""

    async def get(self, key: PeriodKey) -> PayrollRecord | None: ...

    async def get_by_id(self, salary_id: str) -> PayrollRecord | None: ...

    async def save(self, record: PayrollRecord) -> None: ...


def compute_totals(earnings: Earnings, deductions: Deductions) -> PayrollTotals:
    gross = sum_minor_units(earnings.model_dump().values())
    deducted = sum_minor_units(deductions.model_dump().values())
    return PayrollTotals(
        gross_salary=from_minor_units(gross),
        total_deductions=from_minor_units(deducted),
        net_salary=from_minor_units(gross - deducted),
    )


def _build_record(
    salary_id: str,
    employee_id: str,
    month: int,
    year: int,
    salary: SalaryInput | SalaryEdit,
    payment_type: PaymentType,
    working_days: int,
) -> PayrollRecord:
    totals = compute_totals(salary.earnings, salary.deductions)
    if totals.net_salary < 0:
        logger.warning(
            "Net salary for %s %02d/%d is negative (%s)",
            employee_id,
            month,
            year,
            totals.net_salary,
        )
    return PayrollRecord(
        salary_id=salary_id,
        employee_id=employee_id,
        month=month,
        year=year,
        payment_type=payment_type,
        working_days=working_days,
        earnings=salary.earnings,
        deductions=salary.deductions,
        gross_salary=totals.gross_salary,
        total_deductions=totals.total_deductions,
        net_salary=totals.net_salary,
        status=PayrollStatus.PROCESSED,
    )


def new_salary_id() -> str:
    return uuid.uuid4().hex


def process_salary(salary: SalaryInput, *, existing: PayrollRecord | None = None) -> PayrollRecord:
    """Create the record for the salary's period, or fully replace ``existing``."""
    if existing is not None and existing.period_key != (salary.employee_id, salary.month, salary.year):
        raise ValueError("Existing record belongs to a different employee or period")

    salary_id = existing.salary_id if existing is not None else new_salary_id()
    record = _build_record(
        salary_id,
        salary.employee_id,
        salary.month,
        salary.year,
        salary,
        salary.payment_type,
        salary.working_days,
    )
    logger.info(
        "%s salary %s for %s %02d/%d (net %s)",
        "Replaced" if existing is not None else "Processed",
        salary_id,
        salary.employee_id,
        salary.month,
        salary.year,
        record.net_salary,
    )
    return record


def edit_salary(record: PayrollRecord | None, salary_id: str, changes: SalaryEdit) -> PayrollRecord:
    """Recompute ``record`` from the new component sets only.

    Raises ``PayrollRecordNotFoundError`` when the caller found no record for
    ``salary_id``.
    """
    if record is None or record.salary_id != salary_id:
        raise PayrollRecordNotFoundError(salary_id)

    updated = _build_record(
        record.salary_id,
        record.employee_id,
        record.month,
        record.year,
        changes,
        changes.payment_type if changes.payment_type is not None else record.payment_type,
        changes.working_days if changes.working_days is not None else record.working_days,
    )
    logger.info("Edited salary %s (net %s)", salary_id, updated.net_salary)
    return updated


def salary_history(records: Iterable[PayrollRecord], employee_id: str) -> list[PayrollRecord]:
    """An employee's records, newest period first."""
    own = [r for r in records if r.employee_id == employee_id]
    return sorted(own, key=lambda r: (r.year, r.month), reverse=True)


class PayrollBook:
    """In-memory ``PayrollStore`` with process / edit on top."""

    def __init__(self) -> None:
        self._by_key: dict[PeriodKey, PayrollRecord] = {}
        self._key_by_id: dict[str, PeriodKey] = {}

    def get(self, key: PeriodKey) -> PayrollRecord | None:
        return self._by_key.get(key)

    def get_by_id(self, salary_id: str) -> PayrollRecord | None:
        key = self._key_by_id.get(salary_id)
        return self._by_key.get(key) if key is not None else None

    def save(self, record: PayrollRecord) -> None:
        previous = self._by_key.get(record.period_key)
        if previous is not None and previous.salary_id != record.salary_id:
            self._key_by_id.pop(previous.salary_id, None)
        self._by_key[record.period_key] = record
        self._key_by_id[record.salary_id] = record.period_key

    def process(self, salary: SalaryInput) -> PayrollRecord:
        existing = self.get((salary.employee_id, salary.month, salary.year))
        record = process_salary(salary, existing=existing)
        self.save(record)
        return record

    def edit(self, salary_id: str, changes: SalaryEdit) -> PayrollRecord:
        record = edit_salary(self.get_by_id(salary_id), salary_id, changes)
        self.save(record)
        return record

    def history(self, employee_id: str) -> list[PayrollRecord]:
        return salary_history(self._by_key.values(), employee_id)

    def __len__(self) -> int:
        return len(self._by_key)
