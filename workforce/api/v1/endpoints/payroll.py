"""
Salary endpoints — process, edit and list payroll records.

POST /salary replaces the record already held for the same employee and
period instead of stacking a second one. PUT /salary/{id} on an unknown id
is a 404.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.api.v1.deps import get_db
from workforce.core.errors import EmployeeNotFoundError
from workforce.db.providers import SqlPayrollStore, fetch_employee
from workforce.schemas.payroll import PayrollRecord, SalaryEdit, SalaryInput
from workforce.services.payroll import AsyncPayrollStore, edit_salary, process_salary

router = APIRouter(tags=["salary"])
logger = logging.getLogger(__name__)


@router.post("/salary", response_model=PayrollRecord)
async def process(body: SalaryInput, db: AsyncSession = Depends(get_db)) -> PayrollRecord:
    """Process salary for one employee and month (create or replace)."""
    if await fetch_employee(db, body.employee_id) is None:
        raise EmployeeNotFoundError(body.employee_id)

    store: AsyncPayrollStore = SqlPayrollStore(db)
    existing = await store.get((body.employee_id, body.month, body.year))
    record = process_salary(body, existing=existing)
    await store.save(record)
    await db.commit()
    return record


@router.put("/salary/{salary_id}", response_model=PayrollRecord)
async def edit(
    salary_id: str,
    body: SalaryEdit,
    db: AsyncSession = Depends(get_db),
) -> PayrollRecord:
    """Recompute an existing record from a full replacement component set."""
    store: AsyncPayrollStore = SqlPayrollStore(db)
    record = edit_salary(await store.get_by_id(salary_id), salary_id, body)
    await store.save(record)
    await db.commit()
    return record


@router.get("/salary/{employee_id}", response_model=list[PayrollRecord])
async def salary_history(employee_id: str, db: AsyncSession = Depends(get_db)) -> list[PayrollRecord]:
    """All records for one employee, newest period first."""
    return await SqlPayrollStore(db).history(employee_id)
