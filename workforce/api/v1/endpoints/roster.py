"""
Read-only roster endpoints — employees and branches as the console lists them.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.api.v1.deps import get_db
from workforce.core.errors import EmployeeNotFoundError
from workforce.db.providers import fetch_branches, fetch_employee, fetch_roster
from workforce.schemas.roster import BranchesResponse, EmployeesResponse, RosterEntry

router = APIRouter(tags=["roster"])


@router.get("/employees", response_model=EmployeesResponse)
async def list_employees(db: AsyncSession = Depends(get_db)) -> EmployeesResponse:
    return EmployeesResponse(employees=await fetch_roster(db))


@router.get("/employees/{employee_id}", response_model=RosterEntry)
async def get_employee(employee_id: str, db: AsyncSession = Depends(get_db)) -> RosterEntry:
    entry = await fetch_employee(db, employee_id)
    if entry is None:
        raise EmployeeNotFoundError(employee_id)
    return entry


@router.get("/branches", response_model=BranchesResponse)
async def list_branches(db: AsyncSession = Depends(get_db)) -> BranchesResponse:
    return BranchesResponse(branches=await fetch_branches(db))
