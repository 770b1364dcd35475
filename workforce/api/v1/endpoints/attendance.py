"""
Attendance endpoints — one day's records with summaries, and per-employee history.
"""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.api.v1.deps import get_db
from workforce.core.config import settings
from workforce.core.errors import EmployeeNotFoundError
from workforce.db.providers import fetch_employee, fetch_events, fetch_recent_events, fetch_roster
from workforce.schemas.attendance import DayAttendanceResponse, EmployeeHistoryResponse
from workforce.services.rollup import rollup_day
from workforce.services.sessions import aggregate, events_for_date, summarize_history

router = APIRouter(tags=["attendance"])
logger = logging.getLogger(__name__)


@router.get("/attendance/date/{day}", response_model=DayAttendanceResponse)
async def attendance_by_date(
    day: date,
    db: AsyncSession = Depends(get_db),
) -> DayAttendanceResponse:
    """All sessions checked in on ``day`` with per-employee summaries and the day rollup."""
    events = events_for_date(await fetch_events(db, day, day), day)
    roster = await fetch_roster(db)
    summaries = aggregate(events, day)

    return DayAttendanceResponse(
        date=day,
        records=events,
        summaries=sorted(summaries.values(), key=lambda s: s.employee_id),
        rollup=rollup_day(summaries, (e.employee_id for e in roster), day=day),
    )


@router.get("/attendance/{employee_id}", response_model=EmployeeHistoryResponse)
async def employee_attendance(
    employee_id: str,
    limit: int = Query(default=settings.HISTORY_LIMIT, ge=1, le=365),
    db: AsyncSession = Depends(get_db),
) -> EmployeeHistoryResponse:
    """The employee's last ``limit`` attendance days, each summarised over all its sessions."""
    if await fetch_employee(db, employee_id) is None:
        raise EmployeeNotFoundError(employee_id)

    events = await fetch_recent_events(db, employee_id, limit)
    return EmployeeHistoryResponse(
        employee_id=employee_id,
        history=summarize_history(events, employee_id),
    )
