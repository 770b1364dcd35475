"""
Reporting & analytics endpoints.

Each endpoint fetches its events in **one** SQL query and hands the
per-day slices to the rollup engine.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.api.v1.deps import get_db
from workforce.core.config import settings
from workforce.core.errors import BranchNotFoundError
from workforce.core.values import last_n_days
from workforce.db.providers import fetch_branches, fetch_events, fetch_roster, preloaded_fetch
from workforce.schemas.attendance import (
    BranchDetailResponse,
    BranchRollupReport,
    HealthResponse,
    RosterRollup,
    TrendsResponse,
    WeeklyTrendsResponse,
)
from workforce.services.rollup import (
    attendance_sheet,
    rollup_branches,
    rollup_day,
    rollup_range,
    rollup_weeks,
    trend_rows,
)
from workforce.services.sessions import aggregate, events_for_date

router = APIRouter(tags=["reports"])
logger = logging.getLogger(__name__)


async def _day_summaries(db: AsyncSession, day: date):
    events = events_for_date(await fetch_events(db, day, day), day)
    return aggregate(events, day)


# ── Daily rollups ──────────────────────────────────────────────────
@router.get("/reports/rollup/{day}", response_model=RosterRollup)
async def day_rollup(day: date, db: AsyncSession = Depends(get_db)) -> RosterRollup:
    """Unique present / late / absent counts over the whole roster."""
    roster = await fetch_roster(db)
    summaries = await _day_summaries(db, day)
    return rollup_day(summaries, (e.employee_id for e in roster), day=day)


@router.get("/reports/branches/{day}", response_model=BranchRollupReport)
async def branch_rollups(day: date, db: AsyncSession = Depends(get_db)) -> BranchRollupReport:
    """Independent rollup per branch plus the reconciled total."""
    roster = await fetch_roster(db)
    branches = await fetch_branches(db)
    summaries = await _day_summaries(db, day)
    return rollup_branches(summaries, roster, day, branches=branches)


@router.get("/reports/branches/{day}/{branch_id}", response_model=BranchDetailResponse)
async def branch_detail(
    day: date,
    branch_id: str,
    db: AsyncSession = Depends(get_db),
) -> BranchDetailResponse:
    """Branch stats and its Present / Absent attendance sheet."""
    branches = [b for b in await fetch_branches(db) if b.branch_id == branch_id]
    if not branches:
        raise BranchNotFoundError(branch_id)

    roster = await fetch_roster(db, branch_id=branch_id)
    summaries = await _day_summaries(db, day)
    report = rollup_branches(summaries, roster, day, branches=branches)
    return BranchDetailResponse(
        date=day,
        branch=report.branches[0],
        sheet=attendance_sheet(roster, summaries),
    )


# ── Trends ─────────────────────────────────────────────────────────
@router.get("/analytics/trends", response_model=TrendsResponse)
async def analytics_trends(
    days: int = Query(default=settings.TREND_DAYS, ge=1, le=settings.TREND_MAX_DAYS),
    end: date | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> TrendsResponse:
    """Daily rollups for the last ``days`` days ending on ``end`` (default today)."""
    window = last_n_days(days, today=end or date.today())
    events = await fetch_events(db, window[0], window[-1])
    roster = await fetch_roster(db)

    rollups = await rollup_range(window, preloaded_fetch(events), (e.employee_id for e in roster))
    return TrendsResponse(period_days=days, rollups=rollups, trends=trend_rows(rollups))


@router.get("/analytics/weekly", response_model=WeeklyTrendsResponse)
async def analytics_weekly(
    weeks: int = Query(default=4, ge=1, le=12),
    end: date | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> WeeklyTrendsResponse:
    """Distinct-employee presence per ISO week, covering whole weeks up to ``end``."""
    end = end or date.today()
    start = end - timedelta(days=end.weekday()) - timedelta(weeks=weeks - 1)
    window = last_n_days((end - start).days + 1, today=end)
    events = await fetch_events(db, window[0], window[-1])
    roster = await fetch_roster(db)

    rows = await rollup_weeks(window, preloaded_fetch(events), (e.employee_id for e in roster))
    return WeeklyTrendsResponse(weeks=rows)


# ── Health ─────────────────────────────────────────────────────────
@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Public health check — DB connectivity."""
    result = HealthResponse(db=False)

    try:
        await db.execute(select(1))
        result.db = True
    except Exception as e:
        logger.error("Health check DB failure: %s", e)

    return result
