"""
Presence & rollup engine — daily summaries into roster-level counts.

Presence is always a distinct-employee count: several sessions on one day,
or several days in one week, never inflate it. Branch subtotals are
computed independently and the grand total is their elementwise sum, so
the two always reconcile.

Only the range / week rollups are coroutines: they fetch each day's events
concurrently, bound every fetch by a timeout, and turn any failure into the
canonical zero rollup for that day.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from datetime import date, timedelta

from workforce.core.config import settings
from workforce.core.values import format_duration, iso_week_start
from workforce.schemas.attendance import (
    AttendanceEvent,
    AttendanceSheetRow,
    BranchRollup,
    BranchRollupReport,
    DailySummary,
    RosterRollup,
    TrendRow,
    WeeklyTrendRow,
)
from workforce.schemas.roster import Branch, RosterEntry
from workforce.services.sessions import aggregate, events_for_date

logger = logging.getLogger(__name__)

# Event provider: all events whose check-in falls on the given day.
EventFetch = Callable[[date], Awaitable[Iterable[AttendanceEvent]]]

UNASSIGNED_SCOPE = "unassigned"


def attendance_rate(present: int, total: int) -> int:
    """Whole-percent attendance, rounded half up; 0 for an empty roster."""
    if total <= 0:
        return 0
    return (present * 200 + total) // (2 * total)


def empty_rollup(day: date | None = None, scope: str = "global") -> RosterRollup:
    return RosterRollup(date=day, scope=scope)


# ── Single day ──────────────────────────────────────────────────────
def rollup_day(
    summaries: Mapping[str, DailySummary],
    roster: Iterable[str],
    *,
    day: date | None = None,
    scope: str = "global",
) -> RosterRollup:
    """Count distinct present / late / absent employees for one roster."""
    roster_ids = set(roster)
    present = {eid for eid in summaries if eid in roster_ids}
    late = {eid for eid in present if summaries[eid].was_late}

    outside = len(summaries) - len(present)
    if outside:
        logger.debug("Ignoring %d present employee(s) outside the %s roster", outside, scope)

    total = len(roster_ids)
    return RosterRollup(
        date=day,
        scope=scope,
        total_employees=total,
        unique_present_count=len(present),
        absent_count=max(0, total - len(present)),
        late_count=len(late),
        attendance_rate_percent=attendance_rate(len(present), total),
        has_data=True,
    )


def sum_rollups(
    rollups: Iterable[RosterRollup],
    *,
    day: date | None = None,
    scope: str = "total",
) -> RosterRollup:
    """Elementwise sum of rollups; the rate is recomputed from the summed counts."""
    total = present = absent = late = 0
    has_data = False
    for r in rollups:
        total += r.total_employees
        present += r.unique_present_count
        absent += r.absent_count
        late += r.late_count
        has_data = has_data or r.has_data
    return RosterRollup(
        date=day,
        scope=scope,
        total_employees=total,
        unique_present_count=present,
        absent_count=absent,
        late_count=late,
        attendance_rate_percent=attendance_rate(present, total),
        has_data=has_data,
    )


def rollup_branches(
    summaries: Mapping[str, DailySummary],
    roster: Iterable[RosterEntry],
    day: date,
    *,
    branches: Iterable[Branch] | None = None,
) -> BranchRollupReport:
    """Per-branch rollups for one day plus their reconciled total.

    Employees without a branch form their own ``unassigned`` bucket so the
    buckets always partition the whole roster.
    """
    entries = {e.employee_id: e for e in roster}
    by_branch: dict[str | None, list[RosterEntry]] = defaultdict(list)
    for entry in entries.values():
        by_branch[entry.branch_id].append(entry)

    names: dict[str | None, str] = {}
    for b in branches or ():
        names[b.branch_id] = b.name
        by_branch.setdefault(b.branch_id, [])

    ordered = [bid for bid in names if bid in by_branch]
    ordered += sorted(bid for bid in by_branch if bid is not None and bid not in names)
    if None in by_branch:
        ordered.append(None)

    rows = []
    for branch_id in ordered:
        members = by_branch[branch_id]
        scope = branch_id if branch_id is not None else UNASSIGNED_SCOPE
        rows.append(
            BranchRollup(
                branch_id=branch_id,
                name=names.get(branch_id, branch_id or "Unassigned"),
                registered_count=sum(1 for m in members if m.is_registered),
                rollup=rollup_day(
                    summaries,
                    (m.employee_id for m in members),
                    day=day,
                    scope=scope,
                ),
            )
        )

    return BranchRollupReport(
        date=day,
        branches=rows,
        totals=sum_rollups((r.rollup for r in rows), day=day),
    )


def attendance_sheet(
    roster: Iterable[RosterEntry],
    summaries: Mapping[str, DailySummary],
) -> list[AttendanceSheetRow]:
    """Present / Absent row per roster employee; present first, then by name."""
    rows = []
    for entry in roster:
        summary = summaries.get(entry.employee_id)
        if summary is None:
            rows.append(
                AttendanceSheetRow(
                    employee_id=entry.employee_id,
                    name=entry.name,
                    designation=entry.designation,
                    status="Absent",
                )
            )
            continue
        latest = summary.latest_session
        rows.append(
            AttendanceSheetRow(
                employee_id=entry.employee_id,
                name=entry.name,
                designation=entry.designation,
                status="Present",
                check_in_time=latest.check_in_time,
                check_out_time=latest.check_out_time,
                worked=format_duration(summary.total_worked_minutes),
            )
        )
    rows.sort(key=lambda r: (r.status != "Present", r.name.casefold()))
    return rows


# ── Date ranges ─────────────────────────────────────────────────────
async def _fetch_day(fetch: EventFetch, day: date, timeout: float) -> list[AttendanceEvent]:
    try:
        events = await asyncio.wait_for(fetch(day), timeout=timeout)
        return events_for_date(events or (), day)
    except asyncio.TimeoutError:
        logger.warning("Attendance fetch for %s timed out after %.1fs", day.isoformat(), timeout)
        return []
    except Exception as exc:
        logger.warning("Attendance fetch for %s failed: %s", day.isoformat(), exc)
        return []


async def collect_summaries(
    days: Sequence[date],
    fetch: EventFetch,
    *,
    timeout: float | None = None,
) -> list[dict[str, DailySummary]]:
    """Fetch every day concurrently; summaries come back aligned with ``days``."""
    timeout = timeout if timeout is not None else settings.ROLLUP_FETCH_TIMEOUT_SECONDS
    per_day = await asyncio.gather(*(_fetch_day(fetch, d, timeout) for d in days))
    return [aggregate(events, d) for d, events in zip(days, per_day)]


async def rollup_range(
    days: Sequence[date],
    fetch: EventFetch,
    roster: Iterable[str],
    *,
    timeout: float | None = None,
) -> list[RosterRollup]:
    """One rollup per day, oldest to newest, with no gaps.

    A day whose fetch fails, times out or returns nothing yields the zero
    rollup for that day.
    """
    ordered = sorted(days)
    roster_ids = frozenset(roster)
    per_day = await collect_summaries(ordered, fetch, timeout=timeout)

    rollups = []
    for day, summaries in zip(ordered, per_day):
        if summaries:
            rollups.append(rollup_day(summaries, roster_ids, day=day))
        else:
            rollups.append(empty_rollup(day))
    return rollups


async def rollup_weeks(
    days: Sequence[date],
    fetch: EventFetch,
    roster: Iterable[str],
    *,
    timeout: float | None = None,
) -> list[WeeklyTrendRow]:
    """ISO-week trend rows; weekly presence counts each employee once."""
    ordered = sorted(days)
    roster_ids = frozenset(roster)
    per_day = await collect_summaries(ordered, fetch, timeout=timeout)

    weeks: dict[date, list[tuple[date, dict[str, DailySummary]]]] = defaultdict(list)
    for day, summaries in zip(ordered, per_day):
        weeks[iso_week_start(day)].append((day, summaries))

    rows = []
    total = len(roster_ids)
    for week_start in sorted(weeks):
        present: set[str] = set()
        late: set[str] = set()
        for _day, summaries in weeks[week_start]:
            for eid, summary in summaries.items():
                if eid not in roster_ids:
                    continue
                present.add(eid)
                if summary.was_late:
                    late.add(eid)
        rows.append(
            WeeklyTrendRow(
                week_start=week_start,
                week_end=week_start + timedelta(days=6),
                days=len(weeks[week_start]),
                total_employees=total,
                unique_present_count=len(present),
                late_count=len(late),
                attendance_rate_percent=attendance_rate(len(present), total),
            )
        )
    return rows


def trend_rows(rollups: Iterable[RosterRollup]) -> list[TrendRow]:
    """Chart-ready daily rows with short weekday labels."""
    return [
        TrendRow(
            date=r.date,
            day=r.date.strftime("%a"),
            present=r.unique_present_count,
            late=r.late_count,
            absent=r.absent_count,
        )
        for r in rollups
        if r.date is not None
    ]
