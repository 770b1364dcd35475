"""
Session aggregation — raw attendance events into per-employee daily summaries.

Every function here is pure: events in, summaries out. Open sessions (no
check-out) count as presence but add no worked minutes; a check-out before
its check-in adds no minutes and is reported as a diagnostic instead of a
negative duration.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from pydantic import ValidationError

from workforce.core.values import date_key, minutes_between
from workforce.schemas.attendance import (
    AttendanceEvent,
    DailySummary,
    DiagnosticCode,
    EventBatch,
    RejectedRow,
    SessionDiagnostic,
)

logger = logging.getLogger(__name__)


def _session_order(event: AttendanceEvent) -> tuple:
    return (event.check_in_time, event.attendance_id)


def load_events(rows: Iterable[Mapping[str, Any]]) -> EventBatch:
    """Validate raw rows into events; invalid rows are rejected, not defaulted."""
    events: list[AttendanceEvent] = []
    rejected: list[RejectedRow] = []
    for index, row in enumerate(rows):
        try:
            events.append(AttendanceEvent.model_validate(row))
        except ValidationError as exc:
            logger.warning("Rejected attendance row %d: %s", index, exc.errors())
            rejected.append(RejectedRow(index=index, error=str(exc)))
    return EventBatch(events=events, rejected=rejected)


def events_for_date(events: Iterable[AttendanceEvent], day: date | str) -> list[AttendanceEvent]:
    """Keep the events whose check-in falls on ``day``."""
    key = date_key(day)
    return [e for e in events if e.work_date == key]


def summarize_sessions(
    employee_id: str,
    day: date,
    events: Iterable[AttendanceEvent],
) -> DailySummary | None:
    """Build one employee's summary for ``day``; None when there are no events."""
    diagnostics: list[SessionDiagnostic] = []

    # Same attendance id twice in one snapshot: the later read wins.
    by_id: dict[str, AttendanceEvent] = {}
    for ev in events:
        if ev.attendance_id in by_id:
            diagnostics.append(
                SessionDiagnostic(
                    attendance_id=ev.attendance_id,
                    code=DiagnosticCode.DUPLICATE_ATTENDANCE_ID,
                )
            )
        by_id[ev.attendance_id] = ev

    if not by_id:
        return None

    sessions = sorted(by_id.values(), key=_session_order, reverse=True)

    total = 0
    for ev in sessions:
        if ev.work_date != day:
            diagnostics.append(
                SessionDiagnostic(attendance_id=ev.attendance_id, code=DiagnosticCode.DATE_MISMATCH)
            )
        if ev.check_out_time is None:
            continue
        minutes = minutes_between(ev.check_in_time, ev.check_out_time)
        if minutes < 0:
            diagnostics.append(
                SessionDiagnostic(
                    attendance_id=ev.attendance_id,
                    code=DiagnosticCode.CHECKOUT_BEFORE_CHECKIN,
                )
            )
            continue
        total += minutes

    for diag in diagnostics:
        logger.warning(
            "Attendance %s for employee %s on %s flagged %s",
            diag.attendance_id,
            employee_id,
            day.isoformat(),
            diag.code.value,
        )

    return DailySummary(
        employee_id=employee_id,
        date=day,
        sessions=sessions,
        total_worked_minutes=total,
        latest_status=sessions[0].status,
        is_present=True,
        diagnostics=diagnostics,
    )


def aggregate(events: Iterable[AttendanceEvent], day: date | str) -> dict[str, DailySummary]:
    """Group one day's events by employee into daily summaries.

    Input is assumed pre-filtered to ``day`` (see ``events_for_date``).
    Employees without events are simply absent from the result.
    """
    key = date_key(day)
    by_employee: dict[str, list[AttendanceEvent]] = defaultdict(list)
    for ev in events:
        by_employee[ev.employee_id].append(ev)

    summaries: dict[str, DailySummary] = {}
    for employee_id, group in by_employee.items():
        summary = summarize_sessions(employee_id, key, group)
        if summary is not None:
            summaries[employee_id] = summary
    return summaries


def summarize_history(events: Iterable[AttendanceEvent], employee_id: str) -> list[DailySummary]:
    """One summary per calendar day for ``employee_id``, newest day first."""
    by_date: dict[date, list[AttendanceEvent]] = defaultdict(list)
    for ev in events:
        if ev.employee_id == employee_id:
            by_date[ev.work_date].append(ev)

    history = []
    for day in sorted(by_date, reverse=True):
        summary = summarize_sessions(employee_id, day, by_date[day])
        if summary is not None:
            history.append(summary)
    return history
