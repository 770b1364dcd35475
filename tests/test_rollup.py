"""Tests for roster rollups, branch reconciliation and date-range trends."""

import asyncio
from datetime import date, datetime, timedelta

import pytest

from conftest import make_event
from workforce.core.values import date_range, last_n_days
from workforce.schemas.attendance import AttendanceStatus
from workforce.schemas.roster import Branch, RosterEntry
from workforce.services.rollup import (
    attendance_rate,
    attendance_sheet,
    empty_rollup,
    rollup_branches,
    rollup_day,
    rollup_range,
    rollup_weeks,
    sum_rollups,
    trend_rows,
)
from workforce.services.sessions import aggregate

DAY = date(2025, 11, 10)
LATE = AttendanceStatus.LATE


def _at(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute)


# ── Single day ──────────────────────────────────────────────────────
def test_one_of_three_present():
    summaries = aggregate([make_event("A1", "E1", _at(9), _at(17))], DAY)
    rollup = rollup_day(summaries, {"E1", "E2", "E3"}, day=DAY)

    assert rollup.unique_present_count == 1
    assert rollup.absent_count == 2
    assert rollup.attendance_rate_percent == 33
    assert rollup.total_employees == 3
    assert rollup.date == DAY


def test_multiple_sessions_do_not_inflate_presence():
    events = [
        make_event("A1", "E1", _at(8), _at(12)),
        make_event("A2", "E1", _at(13), _at(17)),
        make_event("A3", "E1", _at(18), None),
    ]
    rollup = rollup_day(aggregate(events, DAY), ["E1", "E2"])
    assert rollup.unique_present_count == 1
    assert rollup.absent_count == 1


def test_late_if_any_session_was_late():
    """Late in the morning, on time after lunch: still late for the day."""
    events = [
        make_event("A1", "E1", _at(9, 40), _at(13), LATE),
        make_event("A2", "E1", _at(14), _at(18)),
        make_event("A3", "E2", _at(9), _at(17)),
    ]
    summaries = aggregate(events, DAY)
    assert summaries["E1"].latest_status == AttendanceStatus.PRESENT

    rollup = rollup_day(summaries, ["E1", "E2"])
    assert rollup.late_count == 1
    assert rollup.on_time_count == 1


def test_presence_outside_roster_is_ignored():
    events = [
        make_event("A1", "E1", _at(9), _at(17)),
        make_event("A2", "GONE", _at(9), _at(17), LATE),
    ]
    rollup = rollup_day(aggregate(events, DAY), ["E1"])
    assert rollup.total_employees == 1
    assert rollup.unique_present_count == 1
    assert rollup.late_count == 0
    assert rollup.absent_count == 0


def test_empty_roster_rate_is_zero():
    summaries = aggregate([make_event("A1", "E1", _at(9), _at(17))], DAY)
    rollup = rollup_day(summaries, [])
    assert rollup.attendance_rate_percent == 0
    assert rollup.absent_count == 0


@pytest.mark.parametrize(
    ("present", "total", "expected"),
    [(1, 3, 33), (2, 3, 67), (1, 2, 50), (1, 8, 13), (0, 5, 0), (5, 5, 100), (0, 0, 0)],
)
def test_attendance_rate_rounds_half_up(present, total, expected):
    assert attendance_rate(present, total) == expected


def test_present_never_exceeds_roster():
    events = [make_event(f"A{i}", f"E{i}", _at(9), None) for i in range(10)]
    summaries = aggregate(events, DAY)
    for size in range(0, 12):
        roster = [f"E{i}" for i in range(size)]
        rollup = rollup_day(summaries, roster)
        assert rollup.unique_present_count <= len(roster)
        assert rollup.absent_count == len(roster) - rollup.unique_present_count


# ── Branches ────────────────────────────────────────────────────────
ROSTER = [
    RosterEntry(employee_id="N1", name="Asha", branch_id="B-N", face_id="f1"),
    RosterEntry(employee_id="N2", name="Bilal", branch_id="B-N"),
    RosterEntry(employee_id="S1", name="Chen", branch_id="B-S", face_id="f3"),
    RosterEntry(employee_id="S2", name="Devi", branch_id="B-S", face_id="f4"),
    RosterEntry(employee_id="U1", name="Eko", branch_id=None),
]
BRANCHES = [
    Branch(branch_id="B-N", name="North"),
    Branch(branch_id="B-S", name="South"),
    Branch(branch_id="B-E", name="East"),
]


def _branch_day():
    events = [
        make_event("A1", "N1", _at(9), _at(13)),
        make_event("A2", "N1", _at(14), _at(18), LATE),
        make_event("A3", "S1", _at(9, 30), None, LATE),
        make_event("A4", "S2", _at(9), _at(17)),
        make_event("A5", "U1", _at(9), _at(17)),
    ]
    return aggregate(events, DAY)


def test_branch_rollups_reconcile_with_global():
    summaries = _branch_day()
    report = rollup_branches(summaries, ROSTER, DAY, branches=BRANCHES)
    overall = rollup_day(summaries, [e.employee_id for e in ROSTER], day=DAY)

    assert report.totals.unique_present_count == overall.unique_present_count == 4
    assert report.totals.late_count == overall.late_count == 2
    assert report.totals.total_employees == overall.total_employees == 5
    assert report.totals.absent_count == overall.absent_count == 1
    assert report.totals.attendance_rate_percent == overall.attendance_rate_percent == 80


def test_branch_rollups_are_independent_and_labelled():
    report = rollup_branches(_branch_day(), ROSTER, DAY, branches=BRANCHES)
    by_scope = {b.rollup.scope: b for b in report.branches}

    assert [b.name for b in report.branches] == ["North", "South", "East", "Unassigned"]
    assert by_scope["B-N"].rollup.unique_present_count == 1
    assert by_scope["B-N"].rollup.absent_count == 1
    assert by_scope["B-N"].registered_count == 1
    assert by_scope["B-S"].rollup.late_count == 1
    assert by_scope["B-S"].registered_count == 2
    assert by_scope["B-E"].rollup.total_employees == 0
    assert by_scope["unassigned"].rollup.unique_present_count == 1


def test_branch_partition_reconciles_for_any_split():
    """Reassigning employees between branches never changes the totals."""
    summaries = _branch_day()
    ids = [e.employee_id for e in ROSTER]
    overall = rollup_day(summaries, ids)
    for split in range(len(ids) + 1):
        roster = [
            RosterEntry(employee_id=eid, name=eid, branch_id="X" if i < split else "Y")
            for i, eid in enumerate(ids)
        ]
        totals = rollup_branches(summaries, roster, DAY).totals
        assert totals.unique_present_count == overall.unique_present_count
        assert totals.late_count == overall.late_count


def test_sum_rollups_recomputes_rate():
    a = rollup_day({}, ["E1"], day=DAY)
    total = sum_rollups([a, empty_rollup(DAY)], day=DAY)
    assert total.total_employees == 1
    assert total.attendance_rate_percent == 0
    assert total.scope == "total"


def test_attendance_sheet_present_first_then_name():
    rows = attendance_sheet(ROSTER, _branch_day())
    assert [(r.name, r.status) for r in rows] == [
        ("Asha", "Present"),
        ("Chen", "Present"),
        ("Devi", "Present"),
        ("Eko", "Present"),
        ("Bilal", "Absent"),
    ]
    asha = rows[0]
    assert asha.check_in_time.hour == 14
    assert asha.worked == "8h 0m"
    assert rows[-1].check_in_time is None


# ── Date ranges ─────────────────────────────────────────────────────
def _fetch_from(events, *, failing=(), slow=()):
    async def fetch(day):
        if day in failing:
            raise ConnectionError("upstream unavailable")
        if day in slow:
            await asyncio.sleep(5)
        return [e for e in events if e.work_date == day]

    return fetch


@pytest.mark.asyncio
async def test_rollup_range_one_entry_per_day_in_order():
    days = last_n_days(7, today=DAY)
    events = [
        make_event("A1", "E1", _at(9, day=days[0]), None),
        make_event("A2", "E1", _at(9, day=days[3]), None),
        make_event("A3", "E2", _at(9, day=days[3]), None, LATE),
    ]
    rollups = await rollup_range(list(reversed(days)), _fetch_from(events), ["E1", "E2"])

    assert [r.date for r in rollups] == days
    assert rollups[0].unique_present_count == 1
    assert rollups[3].unique_present_count == 2
    assert rollups[3].late_count == 1
    assert rollups[1] == empty_rollup(days[1])


@pytest.mark.asyncio
async def test_rollup_range_survives_every_fetch_failing():
    days = date_range(DAY, DAY + timedelta(days=4))
    rollups = await rollup_range(days, _fetch_from([], failing=set(days)), ["E1"])
    assert len(rollups) == 5
    assert [r.date for r in rollups] == days
    assert all(r.unique_present_count == 0 and r.total_employees == 0 for r in rollups)
    assert not any(r.has_data for r in rollups)


@pytest.mark.asyncio
async def test_rollup_range_times_out_slow_days():
    days = [DAY, DAY + timedelta(days=1)]
    events = [make_event("A1", "E1", _at(9), None)]
    rollups = await rollup_range(
        days,
        _fetch_from(events, slow={days[1]}),
        ["E1"],
        timeout=0.05,
    )
    assert rollups[0].unique_present_count == 1
    assert rollups[1] == empty_rollup(days[1])


@pytest.mark.asyncio
async def test_rollup_range_drops_events_from_other_days():
    stray = make_event("A1", "E1", _at(9, day=DAY - timedelta(days=1)), None)

    async def fetch(day):
        return [stray]

    rollups = await rollup_range([DAY], fetch, ["E1"])
    assert rollups[0].unique_present_count == 0


@pytest.mark.asyncio
async def test_rollup_weeks_counts_each_employee_once_per_week():
    monday = date(2025, 11, 10)
    days = date_range(monday, monday + timedelta(days=8))  # Mon..next Tue
    events = [
        make_event(f"A{i}", "E1", _at(9, day=d), _at(17, day=d)) for i, d in enumerate(days[:5])
    ]
    events.append(make_event("B1", "E2", _at(9, day=days[2]), None, LATE))
    events.append(make_event("B2", "E2", _at(9, day=days[8]), None))

    rows = await rollup_weeks(days, _fetch_from(events), ["E1", "E2", "E3"])

    assert [r.week_start for r in rows] == [monday, monday + timedelta(days=7)]
    first, second = rows
    assert first.days == 7
    assert first.unique_present_count == 2
    assert first.late_count == 1
    assert first.attendance_rate_percent == 67
    assert second.days == 2
    assert second.unique_present_count == 1
    assert second.late_count == 0


def test_trend_rows_use_short_weekday_labels():
    rows = trend_rows([rollup_day({}, ["E1"], day=DAY), empty_rollup()])
    assert len(rows) == 1
    assert rows[0].day == "Mon"
    assert rows[0].absent == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("returned", [None, 42, ["not-an-event"]])
async def test_rollup_range_treats_unusable_results_as_empty(returned):
    async def fetch(day):
        return returned

    rollups = await rollup_range([DAY, DAY + timedelta(days=1)], fetch, ["E1"])
    assert rollups == [empty_rollup(DAY), empty_rollup(DAY + timedelta(days=1))]


def test_rollup_serializes_on_time_count():
    events = [
        make_event("A1", "E1", _at(9), None),
        make_event("A2", "E2", _at(9, 40), None, LATE),
    ]
    rollup = rollup_day(aggregate(events, DAY), ["E1", "E2", "E3"], day=DAY)
    data = rollup.model_dump(by_alias=True)
    assert data["onTimeCount"] == 1
    assert data["lateCount"] == 1
    assert data["absentCount"] == 1
