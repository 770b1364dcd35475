"""Pydantic records for attendance events, daily summaries and rollups."""

from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

from workforce.core.values import ensure_utc, format_duration

RECORD_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "extra": "forbid",
    "frozen": True,
}


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    LATE = "late"
    HALF_DAY = "half-day"


class DiagnosticCode(str, Enum):
    CHECKOUT_BEFORE_CHECKIN = "checkout-before-checkin"
    DUPLICATE_ATTENDANCE_ID = "duplicate-attendance-id"
    DATE_MISMATCH = "date-mismatch"


# ── Raw events ──────────────────────────────────────────────────────
class AttendanceEvent(BaseModel):
    """One check-in / check-out pair; ``check_out_time`` is None while open."""

    employee_id: str
    attendance_id: str
    check_in_time: dt.datetime
    check_out_time: dt.datetime | None = None
    status: AttendanceStatus

    model_config = RECORD_CONFIG

    @field_validator("employee_id", "attendance_id")
    @classmethod
    def _identifier(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Identifier must not be empty")
        return v

    @field_validator("check_in_time", "check_out_time")
    @classmethod
    def _utc(cls, v: dt.datetime | None) -> dt.datetime | None:
        return ensure_utc(v) if v is not None else None

    @property
    def work_date(self) -> dt.date:
        return self.check_in_time.date()

    @property
    def is_open(self) -> bool:
        return self.check_out_time is None


class RejectedRow(BaseModel):
    index: int
    error: str


class EventBatch(BaseModel):
    """Result of validating raw rows at the aggregation boundary."""

    events: list[AttendanceEvent] = Field(default_factory=list)
    rejected: list[RejectedRow] = Field(default_factory=list)


# ── Daily summary ──────────────────────────────────────────────────
class SessionDiagnostic(BaseModel):
    attendance_id: str
    code: DiagnosticCode

    model_config = RECORD_CONFIG


class DailySummary(BaseModel):
    employee_id: str
    date: dt.date
    sessions: list[AttendanceEvent]  # newest check-in first
    total_worked_minutes: int = Field(ge=0)
    latest_status: AttendanceStatus
    is_present: bool
    diagnostics: list[SessionDiagnostic] = Field(default_factory=list)

    model_config = RECORD_CONFIG

    @property
    def latest_session(self) -> AttendanceEvent:
        return self.sessions[0]

    @property
    def was_late(self) -> bool:
        return any(s.status == AttendanceStatus.LATE for s in self.sessions)

    @property
    def worked_display(self) -> str:
        return format_duration(self.total_worked_minutes)


# ── Rollups ────────────────────────────────────────────────────────
class RosterRollup(BaseModel):
    date: dt.date | None = None
    scope: str = "global"
    total_employees: int = Field(default=0, ge=0)
    unique_present_count: int = Field(default=0, ge=0)
    absent_count: int = Field(default=0, ge=0)
    late_count: int = Field(default=0, ge=0)
    attendance_rate_percent: int = Field(default=0, ge=0)
    has_data: bool = False

    # Responses are re-validated from their dump, which includes onTimeCount.
    model_config = {**RECORD_CONFIG, "extra": "ignore"}

    @computed_field
    @property
    def on_time_count(self) -> int:
        return max(0, self.unique_present_count - self.late_count)


class BranchRollup(BaseModel):
    branch_id: str | None
    name: str
    registered_count: int = 0
    rollup: RosterRollup

    model_config = RECORD_CONFIG


class BranchRollupReport(BaseModel):
    date: dt.date
    branches: list[BranchRollup]
    totals: RosterRollup

    model_config = RECORD_CONFIG


class TrendRow(BaseModel):
    date: dt.date
    day: str  # Mon, Tue, ...
    present: int
    late: int
    absent: int

    model_config = RECORD_CONFIG


class WeeklyTrendRow(BaseModel):
    week_start: dt.date
    week_end: dt.date
    days: int
    total_employees: int
    unique_present_count: int
    late_count: int
    attendance_rate_percent: int

    model_config = RECORD_CONFIG


class AttendanceSheetRow(BaseModel):
    employee_id: str
    name: str
    designation: str | None = None
    status: str  # Present | Absent
    check_in_time: dt.datetime | None = None
    check_out_time: dt.datetime | None = None
    worked: str = "--"

    model_config = RECORD_CONFIG


# ── API responses ──────────────────────────────────────────────────
class DayAttendanceResponse(BaseModel):
    date: dt.date
    records: list[AttendanceEvent]
    summaries: list[DailySummary]
    rollup: RosterRollup

    model_config = RECORD_CONFIG


class EmployeeHistoryResponse(BaseModel):
    employee_id: str
    history: list[DailySummary]

    model_config = RECORD_CONFIG


class BranchDetailResponse(BaseModel):
    date: dt.date
    branch: BranchRollup
    sheet: list[AttendanceSheetRow]

    model_config = RECORD_CONFIG


class TrendsResponse(BaseModel):
    period_days: int
    rollups: list[RosterRollup]
    trends: list[TrendRow]

    model_config = RECORD_CONFIG


class WeeklyTrendsResponse(BaseModel):
    weeks: list[WeeklyTrendRow]

    model_config = RECORD_CONFIG


class HealthResponse(BaseModel):
    db: bool
