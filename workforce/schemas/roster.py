"""Pydantic records for the employee roster and branches."""

from __future__ import annotations

from pydantic import BaseModel, field_validator

from workforce.schemas.attendance import RECORD_CONFIG


class RosterEntry(BaseModel):
    employee_id: str
    name: str
    branch_id: str | None = None
    designation: str | None = None
    face_id: str | None = None

    model_config = {**RECORD_CONFIG, "from_attributes": True}

    @field_validator("employee_id")
    @classmethod
    def _employee_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("employeeId must not be empty")
        return v

    @property
    def is_registered(self) -> bool:
        return bool(self.face_id)


class Branch(BaseModel):
    branch_id: str
    name: str
    address: str | None = None
    is_active: bool = True

    model_config = {**RECORD_CONFIG, "from_attributes": True}


class EmployeesResponse(BaseModel):
    employees: list[RosterEntry]

    model_config = RECORD_CONFIG


class BranchesResponse(BaseModel):
    branches: list[Branch]

    model_config = RECORD_CONFIG
