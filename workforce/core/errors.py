"""Domain errors raised by the core services."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for contract violations inside the core."""


class RecordNotFoundError(DomainError):
    """Raised when an operation targets an identifier that does not exist."""


class PayrollRecordNotFoundError(RecordNotFoundError):
    def __init__(self, salary_id: str) -> None:
        super().__init__(f"Payroll record {salary_id!r} not found")
        self.salary_id = salary_id


class EmployeeNotFoundError(RecordNotFoundError):
    def __init__(self, employee_id: str) -> None:
        super().__init__(f"Employee {employee_id!r} not found")
        self.employee_id = employee_id


class BranchNotFoundError(RecordNotFoundError):
    def __init__(self, branch_id: str) -> None:
        super().__init__(f"Branch {branch_id!r} not found")
        self.branch_id = branch_id
