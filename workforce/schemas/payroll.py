"""Pydantic records for salary components and payroll records."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, AliasChoices, BaseModel, Field

from workforce.core.config import settings
from workforce.core.values import from_minor_units, to_minor_units
from workforce.schemas.attendance import RECORD_CONFIG


def _two_places(v: Decimal) -> Decimal:
    return from_minor_units(to_minor_units(v))


# Non-negative amount in major units, normalised to two decimal places.
Amount = Annotated[
    Decimal,
    Field(ge=0, max_digits=14, decimal_places=2),
    AfterValidator(_two_places),
]


class PaymentType(str, Enum):
    CASH = "CASH"
    BANK = "BANK"
    CHEQUE = "CHEQUE"


class PayrollStatus(str, Enum):
    PROCESSED = "Processed"


class Earnings(BaseModel):
    basic: Amount = Decimal("0.00")
    hra: Amount = Decimal("0.00")
    conveyance: Amount = Decimal("0.00")
    medical: Amount = Decimal("0.00")
    special: Amount = Decimal("0.00")
    bonus: Amount = Decimal("0.00")

    model_config = RECORD_CONFIG


class Deductions(BaseModel):
    pf: Amount = Decimal("0.00")
    esi: Amount = Decimal("0.00")
    pt: Amount = Decimal("0.00")
    tds: Amount = Decimal("0.00")
    advance: Amount = Decimal("0.00")

    model_config = RECORD_CONFIG


class PayrollTotals(BaseModel):
    gross_salary: Decimal
    total_deductions: Decimal
    net_salary: Decimal  # may be negative

    model_config = RECORD_CONFIG


class SalaryInput(BaseModel):
    """Form submitted on "process salary" for one employee and period."""

    employee_id: str = Field(min_length=1)
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1900, le=9999)
    payment_type: PaymentType = PaymentType(settings.DEFAULT_PAYMENT_TYPE)
    working_days: int = Field(default=settings.DEFAULT_WORKING_DAYS, ge=0, le=31)
    earnings: Earnings = Field(
        default_factory=Earnings,
        validation_alias=AliasChoices("earnings", "components"),
    )
    deductions: Deductions = Field(default_factory=Deductions)

    model_config = RECORD_CONFIG


class SalaryEdit(BaseModel):
    """Replacement component sets for an existing record.

    Earnings and deductions are always replaced as whole sets; header fields
    left out keep their stored values.
    """

    earnings: Earnings = Field(validation_alias=AliasChoices("earnings", "components"))
    deductions: Deductions
    payment_type: PaymentType | None = None
    working_days: int | None = Field(default=None, ge=0, le=31)

    model_config = RECORD_CONFIG


class PayrollRecord(BaseModel):
    salary_id: str
    employee_id: str
    month: int = Field(ge=1, le=12)
    year: int
    payment_type: PaymentType
    working_days: int = Field(ge=0)
    earnings: Earnings
    deductions: Deductions
    gross_salary: Decimal
    total_deductions: Decimal
    net_salary: Decimal
    status: PayrollStatus = PayrollStatus.PROCESSED

    model_config = RECORD_CONFIG

    @property
    def period_key(self) -> tuple[str, int, int]:
        return (self.employee_id, self.month, self.year)
