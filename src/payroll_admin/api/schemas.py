"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StrictBool,
    ValidationInfo,
    field_validator,
)

from payroll_admin.models import LeavingReason, PaySchedule, PayType
from payroll_admin.security.passwords import password_problems
from payroll_admin.security.principal import Role

PHONE_PATTERN = r"^\+?[0-9]{10,15}$"

Name = Annotated[str, Field(min_length=1, max_length=100)]
Phone = Annotated[str, Field(pattern=PHONE_PATTERN)]
Money = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]
Hours = Annotated[Decimal, Field(ge=0, max_digits=8, decimal_places=2)]
SIN = Annotated[str, Field(pattern=r"^[0-9]{9}$")]
InstitutionNumber = Annotated[str, Field(pattern=r"^[0-9]{3}$")]
TransitNumber = Annotated[str, Field(pattern=r"^[0-9]{5}$")]
AccountNumber = Annotated[str, Field(pattern=r"^[0-9]{7,12}$")]


class InputModel(BaseModel):
    """Base for request bodies: strips strings, rejects unknown fields."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


# ============================================================================
# Shared schemas
# ============================================================================


class PageMeta(BaseModel):
    """Pagination fields shared by list responses."""

    current_page: int = Field(serialization_alias="currentPage")
    total_pages: int = Field(serialization_alias="totalPages")
    total: int


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    """Schema for error response."""

    error: str


class FieldErrorResponse(BaseModel):
    field: str
    message: str


class ValidationErrorResponse(BaseModel):
    """Schema for validation error response."""

    errors: list[FieldErrorResponse]


# ============================================================================
# Auth schemas
# ============================================================================


def _check_password_strength(value: str) -> str:
    problems = password_problems(value)
    if problems:
        raise ValueError("Password " + ", ".join(problems))
    return value


class RegisterRequest(InputModel):
    """Schema for self-registration of an accountant or a client company."""

    email: EmailStr
    password: str
    user_type: Role = Field(validation_alias=AliasChoices("user_type", "userType"))
    company_name: str | None = Field(
        default=None,
        max_length=255,
        validation_alias=AliasChoices("company_name", "companyName"),
    )
    first_name: str | None = Field(
        default=None,
        max_length=100,
        validation_alias=AliasChoices("first_name", "firstName"),
    )
    last_name: str | None = Field(
        default=None,
        max_length=100,
        validation_alias=AliasChoices("last_name", "lastName"),
    )

    _password_strength = field_validator("password")(_check_password_strength)


class LoginRequest(InputModel):
    email: EmailStr
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int


class VerifyEmailRequest(InputModel):
    token: str = Field(min_length=1)


class PasswordResetRequest(InputModel):
    email: EmailStr


class PasswordReset(InputModel):
    token: str = Field(min_length=1)
    password: str

    _password_strength = field_validator("password")(_check_password_strength)


# ============================================================================
# Company schemas
# ============================================================================


class CompanyCreate(InputModel):
    """Schema for creating a company."""

    company_name: str = Field(min_length=1, max_length=255)
    contact_person: str = Field(min_length=1, max_length=255)
    email: EmailStr
    phone: Phone
    address: str = Field(min_length=1)


class CompanyUpdate(InputModel):
    """Fields a company may change; anything else is rejected."""

    company_name: str | None = Field(default=None, min_length=1, max_length=255)
    contact_person: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: Phone | None = None
    address: str | None = Field(default=None, min_length=1)


class CompanyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    company_id: int
    company_name: str
    contact_person: str | None = None
    email: str
    phone: str | None = None
    address: str | None = None
    accountant_id: int | None = None
    created_at: datetime
    updated_at: datetime


class CompanyListResponse(PageMeta):
    companies: list[CompanyResponse]


# ============================================================================
# Employee schemas
# ============================================================================


class EmployeeCreate(InputModel):
    """Schema for creating an employee.

    ``company_id`` is only honoured for accountants; clients always create
    employees in their own company.
    """

    company_id: int | None = None
    first_name: Name
    last_name: Name
    date_of_birth: date
    full_address: str = Field(min_length=1)
    email: EmailStr
    phone_number: Phone
    sin: SIN
    start_date: date
    position: Name
    pay_type: PayType
    pay_rate: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    pay_schedule: PaySchedule
    institution_number: InstitutionNumber | None = None
    transit_number: TransitNumber | None = None
    account_number: AccountNumber | None = None
    consent_electronic_documents: StrictBool

    @field_validator("date_of_birth")
    @classmethod
    def _born_in_the_past(cls, value: date) -> date:
        if value >= date.today():
            raise ValueError("date_of_birth must be in the past")
        return value


class EmployeeUpdate(InputModel):
    """Fields an employee record may change.

    ``company_id`` and ``is_active`` are not patchable: the company is
    fixed at creation and deactivation goes through offboarding.
    """

    first_name: Name | None = None
    last_name: Name | None = None
    date_of_birth: date | None = None
    full_address: str | None = Field(default=None, min_length=1)
    email: EmailStr | None = None
    phone_number: Phone | None = None
    sin: SIN | None = None
    start_date: date | None = None
    position: Name | None = None
    pay_type: PayType | None = None
    pay_rate: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    pay_schedule: PaySchedule | None = None
    institution_number: InstitutionNumber | None = None
    transit_number: TransitNumber | None = None
    account_number: AccountNumber | None = None
    consent_electronic_documents: StrictBool | None = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: int
    company_id: int
    first_name: str
    last_name: str
    date_of_birth: date
    full_address: str
    email: str
    phone_number: str
    sin: str
    start_date: date
    position: str
    pay_type: PayType
    pay_rate: Decimal
    pay_schedule: PaySchedule
    institution_number: str | None = None
    transit_number: str | None = None
    account_number: str | None = None
    consent_electronic_documents: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime


class EmployeeListResponse(PageMeta):
    employees: list[EmployeeResponse]


class OffboardRequest(InputModel):
    """Schema for offboarding an employee."""

    reason_for_leaving: LeavingReason
    last_day_worked: date
    payout_accrued_vacation: StrictBool
    callback_date: date | None = None

    @field_validator("callback_date")
    @classmethod
    def _callback_after_last_day(cls, value: date | None, info: ValidationInfo) -> date | None:
        last_day = info.data.get("last_day_worked")
        if value is not None and last_day is not None and value < last_day:
            raise ValueError("callback_date cannot be before last_day_worked")
        return value


class OffboardingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    offboarding_id: int
    employee_id: int
    reason_for_leaving: LeavingReason
    last_day_worked: date
    payout_accrued_vacation: bool
    callback_date: date | None = None
    created_at: datetime


class OffboardResponse(MessageResponse):
    offboarding: OffboardingResponse


# ============================================================================
# Payroll schemas
# ============================================================================


class PayrollCreate(InputModel):
    """Schema for creating a payroll entry."""

    employee_id: int = Field(gt=0)
    pay_period_start: date
    pay_period_end: date
    hours_worked: Hours | None = None
    overtime_hours: Hours = Decimal("0")
    gross_pay: Money
    deductions: Money = Decimal("0")
    net_pay: Money
    payment_date: date

    @field_validator("pay_period_end")
    @classmethod
    def _period_in_order(cls, value: date, info: ValidationInfo) -> date:
        start = info.data.get("pay_period_start")
        if start is not None and value < start:
            raise ValueError("pay_period_end cannot be before pay_period_start")
        return value


class PayrollUpdate(InputModel):
    """Mutable payroll fields; the period and employee are fixed."""

    hours_worked: Hours | None = None
    overtime_hours: Hours | None = None
    gross_pay: Money | None = None
    deductions: Money | None = None
    net_pay: Money | None = None
    payment_date: date | None = None


class PayrollResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payroll_id: int
    employee_id: int
    pay_period_start: date
    pay_period_end: date
    hours_worked: Decimal | None = None
    overtime_hours: Decimal
    gross_pay: Decimal
    deductions: Decimal
    net_pay: Decimal
    payment_date: date
    created_at: datetime
    updated_at: datetime


class PayrollListResponse(PageMeta):
    payroll_entries: list[PayrollResponse] = Field(serialization_alias="payrollEntries")


class PayrollTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    company_id: int
    start_date: date | None = None
    end_date: date | None = None
    total_gross: Decimal
    total_net: Decimal
    total_deductions: Decimal
    entry_count: int
