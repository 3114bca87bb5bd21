"""Employee API endpoints."""

from typing import Annotated

import pydantic
from fastapi import APIRouter, File, Form, Path, Query, UploadFile, status

from payroll_admin.api.dependencies import AppSettings, CurrentPrincipal, Employees
from payroll_admin.api.schemas import (
    EmployeeCreate,
    EmployeeListResponse,
    EmployeeResponse,
    EmployeeUpdate,
    ErrorResponse,
    MessageResponse,
    OffboardingResponse,
    OffboardRequest,
    OffboardResponse,
    ValidationErrorResponse,
)
from payroll_admin.errors import FieldError, ValidationError
from payroll_admin.services import PageRequest, UploadedDocument

router = APIRouter(prefix="/employees", tags=["employees"])

EmployeeId = Annotated[int, Path()]


async def _read_upload(field: str, upload: UploadFile | None, max_bytes: int) -> UploadedDocument | None:
    if upload is None:
        return None
    # One byte past the limit is enough to reject oversized files
    content = await upload.read(max_bytes + 1)
    return UploadedDocument(
        field=field,
        filename=upload.filename or field,
        content_type=upload.content_type,
        content=content,
    )


# ============================================================================
# Listing and creation
# ============================================================================


@router.get(
    "/company/{company_id}",
    response_model=EmployeeListResponse,
    responses={403: {"model": ErrorResponse}},
)
async def list_company_employees(
    principal: CurrentPrincipal,
    employees: Employees,
    company_id: Annotated[int, Path()],
    page: int = 1,
    limit: int = 10,
    search: Annotated[str | None, Query()] = None,
    is_active: Annotated[bool | None, Query()] = None,
) -> EmployeeListResponse:
    """List a company's employees, optionally filtered by name/email and status."""
    result = await employees.list_for_company(
        principal, company_id, PageRequest(page, limit), search, is_active
    )
    return EmployeeListResponse(
        employees=[EmployeeResponse.model_validate(e) for e in result.items],
        current_page=result.current_page,
        total_pages=result.total_pages,
        total=result.total,
    )


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ValidationErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def create_employee(
    principal: CurrentPrincipal,
    employees: Employees,
    settings: AppSettings,
    employee: Annotated[str, Form(description="Employee details as a JSON object")],
    td1_federal: Annotated[UploadFile | None, File()] = None,
    td1_provincial: Annotated[UploadFile | None, File()] = None,
) -> EmployeeResponse:
    """Create an employee from a multipart form with both TD1 PDFs attached."""
    errors: list[FieldError] = []
    payload = None
    try:
        payload = EmployeeCreate.model_validate_json(employee)
    except pydantic.ValidationError as e:
        errors.extend(ValidationError.from_pydantic(e.errors(), root_field="employee").errors)

    documents = {
        "td1_federal": await _read_upload("td1_federal", td1_federal, settings.max_upload_bytes),
        "td1_provincial": await _read_upload(
            "td1_provincial", td1_provincial, settings.max_upload_bytes
        ),
    }
    errors.extend(employees.validate_documents(documents))
    if errors or payload is None:
        raise ValidationError(errors)

    created = await employees.create(principal, payload.model_dump(), documents)
    return EmployeeResponse.model_validate(created)


# ============================================================================
# Single employee
# ============================================================================


@router.get(
    "/{employee_id}",
    response_model=EmployeeResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_employee(
    principal: CurrentPrincipal,
    employees: Employees,
    employee_id: EmployeeId,
) -> EmployeeResponse:
    employee = await employees.get(principal, employee_id)
    return EmployeeResponse.model_validate(employee)


@router.put(
    "/{employee_id}",
    response_model=EmployeeResponse,
    responses={
        400: {"model": ValidationErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_employee(
    principal: CurrentPrincipal,
    employees: Employees,
    employee_id: EmployeeId,
    payload: EmployeeUpdate,
) -> EmployeeResponse:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    employee = await employees.update(principal, employee_id, changes)
    return EmployeeResponse.model_validate(employee)


@router.delete(
    "/{employee_id}",
    response_model=MessageResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def delete_employee(
    principal: CurrentPrincipal,
    employees: Employees,
    employee_id: EmployeeId,
) -> MessageResponse:
    """Deactivate an employee (recorded as an offboarding)."""
    await employees.delete(principal, employee_id)
    return MessageResponse(message="Employee deactivated successfully")


# ============================================================================
# Offboarding
# ============================================================================


@router.post(
    "/{employee_id}/offboard",
    response_model=OffboardResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ValidationErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def offboard_employee(
    principal: CurrentPrincipal,
    employees: Employees,
    employee_id: EmployeeId,
    payload: OffboardRequest,
) -> OffboardResponse:
    record = await employees.offboard(
        principal,
        employee_id,
        reason_for_leaving=payload.reason_for_leaving,
        last_day_worked=payload.last_day_worked,
        payout_accrued_vacation=payload.payout_accrued_vacation,
        callback_date=payload.callback_date,
    )
    return OffboardResponse(
        message="Employee offboarded successfully",
        offboarding=OffboardingResponse.model_validate(record),
    )


@router.get(
    "/{employee_id}/offboarding",
    response_model=OffboardingResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_offboarding(
    principal: CurrentPrincipal,
    employees: Employees,
    employee_id: EmployeeId,
) -> OffboardingResponse:
    record = await employees.get_offboarding(principal, employee_id)
    return OffboardingResponse.model_validate(record)
