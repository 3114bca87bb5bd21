"""Payroll entry API endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from payroll_admin.api.dependencies import CurrentPrincipal, PayrollEntries
from payroll_admin.api.schemas import (
    ErrorResponse,
    MessageResponse,
    PayrollCreate,
    PayrollListResponse,
    PayrollResponse,
    PayrollTotalsResponse,
    PayrollUpdate,
    ValidationErrorResponse,
)
from payroll_admin.services import PageRequest

router = APIRouter(prefix="/payroll", tags=["payroll"])

PayrollId = Annotated[int, Path()]
StartDate = Annotated[date | None, Query(alias="startDate")]
EndDate = Annotated[date | None, Query(alias="endDate")]


@router.get(
    "/company/{company_id}",
    response_model=PayrollListResponse,
    responses={400: {"model": ValidationErrorResponse}, 403: {"model": ErrorResponse}},
)
async def list_company_payroll(
    principal: CurrentPrincipal,
    payroll: PayrollEntries,
    company_id: Annotated[int, Path()],
    page: int = 1,
    limit: int = 10,
    start_date: StartDate = None,
    end_date: EndDate = None,
    search: Annotated[str | None, Query()] = None,
) -> PayrollListResponse:
    """List a company's payroll entries, newest period first."""
    result = await payroll.list_for_company(
        principal,
        company_id,
        PageRequest(page, limit),
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return PayrollListResponse(
        payroll_entries=[PayrollResponse.model_validate(p) for p in result.items],
        current_page=result.current_page,
        total_pages=result.total_pages,
        total=result.total,
    )


@router.get(
    "/total/{company_id}",
    response_model=PayrollTotalsResponse,
    responses={400: {"model": ValidationErrorResponse}, 403: {"model": ErrorResponse}},
)
async def company_payroll_totals(
    principal: CurrentPrincipal,
    payroll: PayrollEntries,
    company_id: Annotated[int, Path()],
    start_date: StartDate = None,
    end_date: EndDate = None,
) -> PayrollTotalsResponse:
    """Sum gross, net, and deductions over a company's entries."""
    totals = await payroll.totals(principal, company_id, start_date, end_date)
    return PayrollTotalsResponse.model_validate(totals)


@router.post(
    "",
    response_model=PayrollResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ValidationErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def create_payroll_entry(
    principal: CurrentPrincipal,
    payroll: PayrollEntries,
    payload: PayrollCreate,
) -> PayrollResponse:
    entry = await payroll.create(principal, payload.model_dump())
    return PayrollResponse.model_validate(entry)


@router.get(
    "/{payroll_id}",
    response_model=PayrollResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_payroll_entry(
    principal: CurrentPrincipal,
    payroll: PayrollEntries,
    payroll_id: PayrollId,
) -> PayrollResponse:
    entry = await payroll.get(principal, payroll_id)
    return PayrollResponse.model_validate(entry)


@router.put(
    "/{payroll_id}",
    response_model=PayrollResponse,
    responses={
        400: {"model": ValidationErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def update_payroll_entry(
    principal: CurrentPrincipal,
    payroll: PayrollEntries,
    payroll_id: PayrollId,
    payload: PayrollUpdate,
) -> PayrollResponse:
    """Update the figures of an entry; clients only within 30 days of creation."""
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    entry = await payroll.update(principal, payroll_id, changes)
    return PayrollResponse.model_validate(entry)


@router.delete(
    "/{payroll_id}",
    response_model=MessageResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_payroll_entry(
    principal: CurrentPrincipal,
    payroll: PayrollEntries,
    payroll_id: PayrollId,
) -> MessageResponse:
    await payroll.delete(principal, payroll_id)
    return MessageResponse(message="Payroll entry deleted successfully")
