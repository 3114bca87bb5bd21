"""Company API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from payroll_admin.api.dependencies import Companies, CurrentPrincipal
from payroll_admin.api.schemas import (
    CompanyCreate,
    CompanyListResponse,
    CompanyResponse,
    CompanyUpdate,
    ErrorResponse,
    MessageResponse,
)
from payroll_admin.services import PageRequest

router = APIRouter(prefix="/companies", tags=["companies"])

CompanyId = Annotated[int, Path()]


@router.get(
    "",
    response_model=CompanyListResponse,
    responses={403: {"model": ErrorResponse}},
)
async def list_companies(
    principal: CurrentPrincipal,
    companies: Companies,
    page: int = 1,
    limit: int = 10,
    search: Annotated[str | None, Query()] = None,
) -> CompanyListResponse:
    """List the calling accountant's companies."""
    result = await companies.list(principal, PageRequest(page, limit), search)
    return CompanyListResponse(
        companies=[CompanyResponse.model_validate(c) for c in result.items],
        current_page=result.current_page,
        total_pages=result.total_pages,
        total=result.total,
    )


@router.post(
    "",
    response_model=CompanyResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}},
)
async def create_company(
    principal: CurrentPrincipal,
    companies: Companies,
    payload: CompanyCreate,
) -> CompanyResponse:
    company = await companies.create(principal, payload.model_dump())
    return CompanyResponse.model_validate(company)


@router.post(
    "/associate/{company_id}",
    response_model=CompanyResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def associate_company(
    principal: CurrentPrincipal,
    companies: Companies,
    company_id: CompanyId,
) -> CompanyResponse:
    """Claim a self-registered company that has no accountant yet."""
    company = await companies.associate(principal, company_id)
    return CompanyResponse.model_validate(company)


@router.get(
    "/{company_id}",
    response_model=CompanyResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_company(
    principal: CurrentPrincipal,
    companies: Companies,
    company_id: CompanyId,
) -> CompanyResponse:
    company = await companies.get(principal, company_id)
    return CompanyResponse.model_validate(company)


@router.put(
    "/{company_id}",
    response_model=CompanyResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_company(
    principal: CurrentPrincipal,
    companies: Companies,
    company_id: CompanyId,
    payload: CompanyUpdate,
) -> CompanyResponse:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    company = await companies.update(principal, company_id, changes)
    return CompanyResponse.model_validate(company)


@router.delete(
    "/{company_id}",
    response_model=MessageResponse,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def delete_company(
    principal: CurrentPrincipal,
    companies: Companies,
    company_id: CompanyId,
) -> MessageResponse:
    await companies.delete(principal, company_id)
    return MessageResponse(message="Company deleted successfully")
