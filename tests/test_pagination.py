"""Tests for pagination and search helpers."""

from datetime import date, timedelta

import pytest
from sqlalchemy import select

from payroll_admin.errors import ValidationError
from payroll_admin.models import PayrollEntry
from payroll_admin.services.pagination import Page, PageRequest, paginate, search_pattern
from tests.conftest import payroll_fields


class TestPageRequest:
    def test_defaults(self):
        request = PageRequest()
        assert (request.page, request.limit, request.offset) == (1, 10, 0)

    def test_offset(self):
        assert PageRequest(page=3, limit=10).offset == 20

    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (1, 101), (-2, 10)])
    def test_out_of_range(self, page, limit):
        with pytest.raises(ValidationError):
            PageRequest(page=page, limit=limit)

    def test_reports_both_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            PageRequest(page=0, limit=500)
        assert {e.field for e in exc_info.value.errors} == {"page", "limit"}


class TestPage:
    def test_total_pages_rounds_up(self):
        assert Page(items=[], total=25, current_page=1, limit=10).total_pages == 3

    def test_empty(self):
        assert Page(items=[], total=0, current_page=1, limit=10).total_pages == 0


class TestSearchPattern:
    def test_blank_search_is_skipped(self):
        assert search_pattern(None) is None
        assert search_pattern("   ") is None

    def test_wildcards_are_escaped(self):
        assert search_pattern("50%_off") == "%50\\%\\_off%"


class TestPaginate:
    async def test_twenty_five_rows_make_three_pages(self, session, world):
        """Two seeded rows plus 23 more; the last page holds the remainder."""
        start = date(2022, 1, 3)
        for i in range(23):
            session.add(
                PayrollEntry(**payroll_fields(world.employee_a.employee_id, start + timedelta(days=14 * i)))
            )
        await session.commit()

        query = select(PayrollEntry).order_by(PayrollEntry.payroll_id)
        last = await paginate(session, query, PageRequest(page=3, limit=10))

        assert last.total == 25
        assert last.total_pages == 3
        assert len(last.items) == 5
