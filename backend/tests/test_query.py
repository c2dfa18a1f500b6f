"""Pagination, status parsing and search helpers."""

import math

import pytest

from taskhub.exceptions import ValidationError
from taskhub.models import Client, TaskStatus
from taskhub.services.query import (
    PageMeta,
    PageParams,
    like_pattern,
    paginate,
    parse_task_status,
)


class TestPageParams:
    def test_defaults(self):
        params = PageParams.clamp(None, None)
        assert (params.page, params.limit) == (1, 10)
        assert params.offset == 0

    @pytest.mark.parametrize(
        ("page", "limit", "expected"),
        [
            (0, 10, (1, 10)),
            (-3, 10, (1, 10)),
            (2, 0, (2, 1)),
            (2, 500, (2, 100)),
            (3, 25, (3, 25)),
        ],
    )
    def test_out_of_range_values_are_clamped(self, page, limit, expected):
        params = PageParams.clamp(page, limit)
        assert (params.page, params.limit) == expected

    def test_offset(self):
        assert PageParams.clamp(3, 20).offset == 40


@pytest.mark.parametrize(("total", "limit"), [(0, 10), (1, 10), (10, 10), (11, 10), (99, 7)])
def test_total_pages_is_ceiling(total, limit):
    assert PageMeta(total=total, page=1, limit=limit).total_pages == math.ceil(total / limit)


class TestParseTaskStatus:
    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_means_no_filter(self, value):
        assert parse_task_status(value) is None

    def test_valid_value(self):
        assert parse_task_status("REVIEW") is TaskStatus.REVIEW

    @pytest.mark.parametrize("value", ["done", "BLOCKED", "todo "])
    def test_invalid_value_names_allowed_set(self, value):
        with pytest.raises(ValidationError) as exc_info:
            parse_task_status(value)
        assert exc_info.value.message == (
            "Invalid status. Must be one of: TODO, IN_PROGRESS, REVIEW, DONE"
        )


def test_like_pattern_escapes_wildcards():
    assert like_pattern("50%_off") == "%50\\%\\_off%"


async def test_paginate_slices_and_reports_meta(db):
    db.add_all([Client(name=f"Client {i:02d}") for i in range(25)])
    await db.commit()

    params = PageParams.clamp(3, 10)
    page = await paginate(db, Client, params, order_by=[Client.name])

    assert [c.name for c in page.data] == [f"Client {i:02d}" for i in range(20, 25)]
    assert (page.meta.total, page.meta.page, page.meta.limit) == (25, 3, 10)
    assert page.meta.total_pages == 3


async def test_page_past_the_end_is_empty_with_same_meta(db):
    db.add_all([Client(name=f"Client {i}") for i in range(3)])
    await db.commit()

    page = await paginate(db, Client, PageParams.clamp(5, 10))

    assert page.data == []
    assert page.meta.total == 3
    assert page.meta.total_pages == 1
