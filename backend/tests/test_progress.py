"""Progress aggregation."""

import pytest

from taskhub.services.progress import compute_progress, progress_percentage


def test_no_tasks_is_zero_progress():
    stats = compute_progress([])
    assert (stats.total_tasks, stats.completed_tasks, stats.pending_tasks) == (0, 0, 0)
    assert stats.progress == 0


def test_one_of_four_done():
    stats = compute_progress(["TODO", "DONE", "IN_PROGRESS", "REVIEW"])
    assert stats.progress == 25
    assert stats.pending_tasks == 3


def test_review_is_not_completed():
    assert compute_progress(["REVIEW", "REVIEW"]).completed_tasks == 0


@pytest.mark.parametrize(
    ("completed", "total", "expected"),
    [
        (1, 8, 13),  # 12.5 rounds up
        (1, 3, 33),
        (2, 3, 67),
        (1, 200, 1),  # 0.5 rounds up
        (3, 3, 100),
    ],
)
def test_rounds_half_up(completed, total, expected):
    assert progress_percentage(completed, total) == expected


@pytest.mark.parametrize("total", range(1, 30))
def test_progress_stays_within_bounds(total):
    for completed in range(total + 1):
        assert 0 <= progress_percentage(completed, total) <= 100
