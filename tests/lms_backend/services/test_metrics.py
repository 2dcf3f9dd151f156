from datetime import date, datetime
from types import SimpleNamespace

import pytest

from lms_backend.core.choices import MaterialStatus, SubmissionStatus
from lms_backend.services import metrics

DONE = MaterialStatus.DONE
NOT_DONE = MaterialStatus.NOT_DONE


def _progress(*flags: MaterialStatus) -> SimpleNamespace:
    return SimpleNamespace(week_flags=list(flags))


@pytest.mark.parametrize(
    ('flags', 'expected'),
    [
        ((NOT_DONE, NOT_DONE, NOT_DONE, NOT_DONE), 0),
        ((DONE, NOT_DONE, NOT_DONE, NOT_DONE), 25),
        ((DONE, NOT_DONE, DONE, NOT_DONE), 50),
        ((DONE, DONE, DONE, NOT_DONE), 75),
        ((DONE, DONE, DONE, DONE), 100),
    ],
)
def test_progress_percentage_counts_done_weeks(flags, expected: int) -> None:
    assert metrics.progress_percentage(_progress(*flags)) == expected


def test_round_half_up_rounds_halves_away_from_even() -> None:
    assert metrics.round_half_up(62.5) == 63
    assert metrics.round_half_up(2.5) == 3
    assert metrics.round_half_up(66.6) == 67
    assert metrics.round_half_up(66.4) == 66


def test_average_grade_ignores_ungraded_submissions() -> None:
    assert metrics.average_grade([80, 60, None]) == 70


def test_average_grade_is_zero_without_grades() -> None:
    assert metrics.average_grade([]) == 0
    assert metrics.average_grade([None, None]) == 0


def test_submission_rate_counts_only_submitted() -> None:
    statuses = [
        SubmissionStatus.SUBMITTED,
        SubmissionStatus.SUBMITTED,
        SubmissionStatus.DRAFT,
        SubmissionStatus.EMPTY,
    ]

    assert metrics.submission_rate(statuses) == 50


def test_submission_rate_is_zero_without_submissions() -> None:
    assert metrics.submission_rate([]) == 0


def test_average_progress_averages_row_percentages() -> None:
    rows = [
        _progress(DONE, DONE, NOT_DONE, NOT_DONE),
        _progress(DONE, DONE, DONE, DONE),
        _progress(DONE, NOT_DONE, NOT_DONE, NOT_DONE),
    ]

    # (50 + 100 + 25) / 3 = 58.33
    assert metrics.average_progress(rows) == 58
    assert metrics.average_progress([]) == 0


@pytest.mark.parametrize(
    ('interval', 'expected'),
    [
        ('day', date(2026, 3, 12)),
        ('week', date(2026, 3, 9)),
        ('month', date(2026, 3, 1)),
    ],
)
def test_bucket_start_truncates_to_interval(interval: str, expected: date) -> None:
    # 2026-03-12 is a Thursday
    assert metrics.bucket_start(datetime(2026, 3, 12, 15, 30), interval) == expected


def test_bucket_start_rejects_unknown_interval() -> None:
    with pytest.raises(ValueError):
        metrics.bucket_start(datetime(2026, 3, 12), 'year')
