"""Arithmetic shared by progress, student and analytics views.

Every percentage or average is rounded half-up to a whole number and an empty
input yields 0.
"""

import math
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from lms_backend.core.choices import MaterialStatus, SubmissionStatus

WEEKS_PER_UNIT = 4
FAILING_GRADE = 60

TREND_PERIOD_DAYS = {
    'week': 7,
    'month': 30,
    'quarter': 90,
}
TREND_INTERVALS = ('day', 'week', 'month')


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def completed_weeks(progress) -> int:
    return sum(1 for flag in progress.week_flags if flag == MaterialStatus.DONE)


def progress_percentage(progress) -> int:
    return round_half_up(completed_weeks(progress) / WEEKS_PER_UNIT * 100)


def average_progress(progress_rows: Iterable) -> int:
    percentages = [completed_weeks(row) / WEEKS_PER_UNIT * 100 for row in progress_rows]
    if not percentages:
        return 0
    return round_half_up(sum(percentages) / len(percentages))


def average_grade(grades: Iterable[int | None]) -> int:
    graded = [grade for grade in grades if grade is not None]
    if not graded:
        return 0
    return round_half_up(sum(graded) / len(graded))


def submission_rate(statuses: Iterable[SubmissionStatus]) -> int:
    statuses = list(statuses)
    if not statuses:
        return 0
    submitted = sum(1 for value in statuses if value == SubmissionStatus.SUBMITTED)
    return round_half_up(submitted / len(statuses) * 100)


def bucket_start(moment: datetime, interval: str) -> date:
    day = moment.date()
    if interval == 'day':
        return day
    if interval == 'week':
        return day - timedelta(days=day.weekday())
    if interval == 'month':
        return day.replace(day=1)
    raise ValueError(f'Unsupported trend interval: {interval}')
