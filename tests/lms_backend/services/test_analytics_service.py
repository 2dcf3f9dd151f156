from datetime import datetime, timezone

import pytest
from fastapi import HTTPException

from lms_backend.models.submission import StudentAssignment
from lms_backend.services.analytics_service import AnalyticsService


def test_dashboard_metrics_cover_all_rows(db, seeded) -> None:
    assert AnalyticsService(db).get_dashboard_metrics() == {
        'student_count': 2,
        'teacher_count': 1,
        'course_count': 2,
        'avg_progress': 50,
        'avg_grade': 65,
        # 2 of 3 submitted
        'submission_rate': 67,
    }


def test_course_metrics_are_scoped_to_course_units(db, seeded) -> None:
    result = AnalyticsService(db).get_course_metrics('CS')

    assert result == {
        'course_code': 'CS',
        'student_count': 2,
        'teacher_count': 1,
        'assignment_count': 3,
        'avg_progress': 50,
        'avg_grade': 65,
        'submission_rate': 67,
        'failed_assignments': 1,
    }


def test_course_metrics_for_empty_course_are_zero(db, seeded) -> None:
    result = AnalyticsService(db).get_course_metrics('IT')

    assert result['student_count'] == 0
    assert result['assignment_count'] == 0
    assert result['avg_progress'] == 0
    assert result['avg_grade'] == 0
    assert result['submission_rate'] == 0


def test_unit_metrics_are_scoped_to_one_unit(db, seeded) -> None:
    result = AnalyticsService(db).get_unit_metrics('CS102')

    assert result['unit_code'] == 'CS102'
    assert result['student_count'] == 2
    assert result['teacher_count'] == 0
    assert result['assignment_count'] == 1
    assert result['avg_grade'] == 0
    assert result['failed_assignments'] == 0


@pytest.mark.parametrize('method', ['get_course_metrics', 'get_unit_metrics', 'get_student_analytics'])
def test_scoped_metrics_reject_missing_parent(db, seeded, method: str) -> None:
    with pytest.raises(HTTPException) as exception_info:
        getattr(AnalyticsService(db), method)('NOPE')

    assert exception_info.value.status_code == 404


def test_student_analytics_summarises_one_student(db, seeded) -> None:
    result = AnalyticsService(db).get_student_analytics(seeded.student_id)

    assert result['student'].id == seeded.student_id
    assert result['metrics'] == {
        'total_assignments': 2,
        'submitted_assignments': 1,
        'submission_rate': 50,
        'average_grade': 80,
        'overall_progress': 50,
        'graded_assignments': 1,
    }
    assert [row.assignment_id for row in result['submissions']] == ['a-1', 'a-2']
    assert [row.unit_code for row in result['progress']] == ['CS101']


@pytest.fixture
def submitted_history(db, seeded):
    submitted_at = {
        'sub-1': datetime(2026, 3, 10, 10, 0, tzinfo=timezone.utc),
        'sub-3': datetime(2026, 3, 11, 9, 0, tzinfo=timezone.utc),
        'sub-2': datetime(2026, 1, 2, 9, 0, tzinfo=timezone.utc),
    }
    for submission in db.query(StudentAssignment):
        submission.submitted_at = submitted_at[submission.submission_id]
    db.commit()
    return datetime(2026, 3, 31, 12, 0, tzinfo=timezone.utc)


def test_trends_group_submissions_by_day(db, submitted_history) -> None:
    trends = AnalyticsService(db).get_trends(period='month', interval='day', now=submitted_history)

    assert trends == [
        {'date': '2026-03-10', 'submissions': 1, 'average_grade': 80},
        {'date': '2026-03-11', 'submissions': 1, 'average_grade': 50},
    ]


def test_trends_group_submissions_by_week(db, submitted_history) -> None:
    trends = AnalyticsService(db).get_trends(period='month', interval='week', now=submitted_history)

    assert trends == [{'date': '2026-03-09', 'submissions': 2, 'average_grade': 65}]


def test_trends_quarter_includes_older_submissions(db, submitted_history) -> None:
    trends = AnalyticsService(db).get_trends(period='quarter', interval='month', now=submitted_history)

    # the January submission is ungraded
    assert trends == [
        {'date': '2026-01-01', 'submissions': 1, 'average_grade': 0},
        {'date': '2026-03-01', 'submissions': 2, 'average_grade': 65},
    ]


def test_trends_week_period_excludes_older_submissions(db, submitted_history) -> None:
    assert AnalyticsService(db).get_trends(period='week', interval='day', now=submitted_history) == []


@pytest.mark.parametrize(('period', 'interval'), [('year', 'day'), ('month', 'hour')])
def test_trends_reject_unknown_period_or_interval(db, seeded, period: str, interval: str) -> None:
    with pytest.raises(ValueError):
        AnalyticsService(db).get_trends(period=period, interval=interval)
