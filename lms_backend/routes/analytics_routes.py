from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from lms_backend.auth.dependencies import ensure_self_or_coordinator, get_current_user, require_coordinator
from lms_backend.database import get_db
from lms_backend.models.user import User
from lms_backend.schemas.common import Envelope, ok
from lms_backend.schemas.progress import ProgressWithUnit
from lms_backend.schemas.submission import SubmissionWithAssignment
from lms_backend.schemas.user import StudentResponse
from lms_backend.services.analytics_service import AnalyticsService

router = APIRouter(tags=['analytics'])


class DashboardMetrics(BaseModel):
    student_count: int
    teacher_count: int
    course_count: int
    avg_progress: int
    avg_grade: int
    submission_rate: int


class ScopedMetrics(BaseModel):
    student_count: int
    teacher_count: int
    assignment_count: int
    avg_progress: int
    avg_grade: int
    submission_rate: int
    failed_assignments: int


class CourseMetrics(ScopedMetrics):
    course_code: str


class UnitMetrics(ScopedMetrics):
    unit_code: str


class StudentMetrics(BaseModel):
    total_assignments: int
    submitted_assignments: int
    submission_rate: int
    average_grade: int
    overall_progress: int
    graded_assignments: int


class StudentAnalytics(BaseModel):
    student: StudentResponse
    metrics: StudentMetrics
    submissions: list[SubmissionWithAssignment]
    progress: list[ProgressWithUnit]


class TrendPoint(BaseModel):
    date: str
    submissions: int
    average_grade: int


@router.get('/overview', response_model=Envelope[DashboardMetrics], dependencies=[Depends(require_coordinator)])
def get_overview(db: Session = Depends(get_db)):
    return ok(DashboardMetrics(**AnalyticsService(db).get_dashboard_metrics()))


@router.get(
    '/course/{course_code}',
    response_model=Envelope[CourseMetrics],
    dependencies=[Depends(require_coordinator)],
)
def get_course_analytics(course_code: str, db: Session = Depends(get_db)):
    return ok(CourseMetrics(**AnalyticsService(db).get_course_metrics(course_code)))


@router.get(
    '/unit/{unit_code}',
    response_model=Envelope[UnitMetrics],
    dependencies=[Depends(require_coordinator)],
)
def get_unit_analytics(unit_code: str, db: Session = Depends(get_db)):
    return ok(UnitMetrics(**AnalyticsService(db).get_unit_metrics(unit_code)))


@router.get('/student/{student_id}', response_model=Envelope[StudentAnalytics])
def get_student_analytics(
    student_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_self_or_coordinator(current_user, student_id)
    data = AnalyticsService(db).get_student_analytics(student_id)
    return ok(StudentAnalytics.model_validate(data, from_attributes=True))


@router.get('/trends', response_model=Envelope[list[TrendPoint]], dependencies=[Depends(require_coordinator)])
def get_trends(
    period: Literal['week', 'month', 'quarter'] = Query(default='month'),
    interval: Literal['day', 'week', 'month'] = Query(default='day'),
    db: Session = Depends(get_db),
):
    return ok([TrendPoint(**point) for point in AnalyticsService(db).get_trends(period=period, interval=interval)])
