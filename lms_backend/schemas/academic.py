from datetime import datetime

from lms_backend.core.choices import AssignmentStatus
from lms_backend.schemas.common import ORMModel


class CourseResponse(ORMModel):
    id: int
    code: str
    name: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UnitResponse(ORMModel):
    id: int
    code: str
    name: str
    description: str | None = None
    course_code: str
    current_week: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AssignmentResponse(ORMModel):
    id: str
    name: str
    unit_code: str
    deadline: datetime
    published_at: datetime
    status: AssignmentStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UnitWithCourse(UnitResponse):
    course: CourseResponse


class UnitWithAssignments(UnitResponse):
    assignments: list[AssignmentResponse] = []


class UnitDetail(UnitWithCourse):
    assignments: list[AssignmentResponse] = []


class CourseDetail(CourseResponse):
    units: list[UnitWithAssignments] = []


class AssignmentDetail(AssignmentResponse):
    unit: UnitWithCourse
