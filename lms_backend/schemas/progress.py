from datetime import datetime

from lms_backend.core.choices import MaterialStatus
from lms_backend.schemas.academic import UnitWithCourse
from lms_backend.schemas.common import ORMModel
from lms_backend.schemas.user import PersonRef


class ProgressResponse(ORMModel):
    id: int
    student_id: str
    unit_code: str
    week1_material: MaterialStatus
    week2_material: MaterialStatus
    week3_material: MaterialStatus
    week4_material: MaterialStatus
    last_updated: datetime | None = None
    updated_by: str | None = None


class ProgressWithUnit(ProgressResponse):
    unit: UnitWithCourse


class ProgressWithStudent(ProgressResponse):
    student: PersonRef


class ProgressSummaryRow(ProgressWithStudent):
    completed_weeks: int
    progress_percentage: int
