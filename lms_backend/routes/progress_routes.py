from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from lms_backend.auth.dependencies import ensure_self_or_coordinator, get_current_user, require_coordinator
from lms_backend.core.choices import MaterialStatus
from lms_backend.database import get_db
from lms_backend.models.user import User
from lms_backend.schemas.common import Envelope, ok
from lms_backend.schemas.progress import ProgressSummaryRow, ProgressWithStudent, ProgressWithUnit
from lms_backend.services.progress_service import ProgressService

router = APIRouter(tags=['student-progress'])


class CreateProgressRequest(BaseModel):
    student_id: str = Field(min_length=1)
    unit_code: str = Field(min_length=1)


class UpdateProgressRequest(BaseModel):
    week1_material: MaterialStatus | None = None
    week2_material: MaterialStatus | None = None
    week3_material: MaterialStatus | None = None
    week4_material: MaterialStatus | None = None
    updated_by: str | None = None


class PercentageResponse(BaseModel):
    percentage: int


class InitializeResponse(BaseModel):
    message: str
    records_created: int


@router.get('/student/{student_id}', response_model=Envelope[list[ProgressWithUnit]])
def get_student_progress(
    student_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_self_or_coordinator(current_user, student_id)
    rows = ProgressService(db).get_student_progress(student_id)
    return ok([ProgressWithUnit.model_validate(row) for row in rows])


@router.get('/student/{student_id}/unit/{unit_code}', response_model=Envelope[ProgressWithUnit])
def get_student_unit_progress(
    student_id: str,
    unit_code: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_self_or_coordinator(current_user, student_id)
    progress = ProgressService(db).get_student_unit_progress(student_id, unit_code)
    return ok(ProgressWithUnit.model_validate(progress))


@router.get('/student/{student_id}/unit/{unit_code}/percentage', response_model=Envelope[PercentageResponse])
def get_progress_percentage(
    student_id: str,
    unit_code: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_self_or_coordinator(current_user, student_id)
    percentage = ProgressService(db).calculate_progress_percentage(student_id, unit_code)
    return ok(PercentageResponse(percentage=percentage))


@router.get(
    '/unit/{unit_code}',
    response_model=Envelope[list[ProgressSummaryRow]],
    dependencies=[Depends(require_coordinator)],
)
def get_unit_progress_summary(unit_code: str, db: Session = Depends(get_db)):
    summary = ProgressService(db).get_unit_progress_summary(unit_code)
    return ok(
        [
            ProgressSummaryRow(
                **ProgressWithStudent.model_validate(entry['progress']).model_dump(),
                completed_weeks=entry['completed_weeks'],
                progress_percentage=entry['progress_percentage'],
            )
            for entry in summary
        ]
    )


@router.post('', response_model=Envelope[ProgressWithUnit], status_code=status.HTTP_201_CREATED)
def create_progress(
    data: CreateProgressRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_self_or_coordinator(current_user, data.student_id)
    progress = ProgressService(db).create_progress(data.student_id, data.unit_code)
    return ok(ProgressWithUnit.model_validate(progress))


@router.put('/student/{student_id}/unit/{unit_code}', response_model=Envelope[ProgressWithUnit])
def update_progress(
    student_id: str,
    unit_code: str,
    data: UpdateProgressRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_self_or_coordinator(current_user, student_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    updated_by = changes.pop('updated_by', None) or current_user.id
    progress = ProgressService(db).update_progress(student_id, unit_code, changes, updated_by=updated_by)
    return ok(ProgressWithUnit.model_validate(progress))


@router.post(
    '/unit/{unit_code}/initialize',
    response_model=Envelope[InitializeResponse],
    dependencies=[Depends(require_coordinator)],
)
def initialize_unit_progress(unit_code: str, db: Session = Depends(get_db)):
    return ok(InitializeResponse(**ProgressService(db).initialize_unit_progress(unit_code)))
