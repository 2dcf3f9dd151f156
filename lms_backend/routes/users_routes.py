from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from lms_backend.auth.dependencies import get_current_user
from lms_backend.core.choices import Role
from lms_backend.database import get_db
from lms_backend.models.user import User
from lms_backend.schemas.common import Envelope, ok
from lms_backend.schemas.progress import ProgressWithUnit
from lms_backend.schemas.submission import SubmissionWithAssignment
from lms_backend.schemas.user import UserResponse
from lms_backend.services.progress_service import ProgressService
from lms_backend.services.submission_service import SubmissionService

router = APIRouter(tags=['users'])


class CurrentUserResponse(BaseModel):
    user: UserResponse
    user_type: str
    assignments: list[SubmissionWithAssignment] | None = None
    progress: list[ProgressWithUnit] | None = None


class UpdateProfileRequest(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    title: str | None = None

    @field_validator('first_name')
    @classmethod
    def validate_first_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError('First name cannot be blank.')
        return normalized


@router.get('/me', response_model=Envelope[CurrentUserResponse])
def get_current_user_data(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if current_user.role != Role.STUDENT:
        return ok(CurrentUserResponse(user=UserResponse.model_validate(current_user), user_type='coordinator'))

    submissions = SubmissionService(db).get_student_submissions(current_user.id)
    progress = ProgressService(db).get_student_progress(current_user.id)
    return ok(
        CurrentUserResponse(
            user=UserResponse.model_validate(current_user),
            user_type='student',
            assignments=[SubmissionWithAssignment.model_validate(row) for row in submissions],
            progress=[ProgressWithUnit.model_validate(row) for row in progress],
        )
    )


@router.put('/profile', response_model=Envelope[UserResponse])
def update_profile(
    data: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # id, email, password and role are never writable through the profile
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return ok(UserResponse.model_validate(current_user))
