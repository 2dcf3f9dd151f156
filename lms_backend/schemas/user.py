from datetime import datetime

from lms_backend.core.choices import Role
from lms_backend.schemas.common import ORMModel


class PersonRef(ORMModel):
    id: str
    first_name: str
    last_name: str | None = None
    email: str | None = None


class StudentResponse(PersonRef):
    course_code: str | None = None
    year: int | None = None
    created_at: datetime | None = None


class UserResponse(StudentResponse):
    role: Role
    title: str | None = None
    access_level: str | None = None
    course_managed: list[str] | None = None


class CoordinatorResponse(PersonRef):
    title: str | None = None
    access_level: str | None = None
    course_managed: list[str] | None = None
