from datetime import datetime

from lms_backend.schemas.common import ORMModel


class TeacherResponse(ORMModel):
    id: str
    first_name: str
    last_name: str | None = None
    email: str | None = None
    title: str | None = None
    units_taught: list[str] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None
