"""ORM models; importing the package registers every table on ``Base``."""

from lms_backend.models import assignment, course, progress, submission, teacher, unit, user  # noqa: F401
