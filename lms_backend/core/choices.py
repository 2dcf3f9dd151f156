import enum


class Role(str, enum.Enum):
    STUDENT = 'STUDENT'
    COORDINATOR = 'COORDINATOR'


class UserType(str, enum.Enum):
    STUDENT = 'student'
    COORDINATOR = 'coordinator'

    @property
    def role(self) -> Role:
        return Role.STUDENT if self is UserType.STUDENT else Role.COORDINATOR


class MaterialStatus(str, enum.Enum):
    DONE = 'DONE'
    NOT_DONE = 'NOT_DONE'


class AssignmentStatus(str, enum.Enum):
    OPEN = 'OPEN'
    CLOSED = 'CLOSED'


class SubmissionStatus(str, enum.Enum):
    EMPTY = 'EMPTY'
    DRAFT = 'DRAFT'
    SUBMITTED = 'SUBMITTED'
    UNSUBMITTED = 'UNSUBMITTED'
