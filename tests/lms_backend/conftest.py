import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('JWT_SECRET', 'test-secret-that-is-at-least-32-characters-long')

from fastapi.testclient import TestClient  # noqa: E402

from lms_backend.auth import jwt_handler  # noqa: E402
from lms_backend.auth.passwords import hash_password  # noqa: E402
from lms_backend.core.choices import MaterialStatus, Role, SubmissionStatus  # noqa: E402
from lms_backend.database import Database  # noqa: E402
from lms_backend.main import create_app  # noqa: E402
from lms_backend.models.assignment import Assignment  # noqa: E402
from lms_backend.models.course import Course  # noqa: E402
from lms_backend.models.progress import StudentProgress  # noqa: E402
from lms_backend.models.submission import StudentAssignment  # noqa: E402
from lms_backend.models.teacher import Teacher, UnitTeacher  # noqa: E402
from lms_backend.models.unit import Unit  # noqa: E402
from lms_backend.models.user import User  # noqa: E402

PASSWORD = 'password123'
# hashed once; bcrypt is deliberately slow
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def database():
    database = Database('sqlite:///:memory:')
    database.create_all()
    try:
        yield database
    finally:
        database.drop_all()
        database.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(database):
    with TestClient(create_app(database)) as test_client:
        yield test_client


@pytest.fixture
def seeded(db):
    """Two courses, three units, two students, one coordinator and one teacher."""
    db.add_all([Course(code='CS', name='Computer Science'), Course(code='IT', name='Information Technology')])
    db.add_all(
        [
            Unit(code='CS101', name='Programming I', course_code='CS'),
            Unit(code='CS102', name='Databases', course_code='CS'),
            Unit(code='IT101', name='Networks', course_code='IT'),
        ]
    )
    db.add_all(
        [
            User(
                id='stu-1',
                first_name='Alice',
                last_name='Nguyen',
                email='alice@example.edu',
                hashed_password=PASSWORD_HASH,
                role=Role.STUDENT,
                course_code='CS',
                year=1,
            ),
            User(
                id='stu-2',
                first_name='Bob',
                last_name='Smith',
                email='bob@example.edu',
                hashed_password=PASSWORD_HASH,
                role=Role.STUDENT,
                course_code='CS',
                year=2,
            ),
            User(
                id='coord-1',
                first_name='Carol',
                last_name='Jones',
                email='carol@example.edu',
                hashed_password=PASSWORD_HASH,
                role=Role.COORDINATOR,
                title='Course Coordinator',
                course_managed=['CS'],
            ),
        ]
    )
    db.add(Teacher(id='t-1', first_name='Dan', last_name='Lee', email='dan@example.edu'))
    db.flush()
    db.add(UnitTeacher(teacher_id='t-1', unit_code='CS101'))

    deadline = datetime.now(timezone.utc) + timedelta(days=7)
    db.add_all(
        [
            Assignment(id='a-1', name='Loops', unit_code='CS101', deadline=deadline),
            Assignment(id='a-2', name='Functions', unit_code='CS101', deadline=deadline + timedelta(days=7)),
            Assignment(id='a-3', name='Schemas', unit_code='CS102', deadline=deadline),
        ]
    )
    db.flush()
    db.add_all(
        [
            StudentAssignment(
                submission_id='sub-1',
                student_id='stu-1',
                assignment_id='a-1',
                submission_status=SubmissionStatus.SUBMITTED,
                grade=80,
            ),
            StudentAssignment(
                submission_id='sub-2',
                student_id='stu-1',
                assignment_id='a-2',
                submission_status=SubmissionStatus.DRAFT,
            ),
            StudentAssignment(
                submission_id='sub-3',
                student_id='stu-2',
                assignment_id='a-1',
                submission_status=SubmissionStatus.SUBMITTED,
                grade=50,
            ),
            StudentProgress(
                student_id='stu-1',
                unit_code='CS101',
                week1_material=MaterialStatus.DONE,
                week2_material=MaterialStatus.DONE,
            ),
        ]
    )
    db.commit()
    return SimpleNamespace(student_id='stu-1', other_student_id='stu-2', coordinator_id='coord-1')


def auth_headers(user_id: str, role: Role) -> dict:
    token = jwt_handler.create_access_token({'sub': user_id, 'role': role.value})
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def student_headers(seeded) -> dict:
    return auth_headers(seeded.student_id, Role.STUDENT)


@pytest.fixture
def coordinator_headers(seeded) -> dict:
    return auth_headers(seeded.coordinator_id, Role.COORDINATOR)
