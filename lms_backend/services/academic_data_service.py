from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from lms_backend.core.choices import Role
from lms_backend.core.errors import not_found
from lms_backend.models.assignment import Assignment
from lms_backend.models.course import Course
from lms_backend.models.progress import StudentProgress
from lms_backend.models.submission import StudentAssignment
from lms_backend.models.teacher import Teacher
from lms_backend.models.unit import Unit
from lms_backend.models.user import User


class AcademicDataService:
    """Reference data (courses, units, assignments, staff) in the shapes the dashboard reads."""

    def __init__(self, db: Session):
        self.db = db

    def _courses(self):
        return self.db.query(Course).options(selectinload(Course.units))

    def get_academic_data(self) -> dict:
        courses = self._courses().order_by(Course.code.asc()).all()
        units = self.db.query(Unit).order_by(Unit.code.asc()).all()
        assignments = self.db.query(Assignment).order_by(Assignment.deadline.asc()).all()
        teachers = (
            self.db.query(Teacher)
            .options(selectinload(Teacher.unit_links))
            .order_by(Teacher.first_name.asc())
            .all()
        )
        coordinators = (
            self.db.query(User)
            .filter(User.role == Role.COORDINATOR)
            .order_by(User.first_name.asc())
            .all()
        )
        return {
            'courses': courses,
            'units': units,
            'assignments': assignments,
            'teachers': teachers,
            'coordinators': coordinators,
        }

    def get_academic_summary(self) -> dict:
        def count(column, *criteria) -> int:
            return self.db.query(func.count(column)).filter(*criteria).scalar() or 0

        return {
            'course_count': count(Course.id),
            'unit_count': count(Unit.id),
            'assignment_count': count(Assignment.id),
            'student_count': count(User.id, User.role == Role.STUDENT),
            'teacher_count': count(Teacher.id),
        }

    def get_course_academic_data(self, course_code: str) -> dict:
        course = (
            self._courses()
            .options(selectinload(Course.units).selectinload(Unit.assignments))
            .filter(Course.code == course_code)
            .first()
        )
        if course is None:
            raise not_found('Course not found')

        students = (
            self.db.query(User)
            .filter(User.role == Role.STUDENT, User.course_code == course_code)
            .order_by(User.first_name.asc())
            .all()
        )
        # course_managed is a JSON list, so the membership test runs in Python
        coordinators = [
            coordinator
            for coordinator in self.db.query(User).filter(User.role == Role.COORDINATOR)
            if course_code in (coordinator.course_managed or [])
        ]

        return {
            'course': course,
            'students': students,
            'coordinators': coordinators,
            'units': list(course.units),
            'assignments': [assignment for unit in course.units for assignment in unit.assignments],
        }

    def get_unit_academic_data(self, unit_code: str) -> dict:
        unit = (
            self.db.query(Unit)
            .options(joinedload(Unit.course), selectinload(Unit.assignments))
            .filter(Unit.code == unit_code)
            .first()
        )
        if unit is None:
            raise not_found('Unit not found')

        students = (
            self.db.query(User)
            .filter(User.role == Role.STUDENT, User.course_code == unit.course_code)
            .order_by(User.first_name.asc())
            .all()
        )
        progress = (
            self.db.query(StudentProgress)
            .options(joinedload(StudentProgress.student))
            .filter(StudentProgress.unit_code == unit_code)
            .all()
        )
        submissions = (
            self.db.query(StudentAssignment)
            .options(joinedload(StudentAssignment.student), joinedload(StudentAssignment.assignment))
            .join(Assignment, StudentAssignment.assignment_id == Assignment.id)
            .filter(Assignment.unit_code == unit_code)
            .all()
        )

        return {
            'unit': unit,
            'students': students,
            'assignments': list(unit.assignments),
            'progress': progress,
            'submissions': submissions,
        }

    def get_student_academic_data(self, student_id: str) -> dict:
        student = self.db.query(User).filter(User.id == student_id, User.role == Role.STUDENT).first()
        if student is None or not student.course_code:
            raise not_found('Student not found or not enrolled in a course')

        course = (
            self._courses()
            .options(selectinload(Course.units).selectinload(Unit.assignments))
            .filter(Course.code == student.course_code)
            .first()
        )
        progress = (
            self.db.query(StudentProgress)
            .options(joinedload(StudentProgress.unit).joinedload(Unit.course))
            .filter(StudentProgress.student_id == student_id)
            .all()
        )
        submissions = (
            self.db.query(StudentAssignment)
            .options(joinedload(StudentAssignment.assignment).joinedload(Assignment.unit).joinedload(Unit.course))
            .filter(StudentAssignment.student_id == student_id)
            .all()
        )

        return {
            'student': student,
            'course': course,
            'units': list(course.units) if course else [],
            'progress': progress,
            'submissions': submissions,
        }
