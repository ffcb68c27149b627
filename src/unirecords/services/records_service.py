import logging
from typing import List, Optional, Tuple

from unirecords.core.gpa import GPAResult, calculate_gpa_result
from unirecords.core.grades import CourseGrade, StudentCategory
from unirecords.core.transcript import TranscriptRecord, build_transcript
from unirecords.models.entities import Course, Enrollment, Grade, Student, User
from unirecords.services.storage import Storage

logger = logging.getLogger(__name__)


class RecordsServiceError(Exception):
    pass


class NotFoundError(RecordsServiceError):
    pass


class PermissionDeniedError(RecordsServiceError):
    pass


class RecordsService:
    """Student-records use cases on top of ``Storage``.

    Admins may do anything. Any other user may only see and enroll the
    student record linked to their own account.
    """

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    @classmethod
    def from_settings(cls) -> "RecordsService":
        return cls(Storage.from_settings())

    def _require_admin(self, actor: User, action: str) -> None:
        if not actor.is_admin:
            logger.warning("User %s denied: %s", actor.id, action)
            raise PermissionDeniedError(f"Only admins can {action}")

    def _student_for(self, actor: User, student_id: int, action: str) -> Student:
        student = self.storage.get_student(student_id)
        if student is None:
            raise NotFoundError("Student not found")
        if not actor.is_admin and student.user_id != actor.id:
            logger.warning("User %s denied access to student %s: %s", actor.id, student_id, action)
            raise PermissionDeniedError(f"Cannot {action} of another student")
        return student

    # students

    def my_student(self, actor: User) -> Optional[Student]:
        return self.storage.get_student_by_user(actor.id)

    def list_students(self, actor: User) -> List[Student]:
        self._require_admin(actor, "view all students")
        return self.storage.list_students()

    def get_student(self, actor: User, student_id: int) -> Student:
        return self._student_for(actor, student_id, "view the profile")

    def create_student(
        self,
        actor: User,
        student_number: str,
        name: str,
        category: StudentCategory,
        enrollment_year: int,
        major: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Student:
        self._require_admin(actor, "create students")
        if user_id is not None and self.storage.get_user(user_id) is None:
            raise NotFoundError("User not found")
        student_id = self.storage.create_student(
            student_number=student_number,
            name=name,
            category=category,
            enrollment_year=enrollment_year,
            major=major,
            user_id=user_id,
        )
        logger.info("Admin %s created student %s", actor.id, student_number)
        return self.storage.get_student(student_id)

    def update_student(self, actor: User, student_id: int, **fields) -> Student:
        self._student_for(actor, student_id, "update the profile")
        if not actor.is_admin and ({"category", "user_id"} & set(fields)):
            raise PermissionDeniedError("Only admins can change the category or account link")
        self.storage.update_student(student_id, **fields)
        return self.storage.get_student(student_id)

    def delete_student(self, actor: User, student_id: int) -> None:
        self._require_admin(actor, "delete students")
        if self.storage.get_student(student_id) is None:
            raise NotFoundError("Student not found")
        self.storage.delete_student(student_id)
        logger.info("Admin %s deleted student %s", actor.id, student_id)

    # courses

    def list_courses(self, actor: User) -> List[Course]:
        return self.storage.list_courses()

    def get_course(self, actor: User, course_id: int) -> Course:
        course = self.storage.get_course(course_id)
        if course is None:
            raise NotFoundError("Course not found")
        return course

    def create_course(
        self,
        actor: User,
        course_code: str,
        course_name: str,
        credits: int,
        description: Optional[str] = None,
    ) -> Course:
        self._require_admin(actor, "create courses")
        course_id = self.storage.create_course(course_code, course_name, credits, description)
        logger.info("Admin %s created course %s", actor.id, course_code)
        return self.storage.get_course(course_id)

    # enrollments

    def list_enrollments(self, actor: User, student_id: int) -> List[Tuple[Enrollment, Course]]:
        self._student_for(actor, student_id, "view the enrollments")
        return self.storage.list_enrollments(student_id)

    def enroll(self, actor: User, student_id: int, course_id: int) -> Enrollment:
        self._student_for(actor, student_id, "change the enrollments")
        self.get_course(actor, course_id)
        enrollment_id = self.storage.enroll_student(student_id, course_id)
        return self.storage.get_enrollment(enrollment_id)

    def unenroll(self, actor: User, enrollment_id: int) -> None:
        enrollment = self.storage.get_enrollment(enrollment_id)
        if enrollment is None:
            raise NotFoundError("Enrollment not found")
        self._student_for(actor, enrollment.student_id, "change the enrollments")
        self.storage.unenroll(enrollment_id)

    # grades

    def list_grades(self, actor: User, student_id: int) -> List[Tuple[Grade, Course]]:
        self._student_for(actor, student_id, "view the grades")
        return self.storage.list_grades(student_id)

    def set_grade(self, actor: User, enrollment_id: int, grade: int) -> Grade:
        self._require_admin(actor, "set grades")
        if self.storage.get_enrollment(enrollment_id) is None:
            raise NotFoundError("Enrollment not found")
        result = self.storage.set_grade(enrollment_id, grade)
        logger.info("Admin %s set grade %s on enrollment %s", actor.id, grade, enrollment_id)
        return result

    def calculate_gpa(self, actor: User, student_id: int) -> GPAResult:
        student = self._student_for(actor, student_id, "view the GPA")
        course_grades = [
            CourseGrade(row.percentage_grade, row.course_credits)
            for row in self.storage.transcript_rows(student_id)
        ]
        return calculate_gpa_result(student.category, course_grades)

    def transcript(self, actor: User, student_id: int) -> TranscriptRecord:
        student = self._student_for(actor, student_id, "view the transcript")
        return build_transcript(student.summary(), self.storage.transcript_rows(student_id))
