from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Tuple

from unirecords.core.gpa import calculate_student_gpa
from unirecords.core.grades import CourseGrade, StudentCategory, gpa_scale_label


@dataclass(frozen=True)
class TranscriptRow:
    """One grade joined with its course, as handed over by storage."""

    course_code: str
    course_name: str
    percentage_grade: int
    course_credits: int
    gpa_scale_label: Optional[str] = None


@dataclass(frozen=True)
class StudentSummary:
    id: int
    student_number: str
    name: str
    category: StudentCategory
    major: Optional[str] = None
    enrollment_year: Optional[int] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "studentId": self.student_number,
            "name": self.name,
            "type": self.category.value,
            "major": self.major,
            "enrollmentYear": self.enrollment_year,
        }


@dataclass(frozen=True)
class TranscriptCourse:
    course_code: str
    course_name: str
    credits: int
    grade: int
    gpa_scale_label: str

    def as_dict(self) -> dict:
        return {
            "courseCode": self.course_code,
            "courseName": self.course_name,
            "credits": self.credits,
            "grade": self.grade,
            "gpaScale": self.gpa_scale_label,
        }


@dataclass(frozen=True)
class TranscriptRecord:
    student: StudentSummary
    courses: Tuple[TranscriptCourse, ...]
    gpa: Decimal
    total_credits: int
    calculation_method: str

    def as_dict(self) -> dict:
        return {
            "student": self.student.as_dict(),
            "courses": [course.as_dict() for course in self.courses],
            "gpa": float(self.gpa),
            "totalCredits": self.total_credits,
            "calculationMethod": self.calculation_method,
        }


def build_transcript(student: StudentSummary, rows: Iterable[TranscriptRow]) -> TranscriptRecord:
    """Assemble a student's transcript from their graded course rows.

    Each listed course carries the scale value of its own percentage; a label
    already stored on the row is ignored so the listing always matches
    ``GPA_SCALE``. The overall GPA uses the method of ``student.category``.
    Raises InvalidGradeInput if any row is outside the valid grade/credit range.
    """
    rows = list(rows)
    category = StudentCategory.parse(student.category)
    course_grades = [CourseGrade(row.percentage_grade, row.course_credits) for row in rows]

    courses = tuple(
        TranscriptCourse(
            course_code=row.course_code,
            course_name=row.course_name,
            credits=row.course_credits,
            grade=row.percentage_grade,
            gpa_scale_label=gpa_scale_label(row.percentage_grade),
        )
        for row in rows
    )

    return TranscriptRecord(
        student=student,
        courses=courses,
        gpa=calculate_student_gpa(category, course_grades),
        total_credits=sum(c.credits for c in course_grades),
        calculation_method=category.calculation_method,
    )
