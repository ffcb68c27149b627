from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Iterable

from unirecords.core.grades import CourseGrade, StudentCategory, percentage_to_gpa

TWO_PLACES = Decimal("0.01")
ZERO_GPA = Decimal("0.00")


def round_gpa(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def calculate_engineering_gpa(course_grades: Iterable[CourseGrade]) -> Decimal:
    """
    Simple average of the per-course grade points; credits play no part.
    """
    points = [percentage_to_gpa(c.grade) for c in course_grades]
    if not points:
        return ZERO_GPA
    return round_gpa(sum(points, Decimal(0)) / len(points))


def calculate_management_gpa(course_grades: Iterable[CourseGrade]) -> Decimal:
    """
    GPA = Σ(points * credits) / Σ(credits)
    """
    weighted = Decimal(0)
    total_credits = 0
    for c in course_grades:
        weighted += percentage_to_gpa(c.grade) * c.credits
        total_credits += c.credits
    if total_credits == 0:
        return ZERO_GPA
    return round_gpa(weighted / total_credits)


_CALCULATORS: Dict[StudentCategory, Callable[[Iterable[CourseGrade]], Decimal]] = {
    StudentCategory.ENGINEERING: calculate_engineering_gpa,
    StudentCategory.MANAGEMENT: calculate_management_gpa,
}


def calculate_student_gpa(category: StudentCategory, course_grades: Iterable[CourseGrade]) -> Decimal:
    return _CALCULATORS[StudentCategory.parse(category)](course_grades)


@dataclass(frozen=True)
class GPAResult:
    gpa: Decimal
    student_category: StudentCategory
    course_count: int
    total_credits: int

    def as_dict(self) -> dict:
        return {
            "gpa": float(self.gpa),
            "studentType": self.student_category.value,
            "courseCount": self.course_count,
            "totalCredits": self.total_credits,
        }


def calculate_gpa_result(category: StudentCategory, course_grades: Iterable[CourseGrade]) -> GPAResult:
    category = StudentCategory.parse(category)
    grades = list(course_grades)
    return GPAResult(
        gpa=calculate_student_gpa(category, grades),
        student_category=category,
        course_count=len(grades),
        total_credits=sum(c.credits for c in grades),
    )
