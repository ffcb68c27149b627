from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class InvalidGradeInput(ValueError):
    pass


class StudentCategory(str, Enum):
    ENGINEERING = "engineering"
    MANAGEMENT = "management"

    @classmethod
    def parse(cls, value: StudentCategory | str) -> StudentCategory:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            allowed = ", ".join(member.value for member in cls)
            raise InvalidGradeInput(f"Unsupported student category: {value!r}. Use {allowed}.") from exc

    @property
    def calculation_method(self) -> str:
        return CALCULATION_METHODS[self]


CALCULATION_METHODS: dict[StudentCategory, str] = {
    StudentCategory.ENGINEERING: "Simple Average",
    StudentCategory.MANAGEMENT: "Credit-Weighted Average",
}

# (lower bound inclusive, points), highest band first
GPA_SCALE: list[tuple[int, Decimal]] = [
    (90, Decimal("4.0")),
    (80, Decimal("3.0")),
    (70, Decimal("2.0")),
    (60, Decimal("1.0")),
    (0, Decimal("0.0")),
]

MIN_PERCENTAGE = 0
MAX_PERCENTAGE = 100
MIN_CREDITS = 1


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_percentage(percentage: int) -> int:
    if not _is_int(percentage):
        raise InvalidGradeInput(f"Grade must be a whole percentage, got {percentage!r}")
    if not MIN_PERCENTAGE <= percentage <= MAX_PERCENTAGE:
        raise InvalidGradeInput(
            f"Grade must be between {MIN_PERCENTAGE} and {MAX_PERCENTAGE}, got {percentage}"
        )
    return percentage


def validate_course_grade(grade: int, credits: int) -> None:
    validate_percentage(grade)
    if not _is_int(credits) or credits < MIN_CREDITS:
        raise InvalidGradeInput(f"Course credits must be a positive integer, got {credits!r}")


@dataclass(frozen=True)
class CourseGrade:
    grade: int
    credits: int

    def __post_init__(self) -> None:
        validate_course_grade(self.grade, self.credits)


def percentage_to_gpa(percentage: int) -> Decimal:
    validate_percentage(percentage)
    for lower, points in GPA_SCALE:
        if percentage >= lower:
            return points
    return GPA_SCALE[-1][1]


def gpa_scale_label(percentage: int) -> str:
    return f"{percentage_to_gpa(percentage):.2f}"
