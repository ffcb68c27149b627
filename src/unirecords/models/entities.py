from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from unirecords.core.grades import StudentCategory
from unirecords.core.transcript import StudentSummary

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass
class User:
    id: int
    email: str
    password_hash: str
    name: str | None
    role: str
    created_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


@dataclass
class Student:
    id: int
    user_id: int | None
    student_number: str
    name: str
    category: StudentCategory
    enrollment_year: int
    major: str | None

    def summary(self) -> StudentSummary:
        return StudentSummary(
            id=self.id,
            student_number=self.student_number,
            name=self.name,
            category=self.category,
            major=self.major,
            enrollment_year=self.enrollment_year,
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "studentId": self.student_number,
            "name": self.name,
            "type": self.category.value,
            "enrollmentYear": self.enrollment_year,
            "major": self.major,
        }


@dataclass
class Course:
    id: int
    course_code: str
    course_name: str
    credits: int
    description: str | None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "courseCode": self.course_code,
            "courseName": self.course_name,
            "credits": self.credits,
            "description": self.description,
        }


@dataclass
class Enrollment:
    id: int
    student_id: int
    course_id: int
    enrolled_at: datetime

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "studentId": self.student_id,
            "courseId": self.course_id,
            "enrollmentDate": self.enrolled_at.isoformat(),
        }


@dataclass
class Grade:
    id: int
    enrollment_id: int
    student_id: int
    course_id: int
    grade: int
    gpa_scale: str
    updated_at: datetime

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "enrollmentId": self.enrollment_id,
            "studentId": self.student_id,
            "courseId": self.course_id,
            "grade": self.grade,
            "gpaScale": self.gpa_scale,
            "updatedAt": self.updated_at.isoformat(),
        }
