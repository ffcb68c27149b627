from __future__ import annotations

import hashlib
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from unirecords.config.settings import settings
from unirecords.core.grades import StudentCategory, gpa_scale_label, validate_percentage
from unirecords.core.transcript import TranscriptRow
from unirecords.models.entities import ROLE_ADMIN, ROLE_USER, Course, Enrollment, Grade, Student, User

logger = logging.getLogger(__name__)

SQLITE_MAX_INT = 2**63 - 1

STUDENT_FIELDS = ("user_id", "student_number", "name", "category", "enrollment_year", "major")


class StorageError(Exception):
    pass


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Storage:
    def __init__(self, db_path: str = "unirecords.db") -> None:
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._init_schema()

    @classmethod
    def from_settings(cls) -> "Storage":
        return cls(settings.database_path)

    def close(self) -> None:
        self.conn.close()

    def _init_schema(self) -> None:
        cur = self.conn.cursor()
        cur.executescript(
            """
            CREATE TABLE IF NOT EXISTS users (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              email TEXT UNIQUE NOT NULL,
              password_hash TEXT NOT NULL,
              name TEXT,
              role TEXT NOT NULL DEFAULT 'user' CHECK (role IN ('user', 'admin')),
              created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS students (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              user_id INTEGER,
              student_number TEXT UNIQUE NOT NULL,
              name TEXT NOT NULL,
              category TEXT NOT NULL CHECK (category IN ('engineering', 'management')),
              enrollment_year INTEGER NOT NULL,
              major TEXT,
              FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE SET NULL
            );

            CREATE TABLE IF NOT EXISTS courses (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              course_code TEXT UNIQUE NOT NULL,
              course_name TEXT NOT NULL,
              credits INTEGER NOT NULL CHECK (credits >= 1),
              description TEXT
            );

            CREATE TABLE IF NOT EXISTS enrollments (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              student_id INTEGER NOT NULL,
              course_id INTEGER NOT NULL,
              enrolled_at TEXT NOT NULL,
              UNIQUE(student_id, course_id),
              FOREIGN KEY(student_id) REFERENCES students(id) ON DELETE CASCADE,
              FOREIGN KEY(course_id) REFERENCES courses(id) ON DELETE CASCADE
            );

            CREATE TABLE IF NOT EXISTS grades (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              enrollment_id INTEGER UNIQUE NOT NULL,
              student_id INTEGER NOT NULL,
              course_id INTEGER NOT NULL,
              grade INTEGER NOT NULL CHECK (grade BETWEEN 0 AND 100),
              gpa_scale TEXT NOT NULL,
              updated_at TEXT NOT NULL,
              FOREIGN KEY(enrollment_id) REFERENCES enrollments(id) ON DELETE CASCADE,
              FOREIGN KEY(student_id) REFERENCES students(id) ON DELETE CASCADE,
              FOREIGN KEY(course_id) REFERENCES courses(id) ON DELETE CASCADE
            );
            """
        )
        self.conn.commit()

    def _write(self, sql: str, params: Sequence[Any]) -> int:
        try:
            cur = self.conn.execute(sql, params)
        except (sqlite3.IntegrityError, OverflowError) as exc:
            self.conn.rollback()
            raise StorageError(str(exc)) from exc
        self.conn.commit()
        return int(cur.lastrowid or 0)

    def _fetch_one(self, sql: str, params: Sequence[Any]) -> sqlite3.Row | None:
        try:
            return self.conn.execute(sql, params).fetchone()
        except OverflowError:
            # ids past the INTEGER range never match a row
            return None

    @staticmethod
    def _hash_password(password: str) -> str:
        return hashlib.sha256(password.encode("utf-8")).hexdigest()

    # users

    def create_user(self, email: str, password: str, name: str | None = None, role: str | None = None) -> int:
        email = email.lower().strip()
        if role is None:
            role = ROLE_ADMIN if settings.admin_email and email == settings.admin_email else ROLE_USER
        user_id = self._write(
            "INSERT INTO users(email, password_hash, name, role, created_at) VALUES(?,?,?,?,?)",
            (email, self._hash_password(password), name, role, _now()),
        )
        logger.debug("Created user %s (%s) with role %s", user_id, email, role)
        return user_id

    def login_user(self, email: str, password: str) -> int | None:
        cur = self.conn.cursor()
        cur.execute(
            "SELECT id, password_hash FROM users WHERE email=?",
            (email.lower().strip(),),
        )
        row = cur.fetchone()
        if not row:
            return None
        return int(row["id"]) if row["password_hash"] == self._hash_password(password) else None

    def get_user(self, user_id: int) -> User | None:
        row = self._fetch_one("SELECT * FROM users WHERE id=?", (user_id,))
        return _to_user(row) if row else None

    # students

    def create_student(
        self,
        student_number: str,
        name: str,
        category: StudentCategory | str,
        enrollment_year: int,
        major: str | None = None,
        user_id: int | None = None,
    ) -> int:
        category = StudentCategory.parse(category)
        student_id = self._write(
            """INSERT INTO students(user_id, student_number, name, category, enrollment_year, major)
               VALUES(?,?,?,?,?,?)""",
            (user_id, student_number.strip(), name.strip(), category.value, enrollment_year, major),
        )
        logger.debug("Created %s student %s (%s)", category.value, student_id, student_number)
        return student_id

    def get_student(self, student_id: int) -> Student | None:
        row = self._fetch_one("SELECT * FROM students WHERE id=?", (student_id,))
        return _to_student(row) if row else None

    def get_student_by_user(self, user_id: int) -> Student | None:
        row = self._fetch_one("SELECT * FROM students WHERE user_id=? ORDER BY id LIMIT 1", (user_id,))
        return _to_student(row) if row else None

    def list_students(self) -> list[Student]:
        cur = self.conn.execute("SELECT * FROM students ORDER BY student_number")
        return [_to_student(row) for row in cur.fetchall()]

    def update_student(self, student_id: int, **fields: Any) -> None:
        unknown = set(fields) - set(STUDENT_FIELDS)
        if unknown:
            raise StorageError(f"Unknown student fields: {', '.join(sorted(unknown))}")
        if not fields:
            return
        if "category" in fields:
            fields["category"] = StudentCategory.parse(fields["category"]).value
        assignments = ", ".join(f"{name}=?" for name in fields)
        self._write(
            f"UPDATE students SET {assignments} WHERE id=?",
            (*fields.values(), student_id),
        )
        logger.debug("Updated student %s: %s", student_id, ", ".join(fields))

    def delete_student(self, student_id: int) -> None:
        self._write("DELETE FROM students WHERE id=?", (student_id,))
        logger.debug("Deleted student %s", student_id)

    # courses

    def create_course(self, course_code: str, course_name: str, credits: int, description: str | None = None) -> int:
        course_id = self._write(
            "INSERT INTO courses(course_code, course_name, credits, description) VALUES(?,?,?,?)",
            (course_code.strip(), course_name.strip(), credits, description),
        )
        logger.debug("Created course %s (%s)", course_id, course_code)
        return course_id

    def get_course(self, course_id: int) -> Course | None:
        row = self._fetch_one("SELECT * FROM courses WHERE id=?", (course_id,))
        return _to_course(row) if row else None

    def list_courses(self) -> list[Course]:
        cur = self.conn.execute("SELECT * FROM courses ORDER BY course_code")
        return [_to_course(row) for row in cur.fetchall()]

    # enrollments

    def enroll_student(self, student_id: int, course_id: int) -> int:
        enrollment_id = self._write(
            "INSERT INTO enrollments(student_id, course_id, enrolled_at) VALUES(?,?,?)",
            (student_id, course_id, _now()),
        )
        logger.debug("Enrolled student %s in course %s", student_id, course_id)
        return enrollment_id

    def get_enrollment(self, enrollment_id: int) -> Enrollment | None:
        row = self._fetch_one("SELECT * FROM enrollments WHERE id=?", (enrollment_id,))
        return _to_enrollment(row) if row else None

    def list_enrollments(self, student_id: int) -> list[tuple[Enrollment, Course]]:
        cur = self.conn.execute(
            """SELECT e.id, e.student_id, e.course_id, e.enrolled_at,
                      c.course_code, c.course_name, c.credits, c.description
               FROM enrollments e JOIN courses c ON c.id=e.course_id
               WHERE e.student_id=?
               ORDER BY c.course_code""",
            (student_id,),
        )
        return [(_to_enrollment(row), _to_course(row, id_key="course_id")) for row in cur.fetchall()]

    def unenroll(self, enrollment_id: int) -> None:
        self._write("DELETE FROM enrollments WHERE id=?", (enrollment_id,))
        logger.debug("Removed enrollment %s", enrollment_id)

    # grades

    def set_grade(self, enrollment_id: int, grade: int) -> Grade:
        validate_percentage(grade)
        enrollment = self.get_enrollment(enrollment_id)
        if enrollment is None:
            raise StorageError(f"Enrollment {enrollment_id} does not exist")
        self._write(
            """INSERT INTO grades(enrollment_id, student_id, course_id, grade, gpa_scale, updated_at)
               VALUES(?,?,?,?,?,?)
               ON CONFLICT(enrollment_id) DO UPDATE SET
                   grade=excluded.grade,
                   gpa_scale=excluded.gpa_scale,
                   updated_at=excluded.updated_at""",
            (
                enrollment_id,
                enrollment.student_id,
                enrollment.course_id,
                grade,
                gpa_scale_label(grade),
                _now(),
            ),
        )
        logger.debug("Set grade %s on enrollment %s", grade, enrollment_id)
        row = self.conn.execute("SELECT * FROM grades WHERE enrollment_id=?", (enrollment_id,)).fetchone()
        return _to_grade(row)

    def list_grades(self, student_id: int) -> list[tuple[Grade, Course]]:
        cur = self.conn.execute(
            """SELECT g.*, c.course_code, c.course_name, c.credits, c.description
               FROM grades g JOIN courses c ON c.id=g.course_id
               WHERE g.student_id=?
               ORDER BY c.course_code""",
            (student_id,),
        )
        return [(_to_grade(row), _to_course(row, id_key="course_id")) for row in cur.fetchall()]

    def transcript_rows(self, student_id: int) -> list[TranscriptRow]:
        return [
            TranscriptRow(
                course_code=course.course_code,
                course_name=course.course_name,
                percentage_grade=grade.grade,
                course_credits=course.credits,
                gpa_scale_label=grade.gpa_scale,
            )
            for grade, course in self.list_grades(student_id)
        ]


def _to_user(row: sqlite3.Row) -> User:
    return User(
        id=int(row["id"]),
        email=row["email"],
        password_hash=row["password_hash"],
        name=row["name"],
        role=row["role"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


def _to_student(row: sqlite3.Row) -> Student:
    return Student(
        id=int(row["id"]),
        user_id=row["user_id"],
        student_number=row["student_number"],
        name=row["name"],
        category=StudentCategory(row["category"]),
        enrollment_year=int(row["enrollment_year"]),
        major=row["major"],
    )


def _to_course(row: sqlite3.Row, id_key: str = "id") -> Course:
    return Course(
        id=int(row[id_key]),
        course_code=row["course_code"],
        course_name=row["course_name"],
        credits=int(row["credits"]),
        description=row["description"],
    )


def _to_enrollment(row: sqlite3.Row) -> Enrollment:
    return Enrollment(
        id=int(row["id"]),
        student_id=int(row["student_id"]),
        course_id=int(row["course_id"]),
        enrolled_at=datetime.fromisoformat(row["enrolled_at"]),
    )


def _to_grade(row: sqlite3.Row) -> Grade:
    return Grade(
        id=int(row["id"]),
        enrollment_id=int(row["enrollment_id"]),
        student_id=int(row["student_id"]),
        course_id=int(row["course_id"]),
        grade=int(row["grade"]),
        gpa_scale=row["gpa_scale"],
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )
