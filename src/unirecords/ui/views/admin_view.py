from typing import Callable, Optional
import flet as ft

from unirecords.core.grades import StudentCategory
from unirecords.services.records_service import RecordsService, RecordsServiceError
from unirecords.services.storage import StorageError
from unirecords.state.app_state import AppState


def _to_int(value: Optional[str], label: str) -> int:
    try:
        return int((value or "").strip())
    except ValueError as exc:
        raise ValueError(f"{label} must be a whole number.") from exc


def build_admin_view(
    page: ft.Page,
    app_state: AppState,
    service: RecordsService,
    on_back: Callable[[], None],
) -> ft.View:
    user = app_state.session.user

    student_number = ft.TextField(label="Student ID", width=240, data="student_number")
    student_name = ft.TextField(label="Name", width=240, data="student_name")
    category = ft.Dropdown(
        width=240,
        label="Category",
        data="category",
        options=[ft.dropdown.Option(c.value, c.value.title()) for c in StudentCategory],
    )
    enrollment_year = ft.TextField(label="Enrollment year", width=160, data="enrollment_year")
    major = ft.TextField(label="Major", width=240, data="major")

    course_code = ft.TextField(label="Course code", width=160, data="course_code")
    course_name = ft.TextField(label="Course name", width=280, data="course_name")
    credits = ft.TextField(label="Credits", width=120, data="credits")

    status = ft.Text(color=ft.Colors.RED_400, data="status")
    student_list = ft.Column(spacing=4)
    course_list = ft.Column(spacing=4)

    def set_status(message: str, is_error: bool = True) -> None:
        status.value = message
        status.color = ft.Colors.RED_400 if is_error else ft.Colors.GREEN_400

    def refresh() -> None:
        student_list.controls = [
            ft.Text(f"{s.student_number} - {s.name} ({s.category.value}, {s.enrollment_year})")
            for s in service.list_students(user)
        ]
        course_list.controls = [
            ft.Text(f"{c.course_code} - {c.course_name} ({c.credits} credits)")
            for c in service.list_courses(user)
        ]

    def on_add_student(_):
        if not (student_number.value or "").strip() or not (student_name.value or "").strip() or not category.value:
            set_status("Student ID, name and category are required.")
            page.update()
            return
        try:
            created = service.create_student(
                user,
                student_number=student_number.value or "",
                name=student_name.value or "",
                category=StudentCategory.parse(category.value),
                enrollment_year=_to_int(enrollment_year.value, "Enrollment year"),
                major=(major.value or "").strip() or None,
            )
            set_status(f"Added student {created.student_number}.", is_error=False)
            refresh()
        except (ValueError, RecordsServiceError, StorageError) as exc:
            set_status(f"Could not add student: {exc}")
        page.update()

    def on_add_course(_):
        if not (course_code.value or "").strip() or not (course_name.value or "").strip():
            set_status("Course code and name are required.")
            page.update()
            return
        try:
            created = service.create_course(
                user,
                course_code=course_code.value or "",
                course_name=course_name.value or "",
                credits=_to_int(credits.value, "Credits"),
            )
            set_status(f"Added course {created.course_code}.", is_error=False)
            refresh()
        except (ValueError, RecordsServiceError, StorageError) as exc:
            set_status(f"Could not add course: {exc}")
        page.update()

    refresh()

    return ft.View(
        route="/admin",
        controls=[
            ft.AppBar(title=ft.Text("UniRecords - Manage Records")),
            ft.Container(
                padding=20,
                content=ft.Column(
                    scroll=ft.ScrollMode.AUTO,
                    controls=[
                        ft.Row(controls=[ft.Button("Back to Transcripts", on_click=lambda _: on_back())]),
                        status,
                        ft.Text("New Student", size=20, weight=ft.FontWeight.BOLD),
                        ft.Row(controls=[student_number, student_name, category]),
                        ft.Row(controls=[enrollment_year, major]),
                        ft.Button("Add Student", on_click=on_add_student, data="add_student"),
                        student_list,
                        ft.Divider(),
                        ft.Text("New Course", size=20, weight=ft.FontWeight.BOLD),
                        ft.Row(controls=[course_code, course_name, credits]),
                        ft.Button("Add Course", on_click=on_add_course, data="add_course"),
                        course_list,
                    ],
                ),
            ),
        ],
    )
