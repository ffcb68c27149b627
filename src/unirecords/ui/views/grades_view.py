from typing import Callable
import flet as ft

from unirecords.core.grades import InvalidGradeInput, gpa_scale_label
from unirecords.services.records_service import RecordsService, RecordsServiceError
from unirecords.services.storage import StorageError
from unirecords.state.app_state import AppState


def build_grades_view(
    page: ft.Page,
    app_state: AppState,
    service: RecordsService,
    on_back: Callable[[], None],
) -> ft.View:
    user = app_state.session.user

    student = ft.Dropdown(width=360, label="Student")
    enrollment = ft.Dropdown(width=360, label="Enrolled course")
    grade_field = ft.TextField(label="Grade (0-100)", width=200)
    status = ft.Text(color=ft.Colors.RED_400)
    grades_list = ft.Column(spacing=8)

    def set_status(message: str, is_error: bool = True) -> None:
        status.value = message
        status.color = ft.Colors.RED_400 if is_error else ft.Colors.GREEN_400

    def refresh_grades() -> None:
        grades_list.controls.clear()
        if not student.value:
            return
        rows = service.list_grades(user, int(student.value))
        if not rows:
            grades_list.controls.append(ft.Text("No grades recorded."))
        for grade, course in rows:
            grades_list.controls.append(
                ft.Text(f"{course.course_code}: {grade.grade}% ({grade.gpa_scale}), {course.credits} credits")
            )

    def on_student_change(_):
        enrollment.value = None
        enrollment.options = [
            ft.dropdown.Option(str(e.id), f"{c.course_code} - {c.course_name}")
            for e, c in service.list_enrollments(user, int(student.value))
        ]
        refresh_grades()
        page.update()

    def on_save(_):
        if not enrollment.value:
            set_status("Select an enrolled course first.")
            page.update()
            return
        try:
            value = int((grade_field.value or "").strip())
        except ValueError:
            set_status("Grade must be a whole number.")
            page.update()
            return
        try:
            saved = service.set_grade(user, int(enrollment.value), value)
            set_status(f"Saved {saved.grade}% (scale {gpa_scale_label(saved.grade)}).", is_error=False)
            refresh_grades()
        except InvalidGradeInput as exc:
            set_status(str(exc))
        except (RecordsServiceError, StorageError) as exc:
            set_status(f"Failed to save grade: {exc}")
        page.update()

    student.on_change = on_student_change
    student.options = [
        ft.dropdown.Option(str(s.id), f"{s.student_number} - {s.name}") for s in service.list_students(user)
    ]

    return ft.View(
        route="/grades",
        controls=[
            ft.AppBar(title=ft.Text("UniRecords - Grade Entry")),
            ft.Container(
                padding=20,
                content=ft.Column(
                    scroll=ft.ScrollMode.AUTO,
                    controls=[
                        ft.Row(controls=[ft.Button("Back to Transcripts", on_click=lambda _: on_back())]),
                        ft.Text("Grade Entry", size=22, weight=ft.FontWeight.BOLD),
                        student,
                        enrollment,
                        grade_field,
                        ft.Button("Save Grade", on_click=on_save),
                        status,
                        ft.Divider(),
                        ft.Text("Recorded Grades", size=20, weight=ft.FontWeight.BOLD),
                        grades_list,
                    ],
                ),
            ),
        ],
    )
