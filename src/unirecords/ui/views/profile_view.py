from typing import Callable
import flet as ft

from unirecords.services.records_service import RecordsService, RecordsServiceError
from unirecords.services.storage import StorageError
from unirecords.state.app_state import AppState


def build_profile_view(
    page: ft.Page,
    app_state: AppState,
    service: RecordsService,
    on_back: Callable[[], None],
) -> ft.View:
    user = app_state.session.user
    student = service.my_student(user)

    profile_text = ft.Text(size=18, weight=ft.FontWeight.BOLD)
    gpa_text = ft.Text(data="gpa_summary")
    course = ft.Dropdown(width=360, label="Course", data="course")
    status = ft.Text(color=ft.Colors.RED_400, data="status")
    enrollment_list = ft.Column(spacing=6, data="enrollments")

    def set_status(message: str, is_error: bool = True) -> None:
        status.value = message
        status.color = ft.Colors.RED_400 if is_error else ft.Colors.GREEN_400

    def refresh() -> None:
        result = service.calculate_gpa(user, student.id)
        gpa_text.value = (
            f"GPA: {result.gpa:.2f} ({result.student_category.calculation_method}) | "
            f"Graded courses: {result.course_count} | Credits: {result.total_credits}"
        )
        enrolled = service.list_enrollments(user, student.id)
        enrolled_ids = {c.id for _, c in enrolled}
        enrollment_list.controls = [
            ft.Text(f"{c.course_code} - {c.course_name} ({c.credits} credits)") for _, c in enrolled
        ] or [ft.Text("Not enrolled in any course.")]
        course.options = [
            ft.dropdown.Option(str(c.id), f"{c.course_code} - {c.course_name}")
            for c in service.list_courses(user)
            if c.id not in enrolled_ids
        ]
        course.value = None

    def on_enroll(_):
        if not course.value:
            set_status("Select a course first.")
            page.update()
            return
        try:
            service.enroll(user, student.id, int(course.value))
            set_status("Enrolled.", is_error=False)
            refresh()
        except (RecordsServiceError, StorageError) as exc:
            set_status(f"Could not enroll: {exc}")
        page.update()

    controls = [ft.Row(controls=[ft.Button("Back to Transcript", on_click=lambda _: on_back())])]
    if student is None:
        controls.append(ft.Text("No student record is linked to this account."))
    else:
        profile_text.value = (
            f"{student.name} ({student.student_number}), {student.category.value.title()}, "
            f"since {student.enrollment_year}" + (f", {student.major}" if student.major else "")
        )
        refresh()
        controls += [
            profile_text,
            gpa_text,
            status,
            ft.Divider(),
            ft.Text("Enrollments", size=20, weight=ft.FontWeight.BOLD),
            enrollment_list,
            ft.Row(controls=[course, ft.Button("Enroll", on_click=on_enroll, data="enroll")]),
        ]

    return ft.View(
        route="/profile",
        controls=[
            ft.AppBar(title=ft.Text("UniRecords - My Profile")),
            ft.Container(
                padding=20,
                content=ft.Column(scroll=ft.ScrollMode.AUTO, controls=controls),
            ),
        ],
    )
