from typing import Callable, Optional
import flet as ft

from unirecords.core.transcript import TranscriptRecord
from unirecords.services.records_service import RecordsService, RecordsServiceError
from unirecords.state.app_state import AppState


def _build_bar(gpa: float) -> ft.Container:
    width = max(10, int(220 * (gpa / 4)))
    return ft.Container(width=width, height=12, bgcolor=ft.Colors.BLUE_400, border_radius=6)


def build_transcript_view(
    page: ft.Page,
    app_state: AppState,
    service: RecordsService,
    on_grades: Callable[[], None],
    on_admin: Callable[[], None],
    on_profile: Callable[[], None],
    on_logout: Callable[[], None],
) -> ft.View:
    user = app_state.session.user
    student_picker = ft.Dropdown(width=360, label="Student", visible=app_state.session.is_admin)
    status = ft.Text(color=ft.Colors.RED_400)
    header_text = ft.Text(size=18, weight=ft.FontWeight.BOLD)
    gpa_text = ft.Text()
    method_text = ft.Text()
    gpa_bar = ft.Row()
    course_list = ft.Column(spacing=8)

    def render(record: TranscriptRecord) -> None:
        header_text.value = f"{record.student.name} ({record.student.student_number})"
        gpa_text.value = f"GPA: {record.gpa:.2f} | Total credits: {record.total_credits}"
        method_text.value = f"Calculation method: {record.calculation_method}"
        gpa_bar.controls = [_build_bar(float(record.gpa)), ft.Text(f"{record.gpa:.2f} / 4.00")]

        course_list.controls.clear()
        if not record.courses:
            course_list.controls.append(ft.Text("No graded courses yet."))
        for course in record.courses:
            course_list.controls.append(
                ft.Card(
                    content=ft.Container(
                        padding=12,
                        content=ft.Column(
                            controls=[
                                ft.Text(f"{course.course_code} - {course.course_name}", weight=ft.FontWeight.BOLD),
                                ft.Text(
                                    f"Grade: {course.grade}%, "
                                    f"Scale: {course.gpa_scale_label}, "
                                    f"Credits: {course.credits}"
                                ),
                            ]
                        ),
                    )
                )
            )

    def load(student_id: Optional[int]) -> None:
        status.value = ""
        if student_id is None:
            header_text.value = "No student record is linked to this account."
            course_list.controls.clear()
            page.update()
            return
        try:
            render(service.transcript(user, student_id))
        except RecordsServiceError as exc:
            status.value = str(exc)
        page.update()

    def on_student_change(_):
        if student_picker.value:
            load(int(student_picker.value))

    student_picker.on_change = on_student_change

    if app_state.session.is_admin:
        student_picker.options = [ft.dropdown.Option(str(s.id), s.name) for s in service.list_students(user)]
        header_text.value = "Select a student to view their transcript."
    else:
        own = service.my_student(user)
        load(own.id if own else None)

    if app_state.session.is_admin:
        actions = [
            ft.Button("Grade Entry", on_click=lambda _: on_grades()),
            ft.Button("Manage Records", on_click=lambda _: on_admin()),
        ]
    else:
        actions = [ft.Button("My Profile", on_click=lambda _: on_profile())]
    actions.append(ft.Button("Sign Out", on_click=lambda _: on_logout()))

    return ft.View(
        route="/transcript",
        controls=[
            ft.AppBar(title=ft.Text("UniRecords - Transcript")),
            ft.Container(
                padding=20,
                content=ft.Column(
                    scroll=ft.ScrollMode.AUTO,
                    controls=[
                        ft.Row(controls=actions),
                        student_picker,
                        status,
                        header_text,
                        gpa_text,
                        method_text,
                        gpa_bar,
                        ft.Divider(),
                        ft.Text("Courses", size=20, weight=ft.FontWeight.BOLD),
                        course_list,
                    ],
                ),
            ),
        ],
    )
