from typing import Callable
import flet as ft

from unirecords.services.records_service import RecordsService
from unirecords.services.storage import StorageError
from unirecords.state.app_state import AppState


def build_login_view(
    page: ft.Page,
    app_state: AppState,
    service: RecordsService,
    on_authenticated: Callable[[], None],
) -> ft.View:
    email = ft.TextField(label="Email", width=350)
    password = ft.TextField(label="Password", password=True, can_reveal_password=True, width=350)
    status_text = ft.Text(color=ft.Colors.RED_400)

    def set_status(message: str) -> None:
        status_text.value = message
        page.update()

    def complete_login(user_id: int) -> None:
        app_state.session.user = service.storage.get_user(user_id)
        on_authenticated()

    def on_sign_in(_):
        if not email.value or not password.value:
            set_status("Email and password are required.")
            return
        user_id = service.storage.login_user(email.value.strip(), password.value)
        if user_id is None:
            set_status("Sign in failed: invalid email or password.")
            return
        complete_login(user_id)

    def on_sign_up(_):
        if not email.value or not password.value:
            set_status("Email and password are required.")
            return
        if len(password.value) < 6:
            set_status("Password must be at least 6 characters.")
            return
        try:
            user_id = service.storage.create_user(email.value.strip(), password.value)
        except StorageError:
            set_status("Sign up failed: email already registered.")
            return
        complete_login(user_id)

    return ft.View(
        route="/login",
        controls=[
            ft.AppBar(title=ft.Text("UniRecords - Login")),
            ft.Container(
                padding=20,
                content=ft.Column(
                    horizontal_alignment=ft.CrossAxisAlignment.CENTER,
                    controls=[
                        ft.Text("Student Records", size=30, weight=ft.FontWeight.BOLD),
                        ft.Text("Sign in to view enrollments and transcripts."),
                        email,
                        password,
                        ft.Row(
                            alignment=ft.MainAxisAlignment.CENTER,
                            controls=[
                                ft.Button("Sign In", on_click=on_sign_in),
                                ft.OutlinedButton("Sign Up", on_click=on_sign_up),
                            ],
                        ),
                        status_text,
                    ],
                ),
            ),
        ],
    )
