import logging

import flet as ft

from unirecords.config.settings import settings
from unirecords.services.records_service import RecordsService
from unirecords.state.app_state import AppState
from unirecords.ui.views.admin_view import build_admin_view
from unirecords.ui.views.grades_view import build_grades_view
from unirecords.ui.views.login_view import build_login_view
from unirecords.ui.views.profile_view import build_profile_view
from unirecords.ui.views.transcript_view import build_transcript_view

logger = logging.getLogger(__name__)


def main(page: ft.Page) -> None:
    page.title = "UniRecords"
    service = RecordsService.from_settings()
    app_state = AppState()

    def show(view: ft.View) -> None:
        page.views.clear()
        page.views.append(view)
        page.update()

    def show_login() -> None:
        app_state.session.clear()
        show(build_login_view(page, app_state, service, on_authenticated=show_transcripts))

    def show_transcripts() -> None:
        logger.info("Signed in as %s", app_state.session.user.email)
        show(
            build_transcript_view(
                page,
                app_state,
                service,
                on_grades=show_grades,
                on_admin=show_admin,
                on_profile=show_profile,
                on_logout=show_login,
            )
        )

    def show_grades() -> None:
        show(build_grades_view(page, app_state, service, on_back=show_transcripts))

    def show_admin() -> None:
        show(build_admin_view(page, app_state, service, on_back=show_transcripts))

    def show_profile() -> None:
        show(build_profile_view(page, app_state, service, on_back=show_transcripts))

    show_login()


def run() -> None:
    logging.basicConfig(level=settings.log_level)
    ft.app(
        target=main,
        view=ft.AppView.WEB_BROWSER if settings.web_mode else ft.AppView.FLET_APP,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
