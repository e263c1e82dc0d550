"""
Main entry point for the Institute Portal client.

Builds the session cache, the API client and the auth provider once, then
switches between the login screen and the role views as the session changes.
"""

import warnings
# Suppress websockets deprecation warnings since they come from third-party dependencies
warnings.filterwarnings("ignore", message="websockets.legacy is deprecated", category=DeprecationWarning)
warnings.filterwarnings("ignore", message="websockets.server.WebSocketServerProtocol is deprecated", category=DeprecationWarning)

import logging
from urllib.parse import urlencode

import flet as ft

import config
import database
from api import ApiClient, AuthAPI, make_call_api
from auth_context import AuthProvider, PHASE_DEGRADED
from navigation import navigation_rail, views_for_role
from views import (
    create_account_view,
    create_dashboard_view,
    create_login_view,
    create_student_attendance_view,
)

logger = logging.getLogger(__name__)


def main(page: ft.Page):
    """Main application entry point."""
    # ------------------------------------------------------------------
    # Page-level configuration
    # ------------------------------------------------------------------
    page.theme_mode = ft.ThemeMode.LIGHT
    page.title = "Institute Portal"
    page.window.width = 1200
    page.window.height = 800
    page.window.min_width = 800
    page.window.min_height = 600
    page.padding = 0
    page.theme = ft.Theme(color_scheme_seed=ft.Colors.INDIGO, use_material3=True)

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------
    client = ApiClient()
    auth = AuthProvider(AuthAPI(client))

    def show_snackbar(message: str, is_error: bool = False):
        sb = ft.SnackBar(
            content=ft.Text(message),
            bgcolor=ft.Colors.RED_400 if is_error else ft.Colors.GREEN_400,
            open=True,
        )
        page.overlay.append(sb)
        page.update()

    call_api = make_call_api(client, show_snackbar)

    def load_statistics(date_filter, start_date=None, end_date=None):
        params = {"dateFilter": date_filter}
        if start_date and end_date:
            params.update({"startDate": start_date, "endDate": end_date})
        response = call_api(f"{config.STATISTICS_ENDPOINT}?{urlencode(params)}", "GET")
        if not response.get("success"):
            raise ValueError(response.get("message") or "Failed to load statistics")
        return response.get("data") or {}

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    current_view = None
    shown_screen = None

    # ---------- view routing ------------------------------------------
    def change_view(view_key: str):
        nonlocal current_view
        current_view = view_key
        show_main_app()

    def logout(logout_all: bool = False):
        page.run_thread(auth.logout, logout_all)

    def create_app_bar():
        user = auth.user
        label = f"{user.name or user.email} ({user.role})" if user else ""
        actions = []
        if auth.state.phase == PHASE_DEGRADED:
            actions.append(ft.Icon(ft.Icons.CLOUD_OFF, color=ft.Colors.AMBER_200,
                                   tooltip="Offline: showing cached session"))
        actions.append(
            ft.PopupMenuButton(
                items=[
                    ft.PopupMenuItem(text=f"Logged in as: {label}", disabled=True),
                    ft.PopupMenuItem(),
                    ft.PopupMenuItem(text="Logout", icon=ft.Icons.LOGOUT,
                                     on_click=lambda e: logout()),
                    ft.PopupMenuItem(text="Logout all devices", icon=ft.Icons.PHONELINK_ERASE,
                                     on_click=lambda e: logout(True)),
                ],
                icon=ft.Icons.ACCOUNT_CIRCLE,
                icon_color=ft.Colors.WHITE,
            )
        )
        return ft.AppBar(
            title=ft.Text("Institute Portal", weight=ft.FontWeight.BOLD, color=ft.Colors.WHITE),
            center_title=False,
            bgcolor=ft.Colors.INDIGO_700,
            actions=actions,
        )

    # ---------- main layout -------------------------------------------
    def show_main_app():
        nonlocal current_view, shown_screen
        shown_screen = "main"
        page.controls.clear()

        user = auth.user
        allowed = views_for_role(user.role)
        if current_view not in allowed:
            current_view = allowed[0]

        if current_view == "dashboard":
            main_content = create_dashboard_view(page, show_snackbar, user.role, load_statistics)
        elif current_view == "attendance":
            main_content = create_student_attendance_view(page, show_snackbar, user, call_api)
        else:
            main_content = create_account_view(page, show_snackbar, auth)

        w = getattr(page.window, "width", None) or 1200
        nav = navigation_rail(current_view, w, change_view, user.role)

        if nav is None:
            page.add(create_app_bar(), ft.Container(content=main_content, expand=True))
        elif w < 600:
            page.add(create_app_bar(), ft.Container(content=main_content, expand=True), nav)
        elif w < 1024:
            page.add(
                create_app_bar(),
                ft.Container(
                    content=ft.Row([
                        ft.Container(content=nav, width=72),
                        ft.VerticalDivider(width=1),
                        ft.Container(content=main_content, expand=True),
                    ], expand=True),
                    expand=True,
                ),
            )
        else:
            page.add(
                create_app_bar(),
                ft.Container(
                    content=ft.Column([nav, ft.Container(content=main_content, expand=True)], spacing=0),
                    expand=True,
                ),
            )
        page.update()

    # ---------- login -------------------------------------------------
    def show_login():
        nonlocal shown_screen, current_view
        shown_screen = "login"
        current_view = None
        page.controls.clear()
        page.add(create_login_view(page, show_snackbar, auth))
        page.update()

    def show_loading():
        page.controls.clear()
        page.add(ft.Container(content=ft.ProgressRing(), alignment=ft.alignment.center, expand=True))
        page.update()

    # ---------- session changes ---------------------------------------
    def on_auth_change(state):
        if state.is_loading and not state.is_authenticated:
            return
        if state.is_authenticated and shown_screen != "main":
            show_main_app()
        elif state.is_authenticated and state.phase == PHASE_DEGRADED:
            show_main_app()
        elif not state.is_authenticated and shown_screen != "login":
            show_login()

    def on_resize(_):
        if shown_screen == "main":
            show_main_app()

    page.on_resized = on_resize

    # ------------------------------------------------------------------
    # kick-off
    # ------------------------------------------------------------------
    logger.info("Starting Institute Portal against %s", config.API_BASE_URL)
    database.init_db()
    show_loading()
    auth.subscribe(on_auth_change)
    auth.initialize_auth(background=True)


def run():
    config.configure_logging()
    ft.app(target=main)


if __name__ == "__main__":
    run()
