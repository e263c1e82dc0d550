"""
Dashboard header shared by the role dashboards.

Title and subtitle come from a role lookup table; roles without an entry use
the title/subtitle passed by the caller.
"""

import flet as ft

from utils import format_timestamp

DEFAULT_TITLE = "Dashboard"
DEFAULT_SUBTITLE = "Manage operations and daily activities"

ROLE_HEADER_CONTENT = {
    'InstituteAdmin': {
        'title': 'Institute Admin Dashboard',
        'subtitle': 'Manage institute operations and daily activities',
    },
    'Principal': {
        'title': 'Principal Dashboard',
        'subtitle': 'Statistical overview and institutional performance metrics',
    },
    'IT': {
        'title': 'IT Dashboard',
        'subtitle': 'System management and technical operations',
    },
    'Receptionist': {
        'title': 'Receptionist Dashboard',
        'subtitle': 'Student services and enquiry management',
    },
}


def get_role_specific_content(user_role, title=DEFAULT_TITLE, subtitle=DEFAULT_SUBTITLE):
    """Return (title, subtitle) for the role, falling back to the given defaults."""
    content = ROLE_HEADER_CONTENT.get(user_role)
    if content is None:
        return title, subtitle
    return content['title'], content['subtitle']


def refresh_button_label(loading):
    return "Refreshing..." if loading else "Refresh Data"


def create_dashboard_header(title=DEFAULT_TITLE, subtitle=DEFAULT_SUBTITLE,
                            dashboard_data=None, loading=False, on_refresh=None,
                            user_role=""):
    """Create the dashboard header card."""
    dashboard_data = dashboard_data or {}
    display_title, display_subtitle = get_role_specific_content(user_role, title, subtitle)

    text_column = ft.Column([
        ft.Text(display_title, size=28, weight=ft.FontWeight.W_800, color=ft.Colors.INDIGO_900),
        ft.Text(display_subtitle, size=14, color=ft.Colors.INDIGO_700),
    ], spacing=4)

    last_updated = dashboard_data.get('last_updated')
    if last_updated:
        text_column.controls.append(
            ft.Text(f"Last updated: {format_timestamp(last_updated)}",
                    size=12, color=ft.Colors.GREY_600)
        )

    row_controls = [
        ft.Row([
            ft.Container(
                content=ft.Icon(ft.Icons.SCHOOL, size=32, color=ft.Colors.WHITE),
                width=64,
                height=64,
                border_radius=16,
                alignment=ft.alignment.center,
                gradient=ft.LinearGradient(
                    begin=ft.alignment.top_left,
                    end=ft.alignment.bottom_right,
                    colors=[ft.Colors.INDIGO_700, ft.Colors.CYAN_600],
                ),
            ),
            text_column,
        ], spacing=24),
    ]

    if on_refresh is not None:
        row_controls.append(
            ft.ElevatedButton(
                refresh_button_label(loading),
                icon=ft.Icons.TRENDING_UP,
                on_click=lambda e: on_refresh(),
                disabled=loading,
                bgcolor=ft.Colors.INDIGO_700,
                color=ft.Colors.WHITE,
            )
        )

    return ft.Container(
        content=ft.Row(row_controls, alignment=ft.MainAxisAlignment.SPACE_BETWEEN),
        bgcolor=ft.Colors.with_opacity(0.6, ft.Colors.WHITE),
        border_radius=24,
        border=ft.border.all(1, ft.Colors.GREY_300),
        shadow=ft.BoxShadow(blur_radius=48, color=ft.Colors.with_opacity(0.13, ft.Colors.INDIGO_900)),
        padding=32,
    )
