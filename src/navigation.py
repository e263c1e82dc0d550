"""
Navigation for the Institute Portal.

Destinations depend on the signed-in role, and the widget adapts to the
screen width:
- NavigationBar for mobile (< 600px)
- NavigationRail for tablet (600-1024px)
- Horizontal NavigationBar for desktop (>= 1024px)
"""

import flet as ft

from models import ROLE_INSTITUTE_ADMIN, ROLE_IT, ROLE_PRINCIPAL, ROLE_RECEPTIONIST, ROLE_TEACHER

DASHBOARD_ROLES = (ROLE_INSTITUTE_ADMIN, ROLE_PRINCIPAL, ROLE_IT, ROLE_RECEPTIONIST)
ATTENDANCE_ROLES = (ROLE_INSTITUTE_ADMIN, ROLE_IT, ROLE_TEACHER)

# view key, icon, selected icon, label, roles allowed (None means everyone)
DESTINATIONS = [
    ("dashboard", ft.Icons.DASHBOARD_OUTLINED, ft.Icons.DASHBOARD, "Dashboard", DASHBOARD_ROLES),
    ("attendance", ft.Icons.FACT_CHECK_OUTLINED, ft.Icons.FACT_CHECK, "Attendance", ATTENDANCE_ROLES),
    ("account", ft.Icons.ACCOUNT_CIRCLE_OUTLINED, ft.Icons.ACCOUNT_CIRCLE, "Account", None),
]


def views_for_role(role):
    """View keys available to the role, in navigation order."""
    return [key for key, _, _, _, roles in DESTINATIONS if roles is None or role in roles]


def navigation_rail(current_view: str, page_width: float, on_change, role: str):
    """Return the correct navigation widget for the current form-factor.

    `on_change` receives the view key of the chosen destination. Returns None
    when the role has a single destination, since both bars need two.
    """
    dest_defs = [d for d in DESTINATIONS if d[4] is None or role in d[4]]
    if len(dest_defs) < 2:
        return None
    keys = [d[0] for d in dest_defs]
    idx = keys.index(current_view) if current_view in keys else 0

    def handle_change(e):
        on_change(keys[e.control.selected_index])

    if page_width < 1024 and page_width >= 600:   # tablet
        return ft.NavigationRail(
            destinations=[
                ft.NavigationRailDestination(icon=icon, selected_icon=selected_icon, label=label)
                for _, icon, selected_icon, label, _ in dest_defs
            ],
            selected_index=idx,
            label_type=ft.NavigationRailLabelType.SELECTED,
            min_width=72, expand=True,
            on_change=handle_change,
            elevation=2,
        )

    return ft.Container(
        content=ft.NavigationBar(
            destinations=[
                ft.NavigationBarDestination(icon=icon, selected_icon=selected_icon, label=label)
                for _, icon, selected_icon, label, _ in dest_defs
            ],
            selected_index=idx,
            on_change=handle_change,
            elevation=8 if page_width < 600 else 2,
        ),
        height=80 if page_width < 600 else 72,
    )
