"""
Account screen: profile details, password change and active sessions.
"""

import flet as ft

from auth_context import AuthProvider
from sections.ui_utils import ResponsiveCard, empty_state


def create_account_view(page: ft.Page, show_snackbar, auth: AuthProvider):
    """Create the account management view."""
    user = auth.user

    name_field = ft.TextField(label="Full name", value=user.name if user else "",
                              prefix_icon=ft.Icons.BADGE, expand=True)
    email_field = ft.TextField(label="Email", value=user.email if user else "",
                               prefix_icon=ft.Icons.EMAIL, expand=True)
    current_password = ft.TextField(label="Current password", password=True,
                                    can_reveal_password=True, expand=True)
    new_password = ft.TextField(label="New password", password=True,
                                can_reveal_password=True, expand=True)
    sessions_list = ft.Column(spacing=8)

    def save_profile(_):
        result = auth.update_profile({"name": name_field.value or "", "email": email_field.value or ""})
        if result["success"]:
            show_snackbar("Profile updated")
        else:
            show_snackbar(result["error"], True)

    def change_password(_):
        if not current_password.value or not new_password.value:
            show_snackbar("Fill in both password fields", True)
            return
        result = auth.change_password({
            "currentPassword": current_password.value,
            "newPassword": new_password.value,
        })
        if result["success"]:
            current_password.value = ""
            new_password.value = ""
            show_snackbar("Password changed")
        else:
            show_snackbar(result["error"], True)
        page.update()

    def revoke(session_id):
        result = auth.revoke_session(session_id)
        if result["success"]:
            show_snackbar("Session revoked")
            load_sessions()
        else:
            show_snackbar(result["error"], True)

    def load_sessions():
        result = auth.get_sessions()
        sessions_list.controls.clear()
        if not result["success"]:
            sessions_list.controls.append(ft.Text(result["error"], color=ft.Colors.RED_600))
        elif not result["data"]:
            sessions_list.controls.append(empty_state(ft.Icons.DEVICES, "No active sessions", icon_size=32))
        else:
            for session in result["data"]:
                session_id = session.get("_id") or session.get("id")
                description = session.get("userAgent") or session.get("device") or "Unknown device"
                sessions_list.controls.append(
                    ft.ListTile(
                        leading=ft.Icon(ft.Icons.DEVICES),
                        title=ft.Text(description),
                        subtitle=ft.Text(f"Last active: {session.get('lastActivity') or session.get('createdAt') or 'N/A'}"),
                        trailing=ft.IconButton(
                            icon=ft.Icons.DELETE,
                            icon_color=ft.Colors.RED_600,
                            tooltip="Revoke",
                            on_click=lambda e, sid=session_id: revoke(sid),
                        ),
                    )
                )
        page.update()

    view = ft.Container(
        content=ft.Column([
            ft.Text("Account", size=24, weight=ft.FontWeight.BOLD),
            ResponsiveCard(ft.Column([
                ft.Text("Profile", size=16, weight=ft.FontWeight.W_500),
                ft.Row([name_field, email_field], spacing=15),
                ft.ElevatedButton("Save Profile", icon=ft.Icons.SAVE, on_click=save_profile),
            ], spacing=15)),
            ResponsiveCard(ft.Column([
                ft.Text("Change Password", size=16, weight=ft.FontWeight.W_500),
                ft.Row([current_password, new_password], spacing=15),
                ft.ElevatedButton("Change Password", icon=ft.Icons.LOCK_RESET, on_click=change_password),
            ], spacing=15)),
            ResponsiveCard(ft.Column([
                ft.Row([
                    ft.Text("Active Sessions", size=16, weight=ft.FontWeight.W_500),
                    ft.IconButton(icon=ft.Icons.REFRESH, tooltip="Refresh",
                                  on_click=lambda e: load_sessions()),
                ], alignment=ft.MainAxisAlignment.SPACE_BETWEEN),
                sessions_list,
            ], spacing=10)),
        ], spacing=20, scroll=ft.ScrollMode.AUTO),
        padding=20,
        expand=True,
    )

    page.run_thread(load_sessions)
    return view
