"""
Sign-in screen with registration and password reset request.
"""

import flet as ft

from auth_context import AuthProvider


def create_login_view(page: ft.Page, show_snackbar, auth: AuthProvider):
    """Create the login/registration form."""
    field_width = min(320, (getattr(page.window, "width", None) or 400) * 0.8)
    mode = {"register": False}

    name_field = ft.TextField(label="Full name", prefix_icon=ft.Icons.BADGE,
                              width=field_width, visible=False)
    email_field = ft.TextField(label="Email", prefix_icon=ft.Icons.PERSON,
                               width=field_width, autofocus=True)
    pass_field = ft.TextField(label="Password", prefix_icon=ft.Icons.LOCK,
                              password=True, can_reveal_password=True, width=field_width)
    error_text = ft.Text("", color=ft.Colors.RED_600, size=13, visible=False)
    submit_button = ft.ElevatedButton("Login", icon=ft.Icons.LOGIN, width=field_width)
    toggle_button = ft.TextButton("Create an account")

    def show_error(message):
        error_text.value = message or ""
        error_text.visible = bool(message)

    def handle_submit(_):
        if not email_field.value or not pass_field.value:
            show_error("Email and password are required")
            page.update()
            return

        submit_button.disabled = True
        page.update()
        if mode["register"]:
            result = auth.register({
                "name": name_field.value or "",
                "email": email_field.value,
                "password": pass_field.value,
            })
        else:
            result = auth.login({"email": email_field.value, "password": pass_field.value})
        submit_button.disabled = False

        if result["success"]:
            pass_field.value = ""
            show_error(None)
        else:
            show_error(result["error"])
        page.update()

    def toggle_mode(_):
        mode["register"] = not mode["register"]
        name_field.visible = mode["register"]
        submit_button.text = "Register" if mode["register"] else "Login"
        submit_button.icon = ft.Icons.PERSON_ADD if mode["register"] else ft.Icons.LOGIN
        toggle_button.text = "Back to login" if mode["register"] else "Create an account"
        show_error(None)
        auth.clear_error()
        page.update()

    def open_forgot_password(_):
        reset_email = ft.TextField(label="Email", value=email_field.value or "", width=field_width)

        def send(_):
            result = auth.forgot_password(reset_email.value or "")
            page.close(dialog)
            if result["success"]:
                show_snackbar("Password reset instructions sent")
            else:
                show_snackbar(result["error"], True)

        dialog = ft.AlertDialog(
            title=ft.Text("Reset password"),
            content=reset_email,
            actions=[
                ft.TextButton("Cancel", on_click=lambda e: page.close(dialog)),
                ft.ElevatedButton("Send", on_click=send),
            ],
        )
        page.open(dialog)

    submit_button.on_click = handle_submit
    toggle_button.on_click = toggle_mode
    pass_field.on_submit = handle_submit

    return ft.Container(
        content=ft.Column(
            [
                ft.Icon(ft.Icons.SCHOOL, size=min(100, field_width * 0.3), color=ft.Colors.BLUE_700),
                ft.Text("Institute Portal", size=24, weight=ft.FontWeight.BOLD),
                ft.Divider(height=20),
                name_field, email_field, pass_field, error_text,
                submit_button,
                ft.Row([
                    toggle_button,
                    ft.TextButton("Forgot password?", on_click=open_forgot_password),
                ], alignment=ft.MainAxisAlignment.CENTER),
            ],
            horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            spacing=20,
        ),
        alignment=ft.alignment.center,
        expand=True,
    )
