"""
Shared responsive widgets for dashboard and attendance sections.
"""

import flet as ft


def get_breakpoint(page):
    """Get current responsive breakpoint based on window width."""
    try:
        width = getattr(page.window, 'width', None) or getattr(page, 'width', None) or 1200
        if width < 768:
            return 'mobile'
        elif width < 1024:
            return 'tablet'
        else:
            return 'desktop'
    except AttributeError:
        return 'desktop'


def ResponsiveRow(controls, breakpoint='desktop', **kwargs):
    """Row on tablet/desktop, stacked column on mobile."""
    if breakpoint == 'mobile':
        return ft.Column(controls, spacing=kwargs.get('spacing', 10))

    layout_props = {
        'tablet': {'alignment': ft.MainAxisAlignment.START, 'spacing': 15},
        'desktop': {'alignment': ft.MainAxisAlignment.START, 'spacing': 20},
    }.get(breakpoint, {})
    layout_props.update(kwargs)
    return ft.Row(controls, **layout_props)


def ResponsiveCard(content, padding=15, **kwargs):
    """Card with inner padding."""
    return ft.Card(
        content=ft.Container(content=content, padding=padding),
        elevation=2,
        **kwargs
    )


def empty_state(icon, title, message="", icon_size=64):
    """Centered placeholder for lists with nothing to show."""
    controls = [
        ft.Icon(icon, size=icon_size, color=ft.Colors.GREY_400),
        ft.Text(title, size=16, weight=ft.FontWeight.W_600, color=ft.Colors.GREY_800),
    ]
    if message:
        controls.append(ft.Text(message, size=13, color=ft.Colors.GREY_600,
                                text_align=ft.TextAlign.CENTER))
    return ft.Container(
        content=ft.Column(controls, horizontal_alignment=ft.CrossAxisAlignment.CENTER, spacing=8),
        alignment=ft.alignment.center,
        padding=40,
    )


def stat_tile(icon, title, value, color, background):
    """Small coloured tile with an icon, a label and a big number."""
    return ft.Container(
        content=ft.Column([
            ft.Row([
                ft.Icon(icon, size=20, color=color),
                ft.Text(title, size=13, weight=ft.FontWeight.W_500, color=color),
            ], spacing=8),
            ft.Text(str(value), size=24, weight=ft.FontWeight.BOLD, color=color),
        ], spacing=4),
        bgcolor=background,
        border=ft.border.all(1, color),
        border_radius=8,
        padding=15,
        expand=True,
    )
