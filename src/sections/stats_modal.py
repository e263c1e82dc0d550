"""
Enquiry statistics modal with basic and advanced tabs.

The only state owned here is the active tab; data and date filter values
come from the dashboard and every change is reported back through callbacks.
"""

import flet as ft

from models import StatisticsSnapshot
from sections.stats_components import (
    DATE_FILTERS, create_advanced_stats_table, create_custom_date_range,
    create_date_filter, create_gender_statistics, create_loading_overlay,
    get_filter_label,
)
from utils import format_number, format_timestamp

TAB_BASIC = 'basic'
TAB_ADVANCED = 'advanced'

TABS = [
    {'id': TAB_BASIC, 'label': 'Basic View', 'icon': ft.Icons.BAR_CHART},
    {'id': TAB_ADVANCED, 'label': 'Advanced View', 'icon': ft.Icons.TABLE_CHART},
]


class StatsModal:
    """Statistics modal; call `build()` to get the dialog for the current props."""

    def __init__(self, on_close, on_date_change, on_start_date_change=None,
                 on_end_date_change=None, on_apply_filters=None,
                 date_filters=None, on_update=None):
        self.on_close = on_close
        self.on_date_change = on_date_change
        self.on_start_date_change = on_start_date_change or (lambda value: None)
        self.on_end_date_change = on_end_date_change or (lambda value: None)
        self.on_apply_filters = on_apply_filters or (lambda: None)
        self.date_filters = date_filters or DATE_FILTERS
        self.on_update = on_update
        self.active_tab = TAB_BASIC

    def set_active_tab(self, tab_id):
        if tab_id not in [tab['id'] for tab in TABS]:
            raise ValueError(f"Unknown tab: {tab_id}")
        self.active_tab = tab_id
        if self.on_update:
            self.on_update()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def _header(self, selected_date, loading, last_updated):
        title_column = ft.Column([
            ft.Text("Enquiry Statistics", size=24, weight=ft.FontWeight.BOLD, color=ft.Colors.GREY_800),
        ], spacing=4)
        if last_updated:
            title_column.controls.append(
                ft.Text(f"Last updated: {format_timestamp(last_updated)}", size=12, color=ft.Colors.GREY_500)
            )

        actions = []
        # Time filter only applies to the basic tab
        if self.active_tab == TAB_BASIC:
            actions.append(create_date_filter(selected_date, self.date_filters,
                                              self.on_date_change, loading))
        actions.append(ft.IconButton(icon=ft.Icons.CLOSE, tooltip="Close",
                                     on_click=lambda e: self.on_close()))

        tab_buttons = []
        for tab in TABS:
            is_active = self.active_tab == tab['id']
            tab_buttons.append(
                ft.Container(
                    content=ft.Row([
                        ft.Icon(tab['icon'], size=16,
                                color=ft.Colors.BLUE_600 if is_active else ft.Colors.GREY_600),
                        ft.Text(tab['label'], size=13, weight=ft.FontWeight.W_500,
                                color=ft.Colors.BLUE_600 if is_active else ft.Colors.GREY_600),
                    ], alignment=ft.MainAxisAlignment.CENTER, spacing=8),
                    bgcolor=ft.Colors.WHITE if is_active else None,
                    border=ft.border.all(1, ft.Colors.BLUE_200) if is_active else None,
                    border_radius=6,
                    padding=ft.padding.symmetric(horizontal=16, vertical=8),
                    on_click=lambda e, tab_id=tab['id']: self.set_active_tab(tab_id),
                    expand=True,
                )
            )

        return ft.Column([
            ft.Row([title_column, ft.Row(actions, spacing=16)],
                   alignment=ft.MainAxisAlignment.SPACE_BETWEEN),
            ft.Container(
                content=ft.Row(tab_buttons, spacing=4),
                bgcolor=ft.Colors.GREY_100,
                border_radius=8,
                padding=4,
            ),
        ], spacing=12)

    def _basic_tab(self, selected_date, current_data, percentages, level_stats, level_tabs):
        boys_panel = create_gender_statistics(
            current_data.boys, percentages['boys_percentage'],
            current_data.programs.get('boys') or {}, level_stats, level_tabs,
            "Boys", [ft.Colors.BLUE_500, ft.Colors.BLUE_600],
        )
        girls_panel = create_gender_statistics(
            current_data.girls, percentages['girls_percentage'],
            current_data.programs.get('girls') or {}, level_stats, level_tabs,
            "Girls", [ft.Colors.PINK_500, ft.Colors.RED_500],
        )

        def summary(value, label, color):
            return ft.Column([
                ft.Text(format_number(value), size=24, weight=ft.FontWeight.BOLD, color=color),
                ft.Text(label, size=13, weight=ft.FontWeight.W_500, color=ft.Colors.GREY_600),
            ], horizontal_alignment=ft.CrossAxisAlignment.CENTER, expand=True)

        footer = ft.Container(
            content=ft.Column([
                ft.Row([
                    summary(current_data.total, "Total Students", ft.Colors.GREY_800),
                    summary(current_data.boys, f"Boys ({percentages['boys_percentage']:.1f}%)",
                            ft.Colors.BLUE_600),
                    summary(current_data.girls, f"Girls ({percentages['girls_percentage']:.1f}%)",
                            ft.Colors.RED_600),
                ]),
                ft.Row([
                    ft.Text(f"Showing data for: {get_filter_label(self.date_filters, selected_date)}",
                            size=13, color=ft.Colors.GREY_500),
                ], alignment=ft.MainAxisAlignment.CENTER),
            ], spacing=16),
            bgcolor=ft.Colors.GREY_100,
            border_radius=12,
            padding=24,
        )

        return ft.Column([
            ft.Row([boys_panel, girls_panel], spacing=32,
                   vertical_alignment=ft.CrossAxisAlignment.START),
            ft.Divider(height=1),
            footer,
        ], spacing=24)

    def build_content(self, selected_date, current_data: StatisticsSnapshot, percentages,
                      loading=False, custom_start_date=None, custom_end_date=None,
                      custom_dates_applied=False, is_custom_date_loading=False,
                      level_stats=None, level_tabs=None, last_updated=None):
        """Return the modal body for the current tab."""
        body = []
        if selected_date == 'custom':
            body.append(
                ft.Container(
                    content=ft.Column([
                        ft.Text("Custom Date Range", size=16, weight=ft.FontWeight.W_600,
                                color=ft.Colors.BLUE_800),
                        create_custom_date_range(
                            custom_start_date, custom_end_date, custom_dates_applied,
                            is_custom_date_loading, self.on_start_date_change,
                            self.on_end_date_change, self.on_apply_filters, loading,
                        ),
                    ], spacing=12),
                    bgcolor=ft.Colors.BLUE_50,
                    border=ft.border.all(1, ft.Colors.BLUE_200),
                    border_radius=8,
                    padding=16,
                )
            )

        if self.active_tab == TAB_BASIC:
            body.append(self._basic_tab(selected_date, current_data, percentages,
                                        level_stats, level_tabs))
        else:
            body.append(create_advanced_stats_table(current_data, loading))

        stack_controls = [ft.Column(body, spacing=24, scroll=ft.ScrollMode.AUTO)]
        if loading:
            stack_controls.append(create_loading_overlay())

        return ft.Column([
            self._header(selected_date, loading, last_updated),
            ft.Container(content=ft.Stack(stack_controls), padding=16, expand=True),
        ], spacing=0, width=960)

    def build(self, show, **props):
        """Return the dialog, or None when the modal is closed."""
        if not show:
            return None
        return ft.AlertDialog(
            modal=False,
            content=self.build_content(**props),
            on_dismiss=lambda e: self.on_close(),
            content_padding=16,
        )
