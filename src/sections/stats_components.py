"""
Building blocks of the statistics modal: date filter, custom date range,
loading overlay, per-gender statistics panel and the advanced table.
"""

from datetime import date

import flet as ft

from models import StatisticsSnapshot
from utils import format_number

DATE_FILTERS = [
    {'value': 'today', 'label': 'Today'},
    {'value': 'week', 'label': 'This Week'},
    {'value': 'month', 'label': 'This Month'},
    {'value': 'year', 'label': 'This Year'},
    {'value': 'all', 'label': 'All Time'},
    {'value': 'custom', 'label': 'Custom Range'},
]


def get_filter_label(date_filters, selected_date):
    """Label of the selected date filter, or an empty string."""
    for date_filter in date_filters:
        if date_filter['value'] == selected_date:
            return date_filter['label']
    return ""


def validate_custom_range(start_date, end_date):
    """Return an error message for an unusable custom range, or None."""
    if not start_date or not end_date:
        return "Select both a start and an end date"
    try:
        start = date.fromisoformat(start_date)
        end = date.fromisoformat(end_date)
    except ValueError:
        return "Dates must use the YYYY-MM-DD format"
    if start > end:
        return "Start date must be on or before the end date"
    return None


def create_date_filter(selected_date, date_filters, on_date_change, loading=False):
    """Dropdown with the available date filters."""
    return ft.Dropdown(
        label="Time period",
        value=selected_date,
        width=180,
        options=[ft.dropdown.Option(key=f['value'], text=f['label']) for f in date_filters],
        on_change=lambda e: on_date_change(e.control.value),
        disabled=loading,
    )


def create_custom_date_range(custom_start_date, custom_end_date, custom_dates_applied,
                             is_custom_date_loading, on_start_date_change,
                             on_end_date_change, on_apply_filters, loading=False):
    """Start/end date fields with an apply button."""
    error = validate_custom_range(custom_start_date, custom_end_date)

    start_field = ft.TextField(
        label="Start date",
        hint_text="YYYY-MM-DD",
        value=custom_start_date or "",
        prefix_icon=ft.Icons.CALENDAR_TODAY,
        on_change=lambda e: on_start_date_change(e.control.value),
        expand=True,
    )
    end_field = ft.TextField(
        label="End date",
        hint_text="YYYY-MM-DD",
        value=custom_end_date or "",
        prefix_icon=ft.Icons.CALENDAR_TODAY,
        on_change=lambda e: on_end_date_change(e.control.value),
        expand=True,
    )
    apply_button = ft.ElevatedButton(
        "Applying..." if is_custom_date_loading else "Apply",
        icon=ft.Icons.FILTER_ALT,
        on_click=lambda e: on_apply_filters(),
        disabled=loading or is_custom_date_loading,
    )

    controls = [ft.Row([start_field, end_field, apply_button], spacing=15)]
    if error and (custom_start_date or custom_end_date):
        controls.append(ft.Text(error, size=12, color=ft.Colors.RED_600))
    elif custom_dates_applied:
        controls.append(ft.Text(f"Showing {custom_start_date} to {custom_end_date}",
                                size=12, color=ft.Colors.BLUE_800))
    return ft.Column(controls, spacing=8)


def create_loading_overlay():
    return ft.Container(
        content=ft.Column([
            ft.ProgressRing(),
            ft.Text("Loading statistics...", color=ft.Colors.GREY_700),
        ], horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            alignment=ft.MainAxisAlignment.CENTER, spacing=10),
        bgcolor=ft.Colors.with_opacity(0.7, ft.Colors.WHITE),
        alignment=ft.alignment.center,
        left=0, top=0, right=0, bottom=0,
    )


def level_counts_for(level_stats, level_tabs, gender_key):
    """Rows of (label, count) for one gender, in tab order."""
    rows = []
    for tab in level_tabs or []:
        entry = (level_stats or {}).get(tab['value'], (level_stats or {}).get(str(tab['value']))) or {}
        rows.append((tab['label'], entry.get(gender_key) or 0))
    return rows


def create_gender_statistics(count, percentage, programs, level_stats, level_tabs,
                             title, colors):
    """Panel with the count, share and program/level breakdown for one gender."""
    header = ft.Container(
        content=ft.Column([
            ft.Text(title, size=20, weight=ft.FontWeight.BOLD, color=ft.Colors.WHITE),
            ft.Text(format_number(count), size=32, weight=ft.FontWeight.BOLD, color=ft.Colors.WHITE),
            ft.Text(f"{percentage:.1f}% of total", size=13, color=ft.Colors.WHITE),
        ], spacing=4),
        gradient=ft.LinearGradient(
            begin=ft.alignment.center_left,
            end=ft.alignment.center_right,
            colors=colors,
        ),
        border_radius=ft.border_radius.only(top_left=12, top_right=12),
        padding=20,
    )

    program_rows = [
        ft.Row([
            ft.Text(program, expand=True),
            ft.Text(format_number(value), weight=ft.FontWeight.BOLD),
        ])
        for program, value in sorted((programs or {}).items())
    ]
    if not program_rows:
        program_rows = [ft.Text("No program data", color=ft.Colors.GREY_500, size=12)]

    body = [ft.Text("Programs", weight=ft.FontWeight.W_600)] + program_rows

    gender_key = title.lower()
    level_rows = level_counts_for(level_stats, level_tabs, gender_key)
    if level_rows:
        body.append(ft.Divider(height=1))
        body.append(ft.Text("Levels", weight=ft.FontWeight.W_600))
        body.extend(
            ft.Row([ft.Text(label, expand=True), ft.Text(format_number(value))])
            for label, value in level_rows
        )

    return ft.Container(
        content=ft.Column([
            header,
            ft.Container(content=ft.Column(body, spacing=6), padding=20),
        ], spacing=0),
        border=ft.border.all(1, ft.Colors.GREY_200),
        border_radius=12,
        expand=True,
    )


def create_advanced_stats_table(data: StatisticsSnapshot, loading=False):
    """Per-program table of boys, girls and totals."""
    rows = data.program_rows()
    if not rows:
        return ft.Container(
            content=ft.Text("No program data available" if not loading else "Loading...",
                            color=ft.Colors.GREY_600),
            alignment=ft.alignment.center,
            padding=40,
        )

    table_rows = [
        ft.DataRow(cells=[
            ft.DataCell(ft.Text(row['program'])),
            ft.DataCell(ft.Text(format_number(row['boys']))),
            ft.DataCell(ft.Text(format_number(row['girls']))),
            ft.DataCell(ft.Text(format_number(row['total']), weight=ft.FontWeight.BOLD)),
        ])
        for row in rows
    ]
    table_rows.append(
        ft.DataRow(cells=[
            ft.DataCell(ft.Text("Total", weight=ft.FontWeight.BOLD)),
            ft.DataCell(ft.Text(format_number(sum(r['boys'] for r in rows)), weight=ft.FontWeight.BOLD)),
            ft.DataCell(ft.Text(format_number(sum(r['girls'] for r in rows)), weight=ft.FontWeight.BOLD)),
            ft.DataCell(ft.Text(format_number(sum(r['total'] for r in rows)), weight=ft.FontWeight.BOLD)),
        ])
    )

    return ft.DataTable(
        columns=[
            ft.DataColumn(ft.Text("Program")),
            ft.DataColumn(ft.Text("Boys"), numeric=True),
            ft.DataColumn(ft.Text("Girls"), numeric=True),
            ft.DataColumn(ft.Text("Total"), numeric=True),
        ],
        rows=table_rows,
        expand=True,
    )
