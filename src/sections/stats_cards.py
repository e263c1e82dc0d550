"""
Enquiry statistics cards (total, boys, girls) for the principal dashboard.
"""

import flet as ft

from models import StatisticsSnapshot
from sections.ui_utils import ResponsiveRow
from utils import format_number


def parse_level(selected_level):
    """Return the selected level as an int, or None when it is not a number."""
    try:
        return int(selected_level)
    except (TypeError, ValueError):
        return None


def _level_entry(progression, level):
    """Look up a level in a progression mapping; JSON keys arrive as strings."""
    if not progression:
        return None
    return progression.get(level, progression.get(str(level)))


def get_non_progression_data(current_data: StatisticsSnapshot, selected_level):
    """Students at the selected level who did not progress from the level below."""
    empty = {'total': 0, 'boys': 0, 'girls': 0}
    level = parse_level(selected_level)
    if (not current_data.level_progression or not current_data.gender_level_progression
            or level == 1):
        return empty

    level_data = _level_entry(current_data.level_progression, level) or {}
    boys_data = _level_entry(current_data.gender_level_progression.get('boys'), level) or {}
    girls_data = _level_entry(current_data.gender_level_progression.get('girls'), level) or {}

    return {
        'total': level_data.get('notProgressed') or 0,
        'boys': boys_data.get('notProgressed') or 0,
        'girls': girls_data.get('notProgressed') or 0,
    }


def calculate_percentages(current_data: StatisticsSnapshot):
    """Share of boys and girls in the total, in percent."""
    if not current_data.total:
        return {'boys_percentage': 0.0, 'girls_percentage': 0.0}
    return {
        'boys_percentage': current_data.boys / current_data.total * 100,
        'girls_percentage': current_data.girls / current_data.total * 100,
    }


def build_card_specs(current_data: StatisticsSnapshot, percentages, current_view,
                     selected_gender, selected_level):
    """Describe the three cards; rendering is done by `create_stats_cards`."""
    non_progression = get_non_progression_data(current_data, selected_level)
    return [
        {
            'title': 'Total Students',
            'value': current_data.total,
            'non_progressed': non_progression['total'],
            'percentage': None,
            'icon': ft.Icons.PEOPLE,
            'colors': [ft.Colors.BLUE_500, ft.Colors.BLUE_600],
            'view': 'total',
            'gender': None,
            'is_active': current_view == 'total',
        },
        {
            'title': 'Boys',
            'value': current_data.boys,
            'non_progressed': non_progression['boys'],
            'percentage': percentages['boys_percentage'],
            'icon': ft.Icons.HOW_TO_REG,
            'colors': [ft.Colors.GREEN_500, ft.Colors.GREEN_600],
            'view': 'gender',
            'gender': 'boys',
            'is_active': current_view == 'gender' and selected_gender == 'boys',
        },
        {
            'title': 'Girls',
            'value': current_data.girls,
            'non_progressed': non_progression['girls'],
            'percentage': percentages['girls_percentage'],
            'icon': ft.Icons.SCHOOL,
            'colors': [ft.Colors.PINK_500, ft.Colors.RED_500],
            'view': 'gender',
            'gender': 'girls',
            'is_active': current_view == 'gender' and selected_gender == 'girls',
        },
    ]


def shows_non_progression(card, selected_level):
    level = parse_level(selected_level)
    return card['non_progressed'] > 0 and level is not None and level > 1


def _create_card(card, selected_level, on_card_click, loading):
    lines = [
        ft.Text(card['title'], size=18, weight=ft.FontWeight.W_600, color=ft.Colors.WHITE),
        ft.Text(format_number(card['value']), size=30, weight=ft.FontWeight.BOLD, color=ft.Colors.WHITE),
    ]
    if card['percentage'] is not None:
        lines.append(ft.Text(f"{card['percentage']:.1f}% of total", size=13, color=ft.Colors.WHITE))
    if shows_non_progression(card, selected_level):
        lines.append(
            ft.Container(
                content=ft.Text(f"{format_number(card['non_progressed'])} did not progress",
                                size=13, color=ft.Colors.WHITE),
                bgcolor=ft.Colors.with_opacity(0.2, ft.Colors.RED_500),
                border_radius=4,
                padding=ft.padding.symmetric(horizontal=8, vertical=4),
            )
        )

    footer = "Click to view program breakdown" if card['is_active'] else "Click to view program distribution"

    def handle_click(e):
        if not loading:
            on_card_click(card['view'], card['gender'])

    return ft.Container(
        content=ft.Column([
            ft.Container(
                content=ft.Row([
                    ft.Column(lines, spacing=4),
                    ft.Icon(card['icon'], size=48, color=ft.Colors.with_opacity(0.8, ft.Colors.WHITE)),
                ], alignment=ft.MainAxisAlignment.SPACE_BETWEEN),
                gradient=ft.LinearGradient(
                    begin=ft.alignment.center_left,
                    end=ft.alignment.center_right,
                    colors=card['colors'],
                ),
                padding=24,
            ),
            ft.Container(
                content=ft.Text(footer, size=13, color=ft.Colors.GREY_600, text_align=ft.TextAlign.CENTER),
                bgcolor=ft.Colors.GREY_50,
                padding=16,
                alignment=ft.alignment.center,
            ),
        ], spacing=0),
        bgcolor=ft.Colors.WHITE,
        border_radius=12,
        border=ft.border.all(4, ft.Colors.BLUE_300) if card['is_active'] else None,
        clip_behavior=ft.ClipBehavior.ANTI_ALIAS,
        opacity=0.5 if loading else 1.0,
        on_click=handle_click,
        expand=True,
    )


def create_stats_cards(current_data: StatisticsSnapshot, percentages, current_view,
                       selected_gender, selected_level, on_card_click, loading=False,
                       breakpoint='desktop'):
    """Create the row of clickable statistics cards."""
    specs = build_card_specs(current_data, percentages, current_view, selected_gender, selected_level)
    cards = [_create_card(card, selected_level, on_card_click, loading) for card in specs]
    return ft.Container(
        content=ResponsiveRow(cards, breakpoint=breakpoint, spacing=24),
        margin=ft.margin.only(bottom=32),
    )
