"""
Statistics dashboard for administrative roles.

`DashboardController` keeps the date filter, the selected card/level and the
last statistics snapshot; the view renders the header, the cards and the
statistics modal from it.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

import flet as ft

from models import StatisticsSnapshot
from sections.dashboard_header import create_dashboard_header
from sections.stats_cards import calculate_percentages, create_stats_cards, parse_level
from sections.stats_components import DATE_FILTERS, validate_custom_range
from sections.stats_modal import StatsModal
from sections.ui_utils import get_breakpoint

logger = logging.getLogger(__name__)


def level_tabs_from(snapshot: StatisticsSnapshot):
    """One tab per level present in the progression data, lowest first."""
    levels = sorted({parse_level(key) for key in snapshot.level_progression} - {None})
    if not levels:
        levels = [1]
    return [{'value': level, 'label': f"Level {level}"} for level in levels]


class DashboardController:
    """State behind the statistics dashboard."""

    def __init__(self, load_statistics: Callable, on_change: Optional[Callable[[], None]] = None,
                 selected_date: str = 'month'):
        self.load_statistics = load_statistics
        self.on_change = on_change
        self.current_data = StatisticsSnapshot()
        self.level_stats = {}
        self.level_tabs = level_tabs_from(self.current_data)
        self.last_updated = None
        self.loading = False
        self.error = None
        self.selected_date = selected_date
        self.custom_start_date = None
        self.custom_end_date = None
        self.custom_dates_applied = False
        self.is_custom_date_loading = False
        self.current_view = 'total'
        self.selected_gender = None
        self.selected_level = 1
        self.show_stats_modal = False

    def _changed(self):
        if self.on_change:
            self.on_change()

    @property
    def percentages(self):
        return calculate_percentages(self.current_data)

    def refresh(self) -> bool:
        """Fetch statistics for the current filter; returns whether it succeeded."""
        try:
            self.loading = True
            self._changed()
            start, end = None, None
            if self.selected_date == 'custom':
                start, end = self.custom_start_date, self.custom_end_date
            payload = self.load_statistics(self.selected_date, start, end) or {}
            self.current_data = StatisticsSnapshot.from_dict(payload)
            self.level_stats = payload.get('levelStats') or {}
            self.level_tabs = level_tabs_from(self.current_data)
            self.last_updated = datetime.now()
            self.error = None
            return True
        except Exception as e:
            logger.error("Error loading statistics: %s", e)
            self.error = str(e) or "Failed to load statistics"
            return False
        finally:
            self.loading = False
            self._changed()

    def change_date_filter(self, value):
        if value not in [f['value'] for f in DATE_FILTERS]:
            raise ValueError(f"Unknown date filter: {value}")
        self.selected_date = value
        if value == 'custom':
            # Wait for the user to apply a range
            self.custom_dates_applied = False
            self._changed()
            return
        self.refresh()

    def set_custom_start_date(self, value):
        self.custom_start_date = value or None
        self.custom_dates_applied = False

    def set_custom_end_date(self, value):
        self.custom_end_date = value or None
        self.custom_dates_applied = False

    def apply_custom_dates(self) -> bool:
        error = validate_custom_range(self.custom_start_date, self.custom_end_date)
        if error:
            raise ValueError(error)
        try:
            self.is_custom_date_loading = True
            ok = self.refresh()
        finally:
            self.is_custom_date_loading = False
        self.custom_dates_applied = ok
        self._changed()
        return ok

    def select_card(self, view, gender=None):
        self.current_view = view
        self.selected_gender = gender
        self.show_stats_modal = True
        self._changed()

    def select_level(self, level):
        self.selected_level = parse_level(level) or 1
        self._changed()

    def close_modal(self):
        self.show_stats_modal = False
        self._changed()


def create_dashboard_view(page: ft.Page, show_snackbar, user_role, load_statistics):
    """Create the statistics dashboard view."""
    content = ft.Column(spacing=24, expand=True, scroll=ft.ScrollMode.AUTO)
    controller = DashboardController(load_statistics)
    dialog = [None]

    def run_in_background(target, *args):
        page.run_thread(target, *args)

    def on_date_change(value):
        try:
            controller.change_date_filter(value)
        except ValueError as ex:
            show_snackbar(str(ex), True)

    def on_apply():
        try:
            if not controller.apply_custom_dates():
                show_snackbar(controller.error or "Failed to load statistics", True)
        except ValueError as ex:
            show_snackbar(str(ex), True)

    modal = StatsModal(
        on_close=controller.close_modal,
        on_date_change=lambda value: run_in_background(on_date_change, value),
        on_start_date_change=controller.set_custom_start_date,
        on_end_date_change=controller.set_custom_end_date,
        on_apply_filters=lambda: run_in_background(on_apply),
        on_update=lambda: render(),
    )

    def refresh():
        if not controller.refresh():
            show_snackbar(controller.error or "Failed to load statistics", True)

    def level_selector():
        return ft.Row([
            ft.Text("Level:", weight=ft.FontWeight.W_500),
            *[
                ft.Chip(
                    label=ft.Text(tab['label']),
                    selected=controller.selected_level == tab['value'],
                    on_select=lambda e, level=tab['value']: controller.select_level(level),
                )
                for tab in controller.level_tabs
            ],
        ], spacing=8, wrap=True)

    def modal_props():
        return dict(
            selected_date=controller.selected_date,
            current_data=controller.current_data,
            percentages=controller.percentages,
            loading=controller.loading,
            custom_start_date=controller.custom_start_date,
            custom_end_date=controller.custom_end_date,
            custom_dates_applied=controller.custom_dates_applied,
            is_custom_date_loading=controller.is_custom_date_loading,
            level_stats=controller.level_stats,
            level_tabs=controller.level_tabs,
            last_updated=controller.last_updated,
        )

    def sync_dialog():
        if not controller.show_stats_modal:
            if dialog[0] is not None:
                closing, dialog[0] = dialog[0], None
                page.close(closing)
            return
        if dialog[0] is None:
            dialog[0] = modal.build(True, **modal_props())
            page.open(dialog[0])
        else:
            dialog[0].content = modal.build_content(**modal_props())

    def render():
        content.controls = [
            create_dashboard_header(
                dashboard_data={'last_updated': controller.last_updated},
                loading=controller.loading,
                on_refresh=lambda: run_in_background(refresh),
                user_role=user_role,
            ),
            level_selector(),
            create_stats_cards(
                controller.current_data, controller.percentages,
                controller.current_view, controller.selected_gender,
                controller.selected_level, controller.select_card,
                loading=controller.loading, breakpoint=get_breakpoint(page),
            ),
        ]
        sync_dialog()
        page.update()

    controller.on_change = render
    run_in_background(refresh)

    return ft.Container(content=content, padding=20, expand=True)
