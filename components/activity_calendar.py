"""
components/activity_calendar.py
───────────────────────────────
Year heatmap of riding distance, one cell per day, weeks as columns.
"""
from __future__ import annotations

from nicegui import ui

from constants import THEME_DARK, THEME_LIGHT
from core.aggregations import calendar_days

LEVEL_COLORS = {
    THEME_DARK: ('#27272a', '#064e3b', '#047857', '#10b981', '#6ee7b7'),
    THEME_LIGHT: ('#e4e4e7', '#bbf7d0', '#4ade80', '#16a34a', '#166534'),
}


def week_columns(cells):
    """Split the padded day cells into columns of seven (Sunday first)."""
    return [cells[i:i + 7] for i in range(0, len(cells), 7)]


class ActivityCalendar:
    """Calendar card with its own year picker."""

    def __init__(self, state):
        self.state = state
        self.container = None

    def build(self, buckets, years, theme=THEME_DARK):
        """Render into the current context for ``state.selected_year`` (defaults to newest)."""
        year = self.state.selected_year
        if years and year not in years:
            year = years[0]
        colors = LEVEL_COLORS.get(theme, LEVEL_COLORS[THEME_DARK])

        with ui.card().classes('w-full bg-zinc-900/80 border border-zinc-800 p-4 gap-3').style(
            'border-radius: 12px;'
        ) as self.container:
            with ui.row().classes('w-full items-center justify-between'):
                ui.label('ACTIVITY').classes('text-[10px] text-zinc-500 font-semibold tracking-[0.10em]')
                if years:
                    ui.select(
                        options=list(years),
                        value=year,
                        on_change=self._on_year_change,
                    ).classes('w-28').props('outlined dense options-dense')

            if not years:
                ui.label('No dated rides yet.').classes('text-sm text-zinc-500')
                return

            cells = calendar_days(buckets, year)
            with ui.scroll_area().classes('w-full h-32'):
                with ui.row().classes('gap-[3px] no-wrap'):
                    for column in week_columns(cells):
                        with ui.column().classes('gap-[3px]'):
                            for cell in column:
                                square = ui.element('div').classes('w-3 h-3 rounded-sm').style(
                                    f'background-color: {colors[cell.level] if cell.date else "transparent"};'
                                )
                                if cell.date:
                                    square.tooltip(f"{cell.date}: {cell.distance:.1f} km")

            with ui.row().classes('items-center gap-1 self-end'):
                ui.label('Less').classes('text-[10px] text-zinc-500')
                for color in colors:
                    ui.element('div').classes('w-3 h-3 rounded-sm').style(f'background-color: {color};')
                ui.label('More').classes('text-[10px] text-zinc-500')

    def _on_year_change(self, e):
        self.state.selected_year = e.value
