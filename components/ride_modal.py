"""
components/ride_modal.py
────────────────────────
RideModal: detail dialog for one ride.

Shows overview stats, the speed profile, the mode split and the route map.
The map payload comes from core.route_payload; this module only renders it.
"""
from __future__ import annotations

import asyncio
import logging

from nicegui import ui

from constants import THEME_DARK, UI_COPY
from core.aggregations import ride_mode_breakdown
from core.route_payload import build_route_payload
from components.cards import format_duration
from components.charts import build_mode_pie, build_speed_profile


logger = logging.getLogger(__name__)

TILE_URL = r'https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png'
ROUTE_WEIGHT = 4


def group_segments_by_color(segments):
    """Collapse two-point segments into one multi-line per colour."""
    by_color = {}
    for seg in segments:
        if not isinstance(seg, (list, tuple)) or len(seg) < 5:
            continue
        by_color.setdefault(seg[4], []).append([[seg[0], seg[1]], [seg[2], seg[3]]])
    return by_color


class RideModal:
    """
    Self-contained ride detail dialog.

    Parameters
    ----------
    state : AppState
        Read for the active theme.
    """

    def __init__(self, state):
        self.state = state
        self.dialog = None

    def open(self, ride):
        theme = self.state.theme or THEME_DARK
        payload = build_route_payload(ride)

        with ui.dialog() as dialog, ui.card().classes(
            'w-full max-w-4xl bg-zinc-900 border border-zinc-800 p-6 gap-4'
        ).style('border-radius: 16px;'):
            self.dialog = dialog
            with ui.row().classes('w-full items-start justify-between'):
                with ui.column().classes('gap-0'):
                    ui.label(ride.date).classes('text-xl font-black text-white')
                    if ride.location.start_address or ride.location.end_address:
                        ui.label(
                            f"{ride.location.start_address or '?'} → {ride.location.end_address or '?'}"
                        ).classes('text-xs text-zinc-400')
                ui.button(icon='close', on_click=dialog.close, color=None).props('flat round dense').classes(
                    'text-zinc-400'
                )

            self._build_overview(ride)

            with ui.row().classes('w-full gap-4 no-wrap'):
                with ui.column().classes('flex-1 gap-1'):
                    ui.label('SPEED PROFILE').classes('text-[10px] text-zinc-500 font-semibold tracking-[0.10em]')
                    ui.plotly(build_speed_profile(ride.speed_series, theme)).classes('w-full')
                with ui.column().classes('w-72 gap-1'):
                    ui.label('MODES').classes('text-[10px] text-zinc-500 font-semibold tracking-[0.10em]')
                    ui.plotly(build_mode_pie(ride_mode_breakdown(ride), theme, height=220)).classes('w-full')

            self._build_map(payload)

        dialog.open()
        return dialog

    def _build_overview(self, ride):
        stats = [
            ('Distance', f"{ride.distance:.2f} km"),
            ('Duration', format_duration(ride.duration)),
            ('Efficiency', f"{ride.efficiency:.1f} Wh/km"),
            ('Avg Speed', f"{ride.avg_speed:.1f} km/h"),
            ('Top Speed', f"{ride.top_speed:.1f} km/h"),
            ('Energy', f"{ride.energy_used:.0f} Wh"),
            ('Battery', f"{ride.soc_usage_percent:.1f}%"),
            ('Behavior', f"{ride.behavior.riding:.0f} / {ride.behavior.braking:.0f} / {ride.behavior.coasting:.0f}"),
        ]
        with ui.grid(columns=4).classes('w-full gap-3'):
            for label, value in stats:
                with ui.column().classes('gap-0 bg-zinc-800/50 rounded-lg px-3 py-2'):
                    ui.label(label.upper()).classes('text-[10px] text-zinc-500 font-semibold')
                    ui.label(value).classes('text-sm font-bold text-white')

    def _build_map(self, payload):
        if not payload['has_route']:
            with ui.card().classes('w-full h-40 bg-zinc-950 items-center justify-center border-none no-shadow'):
                ui.icon('location_off').classes('text-zinc-600 text-3xl')
                ui.label(UI_COPY['no_gps']).classes('text-sm text-zinc-500')
            return

        with ui.card().classes('w-full h-80 bg-zinc-950 p-0 border-none no-shadow overflow-hidden'):
            m = ui.leaflet(center=payload['center'], zoom=payload['zoom'], options={
                'attributionControl': False,
            }).classes('w-full h-full')
            m.tile_layer(url_template=TILE_URL, options={'maxZoom': 19})

            for color, latlngs in group_segments_by_color(payload['segments']).items():
                m.generic_layer(
                    name='polyline',
                    args=[latlngs, {
                        'color': color, 'weight': ROUTE_WEIGHT,
                        'opacity': 1.0, 'lineCap': 'round', 'lineJoin': 'round',
                    }],
                )
            for point in (payload['start'], payload['end']):
                if point:
                    m.marker(latlng=tuple(point))

        if payload['bounds']:
            asyncio.create_task(self._fit_bounds(m, payload['bounds']))

    async def _fit_bounds(self, leaflet_map, bounds):
        try:
            await leaflet_map.initialized()
            leaflet_map.run_map_method('invalidateSize')
            leaflet_map.run_map_method('fitBounds', bounds, {'padding': [26, 26], 'maxZoom': 18})
        except (TimeoutError, RuntimeError) as ex:
            logger.warning("Map fit bounds failed: %s", ex)
