"""
components/cards.py
───────────────────
Render helpers for the dashboard's headline cards.

Standalone NiceGUI card-building functions. Each function receives
pure data arguments and renders into the current NiceGUI context.
No app state, no self references.
"""
from nicegui import ui

from constants import BEHAVIOR_COLORS, BEHAVIOR_LABELS, THEME_DARK


def format_duration(minutes):
    """Minutes as '1h 05m' (or '42m' under an hour)."""
    total = int(round(minutes or 0))
    hours, mins = divmod(total, 60)
    if hours:
        return f"{hours}h {mins:02d}m"
    return f"{mins}m"


def create_stat_card(label, value, unit='', icon=None, accent='emerald'):
    with ui.card().classes(
        'flex-1 min-w-[150px] bg-zinc-900/80 border border-zinc-800 p-4 gap-1'
    ).style('border-radius: 12px;'):
        with ui.row().classes('items-center gap-2'):
            if icon:
                ui.icon(icon).classes(f'text-{accent}-400 text-lg')
            ui.label(label.upper()).classes('text-[10px] text-zinc-500 font-semibold tracking-[0.10em]')
        with ui.row().classes('items-baseline gap-1'):
            ui.label(str(value)).classes('text-2xl font-black text-white')
            if unit:
                ui.label(unit).classes('text-xs text-zinc-500')


def create_stat_row(totals):
    """Distance, efficiency, top speed, ride count, ride time and energy."""
    with ui.row().classes('w-full gap-3 wrap'):
        create_stat_card('Distance', f"{totals.distance:,.1f}", 'km', icon='route')
        create_stat_card('Efficiency', f"{totals.efficiency:.1f}", 'Wh/km', icon='bolt', accent='sky')
        create_stat_card('Top Speed', f"{totals.top_speed:.1f}", 'km/h', icon='speed', accent='amber')
        create_stat_card('Rides', f"{totals.rides:,}", icon='two_wheeler', accent='violet')
        create_stat_card('Ride Time', format_duration(totals.duration), icon='schedule', accent='zinc')
        create_stat_card('Energy', f"{totals.energy:.2f}", 'kWh', icon='battery_charging_full', accent='lime')


def create_behavior_bar(behavior, theme=THEME_DARK):
    """Single stacked bar of riding / braking / coasting share."""
    colors = BEHAVIOR_COLORS.get(theme, BEHAVIOR_COLORS[THEME_DARK])
    shares = [
        ('riding', behavior.riding),
        ('braking', behavior.braking),
        ('coasting', behavior.coasting),
    ]

    with ui.card().classes('w-full bg-zinc-900/80 border border-zinc-800 p-4 gap-2').style('border-radius: 12px;'):
        ui.label('RIDING BEHAVIOR').classes('text-[10px] text-zinc-500 font-semibold tracking-[0.10em]')
        with ui.element('div').classes('w-full h-3 rounded-full overflow-hidden flex bg-zinc-800'):
            for key, share in shares:
                if share > 0:
                    ui.element('div').style(f'width: {share}%; background-color: {colors[key]};')
        with ui.row().classes('w-full gap-4'):
            for key, share in shares:
                with ui.row().classes('items-center gap-1'):
                    ui.element('div').classes('w-2 h-2 rounded-full').style(f'background-color: {colors[key]};')
                    ui.label(f"{BEHAVIOR_LABELS[key]} {share:.1f}%").classes('text-xs text-zinc-400')
