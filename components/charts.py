"""
components/charts.py
────────────────────
Plotly chart builders for the ride dashboard.

Standalone functions that take aggregation results and return Plotly
Figure objects. No app state, no NiceGUI context assumptions.
"""
import plotly.graph_objects as go

from constants import (
    BEHAVIOR_COLORS,
    BEHAVIOR_LABELS,
    MODE_COLORS,
    MODE_NAMES,
    THEME_DARK,
)
from core.route_payload import speed_color

MODEBAR_REMOVE = ['zoom', 'pan', 'select', 'lasso2d', 'zoomIn', 'zoomOut', 'autoScale', 'resetScale', 'toImage']

ACCENT = '#00E676'
SECONDARY = '#40C4FF'
SELECTED = '#FFAB40'
ENERGY = '#B388FF'


def _apply_theme(fig, theme=THEME_DARK, height=300, showlegend=False):
    """Shared transparent layout used by every dashboard chart."""
    fig.update_layout(
        template='plotly_dark' if theme == THEME_DARK else 'plotly_white',
        paper_bgcolor='rgba(0,0,0,0)',
        plot_bgcolor='rgba(0,0,0,0)',
        height=height,
        margin=dict(l=20, r=20, t=20, b=20),
        showlegend=showlegend,
        font=dict(color='#a1a1aa' if theme == THEME_DARK else '#3f3f46'),
        modebar={'remove': MODEBAR_REMOVE},
    )
    if showlegend:
        fig.update_layout(legend=dict(orientation='h', yanchor='bottom', y=1.02, x=0))
    return fig


def _empty_figure(theme=THEME_DARK, height=300, message='No data'):
    fig = go.Figure()
    fig.add_annotation(text=message, showarrow=False, font=dict(size=14))
    fig.update_xaxes(visible=False)
    fig.update_yaxes(visible=False)
    return _apply_theme(fig, theme, height)


def build_monthly_chart(rollups, theme=THEME_DARK, selected_key=None):
    """
    Monthly distance and energy bars with mean efficiency on a secondary axis.

    Each bar carries its month key in ``customdata`` so a click can
    toggle the period filter; the selected month is highlighted and the
    others are dimmed while a period is selected.
    """
    if not rollups:
        return _empty_figure(theme)

    names = [r.name for r in rollups]
    keys = [r.key for r in rollups]
    bar_colors = [SELECTED if key == selected_key else ACCENT for key in keys]
    opacity = [1.0 if selected_key in (None, key) else 0.3 for key in keys]

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=names,
        y=[r.distance for r in rollups],
        name='Distance (km)',
        marker=dict(color=bar_colors, opacity=opacity),
        customdata=keys,
        offsetgroup='distance',
        hovertemplate='%{x}<br>%{y:.1f} km<extra></extra>',
    ))
    fig.add_trace(go.Bar(
        x=names,
        y=[r.energy for r in rollups],
        name='Energy (kWh)',
        yaxis='y3',
        marker=dict(color=ENERGY, opacity=opacity),
        customdata=keys,
        offsetgroup='energy',
        hovertemplate='%{x}<br>%{y:.2f} kWh<extra></extra>',
    ))
    fig.add_trace(go.Scatter(
        x=names,
        y=[r.efficiency for r in rollups],
        name='Efficiency (Wh/km)',
        yaxis='y2',
        mode='lines+markers',
        line=dict(color=SECONDARY, width=2),
        hovertemplate='%{x}<br>%{y:.1f} Wh/km<extra></extra>',
    ))
    fig.update_layout(
        yaxis=dict(title='km'),
        yaxis2=dict(title='Wh/km', overlaying='y', side='right', showgrid=False),
        yaxis3=dict(overlaying='y', visible=False),
        barmode='group',
        bargap=0.3,
    )
    return _apply_theme(fig, theme, height=320, showlegend=True)


def build_efficiency_trend(points, theme=THEME_DARK):
    """Filled Wh/km line over the most recent rides."""
    if not points:
        return _empty_figure(theme)

    fig = go.Figure(data=[
        go.Scatter(
            x=list(range(1, len(points) + 1)),
            y=[p.efficiency for p in points],
            customdata=[p.date for p in points],
            mode='lines',
            line=dict(color=SECONDARY, width=2, shape='spline'),
            fill='tozeroy',
            fillcolor='rgba(64,196,255,0.15)',
            hovertemplate='%{customdata}<br>%{y:.1f} Wh/km<extra></extra>',
        )
    ])
    fig.update_layout(xaxis=dict(showticklabels=False), yaxis=dict(title='Wh/km'))
    return _apply_theme(fig, theme, height=280)


def build_recent_modes_chart(series, theme=THEME_DARK):
    """Stacked per-ride mode distances for the most recent rides."""
    if not series:
        return _empty_figure(theme)

    colors = MODE_COLORS.get(theme, MODE_COLORS[THEME_DARK])
    x_labels = [f"{entry['date']} #{i}" for i, entry in enumerate(series, start=1)]
    fig = go.Figure()
    for mode in MODE_NAMES:
        values = [entry.get(mode, 0) for entry in series]
        if not any(values):
            continue
        fig.add_trace(go.Bar(
            x=x_labels,
            y=values,
            name=mode,
            marker=dict(color=colors[mode]),
            hovertemplate=f'{mode}: %{{y:.2f}} km<extra></extra>',
        ))
    fig.update_layout(barmode='stack', xaxis=dict(showticklabels=False), yaxis=dict(title='km'))
    return _apply_theme(fig, theme, height=280, showlegend=True)


def build_lifetime_modes_chart(totals, theme=THEME_DARK):
    """Horizontal bars of total km per mode, largest first."""
    if not totals:
        return _empty_figure(theme)

    colors = MODE_COLORS.get(theme, MODE_COLORS[THEME_DARK])
    ordered = list(reversed(totals))
    fig = go.Figure(data=[
        go.Bar(
            y=[t.name for t in ordered],
            x=[t.distance for t in ordered],
            orientation='h',
            marker=dict(color=[colors.get(t.name, ACCENT) for t in ordered]),
            text=[f"{t.distance:.1f} km" for t in ordered],
            textposition='auto',
            hoverinfo='none',
        )
    ])
    return _apply_theme(fig, theme, height=260)


def build_mode_pie(totals, theme=THEME_DARK, height=260):
    """Donut of mode share for one ride or a selection."""
    if not totals:
        return _empty_figure(theme, height=height)

    colors = MODE_COLORS.get(theme, MODE_COLORS[THEME_DARK])
    fig = go.Figure(data=[
        go.Pie(
            labels=[t.name for t in totals],
            values=[t.distance for t in totals],
            hole=0.55,
            marker=dict(colors=[colors.get(t.name, ACCENT) for t in totals]),
            textinfo='percent',
            hovertemplate='%{label}: %{value:.2f} km<extra></extra>',
        )
    ])
    return _apply_theme(fig, theme, height=height, showlegend=True)


def build_behavior_pie(behavior, theme=THEME_DARK):
    """Riding/braking/coasting percentages as a donut."""
    values = [behavior.riding, behavior.braking, behavior.coasting]
    if not any(values):
        return _empty_figure(theme)

    colors = BEHAVIOR_COLORS.get(theme, BEHAVIOR_COLORS[THEME_DARK])
    keys = ['riding', 'braking', 'coasting']
    fig = go.Figure(data=[
        go.Pie(
            labels=[BEHAVIOR_LABELS[k] for k in keys],
            values=values,
            hole=0.55,
            marker=dict(colors=[colors[k] for k in keys]),
            textinfo='percent',
            sort=False,
            hovertemplate='%{label}: %{value:.1f}%<extra></extra>',
        )
    ])
    return _apply_theme(fig, theme, height=260, showlegend=True)


def build_speed_profile(speeds, theme=THEME_DARK):
    """Speed samples over the ride, markers coloured by speed band."""
    if not speeds:
        return _empty_figure(theme, height=220, message='No speed data')

    fig = go.Figure(data=[
        go.Scatter(
            x=list(range(1, len(speeds) + 1)),
            y=list(speeds),
            mode='lines+markers',
            line=dict(color='rgba(161,161,170,0.5)', width=1),
            marker=dict(color=[speed_color(s) for s in speeds], size=5),
            hovertemplate='%{y:.1f} km/h<extra></extra>',
        )
    ])
    fig.update_layout(xaxis=dict(title='Sample'), yaxis=dict(title='km/h'))
    return _apply_theme(fig, theme, height=220)


def build_breakdown_chart(points, theme=THEME_DARK):
    """Distance bars with efficiency line for one period summary."""
    if not points:
        return _empty_figure(theme, height=260)

    names = [p.name for p in points]
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=names,
        y=[p.distance for p in points],
        name='Distance (km)',
        marker=dict(color=ACCENT),
    ))
    fig.add_trace(go.Scatter(
        x=names,
        y=[p.efficiency for p in points],
        name='Efficiency (Wh/km)',
        yaxis='y2',
        mode='lines+markers',
        line=dict(color=SECONDARY, width=2),
    ))
    fig.update_layout(
        xaxis=dict(type='category'),
        yaxis=dict(title='km'),
        yaxis2=dict(title='Wh/km', overlaying='y', side='right', showgrid=False),
    )
    return _apply_theme(fig, theme, height=260, showlegend=True)
