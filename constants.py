"""Shared thresholds, column names, colours, and UI copy for Ather Stats."""

from __future__ import annotations

from typing import Dict, Tuple

# --- Data source -----------------------------------------------------------

FETCH_TIMEOUT_SEC = 15
DEFAULT_DB_PATH = 'ather_stats.db'

SETTING_SOURCE_URL = 'ather_stats_csv_url'
SETTING_THEME = 'ather-stats-theme'

THEME_DARK = 'dark'
THEME_LIGHT = 'light'
DEFAULT_THEME = THEME_DARK

# Prefixes of an HTML page served instead of a published CSV.
MARKUP_SIGNATURES: Tuple[str, ...] = ('<!doctype html', '<html')

RECOGNIZED_COLUMNS: Tuple[str, ...] = (
    'ride_id',
    'date',
    'month',
    'year',
    'distance_m',
    'efficiency_wh_km',
    'efficiency_km_kwh',
    'duration_secs',
    'top_speed_kmph',
    'avg_speed_kmph',
    'soc_usage_wh',
    'soc_usage_percent',
    'ride_start_time',
    'riding_m',
    'braking_m',
    'coasting_m',
    'eco_mode_distance_m',
    'smart_eco_mode_distance_m',
    'ride_mode_distance_m',
    'sport_mode_distance_m',
    'warp_mode_distance_m',
    'zip_mode_distance_m',
    'ride_start_lat',
    'ride_start_lon',
    'ride_end_lat',
    'ride_end_lon',
    'ride_start_location',
    'ride_end_location',
    'polyline',
    'speed',
)

# Display name -> source column, in display order.
MODE_COLUMNS: Dict[str, str] = {
    'Eco': 'eco_mode_distance_m',
    'SmartEco': 'smart_eco_mode_distance_m',
    'Ride': 'ride_mode_distance_m',
    'Sport': 'sport_mode_distance_m',
    'Warp': 'warp_mode_distance_m',
    'Zip': 'zip_mode_distance_m',
}
MODE_NAMES: Tuple[str, ...] = tuple(MODE_COLUMNS)

# --- Filters and aggregation -------------------------------------------------

LONG_RIDE_MIN_KM = 10.0
RECENT_MODE_WINDOW = 15
EFFICIENCY_TREND_WINDOW = 30
FILTER_ALL_MONTHS = 'all'

# Upper bounds (inclusive) for calendar levels 1-3; anything above the last is level 4.
CALENDAR_LEVEL_BOUNDS: Tuple[float, ...] = (5.0, 15.0, 30.0)
CALENDAR_MAX_LEVEL = 4

MONTH_ABBREVIATIONS: Tuple[str, ...] = (
    'Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
    'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec',
)

TREND_UP = 'up'
TREND_DOWN = 'down'
TREND_SAME = 'same'

SUMMARY_DAILY = 'daily'
SUMMARY_WEEKLY = 'weekly'
SUMMARY_MONTHLY = 'monthly'
SUMMARY_VIEWS: Tuple[str, ...] = (SUMMARY_DAILY, SUMMARY_WEEKLY, SUMMARY_MONTHLY)

# --- Map ---------------------------------------------------------------------

DEFAULT_MAP_CENTER: Tuple[float, float] = (12.9716, 77.5946)  # Bangalore

# (exclusive upper speed km/h, colour); the last entry catches everything faster.
SPEED_COLOR_BANDS: Tuple[Tuple[float, str], ...] = (
    (10.0, '#00E676'),
    (20.0, '#76FF03'),
    (30.0, '#FFEB3B'),
    (40.0, '#FFC107'),
    (50.0, '#FF9800'),
    (float('inf'), '#FF5252'),
)

# --- Colours -----------------------------------------------------------------

MODE_COLORS: Dict[str, Dict[str, str]] = {
    THEME_DARK: {
        'Eco': '#00E676',
        'SmartEco': '#69F0AE',
        'Ride': '#40C4FF',
        'Sport': '#FFAB40',
        'Warp': '#FF5252',
        'Zip': '#E040FB',
    },
    THEME_LIGHT: {
        'Eco': '#00A152',
        'SmartEco': '#2E7D32',
        'Ride': '#0277BD',
        'Sport': '#EF6C00',
        'Warp': '#C62828',
        'Zip': '#8E24AA',
    },
}

BEHAVIOR_COLORS: Dict[str, Dict[str, str]] = {
    THEME_DARK: {'riding': '#00E676', 'braking': '#FF5252', 'coasting': '#40C4FF'},
    THEME_LIGHT: {'riding': '#00A152', 'braking': '#D32F2F', 'coasting': '#0288D1'},
}

BEHAVIOR_LABELS: Dict[str, str] = {
    'riding': 'Active Riding',
    'braking': 'Braking',
    'coasting': 'Coasting',
}

# --- UI copy -----------------------------------------------------------------

UI_COPY: Dict[str, str] = {
    'app_title': 'Ather Stats',
    'setup_title': 'Welcome to Ather Stats',
    'setup_subtitle': 'Connect your data to get started',
    'setup_help': "File > Share > Publish to Web > Select 'Ride Log' > CSV",
    'setup_placeholder': 'https://docs.google.com/.../pub?output=csv',
    'no_rides': 'No valid ride data found. Please check the CSV URL.',
    'no_gps': 'No GPS data available for this ride',
    'timeout': 'Request timed out. Please check your internet connection.',
    'http': 'Failed to fetch CSV: {status} {reason}',
    'network': 'Could not reach the data source. Please check the URL and your connection.',
    'wrong_format': (
        'The URL returned HTML instead of CSV. Please ensure you used '
        '"File > Share > Publish to Web > CSV" link.'
    ),
    'empty': 'No rides found or CSV is empty.',
    'processing': 'Failed to process the CSV data. Structure may be incorrect.',
    'rows_skipped': '{dropped} of {total} row(s) could not be read and were skipped',
    'last_updated': 'Updated {when}',
}
