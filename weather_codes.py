# ABOUTME: WMO weather code catalog used by the Open-Meteo based pipeline
# ABOUTME: Maps integer codes to descriptions and broad weather categories

from typing import Any


WEATHER_CODES = {
    0: 'Clear sky',
    1: 'Mainly clear',
    2: 'Partly cloudy',
    3: 'Overcast',
    45: 'Foggy',
    48: 'Depositing rime fog',
    51: 'Light drizzle',
    53: 'Moderate drizzle',
    55: 'Dense drizzle',
    61: 'Slight rain',
    63: 'Moderate rain',
    65: 'Heavy rain',
    71: 'Slight snow',
    73: 'Moderate snow',
    75: 'Heavy snow',
    77: 'Snow grains',
    80: 'Slight rain showers',
    81: 'Moderate rain showers',
    82: 'Violent rain showers',
    85: 'Slight snow showers',
    86: 'Heavy snow showers',
    95: 'Thunderstorm',
    96: 'Thunderstorm with slight hail',
    99: 'Thunderstorm with heavy hail',
}

UNKNOWN = 'Unknown'

# Inclusive code ranges, checked in order
CATEGORY_RANGES = [
    (0, 0, 'Clear'),
    (1, 3, 'Clouds'),
    (45, 48, 'Fog'),
    (51, 55, 'Drizzle'),
    (61, 65, 'Rain'),
    (71, 77, 'Snow'),
    (80, 82, 'Rain'),
    (85, 86, 'Snow'),
    (95, 99, 'Thunderstorm'),
]


def describe(code: Any) -> str:
    """Get human-readable weather description from WMO code"""
    if isinstance(code, bool) or not isinstance(code, int):
        return UNKNOWN
    return WEATHER_CODES.get(code, UNKNOWN)


def main_category(code: Any) -> str:
    """Get the broad weather category (Clear, Rain, Snow, ...) for a WMO code"""
    if isinstance(code, bool) or not isinstance(code, int):
        return UNKNOWN
    for low, high, category in CATEGORY_RANGES:
        if low <= code <= high:
            return category
    return UNKNOWN
