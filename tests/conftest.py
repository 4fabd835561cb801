import os
import sys
from collections.abc import Callable, Generator
from datetime import date, datetime, timedelta
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from flask import Flask
from flask.testing import FlaskClient


# Add the project root to the path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Keep the AI collaborator disabled so recommendations use the deterministic rules
os.environ['OPENAI_API_KEY'] = ''

from main import app, geocode_cache  # noqa: E402


def make_daily(
    total_days: int = 37,
    max_temp: float = 20.0,
    uv_index: float = 5.0,
    start: date = date(2024, 5, 1),
) -> dict[str, list[Any]]:
    """Daily Open-Meteo arrays with every field of the dashboard query"""
    days = [(start + timedelta(days=i)).isoformat() for i in range(total_days)]
    return {
        'time': days,
        'weather_code': [1] * total_days,
        'temperature_2m_max': [max_temp] * total_days,
        'temperature_2m_min': [max_temp - 8] * total_days,
        'temperature_2m_mean': [max_temp - 4] * total_days,
        'precipitation_sum': [0.44] * total_days,
        'precipitation_probability_max': [30] * total_days,
        'rain_sum': [0.4] * total_days,
        'showers_sum': [0.04] * total_days,
        'snowfall_sum': [0.0] * total_days,
        'windspeed_10m_max': [12.34] * total_days,
        'winddirection_10m_dominant': [180] * total_days,
        'pressure_msl_max': [1015.26] * total_days,
        'pressure_msl_min': [1008.71] * total_days,
        'pressure_msl_mean': [1012.4] * total_days,
        'relative_humidity_2m_max': [90] * total_days,
        'relative_humidity_2m_min': [45] * total_days,
        'relative_humidity_2m_mean': [68] * total_days,
        'uv_index_max': [uv_index] * total_days,
        'uv_index_clear_sky_max': [uv_index + 0.5] * total_days,
    }


def make_hourly(
    hours: int = 48, start: datetime = datetime(2024, 6, 6, 0, 0)
) -> dict[str, list[Any]]:
    """Hourly Open-Meteo arrays starting at a fixed local time"""
    times = [(start + timedelta(hours=i)).strftime('%Y-%m-%dT%H:%M') for i in range(hours)]
    return {
        'time': times,
        'temperature_2m': [20.0 + i * 0.11 for i in range(hours)],
        'weather_code': [2] * hours,
        'precipitation_probability': [10] * hours,
    }


@pytest.fixture  # type: ignore[misc]
def flask_app() -> Flask:
    """Create a Flask app instance for testing"""
    app.config['TESTING'] = True
    return app


@pytest.fixture  # type: ignore[misc]
def client(flask_app: Flask) -> FlaskClient:
    """Create a test client for the Flask app"""
    return flask_app.test_client()


@pytest.fixture(autouse=True)  # type: ignore[misc]
def clear_geocode_cache() -> Generator[None, None, None]:
    """Start every test with an empty reverse geocode cache"""
    geocode_cache._cache.clear()
    yield
    geocode_cache._cache.clear()


@pytest.fixture  # type: ignore[misc]
def mock_current() -> dict[str, Any]:
    """Raw Open-Meteo current block"""
    return {
        'time': '2024-06-06T12:00',
        'interval': 900,
        'temperature_2m': 24.36,
        'relative_humidity_2m': 65,
        'apparent_temperature': 25.04,
        'weather_code': 2,
        'wind_speed_10m': 8.27,
        'precipitation': 0.0,
    }


@pytest.fixture  # type: ignore[misc]
def mock_open_meteo_response(mock_current: dict[str, Any]) -> dict[str, Any]:
    """Mock Open-Meteo response for the dashboard query (30 past + 7 forecast days)"""
    return {
        'latitude': 21.0,
        'longitude': 105.875,
        'timezone': 'Asia/Bangkok',
        'elevation': 12.0,
        'current': mock_current,
        'hourly': make_hourly(),
        'daily': make_daily(),
    }


@pytest.fixture  # type: ignore[misc]
def mock_nominatim_response() -> dict[str, Any]:
    """Mock Nominatim reverse geocoding response"""
    return {
        'place_id': 123456,
        'name': 'Hoan Kiem Lake',
        'display_name': 'Hoan Kiem Lake, Hoan Kiem, Hanoi, Vietnam',
        'address': {
            'road': 'Dinh Tien Hoang',
            'suburb': 'Hoan Kiem',
            'city': 'Hanoi',
            'country': 'Vietnam',
        },
    }


@pytest.fixture  # type: ignore[misc]
def make_response() -> Callable[..., MagicMock]:
    """Build a mock requests.Response returning the given JSON"""

    def _make(payload: Any = None, json_error: Exception | None = None) -> MagicMock:
        response = MagicMock()
        response.raise_for_status.return_value = None
        if json_error is not None:
            response.json.side_effect = json_error
        else:
            response.json.return_value = payload
        return response

    return _make


@pytest.fixture  # type: ignore[misc]
def mock_requests_get() -> Generator[MagicMock, None, None]:
    """Mock requests.get for testing API calls"""
    with patch('requests.get') as mock_get:
        yield mock_get


@pytest.fixture  # type: ignore[misc]
def daily_factory() -> Callable[..., dict[str, list[Any]]]:
    """Factory for daily Open-Meteo arrays of any length"""
    return make_daily


@pytest.fixture  # type: ignore[misc]
def hourly_factory() -> Callable[..., dict[str, list[Any]]]:
    """Factory for hourly Open-Meteo arrays"""
    return make_hourly
