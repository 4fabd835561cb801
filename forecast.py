# ABOUTME: Open-Meteo forecast client with the fixed query templates of each endpoint
# ABOUTME: Raises UpstreamTransportError / DecodeError, never retries

import logging
from typing import Any

import requests

from errors import DecodeError, UpstreamTransportError


logger = logging.getLogger(__name__)

OPEN_METEO_BASE_URL = 'https://api.open-meteo.com/v1/forecast'

CURRENT_FIELDS = (
    'temperature_2m,relative_humidity_2m,apparent_temperature,'
    'weather_code,wind_speed_10m,precipitation'
)
HOURLY_FIELDS = 'temperature_2m,weather_code,precipitation_probability'
DAILY_FIELDS = (
    'weather_code,temperature_2m_max,temperature_2m_min,temperature_2m_mean,'
    'precipitation_sum,precipitation_probability_max,rain_sum,showers_sum,'
    'snowfall_sum,windspeed_10m_max,winddirection_10m_dominant,'
    'pressure_msl_max,pressure_msl_min,pressure_msl_mean,'
    'relative_humidity_2m_max,relative_humidity_2m_min,relative_humidity_2m_mean,'
    'uv_index_max,uv_index_clear_sky_max'
)
REPORT_DAILY_FIELDS = (
    'weather_code,temperature_2m_max,temperature_2m_min,uv_index_max,precipitation_sum'
)

# 30 past days are prepended so the anomaly detector has a history to compare to
FORECAST_PARAMS: dict[str, str | int] = {
    'current': CURRENT_FIELDS,
    'hourly': HOURLY_FIELDS,
    'daily': DAILY_FIELDS,
    'timezone': 'auto',
    'past_days': 30,
    'forecast_days': 7,
}

REPORT_PARAMS: dict[str, str | int] = {
    'current': CURRENT_FIELDS,
    'hourly': HOURLY_FIELDS,
    'daily': REPORT_DAILY_FIELDS,
    'timezone': 'auto',
    'past_days': 30,
    'forecast_days': 7,
}

COMPARISON_PARAMS: dict[str, str | int] = {
    'current': CURRENT_FIELDS,
    'daily': DAILY_FIELDS,
    'timezone': 'auto',
    'forecast_days': 1,
}

CURRENT_ONLY_PARAMS: dict[str, str | int] = {
    'current': CURRENT_FIELDS,
    'timezone': 'auto',
}

DEFAULT_TIMEOUT = 10
BULK_TIMEOUT = 30


class ForecastClient:
    """Open-Meteo forecast API client"""

    def __init__(self, base_url: str = OPEN_METEO_BASE_URL, timeout: int = DEFAULT_TIMEOUT):
        self.name = 'OpenMeteo'
        self.base_url = base_url
        self.timeout = timeout

    def fetch(
        self,
        lat: float,
        lon: float,
        params: dict[str, str | int],
        timeout: int | None = None,
        required_keys: tuple[str, ...] = ('current',),
    ) -> dict[str, Any]:
        """Issue one forecast request and return the decoded payload"""
        query: dict[str, str | float | int] = {'latitude': lat, 'longitude': lon}
        query.update(params)

        try:
            response = requests.get(
                self.base_url, params=query, timeout=timeout or self.timeout
            )
            logger.debug('🌤️  Open-Meteo API URL: %s', response.url)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error('❌ Open-Meteo API error for (%s, %s): %s', lat, lon, e)
            msg = 'Could not connect to weather service. Please try again later.'
            raise UpstreamTransportError(msg) from e

        try:
            data = response.json()
        except ValueError as e:
            logger.error('❌ Open-Meteo returned a non-JSON body: %s', e)
            msg = 'Weather service returned an unreadable response'
            raise DecodeError(msg) from e

        if not isinstance(data, dict):
            msg = 'Weather service returned an unexpected payload'
            raise DecodeError(msg)

        missing = [key for key in required_keys if not isinstance(data.get(key), dict)]
        if missing:
            msg = f'Weather service response is missing: {", ".join(missing)}'
            raise DecodeError(msg)

        return data

    def fetch_forecast(self, lat: float, lon: float) -> dict[str, Any]:
        """Current, hourly and daily data with 30 past days and 7 forecast days"""
        return self.fetch(
            lat, lon, FORECAST_PARAMS, required_keys=('current', 'hourly', 'daily')
        )

    def fetch_report_data(self, lat: float, lon: float) -> dict[str, Any]:
        """Reduced daily field set used for the AI detailed report"""
        return self.fetch(
            lat, lon, REPORT_PARAMS, required_keys=('current', 'hourly', 'daily')
        )

    def fetch_comparison_data(self, lat: float, lon: float) -> dict[str, Any]:
        """Current conditions plus a single forecast day"""
        return self.fetch(
            lat, lon, COMPARISON_PARAMS, required_keys=('current', 'daily')
        )

    def fetch_current(self, lat: float, lon: float) -> dict[str, Any]:
        """Current conditions only, used by the bulk map view"""
        return self.fetch(lat, lon, CURRENT_ONLY_PARAMS, timeout=BULK_TIMEOUT)
