# ABOUTME: Turns Open-Meteo parallel-array time series into per-interval records
# ABOUTME: Current, hourly (next 24 hours) and daily (7-day forecast window) views

import logging
import zoneinfo
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from weather_codes import describe, main_category


logger = logging.getLogger(__name__)

HOURLY_WINDOW = 24
FORECAST_DAYS = 7
CURRENT_HOUR_TOLERANCE = timedelta(minutes=60)


def _round(value: Any, default: float | None = 0) -> float | None:
    """Round to one decimal, substituting default for missing values"""
    if value is None:
        return default
    return round(value, 1)


def _at(series: dict[str, Any], key: str, index: int) -> Any:
    """Value of series[key][index], or None when the field or entry is absent"""
    values = series.get(key)
    if not isinstance(values, list) or index >= len(values):
        return None
    return values[index]


@dataclass
class NormalizedCurrentWeather:
    time: str | None
    temperature: float | None
    apparent_temperature: float | None
    humidity: float | None
    wind_speed: float | None
    precipitation: float
    weather_code: int | None
    weather_description: str
    weather_main: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class NormalizedHourlyEntry:
    time: str
    temperature: float | None
    weather_code: int | None
    weather_description: str
    precipitation_probability: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class NormalizedDailyEntry:
    date: str
    weather_code: int | None
    weather_description: str
    temperature_2m_max: float | None
    temperature_2m_min: float | None
    temperature_2m_mean: float | None
    precipitation_sum: float | None
    precipitation_probability_max: float
    rain_sum: float | None
    showers_sum: float | None
    snowfall_sum: float | None
    windspeed_10m_max: float | None
    winddirection_10m_dominant: float
    pressure_msl_max: float | None
    pressure_msl_min: float | None
    pressure_msl_mean: float | None
    relative_humidity_2m_max: float
    relative_humidity_2m_min: float
    relative_humidity_2m_mean: float | None
    uv_index_max: float | None
    uv_index_clear_sky_max: float | None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        # Older dashboard builds read these names
        data['max_temperature'] = self.temperature_2m_max
        data['min_temperature'] = self.temperature_2m_min
        data['uv_index'] = self.uv_index_max
        return data


def normalize_current(current: dict[str, Any]) -> NormalizedCurrentWeather:
    """Process current weather data into a structured record"""
    weather_code = current.get('weather_code')
    return NormalizedCurrentWeather(
        time=current.get('time'),
        temperature=_round(current.get('temperature_2m'), None),
        apparent_temperature=_round(current.get('apparent_temperature'), None),
        humidity=current.get('relative_humidity_2m'),
        wind_speed=_round(current.get('wind_speed_10m'), None),
        precipitation=current.get('precipitation') or 0,
        weather_code=weather_code,
        weather_description=describe(weather_code),
        weather_main=main_category(weather_code),
    )


def _parse_time(time_str: str, tz: zoneinfo.ZoneInfo | timezone) -> datetime:
    parsed = datetime.fromisoformat(time_str.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def find_current_hour_index(
    times: list[str], tz_name: str | None = None, now: datetime | None = None
) -> int:
    """Index of the first hour that is ahead of now or within an hour of it"""
    tz: zoneinfo.ZoneInfo | timezone = timezone.utc
    if tz_name:
        try:
            tz = zoneinfo.ZoneInfo(tz_name)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError):
            logger.warning('⚠️  Unknown timezone %s, assuming UTC', tz_name)

    current_time = now or datetime.now(timezone.utc)
    if current_time.tzinfo is None:
        current_time = current_time.replace(tzinfo=timezone.utc)

    for i, time_str in enumerate(times):
        try:
            hour_time = _parse_time(time_str, tz)
        except (TypeError, ValueError):
            continue
        if (
            hour_time > current_time
            or abs(hour_time - current_time) <= CURRENT_HOUR_TOLERANCE
        ):
            return i

    return 0


def normalize_hourly(
    hourly: dict[str, Any], tz_name: str | None = None, now: datetime | None = None
) -> list[NormalizedHourlyEntry]:
    """Next 24 hours starting from the current hour"""
    times = hourly.get('time') or []
    start_index = find_current_hour_index(times, tz_name, now)

    forecast = []
    for i in range(start_index, min(start_index + HOURLY_WINDOW, len(times))):
        weather_code = _at(hourly, 'weather_code', i)
        forecast.append(
            NormalizedHourlyEntry(
                time=times[i],
                temperature=_round(_at(hourly, 'temperature_2m', i), None),
                weather_code=weather_code,
                weather_description=describe(weather_code),
                precipitation_probability=_at(hourly, 'precipitation_probability', i)
                or 0,
            )
        )
    return forecast


def normalize_daily(daily: dict[str, Any]) -> list[NormalizedDailyEntry]:
    """The trailing 7 days of the daily series, i.e. the forecast window"""
    times = daily.get('time') or []
    total_days = len(times)
    start_index = max(0, total_days - FORECAST_DAYS)

    forecast = []
    for i in range(start_index, total_days):
        weather_code = _at(daily, 'weather_code', i)
        forecast.append(
            NormalizedDailyEntry(
                date=times[i],
                weather_code=weather_code,
                weather_description=describe(weather_code),
                temperature_2m_max=_round(_at(daily, 'temperature_2m_max', i)),
                temperature_2m_min=_round(_at(daily, 'temperature_2m_min', i)),
                temperature_2m_mean=_round(_at(daily, 'temperature_2m_mean', i), None),
                precipitation_sum=_round(_at(daily, 'precipitation_sum', i)),
                precipitation_probability_max=_at(
                    daily, 'precipitation_probability_max', i
                )
                or 0,
                rain_sum=_round(_at(daily, 'rain_sum', i)),
                showers_sum=_round(_at(daily, 'showers_sum', i)),
                snowfall_sum=_round(_at(daily, 'snowfall_sum', i)),
                windspeed_10m_max=_round(_at(daily, 'windspeed_10m_max', i)),
                winddirection_10m_dominant=_at(daily, 'winddirection_10m_dominant', i)
                or 0,
                pressure_msl_max=_round(_at(daily, 'pressure_msl_max', i)),
                pressure_msl_min=_round(_at(daily, 'pressure_msl_min', i)),
                pressure_msl_mean=_round(_at(daily, 'pressure_msl_mean', i), None),
                relative_humidity_2m_max=_at(daily, 'relative_humidity_2m_max', i) or 0,
                relative_humidity_2m_min=_at(daily, 'relative_humidity_2m_min', i) or 0,
                relative_humidity_2m_mean=_at(daily, 'relative_humidity_2m_mean', i),
                uv_index_max=_round(_at(daily, 'uv_index_max', i)),
                uv_index_clear_sky_max=_round(_at(daily, 'uv_index_clear_sky_max', i)),
            )
        )
    return forecast
