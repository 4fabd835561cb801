# ABOUTME: Temperature anomaly detection against the 30-day historical mean
# ABOUTME: Pure function over the raw current/daily Open-Meteo structures

from dataclasses import dataclass
from typing import Any


HISTORY_DAYS = 30
FORECAST_DAYS = 7
ANOMALY_THRESHOLD = 5.0  # degrees C

INSUFFICIENT_DATA_MESSAGE = 'Not enough historical data to detect anomalies'
NORMAL_RANGE_MESSAGE = 'Current temperature is within the normal range'


@dataclass
class AnomalyResult:
    is_anomaly: bool
    message: str
    type: str | None = None
    difference: float | None = None
    average_temp: float | None = None
    current_temp: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize, leaving out fields that do not apply to this outcome"""
        data: dict[str, Any] = {'is_anomaly': self.is_anomaly}
        for key in ('type', 'difference', 'average_temp', 'current_temp'):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        data['message'] = self.message
        return data


def historical_window(daily: dict[str, Any]) -> list[float]:
    """Leading past-day maxima, excluding the trailing forecast window"""
    maxima = daily.get('temperature_2m_max') or []
    length = max(0, min(HISTORY_DAYS, len(maxima) - FORECAST_DAYS))
    return [value for value in maxima[:length] if value is not None]


def detect(current: dict[str, Any], daily: dict[str, Any]) -> AnomalyResult:
    """Compare the current temperature with the average of past daily maxima"""
    history = historical_window(daily)
    if not history:
        return AnomalyResult(is_anomaly=False, message=INSUFFICIENT_DATA_MESSAGE)

    average = sum(history) / len(history)
    current_temp = current.get('temperature_2m') or 0
    difference = current_temp - average

    if abs(difference) > ANOMALY_THRESHOLD:
        direction = 'higher' if difference > 0 else 'lower'
        magnitude = round(abs(difference), 1)
        return AnomalyResult(
            is_anomaly=True,
            type='hot' if difference > 0 else 'cold',
            difference=magnitude,
            average_temp=round(average, 1),
            current_temp=round(current_temp, 1),
            message=(
                f'⚠️ Current temperature is {magnitude}°C {direction} than '
                f'the 30-day average ({round(average, 1)}°C)'
            ),
        )

    return AnomalyResult(
        is_anomaly=False,
        average_temp=round(average, 1),
        current_temp=round(current_temp, 1),
        message=NORMAL_RANGE_MESSAGE,
    )
