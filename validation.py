# ABOUTME: Input validation for coordinates and the comparison request body
# ABOUTME: Everything here runs before any outbound HTTP call

import math
from typing import Any

from errors import ValidationError


MIN_LAT, MAX_LAT = -90.0, 90.0
MIN_LON, MAX_LON = -180.0, 180.0


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def in_range(lat: float, lon: float) -> bool:
    return MIN_LAT <= lat <= MAX_LAT and MIN_LON <= lon <= MAX_LON


def parse_coordinates(lat: Any, lon: Any) -> tuple[float, float]:
    """Parse and range-check a latitude/longitude pair from path parameters"""
    lat_value = _to_number(lat)
    lon_value = _to_number(lon)
    if lat_value is None or lon_value is None:
        raise ValidationError(
            'Latitude and longitude must be numeric values',
            error='Invalid latitude or longitude',
        )
    if not in_range(lat_value, lon_value):
        raise ValidationError(
            'Latitude must be between -90 and 90, longitude between -180 and 180',
            error='Coordinates out of range',
        )
    return lat_value, lon_value


def parse_comparison_body(body: Any) -> tuple[dict[str, Any], dict[str, Any]]:
    """Validate the two locations of a comparison request"""
    if not isinstance(body, dict):
        raise ValidationError(
            'Request body must be a JSON object',
            error='Validation failed',
            status_code=422,
        )

    problems: list[str] = []
    locations = []
    for key in ('location1', 'location2'):
        location = body.get(key)
        if not isinstance(location, dict):
            problems.append(f'The {key} field is required.')
            continue

        lat = _to_number(location.get('lat'))
        lon = _to_number(location.get('lon'))
        if lat is None or not MIN_LAT <= lat <= MAX_LAT:
            problems.append(f'The {key}.lat field must be between -90 and 90.')
        if lon is None or not MIN_LON <= lon <= MAX_LON:
            problems.append(f'The {key}.lon field must be between -180 and 180.')

        name = location.get('name')
        if name is not None and not isinstance(name, str):
            problems.append(f'The {key}.name field must be a string.')

        locations.append({'lat': lat, 'lon': lon, 'name': name})

    if problems:
        raise ValidationError(' '.join(problems), error='Validation failed', status_code=422)

    return locations[0], locations[1]
