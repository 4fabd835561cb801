import logging
import os
import secrets
import subprocess  # nosec B404 # Safe subprocess usage for git commands
from datetime import datetime, timezone
from typing import Any

from dotenv import load_dotenv
from flask import Flask, Response, jsonify, request
from flask_compress import Compress
from flask_cors import CORS

from anomaly import detect as detect_anomaly
from bulk import BulkAggregator
from errors import (
    ReportGenerationError,
    UpstreamTransportError,
    ValidationError,
)
from forecast import ForecastClient
from geocoding import (
    DEFAULT_CACHE_TTL,
    LocationSearchClient,
    MemoryGeocodeCache,
    ReverseGeocodeClient,
)
from normalizer import normalize_current, normalize_daily, normalize_hourly
from recommendations import (
    DEFAULT_MODEL,
    RecommendationEngine,
    ReportGenerator,
    build_ai_client,
)
from validation import parse_comparison_body, parse_coordinates
from weather_codes import describe


load_dotenv()

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

app = Flask(__name__)
secret_key = os.getenv('SECRET_KEY')
if not secret_key:
    secret_key = secrets.token_hex(16)
    logger.warning(
        'No SECRET_KEY environment variable set. '
        'Generated temporary key for this session.'
    )
app.config['SECRET_KEY'] = secret_key
app.json.sort_keys = False  # type: ignore[attr-defined]

# Enable gzip compression for all responses
Compress(app)

# The dashboard frontend is served from its own origin
cors_origins = os.getenv(
    'CORS_ALLOWED_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000'
).split(',')
CORS(app, resources={r'/api/*': {'origins': cors_origins}})

APP_NAME = os.getenv('APP_NAME', 'Weather-Dashboard')
GEOCODE_LANGUAGE = os.getenv('GEOCODE_LANGUAGE', 'en')
REVERSE_GEOCODE_CACHE_TTL = int(
    os.getenv('REVERSE_GEOCODE_CACHE_TTL', str(DEFAULT_CACHE_TTL))
)
OPENAI_MODEL = os.getenv('OPENAI_MODEL', DEFAULT_MODEL)

# Geocode cache lives for the whole process; entries expire by TTL only
geocode_cache = MemoryGeocodeCache()
reverse_geocoder = ReverseGeocodeClient(
    geocode_cache,
    ttl=REVERSE_GEOCODE_CACHE_TTL,
    app_name=APP_NAME,
    language=GEOCODE_LANGUAGE,
)
location_search = LocationSearchClient(language=GEOCODE_LANGUAGE)
forecast_client = ForecastClient()
bulk_aggregator = BulkAggregator(forecast_client)

ai_client = build_ai_client(os.getenv('OPENAI_API_KEY'))
if ai_client:
    logger.info('🤖 OpenAI API key found - AI recommendations enabled')
else:
    logger.info('📋 No OpenAI API key - using rule-based recommendations')
recommendation_engine = RecommendationEngine.with_ai(ai_client, OPENAI_MODEL)
report_generator = ReportGenerator(ai_client, OPENAI_MODEL)


def get_git_hash() -> str:
    """Get the current git commit hash"""
    try:
        result = subprocess.run(  # nosec B603 B607 # Safe git command execution
            ['git', 'rev-parse', '--short', 'HEAD'],
            capture_output=True,
            text=True,
            timeout=5,
            cwd=os.path.dirname(__file__) or '.',
            check=False,
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (subprocess.TimeoutExpired, subprocess.SubprocessError, FileNotFoundError):
        pass
    return 'unknown'


def error_response(error: str, message: str, status: int, **extra: Any) -> Response:
    """JSON error body with the given status code"""
    response = jsonify({**extra, 'error': error, 'message': message})
    response.status_code = status
    return response


def _location_summary(data: dict[str, Any]) -> dict[str, Any]:
    return {
        'latitude': data.get('latitude'),
        'longitude': data.get('longitude'),
        'timezone': data.get('timezone'),
        'elevation': data.get('elevation'),
    }


def build_weather_payload(data: dict[str, Any], lat: float, lon: float) -> dict[str, Any]:
    """Assemble the dashboard payload from a raw Open-Meteo response"""
    current = data['current']
    hourly = data['hourly']
    daily = data['daily']

    location = _location_summary(data)
    location['name'] = reverse_geocoder.reverse_simple(lat, lon)
    location['details'] = reverse_geocoder.reverse_detailed(lat, lon)

    return {
        'location': location,
        'current_weather': normalize_current(current).to_dict(),
        'hourly_forecast': [
            entry.to_dict() for entry in normalize_hourly(hourly, data.get('timezone'))
        ],
        'daily_forecast': [entry.to_dict() for entry in normalize_daily(daily)],
        'anomaly': detect_anomaly(current, daily).to_dict(),
        'recommendation': recommendation_engine.recommend(current, daily),
    }


def _first(daily: dict[str, Any], key: str) -> Any:
    values = daily.get(key) or []
    return values[0] if values else None


def fetch_weather_for_comparison(lat: float, lon: float) -> dict[str, Any]:
    """Current conditions and today's summary for one side of a comparison"""
    data = forecast_client.fetch_comparison_data(lat, lon)
    daily = data['daily']
    return {
        'current_weather': normalize_current(data['current']).to_dict(),
        'daily_summary': {
            'max_temp': _first(daily, 'temperature_2m_max'),
            'min_temp': _first(daily, 'temperature_2m_min'),
            'uv_index': _first(daily, 'uv_index_max'),
            'weather_description': describe(_first(daily, 'weather_code')),
        },
    }


def calculate_differences(
    weather1: dict[str, Any], weather2: dict[str, Any]
) -> dict[str, Any]:
    """Location 1 minus location 2 for the headline metrics"""
    return {
        'temperature_diff': round(weather1['temperature'] - weather2['temperature'], 1),
        'humidity_diff': weather1['humidity'] - weather2['humidity'],
        'wind_speed_diff': round(weather1['wind_speed'] - weather2['wind_speed'], 1),
        'apparent_temperature_diff': round(
            weather1['apparent_temperature'] - weather2['apparent_temperature'], 1
        ),
    }


@app.route('/api/health')  # type: ignore[misc]
def health() -> Response:
    """Liveness probe"""
    return jsonify({'status': 'ok', 'version': get_git_hash()})


@app.route('/api/weather/<lat>/<lon>')  # type: ignore[misc]
def weather_data(lat: str, lon: str) -> Response:
    """Current, hourly and daily weather with anomaly and recommendation"""
    try:
        lat_value, lon_value = parse_coordinates(lat, lon)
    except ValidationError as e:
        logger.info('Rejected coordinates %s,%s: %s', lat, lon, e.message)
        return error_response(e.error, e.message, e.status_code)

    try:
        logger.info('🌤️  Fetching weather for (%s, %s)', lat_value, lon_value)
        data = forecast_client.fetch_forecast(lat_value, lon_value)
        payload = build_weather_payload(data, lat_value, lon_value)
    except UpstreamTransportError as e:
        logger.error('❌ Weather API error: %s', e)
        return error_response(
            'Failed to fetch weather data',
            'Could not connect to weather service. Please try again later.',
            503,
        )
    except Exception:
        logger.exception('❌ Unexpected error while building weather data')
        return error_response('Server error', 'An unexpected error occurred', 500)

    return jsonify(payload)


@app.route('/api/weather/report/<lat>/<lon>')  # type: ignore[misc]
def weather_report(lat: str, lon: str) -> Response:
    """AI-generated detailed weather report"""
    try:
        lat_value, lon_value = parse_coordinates(lat, lon)
    except ValidationError as e:
        return error_response(e.error, e.message, e.status_code, success=False)

    try:
        data = forecast_client.fetch_report_data(lat_value, lon_value)
        weather = {
            'location': _location_summary(data),
            'current_weather': normalize_current(data['current']).to_dict(),
            'daily_forecast': [entry.to_dict() for entry in normalize_daily(data['daily'])],
            'anomaly': detect_anomaly(data['current'], data['daily']).to_dict(),
        }
        report = report_generator.generate(weather, lat_value, lon_value)
    except UpstreamTransportError as e:
        logger.error('❌ Detailed report - weather API error: %s', e)
        return error_response(
            'Failed to fetch weather data',
            'Could not connect to weather service',
            503,
            success=False,
        )
    except ReportGenerationError as e:
        return error_response(e.error, e.message, 500, success=False)
    except Exception:
        logger.exception('❌ Detailed report error')
        return error_response(
            'Failed to generate report',
            'An error occurred while generating the report',
            500,
            success=False,
        )

    return jsonify(report)


@app.route('/api/weather/comparison', methods=['POST'])  # type: ignore[misc]
def compare_locations() -> Response:
    """Compare current weather between two locations"""
    try:
        location1, location2 = parse_comparison_body(request.get_json(silent=True))
    except ValidationError as e:
        return error_response(e.error, e.message, e.status_code)

    try:
        sides = {}
        for key, location in (('location1', location1), ('location2', location2)):
            name = location['name'] or reverse_geocoder.reverse_simple(
                location['lat'], location['lon']
            )
            weather = fetch_weather_for_comparison(location['lat'], location['lon'])
            sides[key] = {
                'name': name,
                'coordinates': {'lat': location['lat'], 'lon': location['lon']},
                'current_weather': weather['current_weather'],
                'daily_summary': weather['daily_summary'],
            }
        differences = calculate_differences(
            sides['location1']['current_weather'], sides['location2']['current_weather']
        )
    except Exception as e:
        logger.error('❌ Location comparison error: %s', e)
        return error_response('Comparison failed', 'Could not compare locations', 500)

    return jsonify({**sides, 'differences': differences})


@app.route('/api/weather/bulk')  # type: ignore[misc]
def bulk_weather() -> Response:
    """Current weather for every city on the rain map"""
    try:
        result = bulk_aggregator.aggregate()
    except Exception:
        logger.exception('❌ Bulk weather API error')
        return error_response(
            'Failed to fetch bulk weather data',
            'An error occurred while fetching weather data for multiple cities',
            500,
            success=False,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    return jsonify(
        {
            'success': True,
            'data': result.results,
            'total_cities': len(result.results),
            'errors': result.errors,
            'timestamp': datetime.now(timezone.utc).isoformat(),
        }
    )


@app.route('/api/location/search')  # type: ignore[misc]
def search_location() -> Response:
    """Proxy for the Open-Meteo geocoding search API"""
    query = request.args.get('query', '')
    if len(query) < 2:
        return error_response(
            'Query too short', 'Search query must be at least 2 characters', 400
        )

    try:
        results = location_search.search(query)
    except UpstreamTransportError as e:
        return error_response('Geocoding API error', e.message, 500)

    return jsonify({'results': results})


@app.route('/api/location/reverse/<lat>/<lon>')  # type: ignore[misc]
def reverse_geocode(lat: str, lon: str) -> Response:
    """Detailed location information for coordinates"""
    try:
        lat_value, lon_value = parse_coordinates(lat, lon)
    except ValidationError as e:
        return error_response(e.error, e.message, e.status_code)

    try:
        details = reverse_geocoder.reverse_detailed(lat_value, lon_value)
    except Exception as e:
        logger.error('❌ Reverse geocode error: %s', e)
        return error_response(
            'Reverse geocode failed', 'Could not get location details', 500
        )

    return jsonify(details)


if __name__ == '__main__':
    port = int(os.getenv('PORT', '5001'))
    host = os.getenv('HOST', '127.0.0.1')  # Default to localhost, allow override
    app.run(debug=False, host=host, port=port)
