# ABOUTME: Current conditions for the whole city catalog, fetched in small concurrent batches
# ABOUTME: Partial failures are reported alongside the successes, never as a whole-request error

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from cities import MAJOR_CITIES, City
from forecast import ForecastClient
from weather_codes import describe


logger = logging.getLogger(__name__)

BATCH_SIZE = 5
BATCH_PAUSE_SECONDS = 0.2


@dataclass
class BulkResult:
    results: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)


def flatten_city_weather(city: City, data: dict[str, Any]) -> dict[str, Any]:
    """Map-friendly record for one city"""
    current = data.get('current', {})
    return {
        'name': city.name,
        'lat': city.lat,
        'lon': city.lon,
        'country': city.country,
        'precipitation': current.get('precipitation') or 0,
        'temperature': round(current.get('temperature_2m') or 0, 1),
        'humidity': current.get('relative_humidity_2m') or 0,
        'wind_speed': round(current.get('wind_speed_10m') or 0, 1),
        'weather_description': describe(current.get('weather_code') or 0),
    }


class BulkAggregator:
    """Fetch current weather for many cities, one batch at a time"""

    def __init__(
        self,
        client: ForecastClient,
        batch_size: int = BATCH_SIZE,
        pause: float = BATCH_PAUSE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.batch_size = batch_size
        self.pause = pause
        self.sleep = sleep

    def _fetch_city(self, city: City) -> dict[str, Any]:
        data = self.client.fetch_current(city.lat, city.lon)
        return flatten_city_weather(city, data)

    def aggregate(self, cities: Sequence[City] = MAJOR_CITIES) -> BulkResult:
        result = BulkResult()
        batches = [
            cities[i : i + self.batch_size]
            for i in range(0, len(cities), self.batch_size)
        ]

        for batch_index, batch in enumerate(batches):
            settled = 0
            try:
                with ThreadPoolExecutor(max_workers=len(batch)) as executor:
                    futures = [executor.submit(self._fetch_city, city) for city in batch]
                    # Collect in catalog order once every request in the batch is done
                    for city, future in zip(batch, futures):
                        try:
                            result.results.append(future.result())
                        except Exception as e:
                            logger.warning('⚠️  Bulk fetch failed for %s: %s', city.name, e)
                            result.errors.append({'city': city.name, 'error': str(e)})
                        settled += 1
            except Exception as e:
                logger.error('❌ Batch %s failed: %s', batch_index, e)
                result.errors.append(
                    {
                        'batch': batch_index,
                        'cities': [city.name for city in batch[settled:]],
                        'error': str(e),
                    }
                )

            if batch_index < len(batches) - 1:
                self.sleep(self.pause)

        logger.info(
            '🗺️  Bulk weather: %s cities ok, %s errors',
            len(result.results),
            len(result.errors),
        )
        return result
