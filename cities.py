# ABOUTME: Static catalog of the major cities shown on the dashboard rain map
# ABOUTME: Order matters: the bulk aggregator batches cities in this order

from typing import NamedTuple


class City(NamedTuple):
    name: str
    lat: float
    lon: float
    country: str


MAJOR_CITIES: tuple[City, ...] = (
    City('Hà Nội', 21.0285, 105.8542, 'Vietnam'),
    City('TP.HCM', 10.8231, 106.6297, 'Vietnam'),
    City('Đà Nẵng', 16.0544, 108.2022, 'Vietnam'),
    City('Tokyo', 35.6762, 139.6503, 'Japan'),
    City('Seoul', 37.5665, 126.9780, 'South Korea'),
    City('Beijing', 39.9042, 116.4074, 'China'),
    City('Shanghai', 31.2304, 121.4737, 'China'),
    City('New York', 40.7128, -74.0060, 'USA'),
    City('Los Angeles', 34.0522, -118.2437, 'USA'),
    City('London', 51.5074, -0.1278, 'UK'),
    City('Paris', 48.8566, 2.3522, 'France'),
    City('Berlin', 52.5200, 13.4050, 'Germany'),
    City('Rome', 41.9028, 12.4964, 'Italy'),
    City('Sydney', -33.8688, 151.2093, 'Australia'),
    City('Melbourne', -37.8136, 144.9631, 'Australia'),
    City('Mumbai', 19.0760, 72.8777, 'India'),
    City('Delhi', 28.7041, 77.1025, 'India'),
    City('Dubai', 25.2048, 55.2708, 'UAE'),
    City('São Paulo', -23.5505, -46.6333, 'Brazil'),
    City('Mexico City', 19.4326, -99.1332, 'Mexico'),
    City('Cairo', 30.0444, 31.2357, 'Egypt'),
    City('Bangkok', 13.7563, 100.5018, 'Thailand'),
    City('Singapore', 1.3521, 103.8198, 'Singapore'),
    City('Jakarta', -6.2088, 106.8456, 'Indonesia'),
)
