# ABOUTME: Activity recommendations (AI-backed with a rule-based fallback) and AI reports
# ABOUTME: Recommenders return results instead of raising so the fallback composes cleanly

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from openai import OpenAI

from errors import ReportGenerationError


logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gpt-4o-mini'
FORECAST_DAYS = 7

# Rule thresholds
UV_VERY_HIGH = 8
UV_HIGH = 6
TEMP_HOT = 35  # degrees C
TEMP_COLD = 15  # degrees C
RAIN_CODES = {61, 63, 65, 80, 81, 82}
STORM_CODES = {95, 96, 99}

RECOMMENDATION_SYSTEM_PROMPT = (
    'You are a friendly weather assistant. Given current conditions and the '
    'daily forecast, reply with two or three short practical suggestions for '
    'the day (clothing, sun protection, outdoor activities). Plain text only.'
)

REPORT_SYSTEM_PROMPT = (
    'You are a meteorologist writing for the general public. Write a detailed '
    'weather report covering current conditions, the 7-day outlook, any '
    'temperature anomaly and practical advice. Plain text, no markdown.'
)


def build_ai_client(api_key: str | None) -> OpenAI | None:
    """Create the OpenAI client, or None when no API key is configured"""
    if not api_key:
        return None
    return OpenAI(api_key=api_key)


def _format_number(value: Any) -> str:
    """Render 9.0 as '9' and 8.5 as '8.5'"""
    if isinstance(value, float):
        return f'{value:g}'
    return str(value)


def _forecast_window(daily: dict[str, Any]) -> dict[str, Any]:
    return {
        key: values[-FORECAST_DAYS:]
        for key, values in daily.items()
        if isinstance(values, list)
    }


@dataclass
class RecommendationResult:
    """Outcome of a recommender: either text or an error description"""

    text: str | None = None
    error: str | None = None
    source: str = ''

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text)


class Recommender(ABC):
    """Abstract base class for recommendation generators"""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def recommend(
        self, current: dict[str, Any], daily: dict[str, Any]
    ) -> RecommendationResult:
        """Produce a recommendation from raw current and daily data"""


class AIRecommender(Recommender):
    """Context-aware suggestions from an OpenAI chat model"""

    def __init__(self, client: OpenAI | None, model: str = DEFAULT_MODEL):
        super().__init__('AI')
        self.client = client
        self.model = model

    def recommend(
        self, current: dict[str, Any], daily: dict[str, Any]
    ) -> RecommendationResult:
        if self.client is None:
            return RecommendationResult(error='AI client not configured', source=self.name)

        payload = json.dumps(
            {'current': current, 'daily': _forecast_window(daily)}, ensure_ascii=False
        )
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=0.4,
                max_tokens=300,
                messages=[
                    {'role': 'system', 'content': RECOMMENDATION_SYSTEM_PROMPT},
                    {'role': 'user', 'content': payload},
                ],
            )
            text = (response.choices[0].message.content or '').strip()
        except Exception as e:  # network, auth or quota failure
            logger.error('❌ Recommendation generation error: %s', e)
            return RecommendationResult(error=str(e), source=self.name)

        if not text:
            return RecommendationResult(error='Empty AI response', source=self.name)
        return RecommendationResult(text=text, source=self.name)


class RuleBasedRecommender(Recommender):
    """Deterministic rule list used when the AI path is unavailable"""

    def __init__(self) -> None:
        super().__init__('Rules')

    def recommend(
        self, current: dict[str, Any], daily: dict[str, Any]
    ) -> RecommendationResult:
        recommendations = []

        # First day of the forecast window; assumes past_days + 7 forecast days
        uv_values = daily.get('uv_index_max') or []
        today_index = len(uv_values) - FORECAST_DAYS
        today_uv = (uv_values[today_index] if today_index >= 0 else None) or 0
        if today_uv >= UV_VERY_HIGH:
            recommendations.append(
                f'☀️ Very high UV index ({_format_number(today_uv)}). Use SPF 50+ '
                'sunscreen, wear a hat and sunglasses.'
            )
        elif today_uv >= UV_HIGH:
            recommendations.append(
                f'☀️ High UV index ({_format_number(today_uv)}). Use sunscreen and '
                'limit time outdoors around midday.'
            )

        temp = current.get('temperature_2m') or 0
        if temp >= TEMP_HOT:
            recommendations.append(
                f'🌡️ Very high temperature ({_format_number(temp)}°C). Drink plenty '
                'of water and avoid outdoor activities.'
            )
        elif temp <= TEMP_COLD:
            recommendations.append(
                f'🧥 Fairly low temperature ({_format_number(temp)}°C). Wear warm '
                'clothes when going out.'
            )

        weather_code = current.get('weather_code')
        if weather_code in RAIN_CODES:
            recommendations.append(
                '☔ It is raining. Remember to bring a raincoat or an umbrella.'
            )
        elif weather_code in STORM_CODES:
            recommendations.append('⛈️ Thunderstorm warning. Stay indoors.')

        if not recommendations:
            recommendations.append('✅ The weather is favorable for outdoor activities!')

        return RecommendationResult(text=' '.join(recommendations), source=self.name)


class FallbackRecommender(Recommender):
    """Use the primary recommender, falling back when it reports a failure"""

    def __init__(self, primary: Recommender, fallback: Recommender):
        super().__init__(f'{primary.name}+{fallback.name}')
        self.primary = primary
        self.fallback = fallback

    def recommend(
        self, current: dict[str, Any], daily: dict[str, Any]
    ) -> RecommendationResult:
        result = self.primary.recommend(current, daily)
        if result.ok:
            return result

        logger.warning(
            '🔄 %s recommender failed (%s), using %s',
            self.primary.name,
            result.error,
            self.fallback.name,
        )
        return self.fallback.recommend(current, daily)


class RecommendationEngine:
    """Entry point used by the weather endpoint"""

    def __init__(self, recommender: Recommender):
        self.recommender = recommender

    @classmethod
    def with_ai(cls, client: OpenAI | None, model: str = DEFAULT_MODEL) -> 'RecommendationEngine':
        return cls(FallbackRecommender(AIRecommender(client, model), RuleBasedRecommender()))

    def recommend(self, current: dict[str, Any], daily: dict[str, Any]) -> str:
        result = self.recommender.recommend(current, daily)
        return result.text or ''


class ReportGenerator:
    """Detailed AI weather report for the report endpoint"""

    def __init__(self, client: OpenAI | None, model: str = DEFAULT_MODEL):
        self.client = client
        self.model = model

    def generate(self, weather_data: dict[str, Any], lat: float, lon: float) -> dict[str, Any]:
        if self.client is None:
            msg = 'AI report service is not configured'
            raise ReportGenerationError(msg)

        prompt = (
            f'Location: latitude {lat}, longitude {lon}.\n'
            f'Weather data (JSON): {json.dumps(weather_data, ensure_ascii=False)}'
        )
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=0.5,
                max_tokens=1200,
                messages=[
                    {'role': 'system', 'content': REPORT_SYSTEM_PROMPT},
                    {'role': 'user', 'content': prompt},
                ],
            )
            report = (response.choices[0].message.content or '').strip()
        except Exception as e:
            logger.error('❌ Detailed report generation failed: %s', e)
            msg = 'An error occurred while generating the report'
            raise ReportGenerationError(msg) from e

        if not report:
            msg = 'The AI service returned an empty report'
            raise ReportGenerationError(msg)

        return {
            'success': True,
            'report': report,
            'location': weather_data.get('location', {}),
            'current_weather': weather_data.get('current_weather'),
            'anomaly': weather_data.get('anomaly'),
            'generated_at': datetime.now(timezone.utc).isoformat(),
        }
