"""Weather lookup and bad-weather classification."""

import logging
from typing import Any, Dict, Optional

import requests

from .cache import TTLCache
from .models import DEFAULT_WEATHER, PrecipitationType, Weather

logger = logging.getLogger(__name__)

GOOGLE_WEATHER_URL = "https://weather.googleapis.com/v1/currentConditions:lookup"
WEATHER_TIMEOUT_SECONDS = 15

# Explicit precipitation signals that always mean bad biking weather
BAD_PRECIPITATION_TYPES = ("RAIN", "SNOW", "MIX", "SLEET")

# FOG and WINDY deliberately absent
BAD_CONDITION_KEYWORDS = (
    "RAIN",
    "SNOW",
    "STORM",
    "SLEET",
    "HAIL",
    "DRIZZLE",
    "THUNDERSTORM",
)

BAD_PRECIPITATION_PROBABILITY = 50

_PRECIPITATION_TYPES = {
    "NONE": PrecipitationType.NONE,
    "RAIN": PrecipitationType.RAIN,
    "LIGHT_RAIN": PrecipitationType.RAIN,
    "HEAVY_RAIN": PrecipitationType.RAIN,
    "SNOW": PrecipitationType.SNOW,
    "LIGHT_SNOW": PrecipitationType.SNOW,
    "HEAVY_SNOW": PrecipitationType.SNOW,
    "MIX": PrecipitationType.MIX,
    "RAIN_AND_SNOW": PrecipitationType.MIX,
    "SLEET": PrecipitationType.MIX,
    "HAIL": PrecipitationType.MIX,
}


def _normalize(value: Optional[str]) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().upper()


def is_bad_weather(
    condition: Optional[str],
    precipitation_type: Optional[str] = None,
    precipitation_probability: Optional[int] = None,
) -> bool:
    """
    Decide whether the weather is bad enough to discourage biking.

    An explicit precipitation type wins. A type of "none" only yields bad
    weather if the condition text itself mentions rain or snow. Without a type,
    the condition keywords and a precipitation probability of 50% or more decide.
    """
    condition = _normalize(condition)
    precip = _normalize(precipitation_type)

    if precip in BAD_PRECIPITATION_TYPES:
        return True

    if precip == "NONE":
        return "RAIN" in condition or "SNOW" in condition

    if any(keyword in condition for keyword in BAD_CONDITION_KEYWORDS):
        return True

    if precipitation_probability is not None and precipitation_probability >= BAD_PRECIPITATION_PROBABILITY:
        return True

    return False


def parse_weather_payload(data: Dict[str, Any]) -> Weather:
    """Convert a Google Weather currentConditions payload into a Weather."""
    description = (data.get("weatherCondition") or {}).get("description") or {}
    conditions = description.get("text") or "Unknown"
    precipitation = data.get("precipitation") or {}
    raw_type = precipitation.get("type")
    probability = (precipitation.get("probability") or {}).get("percent")
    degrees = (data.get("temperature") or {}).get("degrees")

    # Classify on the mapped type so is_bad agrees with precipitation_type;
    # unrecognized types count as not reported
    mapped_type = _PRECIPITATION_TYPES.get(_normalize(raw_type))

    return Weather(
        temp_f=round(degrees) if degrees is not None else None,
        conditions=conditions,
        precipitation_type=mapped_type or PrecipitationType.NONE,
        precipitation_probability=int(probability or 0),
        is_bad=is_bad_weather(conditions, mapped_type.value if mapped_type else None, probability),
    )


class WeatherClient:
    """Looks up current conditions from the Google Weather API."""

    def __init__(
        self,
        api_key: Optional[str],
        session: Optional[requests.Session] = None,
        cache: Optional[TTLCache] = None,
        timeout: float = WEATHER_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key
        self.session = session or requests.Session()
        self.cache = cache if cache is not None else TTLCache(ttl_seconds=600)
        self.timeout = timeout

    def get_weather(self, lat: float, lng: float) -> Weather:
        """
        Get current weather at a location.

        Returns:
            The parsed Weather, or DEFAULT_WEATHER when no key is configured or
            the request fails.
        """
        if not self.api_key:
            logger.warning("No weather API key configured, using default weather")
            return DEFAULT_WEATHER

        cache_key = f"weather_{lat:.2f}_{lng:.2f}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        params = {
            "key": self.api_key,
            "location.latitude": lat,
            "location.longitude": lng,
            "unitsSystem": "IMPERIAL",
        }
        try:
            response = self.session.get(GOOGLE_WEATHER_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Failed to fetch weather: {e}")
            return DEFAULT_WEATHER

        if not isinstance(data, dict):
            logger.warning(f"Unexpected weather response type: {type(data).__name__}")
            return DEFAULT_WEATHER

        weather = parse_weather_payload(data)
        self.cache.set(cache_key, weather)
        return weather
