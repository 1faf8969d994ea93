"""Transit routing through the Google Routes API."""

import logging
import math
import re
from typing import Any, Dict, List, Optional

import requests

from .cache import TTLCache
from .models import TransitRoute, TransitStep

logger = logging.getLogger(__name__)

ROUTES_URL = "https://routes.googleapis.com/directions/v2:computeRoutes"
ROUTES_FIELD_MASK = (
    "routes.duration,routes.distanceMeters,"
    "routes.legs.steps.staticDuration,routes.legs.steps.travelMode,routes.legs.steps.transitDetails"
)
ROUTES_TIMEOUT_SECONDS = 15
METERS_PER_MILE = 1609.34

# Google sometimes reports a line by its service name instead of its bullet
LINE_NAME_ALIASES = {
    "Lexington Avenue Express": "4",
    "Lexington Avenue Local": "6",
    "Broadway Express": "N",
    "Broadway Local": "R",
    "Eighth Avenue Express": "A",
    "Eighth Avenue Local": "C",
    "Sixth Avenue Express": "B",
    "Sixth Avenue Local": "F",
    "Crosstown": "G",
    "Canarsie": "L",
    "Flushing Express": "7",
    "Flushing Local": "7",
    "Franklin Avenue Shuttle": "S",
    "Rockaway Park Shuttle": "S",
    "42nd Street Shuttle": "S",
}


def normalize_line_name(name: str) -> str:
    """Reduce a Google transit line name to an MTA route ID where possible."""
    name = name.replace(" Line", "").replace(" Train", "").strip()

    for pattern, route_id in LINE_NAME_ALIASES.items():
        if pattern in name:
            return route_id

    name = name.replace("Exp", "").strip()
    if re.fullmatch(r"[A-Z0-9]", name):
        return name

    match = re.search(r"\b([A-Z0-9])\b", name)
    if match:
        return match.group(1)
    return name


def _seconds(duration: Optional[str]) -> int:
    # Routes API durations look like "1234s"
    if not duration:
        return 0
    return int(float(duration.rstrip("s")))


def parse_routes_response(data: Dict[str, Any]) -> TransitRoute:
    """Convert a computeRoutes response body into a TransitRoute."""
    if data.get("error"):
        return TransitRoute(status="ERROR")

    routes = data.get("routes") or []
    if not routes:
        return TransitRoute(status="ZERO_RESULTS")

    route = routes[0]
    steps: List[TransitStep] = []
    for leg in route.get("legs") or []:
        for step in leg.get("steps") or []:
            details = step.get("transitDetails")
            if not details:
                continue
            line = details.get("transitLine") or {}
            stop_details = details.get("stopDetails") or {}
            steps.append(TransitStep(
                line=normalize_line_name(line.get("nameShort") or line.get("name") or "?"),
                duration_minutes=math.ceil(_seconds(step.get("staticDuration")) / 60),
                departure_stop=(stop_details.get("departureStop") or {}).get("name"),
                arrival_stop=(stop_details.get("arrivalStop") or {}).get("name"),
                stop_count=details.get("stopCount"),
                vehicle=(line.get("vehicle") or {}).get("type"),
            ))

    distance_meters = route.get("distanceMeters") or 0
    return TransitRoute(
        status="OK",
        duration_minutes=round(_seconds(route.get("duration")) / 60),
        transit_steps=steps,
        distance=f"{distance_meters / METERS_PER_MILE:.1f} mi",
    )


class TransitRouter:
    """Plans subway legs between two coordinates."""

    def __init__(
        self,
        api_key: Optional[str],
        session: Optional[requests.Session] = None,
        cache: Optional[TTLCache] = None,
        timeout: float = ROUTES_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key
        self.session = session or requests.Session()
        self.cache = cache if cache is not None else TTLCache(ttl_seconds=300)
        self.timeout = timeout

    def get_transit_route(
        self,
        origin_lat: float,
        origin_lng: float,
        dest_lat: float,
        dest_lng: float,
    ) -> Optional[TransitRoute]:
        """
        Get a transit route between two points.

        Returns:
            None when no API key is configured; otherwise a TransitRoute whose
            status is "OK", "ZERO_RESULTS" or "ERROR".
        """
        if not self.api_key:
            return None

        cache_key = f"transit_{origin_lat:.4f}_{origin_lng:.4f}_{dest_lat:.4f}_{dest_lng:.4f}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        body = {
            "origin": {"location": {"latLng": {"latitude": origin_lat, "longitude": origin_lng}}},
            "destination": {"location": {"latLng": {"latitude": dest_lat, "longitude": dest_lng}}},
            "travelMode": "TRANSIT",
            "computeAlternativeRoutes": False,
            "transitPreferences": {"routingPreference": "FEWER_TRANSFERS"},
        }
        headers = {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": ROUTES_FIELD_MASK,
        }
        try:
            response = self.session.post(ROUTES_URL, json=body, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Transit routing failed: {e}")
            return TransitRoute(status="ERROR")

        result = parse_routes_response(data)
        if result.ok:
            self.cache.set(cache_key, result)
        return result
