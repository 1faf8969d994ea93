"""MTA GTFS-Realtime feed fetcher."""

import logging
from typing import Dict, Iterable, List, Optional

import requests

from .alerts_decoder import decode_alerts
from .cache import TTLCache
from .models import AlertEffect, ServiceAlert

logger = logging.getLogger(__name__)

MTA_BASE_URL = "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/"
ALERTS_FEED_PATH = "camsys%2Fsubway-alerts"
USER_AGENT = "SpokeExpress/1.0"
FEED_TIMEOUT_SECONDS = 10

# Subway line -> trip-update feed name (nyct%2F<name>)
LINE_TO_FEED: Dict[str, str] = {
    "1": "gtfs", "2": "gtfs", "3": "gtfs", "4": "gtfs",
    "5": "gtfs", "6": "gtfs", "7": "gtfs", "S": "gtfs",
    "A": "gtfs-ace", "C": "gtfs-ace", "E": "gtfs-ace",
    "B": "gtfs-bdfm", "D": "gtfs-bdfm", "F": "gtfs-bdfm", "M": "gtfs-bdfm",
    "G": "gtfs-g",
    "J": "gtfs-jz", "Z": "gtfs-jz",
    "L": "gtfs-l",
    "N": "gtfs-nqrw", "Q": "gtfs-nqrw", "R": "gtfs-nqrw", "W": "gtfs-nqrw",
}

# Effects worth surfacing next to commute options
DISRUPTIVE_EFFECTS = (
    AlertEffect.NO_SERVICE,
    AlertEffect.REDUCED_SERVICE,
    AlertEffect.SIGNIFICANT_DELAYS,
)


def feeds_for_lines(lines: Iterable[str]) -> List[str]:
    """Return the distinct feed names needed for ``lines``, in first-seen order."""
    feeds: List[str] = []
    for line in lines:
        feed = LINE_TO_FEED.get(line)
        if feed and feed not in feeds:
            feeds.append(feed)
    return feeds


def feed_url(feed_name: str) -> str:
    return f"{MTA_BASE_URL}nyct%2F{feed_name}"


class MTAClient:
    """Fetches raw MTA GTFS-Realtime feeds."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        cache: Optional[TTLCache] = None,
        timeout: float = FEED_TIMEOUT_SECONDS,
    ):
        """
        Initialize the MTA client.

        Args:
            session: HTTP session to use; a new one is created if omitted.
            cache: Cache for raw feed bytes. Defaults to 30 seconds, 10 entries.
            timeout: Per-request timeout in seconds.
        """
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.cache = cache if cache is not None else TTLCache(ttl_seconds=30, max_entries=10)
        self.timeout = timeout

    def fetch_feed(self, feed_name: str) -> bytes:
        """
        Fetch a trip-update feed by name (e.g. "gtfs-g").

        Raises:
            requests.RequestException: If the request fails.
        """
        return self._fetch(feed_url(feed_name))

    def get_alerts(self, route_ids: Optional[List[str]] = None) -> List[ServiceAlert]:
        """
        Get service alerts, optionally limited to specific routes.

        Args:
            route_ids: Route IDs to filter by (e.g. ["G", "A"]). Empty means all.

        Returns:
            List of ServiceAlert objects; empty if the feed cannot be fetched.
        """
        try:
            data = self._fetch(MTA_BASE_URL + ALERTS_FEED_PATH)
        except requests.RequestException as e:
            logger.warning(f"Failed to fetch alerts: {e}")
            return []

        alerts = decode_alerts(data, route_ids)
        logger.debug(f"Parsed {len(alerts)} alerts")
        return alerts

    def get_disruptive_alerts(self, route_ids: List[str], limit: int = 3) -> List[ServiceAlert]:
        """Alerts that take service away (no service, reduced, delays)."""
        alerts = [a for a in self.get_alerts(route_ids) if a.effect in DISRUPTIVE_EFFECTS]
        return alerts[:limit]

    def clear_cache(self) -> None:
        """Manually clear the cache."""
        self.cache.clear()

    def _fetch(self, url: str) -> bytes:
        cached = self.cache.get(url)
        if cached is not None:
            return cached

        logger.debug(f"Fetching {url}")
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        data = response.content
        self.cache.set(url, data)
        return data
