"""Station-level arrival aggregation over the MTA trip-update feeds."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

import requests

from .gtfs_decoder import decode_trip_updates
from .models import NO_ARRIVAL, ArrivalGroup, Direction, NextArrivalResult, RawArrival
from .mta_client import MTAClient, feeds_for_lines

logger = logging.getLogger(__name__)

MAX_ARRIVALS_PER_GROUP = 3

HEADSIGNS = {
    Direction.NORTH: "Northbound",
    Direction.SOUTH: "Southbound",
}


def normalize_line(route_id: str) -> str:
    """Fold express variants into their base line (6X -> 6, FX -> F)."""
    if len(route_id) == 2 and route_id.endswith("X"):
        return route_id[0]
    return route_id


def format_clock_time(epoch_seconds: float) -> str:
    """Format a unix time as a local clock time such as "9:05 AM"."""
    return datetime.fromtimestamp(epoch_seconds).strftime("%I:%M %p").lstrip("0")


class ArrivalAggregator:
    """
    Merges live arrivals for a station from every feed serving its lines.

    A station's platforms are addressed as ``<stop_id>N`` and ``<stop_id>S``.
    """

    def __init__(
        self,
        mta_client: Optional[MTAClient] = None,
        max_workers: int = 4,
        clock: Callable[[], float] = time.time,
    ):
        self.mta_client = mta_client or MTAClient()
        self.max_workers = max_workers
        self._clock = clock

    def get_station_arrivals(self, station_id: str, lines: List[str]) -> List[RawArrival]:
        """
        Get live arrivals at a station, soonest first.

        Args:
            station_id: GTFS stop prefix, e.g. "G33".
            lines: Lines serving the station, used to pick feeds.

        Returns:
            Arrivals in both directions; empty if no feed covers ``lines``.
        """
        feeds = feeds_for_lines(lines)
        if not feeds:
            return []

        target_stop_ids = {f"{station_id}N", f"{station_id}S"}
        now = self._clock()

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(feeds))) as pool:
            per_feed = list(pool.map(lambda feed: self._load_feed(feed, target_stop_ids, now), feeds))

        arrivals = [arrival for feed_arrivals in per_feed for arrival in feed_arrivals]
        arrivals.sort(key=lambda a: a.arrival_time)
        return arrivals

    def get_next_arrival(self, station_id: str, lines: List[str]) -> NextArrivalResult:
        """Get the soonest arrival at a station, or the "--" placeholder."""
        arrivals = self.get_station_arrivals(station_id, lines)
        if not arrivals:
            return NO_ARRIVAL

        nxt = arrivals[0]
        display_text = "Now" if nxt.minutes_away <= 0 else f"{nxt.minutes_away}m"
        return NextArrivalResult(
            display_text=display_text,
            arrival_clock_time=format_clock_time(nxt.arrival_time),
            route_id=nxt.route_id,
            minutes_away=nxt.minutes_away,
        )

    def get_grouped_arrivals(self, station_id: str, lines: List[str]) -> List[ArrivalGroup]:
        """
        Get arrivals grouped by line and direction.

        Returns:
            One group per (line, direction) holding up to three arrivals, sorted
            by line name and then direction (northbound first).
        """
        groups: Dict[Tuple[str, Direction], ArrivalGroup] = {}

        for arrival in self.get_station_arrivals(station_id, lines):
            line = normalize_line(arrival.route_id)
            key = (line, arrival.direction)
            if key not in groups:
                groups[key] = ArrivalGroup(
                    line=line,
                    direction=arrival.direction,
                    headsign=HEADSIGNS[arrival.direction],
                )
            group = groups[key]
            if len(group.arrivals) < MAX_ARRIVALS_PER_GROUP:
                group.arrivals.append(arrival)

        return sorted(groups.values(), key=lambda g: (g.line, g.direction.value))

    def _load_feed(self, feed_name: str, target_stop_ids: set, now: float) -> List[RawArrival]:
        try:
            data = self.mta_client.fetch_feed(feed_name)
            return decode_trip_updates(data, target_stop_ids, now=now)
        except requests.RequestException as e:
            logger.warning(f"Failed to fetch feed {feed_name}: {e}")
        except Exception as e:
            logger.warning(f"Error loading feed {feed_name}: {e}", exc_info=True)
        return []
