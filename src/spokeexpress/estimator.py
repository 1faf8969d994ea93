"""Distance and travel-time estimates for bike, walk and subway legs."""

import logging
import math
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3959.0

BIKING_SPEED_MPH = 10.0
BIKE_PADDING = 1.3  # street grid detours plus locking up

WALKING_SPEED_MPH = 3.0
WALK_PADDING = 1.2

# Measured subway times between stop pairs, in minutes
KNOWN_TRANSIT_MINUTES: Dict[Tuple[str, str], int] = {
    ("G33", "G22"): 18,  # Bedford-Nostrand Avs -> Court Sq
    ("G34", "G22"): 16,  # Classon Av -> Court Sq
    ("G35", "G22"): 14,  # Clinton-Washington Avs -> Court Sq
    ("G36", "G22"): 12,  # Fulton St -> Court Sq
    ("A42", "G22"): 15,  # Hoyt-Schermerhorn Sts -> Court Sq
}


def haversine_distance_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points, in miles."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def bike_minutes_for_distance(distance_miles: float) -> int:
    return math.ceil((distance_miles / BIKING_SPEED_MPH) * 60 * BIKE_PADDING)


def walk_minutes_for_distance(distance_miles: float) -> int:
    return math.ceil((distance_miles / WALKING_SPEED_MPH) * 60 * WALK_PADDING)


def estimate_bike_minutes(from_lat: float, from_lng: float, to_lat: float, to_lng: float) -> int:
    return bike_minutes_for_distance(haversine_distance_miles(from_lat, from_lng, to_lat, to_lng))


def estimate_walk_minutes(from_lat: float, from_lng: float, to_lat: float, to_lng: float) -> int:
    return walk_minutes_for_distance(haversine_distance_miles(from_lat, from_lng, to_lat, to_lng))


class DistanceTimeEstimator:
    """
    Travel-time estimates used when building commute options.

    The subway estimate is only a fallback for when no transit router is
    available, so it is a static table lookup rather than a real trip plan.
    """

    def __init__(
        self,
        unknown_pair_minutes: int,
        known_transit_minutes: Optional[Dict[Tuple[str, str], int]] = None,
    ):
        """
        Args:
            unknown_pair_minutes: Minutes to assume for stop pairs missing from
                the table. Must be chosen by the caller.
            known_transit_minutes: Override for the measured stop-pair table.
        """
        if unknown_pair_minutes < 0:
            raise ValueError("unknown_pair_minutes must be >= 0")
        if unknown_pair_minutes == 0:
            logger.warning(
                "Unknown transit pairs will count as 0 minutes; totals for those routes will be underestimated"
            )
        self.unknown_pair_minutes = unknown_pair_minutes
        self.known_transit_minutes = (
            dict(KNOWN_TRANSIT_MINUTES) if known_transit_minutes is None else dict(known_transit_minutes)
        )

    haversine_distance_miles = staticmethod(haversine_distance_miles)
    estimate_bike_minutes = staticmethod(estimate_bike_minutes)
    estimate_walk_minutes = staticmethod(estimate_walk_minutes)

    def estimate_transit_minutes(self, from_stop_id: str, to_stop_id: str) -> int:
        return self.known_transit_minutes.get((from_stop_id, to_stop_id), self.unknown_pair_minutes)
