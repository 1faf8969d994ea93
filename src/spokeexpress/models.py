"""Data models for the SpokeExpress commute optimizer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Direction(str, Enum):
    """Travel direction, taken from the stop ID suffix."""
    NORTH = "N"
    SOUTH = "S"


class AlertEffect(str, Enum):
    NO_SERVICE = "NO_SERVICE"
    REDUCED_SERVICE = "REDUCED_SERVICE"
    SIGNIFICANT_DELAYS = "SIGNIFICANT_DELAYS"
    DETOUR = "DETOUR"
    ADDITIONAL_SERVICE = "ADDITIONAL_SERVICE"
    MODIFIED_SERVICE = "MODIFIED_SERVICE"
    UNKNOWN = "UNKNOWN"


class LegMode(str, Enum):
    BIKE = "bike"
    WALK = "walk"
    SUBWAY = "subway"


class OptionType(str, Enum):
    BIKE_TO_TRANSIT = "bike_to_transit"
    TRANSIT_ONLY = "transit_only"
    WALK_ONLY = "walk_only"


class PrecipitationType(str, Enum):
    NONE = "none"
    RAIN = "rain"
    SNOW = "snow"
    MIX = "mix"


@dataclass
class Station:
    """Represents an MTA subway station from the station directory."""
    id: str
    name: str
    stop_id: str  # GTFS stop prefix, e.g. "G33" (platforms are G33N/G33S)
    lines: List[str]  # Route IDs served at this station
    latitude: float
    longitude: float
    borough: str = ""


@dataclass
class Location:
    """A rider location such as home or work."""
    latitude: float
    longitude: float
    address: Optional[str] = None


@dataclass
class RawArrival:
    """Represents a real-time train arrival decoded from a trip-update feed."""
    route_id: str
    direction: Direction
    arrival_time: int  # Unix timestamp
    minutes_away: int  # Whole minutes until arrival, never negative


@dataclass
class ArrivalGroup:
    """Upcoming arrivals for one (line, direction) pair at a station."""
    line: str
    direction: Direction
    headsign: str
    arrivals: List[RawArrival] = field(default_factory=list)


@dataclass
class NextArrivalResult:
    display_text: str
    arrival_clock_time: str
    route_id: Optional[str]
    minutes_away: int = 0


# Assumed wait when a station has no live arrival data
DEFAULT_WAIT_MINUTES = 5

NO_ARRIVAL = NextArrivalResult(
    display_text="--", arrival_clock_time="--", route_id=None, minutes_away=DEFAULT_WAIT_MINUTES,
)


@dataclass
class ServiceAlert:
    """Represents a service alert affecting one or more routes."""
    route_ids: List[str]
    effect: AlertEffect
    header_text: str


@dataclass
class Leg:
    """One segment of a commute option."""
    mode: LegMode
    duration_minutes: int
    destination_name: str
    route_id: Optional[str] = None
    origin_name: Optional[str] = None
    stop_count: Optional[int] = None


@dataclass
class CommuteOption:
    """A candidate commute. ``rank`` stays 0 until the options are ranked."""
    id: str
    type: OptionType
    duration_minutes: int
    summary: str
    legs: List[Leg]
    next_train: str
    arrival_time: str
    station: Station
    rank: int = 0

    @property
    def subway_routes(self) -> List[str]:
        """Route IDs of the subway legs, in travel order."""
        return [leg.route_id for leg in self.legs if leg.mode == LegMode.SUBWAY and leg.route_id]


@dataclass
class Weather:
    temp_f: Optional[int]
    conditions: str
    precipitation_type: PrecipitationType
    precipitation_probability: int
    is_bad: bool


DEFAULT_WEATHER = Weather(
    temp_f=65,
    conditions="Unknown",
    precipitation_type=PrecipitationType.NONE,
    precipitation_probability=0,
    is_bad=False,
)


@dataclass
class TransitStep:
    """A transit step returned by the routing collaborator."""
    line: str
    duration_minutes: Optional[int] = None
    departure_stop: Optional[str] = None
    arrival_stop: Optional[str] = None
    stop_count: Optional[int] = None
    vehicle: Optional[str] = None


@dataclass
class TransitRoute:
    status: str
    duration_minutes: Optional[int] = None
    transit_steps: List[TransitStep] = field(default_factory=list)
    distance: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "OK" and self.duration_minutes is not None


@dataclass
class CommuteResponse:
    """Complete ranked commute result for one request."""
    options: List[CommuteOption]
    weather: Weather
    alerts: List[ServiceAlert]
    generated_at: str
