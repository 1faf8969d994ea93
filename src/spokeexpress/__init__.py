"""SpokeExpress - Weather-aware NYC bike/subway commute optimizer."""

__version__ = "0.1.0"

from .models import (
    ArrivalGroup,
    CommuteOption,
    CommuteResponse,
    Leg,
    NextArrivalResult,
    RawArrival,
    ServiceAlert,
    Station,
    Weather,
)
from .wire_reader import VarintWireReader, WireFormatError
from .gtfs_decoder import decode_trip_updates
from .alerts_decoder import decode_alerts
from .mta_client import MTAClient
from .arrivals import ArrivalAggregator
from .estimator import DistanceTimeEstimator
from .weather import WeatherClient, is_bad_weather
from .routing import TransitRouter
from .station_directory import StationDirectory
from .ranking import deduplicate_options, rank_options
from .commute import CommuteOptionBuilder, CommutePlanner
from .config import CommuteConfig

__all__ = [
    "CommutePlanner",
    "CommuteOptionBuilder",
    "CommuteConfig",
    "ArrivalAggregator",
    "MTAClient",
    "StationDirectory",
    "WeatherClient",
    "TransitRouter",
    "DistanceTimeEstimator",
    "VarintWireReader",
    "WireFormatError",
    "decode_trip_updates",
    "decode_alerts",
    "is_bad_weather",
    "rank_options",
    "deduplicate_options",
    "Station",
    "RawArrival",
    "ArrivalGroup",
    "NextArrivalResult",
    "ServiceAlert",
    "Leg",
    "CommuteOption",
    "CommuteResponse",
    "Weather",
]
