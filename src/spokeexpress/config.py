"""Configuration for the commute planner."""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

from .models import Location

DEFAULT_STATIONS_PATH = "stations.json"


def _env_list(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return float(raw)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class CommuteConfig:
    """Everything the planner needs to build a commute response."""
    home: Location
    work: Location
    bike_station_ids: List[str] = field(default_factory=list)  # empty -> auto-select
    walk_station_ids: List[str] = field(default_factory=list)  # empty -> nearest stations
    stations_path: str = DEFAULT_STATIONS_PATH
    google_maps_api_key: Optional[str] = None
    google_weather_api_key: Optional[str] = None
    unknown_transit_minutes: int = 15
    walk_radius_miles: float = 1.0
    max_walk_stations: int = 3
    walk_only_max_miles: float = 2.0
    show_bike_options: bool = True
    max_options: int = 3

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "CommuteConfig":
        """
        Build a config from environment variables (and a .env file if present).

        Raises:
            ValueError: If home or work coordinates are missing or invalid.
        """
        load_dotenv(dotenv_path)

        coords = {
            name: _env_float(name)
            for name in ("SPOKE_HOME_LAT", "SPOKE_HOME_LNG", "SPOKE_WORK_LAT", "SPOKE_WORK_LNG")
        }
        missing = [name for name, value in coords.items() if value is None]
        if missing:
            raise ValueError(f"Missing required settings: {', '.join(missing)}")

        maps_key = os.getenv("GOOGLE_MAPS_API_KEY") or None
        return cls(
            home=Location(coords["SPOKE_HOME_LAT"], coords["SPOKE_HOME_LNG"]),
            work=Location(coords["SPOKE_WORK_LAT"], coords["SPOKE_WORK_LNG"]),
            bike_station_ids=_env_list("SPOKE_BIKE_STATIONS"),
            walk_station_ids=_env_list("SPOKE_WALK_STATIONS"),
            stations_path=os.getenv("SPOKE_STATIONS_PATH", DEFAULT_STATIONS_PATH),
            google_maps_api_key=maps_key,
            google_weather_api_key=os.getenv("GOOGLE_WEATHER_API_KEY") or maps_key,
            unknown_transit_minutes=int(os.getenv("SPOKE_UNKNOWN_TRANSIT_MINUTES", "15")),
            walk_radius_miles=float(os.getenv("SPOKE_WALK_RADIUS_MILES", "1.0")),
            show_bike_options=_env_bool("SPOKE_SHOW_BIKE_OPTIONS", True),
            max_options=int(os.getenv("SPOKE_MAX_OPTIONS", "3")),
        )
