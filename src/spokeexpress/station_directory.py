"""Static subway station directory."""

import json
import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from .estimator import estimate_bike_minutes, haversine_distance_miles
from .models import Station

logger = logging.getLogger(__name__)

AUTO_SELECT_RADIUS_MILES = 4.0
AVG_SUBWAY_SPEED_MPH = 15.0
AUTO_SELECT_TOP_PER_LINE = 3


class StationDirectory:
    """Loads and indexes the subway station list."""

    def __init__(self, stations: Optional[Iterable[Station]] = None):
        self.stations: Dict[str, Station] = {}
        for station in stations or []:
            self.stations[station.id] = station

    @classmethod
    def from_file(cls, path: str) -> "StationDirectory":
        """Load stations from a JSON file (wrapped or raw array)."""
        logger.info(f"Loading stations from {path}")
        with open(path, "r", encoding="utf-8") as f:
            directory = cls.from_records(json.load(f))
        logger.info(f"Loaded {len(directory.stations)} stations")
        return directory

    @classmethod
    def from_records(cls, payload: Union[Dict[str, Any], List[Dict[str, Any]]]) -> "StationDirectory":
        """Build a directory from ``{"stations": [...]}`` or a bare list of records."""
        records = payload.get("stations", []) if isinstance(payload, dict) else payload
        return cls(_station_from_record(record) for record in records)

    def __len__(self) -> int:
        return len(self.stations)

    def get_station(self, station_id: str) -> Station:
        """Get station by id."""
        if station_id not in self.stations:
            raise ValueError(f"Station {station_id} not found")
        return self.stations[station_id]

    def find_stations_by_name(self, name: str) -> List[Station]:
        """Find stations by name (partial, case-insensitive match)."""
        name_lower = name.lower()
        return [s for s in self.stations.values() if name_lower in s.name.lower()]

    def stations_by_distance(self, lat: float, lng: float) -> List[Tuple[Station, float]]:
        """All stations paired with their distance in miles, nearest first."""
        pairs = [
            (station, haversine_distance_miles(lat, lng, station.latitude, station.longitude))
            for station in self.stations.values()
        ]
        pairs.sort(key=lambda pair: pair[1])
        return pairs

    def nearest_station(self, lat: float, lng: float) -> Optional[Station]:
        ordered = self.stations_by_distance(lat, lng)
        return ordered[0][0] if ordered else None

    def auto_select_stations(
        self,
        home_lat: float,
        home_lng: float,
        work_lat: float,
        work_lng: float,
        radius_miles: float = AUTO_SELECT_RADIUS_MILES,
        top_per_line: int = AUTO_SELECT_TOP_PER_LINE,
    ) -> List[str]:
        """
        Pick promising bike-to stations around home.

        Stations within ``radius_miles`` are scored by bike time plus a rough
        subway estimate to work; the best ``top_per_line`` for each line are
        kept. Returns station IDs, best score first.
        """
        scored: List[Tuple[Station, float]] = []
        for station in self.stations.values():
            if haversine_distance_miles(home_lat, home_lng, station.latitude, station.longitude) > radius_miles:
                continue
            bike = estimate_bike_minutes(home_lat, home_lng, station.latitude, station.longitude)
            to_work = haversine_distance_miles(station.latitude, station.longitude, work_lat, work_lng)
            scored.append((station, bike + (to_work / AVG_SUBWAY_SPEED_MPH) * 60))

        by_line: Dict[str, List[Tuple[Station, float]]] = defaultdict(list)
        for station, score in scored:
            for line in station.lines:
                by_line[line].append((station, score))

        selected = set()
        for candidates in by_line.values():
            candidates.sort(key=lambda pair: pair[1])
            selected.update(station.id for station, _ in candidates[:top_per_line])

        scored.sort(key=lambda pair: pair[1])
        return [station.id for station, _ in scored if station.id in selected]


def _station_from_record(record: Dict[str, Any]) -> Station:
    station_id = str(record["id"])
    stop_id = record.get("mtaId") or record.get("transiterId") or record.get("stopId") or station_id
    return Station(
        id=station_id,
        name=record["name"],
        stop_id=str(stop_id),
        lines=list(record.get("lines") or []),
        latitude=float(record["lat"]),
        longitude=float(record["lng"]),
        borough=record.get("borough", ""),
    )
