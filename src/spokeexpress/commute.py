"""Commute option assembly and the end-to-end planner."""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from .arrivals import ArrivalAggregator, format_clock_time
from .config import CommuteConfig
from .estimator import DistanceTimeEstimator, haversine_distance_miles
from .models import (
    CommuteOption,
    CommuteResponse,
    Leg,
    LegMode,
    Location,
    OptionType,
    Station,
)
from .mta_client import MTAClient
from .ranking import deduplicate_options, rank_options
from .routing import TransitRouter
from .station_directory import StationDirectory
from .weather import WeatherClient

logger = logging.getLogger(__name__)

WALK_ONLY_DESTINATION = "Work"


def build_summary(first_mode: str, legs: List[Leg], fallback_line: Optional[str], final_stop: str) -> str:
    """Render e.g. "Bike -> G -> Court Sq" from an option's legs."""
    lines: List[str] = []
    for leg in legs:
        if leg.mode == LegMode.SUBWAY and leg.route_id and leg.route_id not in lines:
            lines.append(leg.route_id)
    if not lines and fallback_line:
        lines = [fallback_line]
    return " -> ".join([first_mode] + lines + [final_stop])


class CommuteOptionBuilder:
    """Turns one candidate station into a CommuteOption."""

    def __init__(
        self,
        estimator: DistanceTimeEstimator,
        arrivals: ArrivalAggregator,
        router: Optional[TransitRouter] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.estimator = estimator
        self.arrivals = arrivals
        self.router = router
        self._clock = clock

    def build_transit_option(
        self,
        station: Station,
        origin: Location,
        destination: Station,
        work: Location,
        first_mode: LegMode,
    ) -> CommuteOption:
        """
        Build a bike-to-transit or walk-to-transit option through ``station``.

        Args:
            station: Station the rider bikes or walks to.
            origin: Rider's starting point.
            destination: Station nearest to work, used by the fallback estimate.
            work: Final destination coordinates for the router.
            first_mode: LegMode.BIKE or LegMode.WALK.

        Returns:
            CommuteOption with rank 0.
        """
        if first_mode == LegMode.BIKE:
            first_minutes = self.estimator.estimate_bike_minutes(
                origin.latitude, origin.longitude, station.latitude, station.longitude
            )
            option_type, mode_label, id_prefix = OptionType.BIKE_TO_TRANSIT, "Bike", "bike"
        else:
            first_minutes = self.estimator.estimate_walk_minutes(
                origin.latitude, origin.longitude, station.latitude, station.longitude
            )
            option_type, mode_label, id_prefix = OptionType.TRANSIT_ONLY, "Walk", "transit"

        next_arrival = self.arrivals.get_next_arrival(station.stop_id, station.lines)
        wait_minutes = max(0, next_arrival.minutes_away)
        transit_minutes, transit_legs = self._transit_legs(station, destination, work)

        total = first_minutes + wait_minutes + transit_minutes
        legs = [Leg(mode=first_mode, duration_minutes=first_minutes, destination_name=station.name, origin_name="Home")]
        legs.extend(transit_legs)

        fallback_line = next_arrival.route_id or (station.lines[0] if station.lines else "?")
        final_stop = transit_legs[-1].destination_name if transit_legs else destination.name

        return CommuteOption(
            id=f"{id_prefix}_{station.id}",
            type=option_type,
            duration_minutes=total,
            summary=build_summary(mode_label, transit_legs, fallback_line, final_stop),
            legs=legs,
            next_train=next_arrival.display_text,
            arrival_time=self._arrival_clock(total),
            station=station,
        )

    def build_walk_only_option(self, origin: Location, work: Location, destination: Station) -> CommuteOption:
        """Walk the whole way; no train, so no wait time."""
        minutes = self.estimator.estimate_walk_minutes(
            origin.latitude, origin.longitude, work.latitude, work.longitude
        )
        legs = [Leg(mode=LegMode.WALK, duration_minutes=minutes, destination_name=WALK_ONLY_DESTINATION, origin_name="Home")]
        return CommuteOption(
            id="walk_only",
            type=OptionType.WALK_ONLY,
            duration_minutes=minutes,
            summary=f"Walk to {WALK_ONLY_DESTINATION}",
            legs=legs,
            next_train="N/A",
            arrival_time=self._arrival_clock(minutes),
            station=destination,
        )

    def _transit_legs(self, station: Station, destination: Station, work: Location) -> Tuple[int, List[Leg]]:
        first_line = station.lines[0] if station.lines else None

        if self.router is not None:
            route = self.router.get_transit_route(station.latitude, station.longitude, work.latitude, work.longitude)
            if route is not None and route.ok:
                legs = [
                    Leg(
                        mode=LegMode.SUBWAY,
                        duration_minutes=step.duration_minutes or 0,
                        destination_name=step.arrival_stop or "?",
                        route_id=step.line,
                        origin_name=step.departure_stop,
                        stop_count=step.stop_count,
                    )
                    for step in route.transit_steps
                ]
                if not legs:
                    legs = [Leg(LegMode.SUBWAY, route.duration_minutes, destination.name, first_line, station.name)]
                return route.duration_minutes, legs
            logger.debug(f"No routed transit for {station.id}, using static estimate")

        minutes = self.estimator.estimate_transit_minutes(station.stop_id, destination.stop_id)
        return minutes, [Leg(LegMode.SUBWAY, minutes, destination.name, first_line, station.name)]

    def _arrival_clock(self, minutes: int) -> str:
        return format_clock_time(self._clock() + minutes * 60)


class CommutePlanner:
    """
    Builds the ranked commute response for a configured rider.

    This class ties together:
    - Weather at home
    - Walk-only, bike-to-transit and walk-to-transit candidates
    - Deduplication and weather-aware ranking
    - Disruptive service alerts for the lines involved
    """

    def __init__(
        self,
        config: CommuteConfig,
        directory: Optional[StationDirectory] = None,
        mta_client: Optional[MTAClient] = None,
        weather_client: Optional[WeatherClient] = None,
        router: Optional[TransitRouter] = None,
        estimator: Optional[DistanceTimeEstimator] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self.directory = directory if directory is not None else StationDirectory.from_file(config.stations_path)
        self.mta_client = mta_client or MTAClient()
        self.weather_client = weather_client or WeatherClient(config.google_weather_api_key)
        self.router = router or TransitRouter(config.google_maps_api_key)
        self.estimator = estimator or DistanceTimeEstimator(config.unknown_transit_minutes)
        self.builder = CommuteOptionBuilder(
            self.estimator,
            ArrivalAggregator(self.mta_client, clock=clock),
            self.router,
            clock=clock,
        )

    def plan(self) -> CommuteResponse:
        """
        Compute ranked commute options.

        Returns:
            CommuteResponse with at most ``config.max_options`` options. The
            option list is empty when nothing could be built.

        Raises:
            ValueError: If the station directory is empty.
        """
        home, work = self.config.home, self.config.work
        weather = self.weather_client.get_weather(home.latitude, home.longitude)

        destination = self.directory.nearest_station(work.latitude, work.longitude)
        if destination is None:
            raise ValueError("No station found near work location")

        options: List[CommuteOption] = []

        if haversine_distance_miles(home.latitude, home.longitude, work.latitude, work.longitude) < self.config.walk_only_max_miles:
            options.append(self.builder.build_walk_only_option(home, work, destination))

        bike_stations = self.bike_stations() if self.config.show_bike_options else []
        for station in bike_stations:
            option = self._try_build(station, destination, LegMode.BIKE)
            if option is not None:
                options.append(option)

        walk_stations = self.walk_stations()
        for station in walk_stations:
            option = self._try_build(station, destination, LegMode.WALK)
            if option is not None:
                options.append(option)

        ranked = rank_options(deduplicate_options(options), weather)
        if not ranked:
            logger.warning("No commute options available")

        route_ids: List[str] = []
        for station in bike_stations + walk_stations:
            route_ids.extend(line for line in station.lines if line not in route_ids)
        alerts = self.mta_client.get_disruptive_alerts(route_ids) if route_ids else []

        return CommuteResponse(
            options=ranked[:self.config.max_options],
            weather=weather,
            alerts=alerts,
            generated_at=datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        )

    def bike_stations(self) -> List[Station]:
        """Configured bike-to stations, or auto-selected ones if none are configured."""
        home, work = self.config.home, self.config.work
        station_ids = self.config.bike_station_ids or self.directory.auto_select_stations(
            home.latitude, home.longitude, work.latitude, work.longitude
        )
        return self._resolve(station_ids)

    def walk_stations(self) -> List[Station]:
        """The closest walkable stations: configured ones, or the nearest within the walk radius."""
        home = self.config.home
        if self.config.walk_station_ids:
            stations = self._resolve(self.config.walk_station_ids)
            stations.sort(key=lambda s: self.estimator.estimate_walk_minutes(
                home.latitude, home.longitude, s.latitude, s.longitude
            ))
        else:
            stations = [
                station
                for station, distance in self.directory.stations_by_distance(home.latitude, home.longitude)
                if distance <= self.config.walk_radius_miles
            ]
        return stations[:self.config.max_walk_stations]

    def _resolve(self, station_ids: List[str]) -> List[Station]:
        stations = []
        for station_id in station_ids:
            try:
                stations.append(self.directory.get_station(station_id))
            except ValueError:
                logger.warning(f"Skipping unknown station {station_id}")
        return stations

    def _try_build(self, station: Station, destination: Station, mode: LegMode) -> Optional[CommuteOption]:
        try:
            return self.builder.build_transit_option(station, self.config.home, destination, self.config.work, mode)
        except Exception as e:
            logger.error(f"Failed to build {mode.value} option for {station.id}: {e}", exc_info=True)
            return None
