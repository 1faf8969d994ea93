"""GTFS-Realtime trip-update decoder.

Walks FeedMessage -> FeedEntity -> TripUpdate -> StopTimeUpdate directly over the
wire format and turns the predictions for a set of stops into RawArrival records.

Field numbers used (gtfs-realtime.proto):
    FeedMessage.entity             2  (message)
    FeedEntity.trip_update         3  (message)
    TripUpdate.trip                1  (TripDescriptor)
    TripUpdate.stop_time_update    2  (repeated StopTimeUpdate)
    TripDescriptor.route_id        5  (string)
    StopTimeUpdate.arrival         2  (StopTimeEvent)
    StopTimeUpdate.departure       3  (StopTimeEvent)
    StopTimeUpdate.stop_id         4  (string)
    StopTimeEvent.time             2  (int64 varint, unix seconds)
"""

import logging
import math
import time
from typing import Iterable, List, Optional, Tuple

from .models import Direction, RawArrival
from .wire_reader import WIRE_LENGTH_DELIMITED, WIRE_VARINT, VarintWireReader, WireFormatError

logger = logging.getLogger(__name__)

# Predictions up to a minute in the past are still shown (clock skew, latency)
STALE_GRACE_SECONDS = 60


def decode_trip_updates(
    data: bytes,
    target_stop_ids: Iterable[str],
    now: Optional[float] = None,
) -> List[RawArrival]:
    """
    Decode a trip-update FeedMessage into arrivals at the given stops.

    Args:
        data: Raw protobuf bytes of the feed.
        target_stop_ids: Platform stop IDs to keep (e.g. {"G33N", "G33S"}).
        now: Reference unix time; defaults to the current time.

    Returns:
        Arrivals in feed order. Never raises for malformed input; whatever
        decoded cleanly before the damage is returned.
    """
    if now is None:
        now = time.time()
    stop_ids = set(target_stop_ids)
    arrivals: List[RawArrival] = []
    reader = VarintWireReader(data)

    try:
        while reader.has_more():
            field_number, wire_type = reader.read_tag()
            if field_number == 2 and wire_type == WIRE_LENGTH_DELIMITED:
                entity = reader.read_message()
                try:
                    arrivals.extend(_parse_entity(entity, stop_ids, now))
                except WireFormatError as e:
                    logger.debug(f"Skipping malformed feed entity: {e}")
            elif not reader.skip_field(wire_type):
                break
    except WireFormatError as e:
        logger.debug(f"Feed truncated after {len(arrivals)} arrivals: {e}")

    return arrivals


def _parse_entity(reader: VarintWireReader, stop_ids: set, now: float) -> List[RawArrival]:
    arrivals: List[RawArrival] = []
    while reader.has_more():
        field_number, wire_type = reader.read_tag()
        if field_number == 3 and wire_type == WIRE_LENGTH_DELIMITED:
            arrivals.extend(_parse_trip_update(reader.read_message(), stop_ids, now))
        elif not reader.skip_field(wire_type):
            break
    return arrivals


def _parse_trip_update(reader: VarintWireReader, stop_ids: set, now: float) -> List[RawArrival]:
    route_id = None
    stop_time_updates: List[VarintWireReader] = []

    while reader.has_more():
        field_number, wire_type = reader.read_tag()
        if field_number == 1 and wire_type == WIRE_LENGTH_DELIMITED:
            route_id = _parse_trip_descriptor(reader.read_message())
        elif field_number == 2 and wire_type == WIRE_LENGTH_DELIMITED:
            # The descriptor may come after the updates, so collect them first
            stop_time_updates.append(reader.read_message())
        elif not reader.skip_field(wire_type):
            break

    if route_id is None:
        return []

    arrivals: List[RawArrival] = []
    for stu in stop_time_updates:
        stop_id, event_time = _parse_stop_time_update(stu)
        arrival = _to_arrival(route_id, stop_id, event_time, stop_ids, now)
        if arrival is not None:
            arrivals.append(arrival)
    return arrivals


def _parse_trip_descriptor(reader: VarintWireReader) -> Optional[str]:
    route_id = None
    while reader.has_more():
        field_number, wire_type = reader.read_tag()
        if field_number == 5 and wire_type == WIRE_LENGTH_DELIMITED:
            route_id = reader.read_string(reader.read_varint())
        elif not reader.skip_field(wire_type):
            break
    return route_id


def _parse_stop_time_update(reader: VarintWireReader) -> Tuple[Optional[str], Optional[int]]:
    stop_id = None
    arrival = None
    departure = None

    while reader.has_more():
        field_number, wire_type = reader.read_tag()
        if field_number == 4 and wire_type == WIRE_LENGTH_DELIMITED:
            stop_id = reader.read_string(reader.read_varint())
        elif field_number == 2 and wire_type == WIRE_LENGTH_DELIMITED:
            arrival = _parse_stop_time_event(reader.read_message())
        elif field_number == 3 and wire_type == WIRE_LENGTH_DELIMITED:
            departure = _parse_stop_time_event(reader.read_message())
        elif not reader.skip_field(wire_type):
            break

    return stop_id, arrival if arrival is not None else departure


def _parse_stop_time_event(reader: VarintWireReader) -> Optional[int]:
    event_time = None
    while reader.has_more():
        field_number, wire_type = reader.read_tag()
        if field_number == 2 and wire_type == WIRE_VARINT:
            event_time = reader.read_varint()
        elif not reader.skip_field(wire_type):
            break
    return event_time


def _to_arrival(
    route_id: str,
    stop_id: Optional[str],
    event_time: Optional[int],
    stop_ids: set,
    now: float,
) -> Optional[RawArrival]:
    if stop_id is None or stop_id not in stop_ids or event_time is None:
        return None
    if event_time < now - STALE_GRACE_SECONDS:
        return None

    direction = Direction.NORTH if stop_id.endswith("N") else Direction.SOUTH
    minutes_away = max(0, math.floor((event_time - now) / 60))
    return RawArrival(
        route_id=route_id,
        direction=direction,
        arrival_time=event_time,
        minutes_away=minutes_away,
    )
