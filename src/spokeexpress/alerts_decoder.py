"""Service alert decoder for the MTA subway alerts feed.

The alerts feed is laid out differently from the trip-update feeds:
    FeedMessage entity          1  (message)
    entity alert                2  (Alert)
    Alert informed_entity       5  (repeated; route id in field 3)
    Alert effect                6  (varint)
    Alert header_text          10  (TranslatedString)
    TranslatedString translation 1 (Translation; text in field 1)
"""

import logging
from typing import Iterable, List, Optional

from .models import AlertEffect, ServiceAlert
from .wire_reader import WIRE_LENGTH_DELIMITED, WIRE_VARINT, VarintWireReader, WireFormatError

logger = logging.getLogger(__name__)

ALERT_EFFECTS = {
    1: AlertEffect.NO_SERVICE,
    2: AlertEffect.REDUCED_SERVICE,
    3: AlertEffect.SIGNIFICANT_DELAYS,
    4: AlertEffect.DETOUR,
    5: AlertEffect.ADDITIONAL_SERVICE,
    6: AlertEffect.MODIFIED_SERVICE,
}


def decode_alerts(data: bytes, route_ids: Optional[Iterable[str]] = None) -> List[ServiceAlert]:
    """
    Decode an alerts FeedMessage.

    Args:
        data: Raw protobuf bytes of the alerts feed.
        route_ids: Optional allowlist. When non-empty, only alerts touching at
            least one of these routes are returned.

    Returns:
        Alerts that carry both route IDs and header text, in feed order.
    """
    alerts: List[ServiceAlert] = []
    reader = VarintWireReader(data)

    try:
        while reader.has_more():
            field_number, wire_type = reader.read_tag()
            if field_number == 1 and wire_type == WIRE_LENGTH_DELIMITED:
                entity = reader.read_message()
                try:
                    alert = _parse_entity(entity)
                except WireFormatError as e:
                    logger.debug(f"Skipping malformed alert entity: {e}")
                    continue
                if alert is not None:
                    alerts.append(alert)
            elif not reader.skip_field(wire_type):
                break
    except WireFormatError as e:
        logger.debug(f"Alerts feed truncated after {len(alerts)} alerts: {e}")

    allowed = set(route_ids or [])
    if allowed:
        alerts = [a for a in alerts if allowed.intersection(a.route_ids)]
    return alerts


def _parse_entity(reader: VarintWireReader) -> Optional[ServiceAlert]:
    alert = None
    while reader.has_more():
        field_number, wire_type = reader.read_tag()
        if field_number == 2 and wire_type == WIRE_LENGTH_DELIMITED:
            alert = _parse_alert(reader.read_message())
        elif not reader.skip_field(wire_type):
            break

    if alert is None or not alert.route_ids or not alert.header_text:
        return None
    return alert


def _parse_alert(reader: VarintWireReader) -> ServiceAlert:
    route_ids: List[str] = []
    effect = AlertEffect.UNKNOWN
    header_text = ""

    while reader.has_more():
        field_number, wire_type = reader.read_tag()
        if field_number == 6 and wire_type == WIRE_VARINT:
            effect = ALERT_EFFECTS.get(reader.read_varint(), AlertEffect.UNKNOWN)
        elif field_number == 5 and wire_type == WIRE_LENGTH_DELIMITED:
            route_id = _parse_informed_entity(reader.read_message())
            if route_id and route_id not in route_ids:
                route_ids.append(route_id)
        elif field_number == 10 and wire_type == WIRE_LENGTH_DELIMITED:
            header_text = _parse_translated_string(reader.read_message())
        elif not reader.skip_field(wire_type):
            break

    return ServiceAlert(route_ids=route_ids, effect=effect, header_text=header_text)


def _parse_informed_entity(reader: VarintWireReader) -> Optional[str]:
    route_id = None
    while reader.has_more():
        field_number, wire_type = reader.read_tag()
        if field_number == 3 and wire_type == WIRE_LENGTH_DELIMITED:
            route_id = reader.read_string(reader.read_varint())
        elif not reader.skip_field(wire_type):
            break
    return route_id


def _parse_translated_string(reader: VarintWireReader) -> str:
    # Only the first translation is used
    while reader.has_more():
        field_number, wire_type = reader.read_tag()
        if field_number == 1 and wire_type == WIRE_LENGTH_DELIMITED:
            return _parse_translation(reader.read_message())
        if not reader.skip_field(wire_type):
            break
    return ""


def _parse_translation(reader: VarintWireReader) -> str:
    text = ""
    while reader.has_more():
        field_number, wire_type = reader.read_tag()
        if field_number == 1 and wire_type == WIRE_LENGTH_DELIMITED:
            text = reader.read_string(reader.read_varint())
        elif not reader.skip_field(wire_type):
            break
    return text
