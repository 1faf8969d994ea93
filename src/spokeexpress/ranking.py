"""Deduplication and weather-aware ranking of commute options."""

from typing import Dict, List

from .models import CommuteOption, OptionType, Weather


def route_signature(option: CommuteOption) -> str:
    """Key identifying an option by its type and subway line sequence, e.g. "transit_only_A->6"."""
    return f"{option.type.value}_{'->'.join(option.subway_routes)}"


def deduplicate_options(options: List[CommuteOption]) -> List[CommuteOption]:
    """
    Keep only the fastest option per route signature.

    The same subway route reached from two different stations shows up once.
    On equal durations the first option wins.
    """
    fastest: Dict[str, CommuteOption] = {}
    for option in options:
        signature = route_signature(option)
        existing = fastest.get(signature)
        if existing is None or option.duration_minutes < existing.duration_minutes:
            fastest[signature] = option
    return list(fastest.values())


def rank_options(options: List[CommuteOption], weather: Weather) -> List[CommuteOption]:
    """
    Order options fastest first and assign ranks 1..N.

    In bad weather a bike option is not allowed to lead: if the fastest option
    is bike_to_transit, the first transit_only option is moved to the top and
    everything else keeps its order.
    """
    if not options:
        return []

    ranked = sorted(options, key=lambda o: o.duration_minutes)

    if weather.is_bad and ranked[0].type == OptionType.BIKE_TO_TRANSIT:
        transit_index = next(
            (i for i, o in enumerate(ranked) if o.type == OptionType.TRANSIT_ONLY),
            None,
        )
        if transit_index is not None and transit_index > 0:
            ranked.insert(0, ranked.pop(transit_index))

    for index, option in enumerate(ranked):
        option.rank = index + 1
    return ranked
