"""Tests for deduplication and ranking."""

import unittest
import sys
from pathlib import Path

# Add src to path so we can import spokeexpress
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from spokeexpress.models import (
    DEFAULT_WEATHER,
    CommuteOption,
    Leg,
    LegMode,
    OptionType,
    PrecipitationType,
    Station,
    Weather,
)
from spokeexpress.ranking import deduplicate_options, rank_options, route_signature

STATION = Station(id="s", name="Station", stop_id="G33", lines=["G"], latitude=40.69, longitude=-73.95)
BAD_WEATHER = Weather(
    temp_f=45,
    conditions="Rain",
    precipitation_type=PrecipitationType.RAIN,
    precipitation_probability=90,
    is_bad=True,
)


def make_option(option_id, option_type, duration, routes=("G",)):
    first_mode = LegMode.BIKE if option_type == OptionType.BIKE_TO_TRANSIT else LegMode.WALK
    legs = [Leg(first_mode, 5, "Station")]
    legs.extend(Leg(LegMode.SUBWAY, 10, "Court Sq", route_id=route) for route in routes)
    return CommuteOption(
        id=option_id,
        type=option_type,
        duration_minutes=duration,
        summary="",
        legs=legs,
        next_train="--",
        arrival_time="--",
        station=STATION,
    )


class TestRouteSignature(unittest.TestCase):

    def test_signature(self):
        option = make_option("a", OptionType.TRANSIT_ONLY, 20, routes=("A", "6"))
        self.assertEqual(route_signature(option), "transit_only_A->6")

    def test_walk_only_signature(self):
        option = make_option("w", OptionType.WALK_ONLY, 30, routes=())
        self.assertEqual(route_signature(option), "walk_only_")


class TestDeduplicate(unittest.TestCase):
    """Test keeping the fastest option per signature."""

    def test_keeps_faster_duplicate(self):
        slow = make_option("bike_1", OptionType.BIKE_TO_TRANSIT, 30)
        fast = make_option("bike_2", OptionType.BIKE_TO_TRANSIT, 25)

        result = deduplicate_options([slow, fast])

        self.assertEqual([o.id for o in result], ["bike_2"])

    def test_tie_keeps_first(self):
        first = make_option("bike_1", OptionType.BIKE_TO_TRANSIT, 25)
        second = make_option("bike_2", OptionType.BIKE_TO_TRANSIT, 25)
        self.assertEqual([o.id for o in deduplicate_options([first, second])], ["bike_1"])

    def test_type_is_part_of_signature(self):
        options = [
            make_option("bike_1", OptionType.BIKE_TO_TRANSIT, 25),
            make_option("transit_1", OptionType.TRANSIT_ONLY, 30),
            make_option("transit_2", OptionType.TRANSIT_ONLY, 28, routes=("G", "7")),
        ]
        self.assertEqual(len(deduplicate_options(options)), 3)


class TestRankOptions(unittest.TestCase):
    """Test ordering and the bad-weather adjustment."""

    def test_empty(self):
        self.assertEqual(rank_options([], BAD_WEATHER), [])

    def test_sorted_by_duration(self):
        options = [
            make_option("c", OptionType.TRANSIT_ONLY, 40),
            make_option("a", OptionType.BIKE_TO_TRANSIT, 20),
            make_option("b", OptionType.WALK_ONLY, 30),
        ]

        ranked = rank_options(options, DEFAULT_WEATHER)

        self.assertEqual([o.id for o in ranked], ["a", "b", "c"])
        self.assertEqual([o.rank for o in ranked], [1, 2, 3])

    def test_ties_keep_input_order(self):
        options = [
            make_option("x", OptionType.TRANSIT_ONLY, 20),
            make_option("y", OptionType.BIKE_TO_TRANSIT, 20),
        ]
        self.assertEqual([o.id for o in rank_options(options, DEFAULT_WEATHER)], ["x", "y"])

    def test_bad_weather_moves_first_transit_option_up(self):
        options = [
            make_option("bike_fast", OptionType.BIKE_TO_TRANSIT, 20),
            make_option("bike_slow", OptionType.BIKE_TO_TRANSIT, 25),
            make_option("walk", OptionType.WALK_ONLY, 27),
            make_option("transit_a", OptionType.TRANSIT_ONLY, 30),
            make_option("transit_b", OptionType.TRANSIT_ONLY, 35),
        ]

        ranked = rank_options(options, BAD_WEATHER)

        self.assertEqual(
            [o.id for o in ranked],
            ["transit_a", "bike_fast", "bike_slow", "walk", "transit_b"],
        )
        self.assertEqual([o.rank for o in ranked], [1, 2, 3, 4, 5])

    def test_bad_weather_without_transit_option(self):
        options = [
            make_option("bike", OptionType.BIKE_TO_TRANSIT, 20),
            make_option("walk", OptionType.WALK_ONLY, 30),
        ]
        self.assertEqual([o.id for o in rank_options(options, BAD_WEATHER)], ["bike", "walk"])

    def test_bad_weather_walk_first_unchanged(self):
        options = [
            make_option("walk", OptionType.WALK_ONLY, 15),
            make_option("bike", OptionType.BIKE_TO_TRANSIT, 20),
            make_option("transit", OptionType.TRANSIT_ONLY, 30),
        ]
        self.assertEqual(
            [o.id for o in rank_options(options, BAD_WEATHER)],
            ["walk", "bike", "transit"],
        )

    def test_ranking_is_idempotent(self):
        options = [
            make_option("bike", OptionType.BIKE_TO_TRANSIT, 20),
            make_option("transit", OptionType.TRANSIT_ONLY, 30),
        ]
        once = [o.id for o in rank_options(options, BAD_WEATHER)]
        twice = [o.id for o in rank_options(rank_options(options, BAD_WEATHER), BAD_WEATHER)]
        self.assertEqual(once, ["transit", "bike"])
        self.assertEqual(once, twice)


if __name__ == "__main__":
    unittest.main()
