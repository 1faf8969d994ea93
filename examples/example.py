"""Example usage of CommutePlanner and ArrivalAggregator."""

import logging
import sys
from pathlib import Path

# Add src to path so we can import spokeexpress
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from spokeexpress.arrivals import ArrivalAggregator
from spokeexpress.commute import CommutePlanner
from spokeexpress.config import CommuteConfig

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def print_commute():
    """Plan the configured commute and print the ranked options."""
    print(f"\n{'='*70}")
    print("Planning commute")
    print(f"{'='*70}\n")

    try:
        config = CommuteConfig.from_env()
        response = CommutePlanner(config).plan()
    except ValueError as e:
        print(f"Error: {e}")
        print("Set SPOKE_HOME_LAT/LNG and SPOKE_WORK_LAT/LNG (a .env file works too)")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Failed to plan commute: {e}", exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)

    weather = response.weather
    print(f"Weather: {weather.conditions}, {weather.temp_f}°F"
          f"{' (bad for biking)' if weather.is_bad else ''}\n")

    print("OPTIONS:")
    print("-" * 70)
    if response.options:
        for option in response.options:
            print(f"{option.rank}. {option.summary}")
            print(f"   {option.duration_minutes} min, next train {option.next_train}, arrive {option.arrival_time}")
    else:
        print("  No commute options available")

    print("\n" + "=" * 70)
    print("SERVICE ALERTS:")
    print("-" * 70)
    if response.alerts:
        for alert in response.alerts:
            print(f"\nLines {', '.join(alert.route_ids)} [{alert.effect.value}]:")
            print(f"  {alert.header_text}")
    else:
        print("  No service alerts")

    print(f"\nGenerated at {response.generated_at}\n")


def print_station(stop_id: str, lines):
    """
    Print grouped live arrivals for one station.

    Args:
        stop_id: GTFS stop prefix (e.g., "G33")
        lines: Lines serving the station (e.g., ["G"])
    """
    aggregator = ArrivalAggregator()
    groups = aggregator.get_grouped_arrivals(stop_id, lines)
    if not groups:
        print("No arrivals found")
        return
    for group in groups:
        times = ", ".join(f"{a.minutes_away} min" for a in group.arrivals)
        print(f"  {group.line} {group.headsign}: {times}")


if __name__ == "__main__":
    if len(sys.argv) > 2:
        # Station mode: stop ID followed by lines, e.g. "G33 G"
        print_station(sys.argv[1], sys.argv[2:])
    else:
        print_commute()
