"""Tests for the Google Routes transit adapter."""

import unittest
from unittest.mock import MagicMock
import sys
from pathlib import Path

import requests

# Add src to path so we can import spokeexpress
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from spokeexpress.cache import TTLCache
from spokeexpress.routing import (
    ROUTES_URL,
    TransitRouter,
    normalize_line_name,
    parse_routes_response,
)

ROUTES_PAYLOAD = {
    "routes": [{
        "duration": "1530s",
        "distanceMeters": 8047,
        "legs": [{
            "steps": [
                {"travelMode": "WALK", "staticDuration": "120s"},
                {
                    "travelMode": "TRANSIT",
                    "staticDuration": "601s",
                    "transitDetails": {
                        "stopDetails": {
                            "departureStop": {"name": "Bedford-Nostrand Avs"},
                            "arrivalStop": {"name": "Hoyt-Schermerhorn Sts"},
                        },
                        "transitLine": {"nameShort": "G", "vehicle": {"type": "SUBWAY"}},
                        "stopCount": 5,
                    },
                },
                {
                    "travelMode": "TRANSIT",
                    "staticDuration": "540s",
                    "transitDetails": {
                        "stopDetails": {
                            "departureStop": {"name": "Hoyt-Schermerhorn Sts"},
                            "arrivalStop": {"name": "Jay St-MetroTech"},
                        },
                        "transitLine": {"name": "Eighth Avenue Express", "vehicle": {"type": "SUBWAY"}},
                        "stopCount": 1,
                    },
                },
            ],
        }],
    }],
}


class TestNormalizeLineName(unittest.TestCase):
    """Test reduction of Google line names to route IDs."""

    def test_bullets_pass_through(self):
        self.assertEqual(normalize_line_name("G"), "G")
        self.assertEqual(normalize_line_name("7"), "7")

    def test_service_names(self):
        self.assertEqual(normalize_line_name("Crosstown Line"), "G")
        self.assertEqual(normalize_line_name("Lexington Avenue Express"), "4")

    def test_suffixes_stripped(self):
        self.assertEqual(normalize_line_name("A Train"), "A")
        self.assertEqual(normalize_line_name("6 Exp"), "6")


class TestParseRoutesResponse(unittest.TestCase):
    """Test parsing of computeRoutes bodies."""

    def test_parse_ok(self):
        route = parse_routes_response(ROUTES_PAYLOAD)

        self.assertTrue(route.ok)
        self.assertEqual(route.duration_minutes, 26)
        self.assertEqual(route.distance, "5.0 mi")
        self.assertEqual([s.line for s in route.transit_steps], ["G", "A"])

        first = route.transit_steps[0]
        self.assertEqual(first.duration_minutes, 11)
        self.assertEqual(first.departure_stop, "Bedford-Nostrand Avs")
        self.assertEqual(first.arrival_stop, "Hoyt-Schermerhorn Sts")
        self.assertEqual(first.stop_count, 5)
        self.assertEqual(first.vehicle, "SUBWAY")

    def test_no_routes(self):
        route = parse_routes_response({})
        self.assertEqual(route.status, "ZERO_RESULTS")
        self.assertFalse(route.ok)

    def test_error_body(self):
        route = parse_routes_response({"error": {"code": 403}})
        self.assertEqual(route.status, "ERROR")
        self.assertFalse(route.ok)


class TestTransitRouter(unittest.TestCase):
    """Test the HTTP side of the router."""

    def setUp(self):
        self.session = MagicMock()
        response = MagicMock()
        response.json.return_value = ROUTES_PAYLOAD
        self.session.post.return_value = response
        self.router = TransitRouter("maps-key", session=self.session, cache=TTLCache(ttl_seconds=300))

    def test_no_key_returns_none(self):
        router = TransitRouter(None, session=self.session)
        self.assertIsNone(router.get_transit_route(40.68, -73.95, 40.74, -73.94))
        self.session.post.assert_not_called()

    def test_get_transit_route(self):
        route = self.router.get_transit_route(40.6895, -73.9535, 40.7471, -73.9456)

        self.assertTrue(route.ok)
        args, kwargs = self.session.post.call_args
        self.assertEqual(args[0], ROUTES_URL)
        self.assertEqual(kwargs["headers"]["X-Goog-Api-Key"], "maps-key")
        self.assertEqual(kwargs["json"]["travelMode"], "TRANSIT")

    def test_ok_routes_cached(self):
        self.router.get_transit_route(40.6895, -73.9535, 40.7471, -73.9456)
        self.router.get_transit_route(40.6895, -73.9535, 40.7471, -73.9456)
        self.assertEqual(self.session.post.call_count, 1)

    def test_failures_not_cached(self):
        self.session.post.side_effect = requests.ConnectionError("offline")

        first = self.router.get_transit_route(40.6895, -73.9535, 40.7471, -73.9456)
        second = self.router.get_transit_route(40.6895, -73.9535, 40.7471, -73.9456)

        self.assertEqual(first.status, "ERROR")
        self.assertEqual(second.status, "ERROR")
        self.assertEqual(self.session.post.call_count, 2)


if __name__ == "__main__":
    unittest.main()
